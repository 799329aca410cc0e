"""pycrosscom - Async Python client for tracking KUKA controller variables."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pycrosscom")
except PackageNotFoundError:
    __version__ = "0+local"
from pycrosscom.client import CrossComClient
from pycrosscom.config import CrossComConfig
from pycrosscom.exceptions import (
    CrossComConfigError,
    CrossComEncodeError,
    CrossComError,
    CrossComProtocolError,
    CrossComTransportError,
    VariableAlreadyTrackedError,
    VariableTrackError,
)
from pycrosscom.models import Callback, KrlKind, KrlStruct, Request, Variable, parse_krl_value
from pycrosscom.tracker import ListChange, VariableTracker

__all__ = [
    "__version__",
    "Callback",
    "CrossComClient",
    "CrossComConfig",
    "CrossComConfigError",
    "CrossComEncodeError",
    "CrossComError",
    "CrossComProtocolError",
    "CrossComTransportError",
    "KrlKind",
    "KrlStruct",
    "ListChange",
    "Request",
    "Variable",
    "VariableAlreadyTrackedError",
    "VariableTrackError",
    "VariableTracker",
    "parse_krl_value",
]
