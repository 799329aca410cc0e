"""Data models for CrossComm requests and tracked variables."""

from pycrosscom.models.krl import KrlKind, KrlStruct, KrlValue, parse_krl_value
from pycrosscom.models.request import Callback, Request
from pycrosscom.models.variable import Variable

__all__ = [
    "Callback",
    "KrlKind",
    "KrlStruct",
    "KrlValue",
    "Request",
    "Variable",
    "parse_krl_value",
]
