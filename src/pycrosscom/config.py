"""Client configuration for pycrosscom."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pycrosscom._constants import DEFAULT_POLL_INTERVAL, DEFAULT_PORT, DEFAULT_TIMEOUT, VAR_LIST_FILENAME
from pycrosscom.exceptions import CrossComConfigError


@dataclasses.dataclass(frozen=True)
class CrossComConfig:
    """Client configuration.

    Parameters
    ----------
    host : str
        Hostname or IP address of the controller running KUKAVARPROXY.
    port : int
        TCP port of the proxy. Defaults to ``7000``.
    timeout : float
        Seconds allowed for connecting and for each request round trip.
    poll_interval : float
        Seconds between two poll sweeps of the tracked variables.
    var_list_path : Path
        File holding the tracked variable names, one per line.
    """

    host: str
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    var_list_path: Path = Path(VAR_LIST_FILENAME)

    def __post_init__(self) -> None:
        if not self.host or not self.host.strip():
            raise CrossComConfigError("host must be non-empty")
        if not 0 < self.port <= 65535:
            raise CrossComConfigError(f"port must be between 1 and 65535, got {self.port}")
        if self.timeout <= 0:
            raise CrossComConfigError(f"timeout must be positive, got {self.timeout}")
        if self.poll_interval <= 0:
            raise CrossComConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if not isinstance(self.var_list_path, Path):
            object.__setattr__(self, "var_list_path", Path(self.var_list_path))

    @classmethod
    def from_env(cls, **overrides: Any) -> CrossComConfig:
        """Create configuration from ``CROSSCOM_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP: dict[str, tuple[str, type]] = {
            "CROSSCOM_HOST": ("host", str),
            "CROSSCOM_PORT": ("port", int),
            "CROSSCOM_TIMEOUT": ("timeout", float),
            "CROSSCOM_POLL_INTERVAL": ("poll_interval", float),
            "CROSSCOM_VAR_LIST_PATH": ("var_list_path", Path),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, convert) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = convert(val)
            except ValueError as exc:
                raise CrossComConfigError(f"Invalid value for {env_key}: {val!r}") from exc

        config_kwargs.update(overrides)
        if "host" not in config_kwargs:
            raise CrossComConfigError("CROSSCOM_HOST is not set")

        return cls(**config_kwargs)
