"""Custom exception hierarchy for pycrosscom."""

from __future__ import annotations


class CrossComError(Exception):
    """Base exception for all pycrosscom errors."""


class CrossComConfigError(CrossComError):
    """Invalid or missing configuration."""


class CrossComTransportError(CrossComError):
    """Socket-level failure (connect, read, write, timeout)."""

    def __init__(
        self,
        message: str,
        *,
        host: str = "",
        port: int | None = None,
    ) -> None:
        self.host = host
        self.port = port
        super().__init__(message)


class CrossComProtocolError(CrossComError):
    """The controller sent a malformed or unexpected response."""

    def __init__(self, message: str, *, msg_id: int | None = None) -> None:
        self.msg_id = msg_id
        super().__init__(message)


class CrossComEncodeError(CrossComError):
    """A request cannot be represented in the wire format."""


class VariableTrackError(CrossComError):
    """A tracking operation on the variable list was rejected."""


class VariableAlreadyTrackedError(VariableTrackError):
    """A variable with the same name is already being tracked."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A variable with the name '{name}' is already being tracked")
