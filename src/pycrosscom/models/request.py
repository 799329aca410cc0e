"""Request and response envelopes exchanged with the controller."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pycrosscom._constants import MAX_MSG_ID, MODE_READ, MODE_WRITE


class Request(BaseModel):
    """A single read or write request.

    A request carrying a ``value`` is a write; without one it is a read.
    ``name`` is sent verbatim, so names with surrounding whitespace are
    rejected rather than trimmed.
    The ``id`` is echoed back by the controller and used to match the
    response to the tracked variable.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int = Field(..., ge=0, le=MAX_MSG_ID)
    name: str
    value: str | None = None

    @field_validator("name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("variable name must be non-empty")
        if value != value.strip():
            raise ValueError(f"variable name must not have surrounding whitespace: {value!r}")
        return value

    @property
    def is_write(self) -> bool:
        return self.value is not None

    @property
    def mode(self) -> int:
        return MODE_WRITE if self.is_write else MODE_READ


class Callback(BaseModel):
    """Decoded controller response.

    Parameters
    ----------
    id : int
        Message id echoed from the request.
    name : str
        Variable name of the originating request (not sent back by the
        controller).
    value : str
        Raw KRL value text.
    mode : int
        ``0`` for a read response, ``1`` for a write response.
    ok : bool
        Whether the controller reported success in the response tail.
    read_time : float
        Seconds the request round trip took.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int = Field(..., ge=0, le=MAX_MSG_ID)
    name: str
    value: str = ""
    mode: int = MODE_READ
    ok: bool = True
    read_time: float = Field(default=0.0, ge=0.0)

    @property
    def is_write(self) -> bool:
        return self.mode == MODE_WRITE
