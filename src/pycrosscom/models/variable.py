"""Tracked variable model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pycrosscom.models.krl import KrlKind, parse_krl_value
from pycrosscom.models.request import Callback


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Variable(BaseModel):
    """A named controller variable and its most recently read value.

    Instances are mutated in place by the tracker on every poll so that
    list positions and object identity stay stable for observers.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: int = Field(..., ge=0)
    name: str
    value: str = ""
    read_time: float = Field(default=0.0, ge=0.0)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_callback(cls, callback: Callback, *, updated_at: datetime | None = None) -> Variable:
        return cls(
            id=callback.id,
            name=callback.name,
            value=callback.value,
            read_time=callback.read_time,
            updated_at=updated_at or _utcnow(),
        )

    def update(self, value: str, read_time: float, *, updated_at: datetime | None = None) -> None:
        """Store a freshly read value."""
        self.value = value
        self.read_time = read_time
        self.updated_at = updated_at or _utcnow()

    @property
    def kind(self) -> KrlKind:
        return parse_krl_value(self.value).kind

    @property
    def parsed(self) -> Any:
        """The value converted by :func:`parse_krl_value`."""
        return parse_krl_value(self.value).value
