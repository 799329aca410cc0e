"""KRL value parsing.

The controller formats every variable value in KUKA Robot Language
syntax.  :func:`parse_krl_value` classifies such a string and converts
it to the closest Python value:

* ``TRUE`` / ``FALSE`` → :class:`bool`
* ``42`` → :class:`int`, ``1.5E-3`` → :class:`float`
* ``"text"`` → :class:`str` (quotes removed)
* ``#T1`` → enum literal :class:`str` (``#`` removed)
* ``{E6POS: X 1.0, Y 2.0}`` → :class:`KrlStruct`

Anything else is returned untouched as :attr:`KrlKind.UNKNOWN`.
Parsing never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

_INT_RE = re.compile(r"[+-]?\d+")
_REAL_RE = re.compile(r"[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?")
_ENUM_RE = re.compile(r"#[A-Za-z_$][\w$]*")
_TYPE_HEADER_RE = re.compile(r"([A-Za-z_$][\w$]*)\s*:")


class KrlKind(StrEnum):
    BOOL = "bool"
    INT = "int"
    REAL = "real"
    STRING = "string"
    ENUM = "enum"
    STRUCT = "struct"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class KrlStruct:
    """A parsed KRL structure such as ``{E6POS: X 1.0, Y 2.0}``."""

    type_name: str | None
    fields: dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]


@dataclass(frozen=True)
class KrlValue:
    """A classified KRL value."""

    kind: KrlKind
    value: Any


def _split_top_level(body: str) -> list[str]:
    """Split a struct body on commas that are not nested or quoted."""
    parts: list[str] = []
    depth = 0
    in_quote = False
    start = 0
    for index, char in enumerate(body):
        if char == '"':
            in_quote = not in_quote
        elif in_quote:
            continue
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(body[start:index])
            start = index + 1
    parts.append(body[start:])
    return [part.strip() for part in parts if part.strip()]


def _parse_struct(text: str) -> KrlStruct | None:
    body = text[1:-1].strip()
    type_name: str | None = None
    header = _TYPE_HEADER_RE.match(body)
    if header is not None:
        type_name = header.group(1)
        body = body[header.end() :]

    fields: dict[str, Any] = {}
    for item in _split_top_level(body):
        key, _, rest = item.partition(" ")
        if not key:
            return None
        fields[key] = parse_krl_value(rest).value
    return KrlStruct(type_name=type_name, fields=fields)


def parse_krl_value(text: str) -> KrlValue:
    """Classify and convert a raw KRL value string."""
    stripped = text.strip()
    upper = stripped.upper()

    if upper in ("TRUE", "FALSE"):
        return KrlValue(KrlKind.BOOL, upper == "TRUE")
    if _INT_RE.fullmatch(stripped):
        return KrlValue(KrlKind.INT, int(stripped))
    if _REAL_RE.fullmatch(stripped):
        return KrlValue(KrlKind.REAL, float(stripped))
    if len(stripped) >= 2 and stripped.startswith('"') and stripped.endswith('"'):
        return KrlValue(KrlKind.STRING, stripped[1:-1])
    if _ENUM_RE.fullmatch(stripped):
        return KrlValue(KrlKind.ENUM, stripped[1:])
    if stripped.startswith("{") and stripped.endswith("}"):
        struct = _parse_struct(stripped)
        if struct is not None:
            return KrlValue(KrlKind.STRUCT, struct)
    return KrlValue(KrlKind.UNKNOWN, text)
