"""Tracked-names file: UTF-8 text, one variable name per line."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from pycrosscom._constants import FILE_ENCODING


def read_names(path: Path) -> list[str]:
    """Return the variable names stored in *path*, skipping blank lines."""
    text = path.read_text(encoding=FILE_ENCODING)
    return [line.strip() for line in text.splitlines() if line.strip()]


def write_names(path: Path, names: Iterable[str]) -> None:
    """Write *names* to *path*, newline separated, without a trailing newline."""
    path.write_text("\n".join(names), encoding=FILE_ENCODING, newline="\n")
