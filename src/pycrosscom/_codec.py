"""CrossComm (KUKAVARPROXY) wire format.

Every integer is an unsigned 16-bit big-endian value.

Request::

    msg_id | content_len | mode | name_len | name [| value_len | value]

Response::

    msg_id | content_len | mode | value_len | value | tail(3)

``content_len`` counts every byte that follows it.  The controller
signals success with a non-zero last tail byte.
"""

from __future__ import annotations

import struct

from pycrosscom._constants import MAX_FIELD_LEN, MODE_READ, MODE_WRITE, WIRE_ENCODING
from pycrosscom.exceptions import CrossComEncodeError, CrossComProtocolError
from pycrosscom.models.request import Callback, Request

HEADER = struct.Struct(">HH")
_MODE = struct.Struct(">B")
_LEN = struct.Struct(">H")
_TAIL_LEN = 3


def _encode_field(text: str) -> bytes:
    try:
        raw = text.encode(WIRE_ENCODING)
    except UnicodeEncodeError as exc:
        raise CrossComEncodeError(f"{text!r} cannot be encoded as {WIRE_ENCODING}") from exc
    if len(raw) > MAX_FIELD_LEN:
        raise CrossComEncodeError(f"field is too long for the wire format ({len(raw)} bytes)")
    return _LEN.pack(len(raw)) + raw


def encode_request(request: Request) -> bytes:
    """Serialize *request* into a complete frame."""
    content = _MODE.pack(request.mode) + _encode_field(request.name)
    if request.value is not None:
        content += _encode_field(request.value)
    if len(content) > MAX_FIELD_LEN:
        raise CrossComEncodeError(f"request is too long for the wire format ({len(content)} bytes)")
    return HEADER.pack(request.id, len(content)) + content


def decode_header(data: bytes) -> tuple[int, int]:
    """Return ``(msg_id, content_len)`` from the first four frame bytes."""
    if len(data) < HEADER.size:
        raise CrossComProtocolError(f"Response header too short ({len(data)} bytes)")
    msg_id, content_len = HEADER.unpack_from(data)
    return msg_id, content_len


def decode_response(frame: bytes, *, name: str, read_time: float = 0.0) -> Callback:
    """Decode a complete response frame into a :class:`Callback`."""
    msg_id, content_len = decode_header(frame)
    body = frame[HEADER.size :]
    if len(body) != content_len:
        raise CrossComProtocolError(
            f"Response length mismatch: header says {content_len}, got {len(body)}",
            msg_id=msg_id,
        )
    if len(body) < _MODE.size + _LEN.size:
        raise CrossComProtocolError("Response body too short", msg_id=msg_id)

    (mode,) = _MODE.unpack_from(body)
    if mode not in (MODE_READ, MODE_WRITE):
        raise CrossComProtocolError(f"Unknown response mode {mode}", msg_id=msg_id)
    (value_len,) = _LEN.unpack_from(body, _MODE.size)
    start = _MODE.size + _LEN.size
    end = start + value_len
    if len(body) < end + _TAIL_LEN:
        raise CrossComProtocolError(
            f"Response truncated: value needs {value_len} bytes plus tail",
            msg_id=msg_id,
        )

    value = body[start:end].decode(WIRE_ENCODING)
    tail = body[end:]
    return Callback(
        id=msg_id,
        name=name,
        value=value,
        mode=mode,
        ok=tail[-1] != 0,
        read_time=read_time,
    )


def encode_response(msg_id: int, value: str, *, mode: int = MODE_READ, ok: bool = True) -> bytes:
    """Build a response frame the way the controller does."""
    tail = b"\x00\x01\x01" if ok else b"\x00\x00\x00"
    content = _MODE.pack(mode) + _encode_field(value) + tail
    return HEADER.pack(msg_id, len(content)) + content
