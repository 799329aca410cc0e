"""High-level async client for the CrossComm protocol."""

from __future__ import annotations

import logging
import time
from typing import Any

from pycrosscom._codec import decode_response, encode_request
from pycrosscom._transport import TcpTransport, Transport
from pycrosscom.config import CrossComConfig
from pycrosscom.exceptions import CrossComError, CrossComProtocolError
from pycrosscom.models.request import Callback, Request

_logger = logging.getLogger(__name__)


class CrossComClient:
    """Async client for reading and writing controller variables.

    Usage::

        async with CrossComClient(config) as client:
            callback = await client.read_variable(0, "$OV_PRO")
    """

    def __init__(self, config: CrossComConfig, *, transport: Transport | None = None) -> None:
        self._config = config
        self._transport: Transport = transport if transport is not None else TcpTransport(config)
        self._opened = False

    @property
    def config(self) -> CrossComConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> CrossComClient:
        await self._transport.open()
        self._opened = True
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._opened = False
        await self._transport.close()

    def _require_open(self) -> Transport:
        if not self._opened:
            raise CrossComError("Client not initialized. Use 'async with CrossComClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def send_request(self, request: Request) -> Callback:
        """Send *request* and wait for the matching response."""
        transport = self._require_open()
        frame = encode_request(request)
        _logger.debug("Request #%d %s %s", request.id, "WRITE" if request.is_write else "READ", request.name)

        started = time.monotonic()
        response = await transport.exchange(frame)
        read_time = time.monotonic() - started

        callback = decode_response(response, name=request.name, read_time=read_time)
        if callback.id != request.id:
            await transport.close()
            raise CrossComProtocolError(
                f"Response id {callback.id} does not match request id {request.id}",
                msg_id=callback.id,
            )
        _logger.debug("Response #%d %s = %r (%.1f ms)", callback.id, request.name, callback.value, read_time * 1000)
        return callback

    async def read_variable(self, id: int, name: str) -> Callback:
        return await self.send_request(Request(id=id, name=name))

    async def write_variable(self, id: int, name: str, value: str) -> Callback:
        return await self.send_request(Request(id=id, name=name, value=value))
