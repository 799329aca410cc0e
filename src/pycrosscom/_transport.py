"""TCP transport for the CrossComm request/response protocol."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from pycrosscom._codec import HEADER, decode_header
from pycrosscom.config import CrossComConfig
from pycrosscom.exceptions import CrossComTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by :class:`CrossComClient`.

    A transport sends one complete request frame and returns one complete
    response frame.  Tests pass in-memory doubles implementing it.
    """

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def exchange(self, frame: bytes) -> bytes:
        ...


class TcpTransport:
    """asyncio stream transport to a KUKAVARPROXY server.

    One request is in flight at a time.  After a failure the connection
    is dropped and re-opened on the next exchange.
    """

    def __init__(self, config: CrossComConfig) -> None:
        self._config = config
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    def _error(self, message: str) -> CrossComTransportError:
        return CrossComTransportError(message, host=self._config.host, port=self._config.port)

    async def open(self) -> None:
        if self.is_connected:
            return
        _logger.debug("Connecting to %s:%s", self._config.host, self._config.port)
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._config.host, self._config.port),
                timeout=self._config.timeout,
            )
        except (OSError, TimeoutError) as exc:
            raise self._error(f"Could not connect to {self._config.host}:{self._config.port}: {exc!r}") from exc

    async def close(self) -> None:
        writer = self._writer
        self._reader = None
        self._writer = None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            _logger.debug("Error while closing connection", exc_info=True)

    async def _roundtrip(self, frame: bytes) -> bytes:
        assert self._reader is not None and self._writer is not None  # noqa: S101
        self._writer.write(frame)
        await self._writer.drain()
        header = await self._reader.readexactly(HEADER.size)
        _msg_id, content_len = decode_header(header)
        body = await self._reader.readexactly(content_len)
        return header + body

    async def exchange(self, frame: bytes) -> bytes:
        async with self._lock:
            await self.open()
            try:
                response = await asyncio.wait_for(self._roundtrip(frame), timeout=self._config.timeout)
            except asyncio.IncompleteReadError as exc:
                await self.close()
                raise self._error("Connection closed by controller mid-response") from exc
            except TimeoutError as exc:
                await self.close()
                raise self._error(f"No response within {self._config.timeout}s") from exc
            except OSError as exc:
                await self.close()
                raise self._error(f"Socket error: {exc!r}") from exc
            except BaseException:
                # A cancelled round trip may leave a response unread on the socket.
                await self.close()
                raise
            _logger.debug("Exchanged %d request bytes for %d response bytes", len(frame), len(response))
            return response
