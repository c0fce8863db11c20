"""DTA logger transport layer for handling connections and raw I/O."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import serial_asyncio_fast

from .exceptions import DTAConnectionError, DTATimeoutError

logger = logging.getLogger(__name__)


class LoggerTransport:
    """Byte stream to a DTA logger.

    The url is any URL pyserial understands, so the same transport reaches a
    logger on the network (socket://192.168.1.50:80), behind a serial server
    (rfc2217://192.168.1.50:10001) or on a local port (/dev/ttyUSB0, COM3).

    Usage:
        async with LoggerTransport("socket://192.168.1.50:80") as transport:
            await transport.write(request)
            line = await transport.read_line()
    """

    url: str
    timeout: float
    serial_kwargs: dict[str, Any]

    _reader: asyncio.StreamReader | None
    _writer: asyncio.StreamWriter | None
    _connected: bool

    def __init__(self, url: str, timeout: float = 5.0, **kwargs: Any) -> None:
        """Store connection settings; call open() or use async with to connect.

        Args:
            url: Connection URL (socket://host:port, rfc2217://host:port or serial port)
            timeout: Seconds to wait for each read before giving up (default 5.0)
            **kwargs: Additional serial parameters (baudrate, parity, rtscts, etc.)
        """
        self.url = url
        self.timeout = timeout
        self.serial_kwargs = dict(kwargs)

        self._reader = None
        self._writer = None
        self._connected = False

    async def open(self) -> None:
        """Open connection to the logger.

        Raises:
            DTAConnectionError: If connection fails
        """
        if self._connected:
            return

        try:
            reader, writer = await serial_asyncio_fast.open_serial_connection(url=self.url, **self.serial_kwargs)
        except Exception as e:
            raise DTAConnectionError(f"Failed to open connection to {self.url}: {e}") from e

        self._reader, self._writer = reader, writer
        self._connected = True

        logger.debug("Opened connection to %s", self.url)

    async def close(self) -> None:
        """Close the connection, including one already marked broken by an I/O error."""
        if self._writer:
            try:
                self._writer.close()
                await self._writer.wait_closed()
            except Exception as e:
                logger.debug("Ignoring error while closing %s: %s", self.url, e)

        self._reader = None
        self._writer = None
        self._connected = False

    def is_connected(self) -> bool:
        """Whether open() succeeded and no I/O error has occurred since."""
        return self._connected

    async def write(self, data: bytes) -> None:
        """Send bytes and wait until they are flushed.

        Args:
            data: Request bytes

        Raises:
            DTAConnectionError: If not connected or the write fails
        """
        if not self._connected or not self._writer:
            raise DTAConnectionError("Transport is not connected")

        try:
            self._writer.write(data)
            await self._writer.drain()
        except Exception as e:
            self._connected = False
            raise DTAConnectionError(f"Failed to write data: {e}") from e

        logger.debug("Wrote %d byte(s) to %s", len(data), self.url)

    async def read(self, size: int) -> bytes:
        """Read exactly size bytes.

        Args:
            size: Byte count

        Returns:
            Exactly size bytes, or fewer if the peer closed the connection

        Raises:
            DTAConnectionError: If not connected or the read fails
            DTATimeoutError: If no complete result arrives within timeout
        """
        if not self._connected or not self._reader:
            raise DTAConnectionError("Transport is not connected")

        try:
            return await asyncio.wait_for(self._reader.readexactly(size), timeout=self.timeout)
        except TimeoutError as e:
            raise DTATimeoutError(f"Timed out reading {size} byte(s) from {self.url}") from e
        except asyncio.IncompleteReadError as e:
            logger.debug("Connection to %s closed after %d of %d byte(s)", self.url, len(e.partial), size)
            return e.partial
        except Exception as e:
            self._connected = False
            raise DTAConnectionError(f"Failed to read data: {e}") from e

    async def read_line(self) -> bytes:
        """Read one line including its trailing newline.

        Returns:
            The line, or the remaining bytes without newline if the peer
            closed the connection

        Raises:
            DTAConnectionError: If not connected or the read fails
            DTATimeoutError: If no newline arrives within timeout
        """
        if not self._connected or not self._reader:
            raise DTAConnectionError("Transport is not connected")

        try:
            return await asyncio.wait_for(self._reader.readuntil(b"\n"), timeout=self.timeout)
        except TimeoutError as e:
            raise DTATimeoutError(f"Timed out reading line from {self.url}") from e
        except asyncio.IncompleteReadError as e:
            return e.partial
        except Exception as e:
            self._connected = False
            raise DTAConnectionError(f"Failed to read data: {e}") from e

    async def __aenter__(self) -> LoggerTransport:
        await self.open()
        return self

    async def __aexit__(self, *_exc_info: Any) -> None:
        await self.close()
