"""Shared test fixtures for dtareader tests."""

from __future__ import annotations

import asyncio
import struct
from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_serial_connection() -> tuple[AsyncMock, AsyncMock]:
    """Create mock reader and writer for transport connections."""
    mock_reader = AsyncMock()
    mock_writer = AsyncMock()

    # StreamWriter.write and close are synchronous
    mock_writer.write = MagicMock()
    mock_writer.drain = AsyncMock()
    mock_writer.close = MagicMock()
    mock_writer.wait_closed = AsyncMock()

    mock_reader.readexactly = AsyncMock()
    mock_reader.readuntil = AsyncMock()

    return mock_reader, mock_writer


@pytest.fixture
def mock_open_serial_connection(mock_serial_connection: tuple[AsyncMock, AsyncMock]) -> Any:
    """Mock serial_asyncio_fast.open_serial_connection."""
    mock_reader, mock_writer = mock_serial_connection

    async def mock_open(*_args: Any, **_kwargs: Any) -> tuple[AsyncMock, AsyncMock]:
        return mock_reader, mock_writer

    return mock_open


@pytest.fixture
def sample_header() -> bytes:
    """Header record with a category, two analogue fields, an enum and a digital group.

    Layout of the field block:
        dataset count 120, dataset length 14
        0x00 "Temperatures"
        0x01 "Flow" FF 00 00                      (factor 10)
        0x81 "Return" 00 80 FF, factor 100
        0x03 "Mode" 2 labels "Off" "Heat"
        0x00 "Outputs"
        0x62 2 items, visibility 0x0001, support-only 0x0003,
             "Pump" 00 FF 00, "Valve" 10 20 30
    """
    block = (
        struct.pack("<hh", 120, 14)
        + b"\x00Temperatures\x00"
        + b"\x01Flow\x00\xff\x00\x00"
        + b"\x81Return\x00\x00\x80\xff"
        + struct.pack("<h", 100)
        + b"\x03Mode\x00\x02Off\x00Heat\x00"
        + b"\x00Outputs\x00"
        + b"\x62\x02"
        + struct.pack("<HH", 0x0001, 0x0003)
        + b"Pump\x00\x00\xff\x00"
        + b"Valve\x00\x10\x20\x30"
    )
    return struct.pack("<II", 9003, len(block)) + block


# Mock logger


class MockLoggerServer:
    """Mock DTA logger serving its header record over HTTP."""

    def __init__(self, body: bytes, host: str = "127.0.0.1", port: int = 0) -> None:
        self.host = host
        self.port = port
        self.body = body
        self.status = "200 OK"
        self.chunk_size = 0  # 0 = send body with Content-Length
        self.server: asyncio.Server | None = None
        self.requests: list[bytes] = []

    async def start(self) -> None:
        """Start the mock server."""
        self.server = await asyncio.start_server(
            self._handle_client, self.host, self.port
        )
        if self.port == 0:
            self.port = self.server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        """Stop the mock server."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()

    async def _handle_client(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Answer one HTTP request, then hold the connection until the client closes it."""
        try:
            request = await reader.readuntil(b"\r\n\r\n")
            self.requests.append(request)

            writer.write(self._response())
            await writer.drain()

            await reader.read()  # Wait for client to close
        except (asyncio.IncompleteReadError, ConnectionError):
            pass  # Client went away
        finally:
            writer.close()
            await writer.wait_closed()

    def _response(self) -> bytes:
        """Build the HTTP response carrying the body."""
        if not self.chunk_size:
            head = (
                f"HTTP/1.1 {self.status}\r\n"
                "Content-Type: application/octet-stream\r\n"
                f"Content-Length: {len(self.body)}\r\n"
                "\r\n"
            )
            return head.encode("ascii") + self.body

        head = (
            f"HTTP/1.1 {self.status}\r\n"
            "Content-Type: application/octet-stream\r\n"
            "Transfer-Encoding: chunked\r\n"
            "\r\n"
        )
        response = bytearray(head.encode("ascii"))
        for start in range(0, len(self.body), self.chunk_size):
            chunk = self.body[start : start + self.chunk_size]
            response.extend(f"{len(chunk):X}\r\n".encode("ascii") + chunk + b"\r\n")
        response.extend(b"0\r\n\r\n")
        return bytes(response)


@pytest.fixture
async def mock_logger_server(sample_header: bytes) -> AsyncGenerator[MockLoggerServer]:
    """Create a mock logger serving sample_header."""
    server = MockLoggerServer(sample_header)
    await server.start()
    yield server
    await server.stop()


# Markers
def pytest_configure(config: Any) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test (fast, uses mocks)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as exercising real sockets end to end"
    )
    config.addinivalue_line(
        "markers", "network: mark test as talking to a mock logger over localhost TCP"
    )
