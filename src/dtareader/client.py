"""Fetch and decode the header of a DTA logger reachable over the network.

The logger serves its header record as the body of an HTTP response to
GET /NewProc. The request is sent over a LoggerTransport socket connection
and the body is handed to the header decoder. A body framed by
Content-Length or chunked encoding is read in full first, so a short body is
reported as a decode error instead of waiting for bytes that never come.

The request asks for a persistent connection and the client closes it
itself once the header has been read: pyserial's socket:// handler reports a
peer close as a connection error, which can overtake bytes still buffered
for the reader.
"""

from __future__ import annotations

import logging

from .exceptions import DTAConnectionError
from .protocol.header import HeaderDescriptor
from .transport import LoggerTransport

logger = logging.getLogger(__name__)

DEFAULT_PORT = 80
DEFAULT_PATH = "/NewProc"

HTTP_OK = 200

_LINE_TERMINATORS = (b"\r\n", b"\n")


class LoggerClient:
    """Client for a single DTA logger.

    Attributes:
        host: Logger host name or IP address
        port: HTTP port of the logger
        path: Request path serving the header record
        timeout: Seconds to wait for each read

    Usage:
        client = LoggerClient("192.168.1.50")
        header = await client.fetch_header()
    """

    host: str
    port: int
    path: str
    timeout: float

    def __init__(self, host: str, port: int = DEFAULT_PORT, path: str = DEFAULT_PATH, timeout: float = 5.0) -> None:
        self.host = host
        self.port = port
        self.path = path
        self.timeout = timeout

    @property
    def url(self) -> str:
        """Transport URL of the logger."""
        return f"socket://{self.host}:{self.port}"

    def build_request(self) -> bytes:
        """Build the HTTP request for the header record."""
        return (
            f"GET {self.path} HTTP/1.1\r\n"
            f"Host: {self.host}\r\n"
            "Accept: application/octet-stream\r\n"
            "Connection: keep-alive\r\n"
            "\r\n"
        ).encode("ascii")

    async def fetch_header(self) -> HeaderDescriptor:
        """Request and decode the logger header.

        Returns:
            The decoded HeaderDescriptor

        Raises:
            DTAConnectionError: If the connection fails or the logger does not
                                answer with HTTP 200
            DTATimeoutError: If the logger stops sending data
            DTADecodeError: If the response body is not a valid header record
        """
        async with LoggerTransport(self.url, timeout=self.timeout) as transport:
            await transport.write(self.build_request())
            response_headers = await self._read_response_head(transport)

            if response_headers.get("transfer-encoding", "").lower() == "chunked":
                header = HeaderDescriptor.from_bytes(await self._read_chunked_body(transport))
            elif "content-length" in response_headers:
                body = await transport.read(self._content_length(response_headers["content-length"]))
                header = HeaderDescriptor.from_bytes(body)
            else:
                header = await HeaderDescriptor.from_bytes_async(transport.read)

        logger.info(
            "Fetched header from %s: %d analogue field(s), %d digital group(s)",
            self.host,
            len(header.analogue_fields),
            len(header.digital_fields),
        )
        return header

    async def _read_response_head(self, transport: LoggerTransport) -> dict[str, str]:
        status_line = await transport.read_line()
        parts = status_line.decode("latin-1").split(None, 2)

        if len(parts) < 2 or not parts[0].startswith("HTTP/"):
            raise DTAConnectionError(f"Malformed HTTP status line from {self.host}: {status_line!r}")

        try:
            status = int(parts[1])
        except ValueError as e:
            raise DTAConnectionError(f"Malformed HTTP status line from {self.host}: {status_line!r}") from e

        if status != HTTP_OK:
            raise DTAConnectionError(f"{self.host}{self.path} returned HTTP {status}")

        response_headers: dict[str, str] = {}
        while True:
            line = await transport.read_line()
            if not line:
                raise DTAConnectionError(f"Connection to {self.host} closed before the response body")
            if line in _LINE_TERMINATORS:
                return response_headers

            name, _, value = line.decode("latin-1").partition(":")
            response_headers[name.strip().lower()] = value.strip()
            logger.debug("Response header %s: %s", name.strip(), value.strip())

    def _content_length(self, value: str) -> int:
        try:
            length = int(value)
        except ValueError as e:
            raise DTAConnectionError(f"Malformed Content-Length from {self.host}: {value!r}") from e

        if length < 0:
            raise DTAConnectionError(f"Malformed Content-Length from {self.host}: {value!r}")
        return length

    async def _read_chunked_body(self, transport: LoggerTransport) -> bytes:
        body = bytearray()

        while True:
            size_line = await transport.read_line()
            try:
                size = int(size_line.split(b";", 1)[0].strip(), 16)
            except ValueError as e:
                raise DTAConnectionError(f"Malformed chunk size from {self.host}: {size_line!r}") from e

            if size == 0:
                return bytes(body)

            chunk = await transport.read(size)
            if len(chunk) != size or await transport.read_line() not in _LINE_TERMINATORS:
                raise DTAConnectionError(f"Connection to {self.host} closed inside a response chunk")
            body.extend(chunk)


async def fetch_header(
    host: str, port: int = DEFAULT_PORT, path: str = DEFAULT_PATH, timeout: float = 5.0
) -> HeaderDescriptor:
    """Fetch and decode the header of the logger at host.

    Shortcut for LoggerClient(host, port, path, timeout).fetch_header().
    """
    return await LoggerClient(host, port, path, timeout).fetch_header()
