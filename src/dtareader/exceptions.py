"""DTA reader exception classes."""

from __future__ import annotations


class DTAError(Exception):
    """Base exception for all DTA reader errors."""


class DTAConnectionError(DTAError):
    """Connection-related errors."""


class DTATimeoutError(DTAError):
    """Timeout waiting for data from the logger."""


class DTADecodeError(DTAError):
    """The logger header could not be understood."""


class UnsupportedVersionError(DTADecodeError):
    """Header version is not the one supported protocol version."""

    found: int

    def __init__(self, found: int) -> None:
        super().__init__(f"Unsupported header version {found}")
        self.found = found


class TruncatedError(DTADecodeError):
    """Fewer bytes were available than a read required."""

    offset: int
    needed: int
    available: int

    def __init__(self, offset: int, needed: int, available: int, what: str = "bytes") -> None:
        super().__init__(
            f"Truncated header at offset {offset}: needed {needed} byte(s) for {what}, {available} available"
        )
        self.offset = offset
        self.needed = needed
        self.available = available


class UnknownFieldTypeError(DTADecodeError):
    """Tag byte low nibble does not select a known field type."""

    field_type: int
    offset: int

    def __init__(self, field_type: int, offset: int) -> None:
        super().__init__(f"Unknown field type 0x{field_type:X} at offset {offset}")
        self.field_type = field_type
        self.offset = offset
