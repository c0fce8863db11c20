"""
dtareader: Decoder for the channel header of DTA dataloggers.

This library decodes the tagged binary header a DTA datalogger sends before
its data records into a description of the logger's analogue, digital and
enumerated channels, and can fetch that header from a logger over the network.
"""

from __future__ import annotations

from .client import LoggerClient, fetch_header
from .exceptions import (
    DTAConnectionError,
    DTADecodeError,
    DTAError,
    DTATimeoutError,
    TruncatedError,
    UnknownFieldTypeError,
    UnsupportedVersionError,
)
from .protocol import (
    AnalogueField,
    DigitalFieldGroup,
    DigitalFieldItem,
    HeaderDescriptor,
    decode_header,
)
from .transport import LoggerTransport

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Decoding
    "HeaderDescriptor",
    "AnalogueField",
    "DigitalFieldGroup",
    "DigitalFieldItem",
    "decode_header",
    # Device access
    "LoggerClient",
    "LoggerTransport",
    "fetch_header",
    # Exceptions
    "DTAError",
    "DTAConnectionError",
    "DTATimeoutError",
    "DTADecodeError",
    "UnsupportedVersionError",
    "TruncatedError",
    "UnknownFieldTypeError",
]
