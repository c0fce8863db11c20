"""Protocol layer components for DTA logger header decoding.

This package contains all DTA header protocol layer functionality.
"""

from .common import SUPPORTED_VERSION, ChannelDirection, FieldType, TagFlag
from .cursor import ByteCursor
from .fields import (
    AnalogueField,
    CategoryRecord,
    DigitalFieldGroup,
    DigitalFieldItem,
    EnumField,
    FieldTag,
)
from .header import HeaderDescriptor, decode_header

__all__ = [
    # Common types
    "SUPPORTED_VERSION",
    "ChannelDirection",
    "FieldType",
    "TagFlag",
    # Cursor
    "ByteCursor",
    # Field records
    "FieldTag",
    "CategoryRecord",
    "AnalogueField",
    "DigitalFieldItem",
    "DigitalFieldGroup",
    "EnumField",
    # Header
    "HeaderDescriptor",
    "decode_header",
]
