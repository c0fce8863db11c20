"""Common types and constants shared across protocol components.

This module contains fundamental types used throughout the protocol layer.
"""

from enum import Enum, Flag, IntEnum

SUPPORTED_VERSION = 9003  # The only header version the decoder accepts

DEFAULT_ANALOGUE_FACTOR = 10  # Fixed-point scale when the tag carries no explicit factor

ALL_CHANNELS = 0xFFFF  # Digital group mask with every channel bit set

PREAMBLE_SIZE = 8  # version (u32) + field block size (u32)


class FieldType(IntEnum):
    """Field type selected by the low nibble of a tag byte."""

    CATEGORY = 0x0
    ANALOGUE = 0x1
    DIGITAL = 0x2
    ENUM = 0x3
    DIGITAL_SEPARATE = 0x4  # Digital group whose tag always carries an explicit direction mask


class TagFlag(Flag):
    """Independent flag bits of a tag byte.

    EXPLICIT_DIRECTION shares its bit with the field type nibble, so a
    DIGITAL_SEPARATE tag always has it set.
    """

    EXPLICIT_DIRECTION = 0b00000100  # Digital: direction mask follows
    SUPPORT_ONLY = 0b00100000  # Digital: support-only mask follows
    VISIBILITY = 0b01000000  # Digital: visibility mask follows
    EXTENDED = 0b10000000  # Analogue: factor follows; digital: all channels are outputs


class ChannelDirection(Enum):
    """Direction of a digital channel as seen from the logger."""

    INPUT = 0
    OUTPUT = 1
