"""Field record types and tag interpretation for the DTA field definition block.

This module implements the tagged field records that follow the dataset
metadata inside the field definition block. It provides:

Classes:
    - FieldTag: Interpreted tag byte (field type nibble + flag bits)
    - CategoryRecord: Category label applying to the fields that follow it
    - AnalogueField: Continuously valued channel with colour and scale factor
    - DigitalFieldItem: One boolean channel of a digital field group
    - DigitalFieldGroup: Batch of digital channels sharing one record
    - EnumField: Enumerated-value channel with its value labels

The tag byte structure:
    bits 0-3: field type (FieldType)
    bit 2:    explicit direction mask follows (digital groups)
    bit 5:    support-only mask follows (digital groups)
    bit 6:    visibility mask follows (digital groups)
    bit 7:    explicit factor follows (analogue), all channels are outputs (digital)

Each record class decodes its own payload from a ByteCursor in from_cursor();
decode_field_record() reads the tag byte and dispatches on the field type.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..exceptions import UnknownFieldTypeError
from .common import ALL_CHANNELS, DEFAULT_ANALOGUE_FACTOR, ChannelDirection, FieldType, TagFlag
from .cursor import ByteCursor

# =============================================================================
# Tag Constants
# =============================================================================

TAG_FIELD_TYPE_MASK = 0b00001111  # Bits 0-3: field type
TAG_FLAG_MASK = 0b11100100  # Bits 2, 5, 6, 7: flags

DIGITAL_MASK_BITS = 16  # Width of the visibility/support-only/direction masks

# =============================================================================
# Tag Byte
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class FieldTag:
    """Interpreted tag byte of a field record.

    Attributes:
        code: The raw tag byte value (0x00-0xFF)
        field_type: Field type from the low nibble
        flags: Flag bits present in the tag
        offset: Absolute offset of the tag byte in the header record
    """

    code: int
    field_type: FieldType
    flags: TagFlag
    offset: int

    @classmethod
    def from_code(cls, code: int, offset: int) -> FieldTag:
        """Interpret a tag byte.

        Raises:
            UnknownFieldTypeError: If the low nibble is not a known field type
        """
        type_code = code & TAG_FIELD_TYPE_MASK

        try:
            field_type = FieldType(type_code)
        except ValueError:
            raise UnknownFieldTypeError(type_code, offset) from None

        return cls(code=code, field_type=field_type, flags=TagFlag(code & TAG_FLAG_MASK), offset=offset)


# =============================================================================
# Field Records
# =============================================================================


@dataclass(frozen=True, kw_only=True)
class CategoryRecord:
    """Category tag (0x0): names the group of fields that follow."""

    name: str

    @classmethod
    def from_cursor(cls, tag: FieldTag, cursor: ByteCursor, category: str) -> CategoryRecord:
        return cls(name=cursor.read_nul_terminated_string())


@dataclass(frozen=True, kw_only=True)
class AnalogueField:
    """Analogue channel (0x1).

    Values of this channel are fixed-point numbers: a raw value of 123 with
    factor 10 represents 12.3.

    Attributes:
        category: Running category at the point the field was decoded
        name: Channel name
        color: Display colour as opaque 32-bit ARGB
        factor: Fixed-point scale factor (DEFAULT_ANALOGUE_FACTOR unless explicit)
    """

    category: str
    name: str
    color: int
    factor: int = DEFAULT_ANALOGUE_FACTOR

    def scale(self, raw: int) -> float:
        """Convert a raw channel value to its real value."""
        return raw / self.factor

    @classmethod
    def from_cursor(cls, tag: FieldTag, cursor: ByteCursor, category: str) -> AnalogueField:
        name = cursor.read_nul_terminated_string()
        color = cursor.read_color()

        if TagFlag.EXTENDED in tag.flags:
            factor = cursor.read_i16_le()
        else:
            factor = DEFAULT_ANALOGUE_FACTOR

        return cls(category=category, name=name, color=color, factor=factor)


@dataclass(frozen=True, kw_only=True)
class DigitalFieldItem:
    """One channel of a digital field group.

    category, name and color identify the channel. visible, support_only and
    direction are bit i of the group masks for the item at position i; items
    past the mask width read those bits as 0.
    """

    category: str
    name: str
    color: int
    visible: bool = True
    support_only: bool = True
    direction: ChannelDirection = ChannelDirection.INPUT


@dataclass(frozen=True, kw_only=True)
class DigitalFieldGroup:
    """Digital field group (0x2 or 0x4).

    Attributes:
        items: Channels in stream order
        visibility: Raw visibility mask (ALL_CHANNELS unless explicit)
        support_only: Raw support-only mask (ALL_CHANNELS unless explicit)
        direction: Raw direction mask, bit set = output
    """

    items: tuple[DigitalFieldItem, ...]
    visibility: int = ALL_CHANNELS
    support_only: int = ALL_CHANNELS
    direction: int = 0

    @classmethod
    def from_cursor(cls, tag: FieldTag, cursor: ByteCursor, category: str) -> DigitalFieldGroup:
        count = cursor.read_u8()

        visibility = cursor.read_u16_le() if TagFlag.VISIBILITY in tag.flags else ALL_CHANNELS
        support_only = cursor.read_u16_le() if TagFlag.SUPPORT_ONLY in tag.flags else ALL_CHANNELS

        if TagFlag.EXPLICIT_DIRECTION in tag.flags:
            direction = cursor.read_u16_le()
        elif TagFlag.EXTENDED in tag.flags:
            direction = ALL_CHANNELS
        else:
            direction = 0

        items: list[DigitalFieldItem] = []
        for index in range(count):
            name = cursor.read_nul_terminated_string()
            color = cursor.read_color()

            items.append(
                DigitalFieldItem(
                    category=category,
                    name=name,
                    color=color,
                    visible=_mask_bit(visibility, index),
                    support_only=_mask_bit(support_only, index),
                    direction=ChannelDirection.OUTPUT if _mask_bit(direction, index) else ChannelDirection.INPUT,
                )
            )

        return cls(items=tuple(items), visibility=visibility, support_only=support_only, direction=direction)


@dataclass(frozen=True, kw_only=True)
class EnumField:
    """Enumerated-value channel (0x3).

    The header decoder consumes these records without adding them to the
    HeaderDescriptor.
    """

    category: str
    name: str
    labels: tuple[str, ...]

    @classmethod
    def from_cursor(cls, tag: FieldTag, cursor: ByteCursor, category: str) -> EnumField:
        name = cursor.read_nul_terminated_string()
        count = cursor.read_u8()
        labels = tuple(cursor.read_nul_terminated_string() for _ in range(count))

        return cls(category=category, name=name, labels=labels)


FieldRecord = CategoryRecord | AnalogueField | DigitalFieldGroup | EnumField

# =============================================================================
# Field Record Helper functions
# =============================================================================


_FieldDecoder = Callable[[FieldTag, ByteCursor, str], FieldRecord]

_FieldDecoderTable: dict[FieldType, _FieldDecoder] = {
    FieldType.CATEGORY: CategoryRecord.from_cursor,
    FieldType.ANALOGUE: AnalogueField.from_cursor,
    FieldType.DIGITAL: DigitalFieldGroup.from_cursor,
    FieldType.ENUM: EnumField.from_cursor,
    FieldType.DIGITAL_SEPARATE: DigitalFieldGroup.from_cursor,
}


def _mask_bit(mask: int, index: int) -> bool:
    return index < DIGITAL_MASK_BITS and bool(mask >> index & 1)


def decode_field_record(cursor: ByteCursor, category: str) -> tuple[FieldTag, FieldRecord]:
    """Decode one tagged field record.

    Args:
        cursor: Cursor positioned at a tag byte
        category: Running category to attach to the decoded field

    Returns:
        Tuple of (tag, record); record type depends on the tag's field type

    Raises:
        UnknownFieldTypeError: If the tag's field type is not known
        TruncatedError: If the record payload is incomplete
    """
    offset = cursor.offset
    tag = FieldTag.from_code(cursor.read_u8(), offset)

    return tag, _FieldDecoderTable[tag.field_type](tag, cursor, category)
