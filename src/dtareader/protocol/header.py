"""DTA logger header decoding.

This module implements the two-phase decode of the header record a DTA
datalogger sends before its data records. It provides:

Classes:
    - HeaderDescriptor: Decoded channel layout of a logger

Functions:
    - decode_header: Decode a header record held in memory

The header record (little-endian throughout):
    [0:4)   version            uint32, must equal SUPPORTED_VERSION
    [4:8)   field block size   uint32
    [8:...) field block        bytes[field block size]:
        [0:2)  dataset count   int16
        [2:4)  dataset length  int16
        [4:..) tagged field records (see fields.py)

Phase 1 validates the preamble and loads exactly the declared field block.
Phase 2 walks the tagged records inside that block only; bytes after the
block (data records in a full device response) are never touched.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import BinaryIO

from ..exceptions import TruncatedError, UnsupportedVersionError
from .common import PREAMBLE_SIZE, SUPPORTED_VERSION
from .cursor import ByteCursor
from .fields import AnalogueField, CategoryRecord, DigitalFieldGroup, decode_field_record

logger = logging.getLogger(__name__)

_U32_SIZE = 4


@dataclass(frozen=True, kw_only=True)
class HeaderDescriptor:
    """Decoded DTA logger header.

    Instances are built once by one of the from_* constructors and are
    immutable afterwards; field sequences keep stream order.

    Attributes:
        version: Header version (always SUPPORTED_VERSION)
        field_block_size: Declared length of the field definition block
        dataset_count: Number of data records the logger will send
        dataset_length: Length in bytes of one data record (not validated)
        analogue_fields: Analogue channels in stream order
        digital_fields: Digital field groups in stream order

    Usage:
        header = HeaderDescriptor.from_bytes(raw)

        for field in header.analogue_fields:
            print(f"{field.category}/{field.name}: x{field.factor}")
    """

    version: int
    field_block_size: int
    dataset_count: int
    dataset_length: int
    analogue_fields: tuple[AnalogueField, ...] = ()
    digital_fields: tuple[DigitalFieldGroup, ...] = ()

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> HeaderDescriptor:
        """Decode a header record held in memory.

        Args:
            data: Bytes starting at the header record; anything after the
                  field block is ignored

        Raises:
            UnsupportedVersionError: If the version is not SUPPORTED_VERSION
            TruncatedError: If any read runs out of bytes
            UnknownFieldTypeError: If a tag has an unknown field type
        """
        cursor = ByteCursor(data)

        version = _check_version(cursor.read_u32_le())
        field_block_size = cursor.read_u32_le()
        field_block = cursor.read_exact(field_block_size)

        if cursor.has_remaining():
            logger.debug("Ignoring %d byte(s) after the field block", cursor.remaining)

        return cls._from_field_block(version, field_block_size, field_block)

    @classmethod
    def from_stream(cls, stream: BinaryIO) -> HeaderDescriptor:
        """Decode a header record from a blocking binary stream.

        Reads exactly the header record (preamble and field block) and leaves
        the stream positioned after it.

        Raises:
            UnsupportedVersionError: If the version is not SUPPORTED_VERSION
            TruncatedError: If the stream ends inside the header record
            UnknownFieldTypeError: If a tag has an unknown field type
            ValueError: If stream.read() returns more bytes than requested
        """

        def get_next_bytes(size: int) -> bytes:
            chunks = bytearray()
            while len(chunks) < size:
                chunk = stream.read(size - len(chunks))
                if not chunk:
                    break
                chunks.extend(chunk)
            return bytes(chunks)

        version = _check_version(_read_u32(get_next_bytes(_U32_SIZE), 0, "version"))
        field_block_size = _read_u32(get_next_bytes(_U32_SIZE), _U32_SIZE, "field block size")
        field_block = _expect_size(get_next_bytes(field_block_size), field_block_size, PREAMBLE_SIZE, "field block")

        return cls._from_field_block(version, field_block_size, field_block)

    @classmethod
    async def from_bytes_async(cls, get_next_bytes: Callable[[int], Awaitable[bytes]]) -> HeaderDescriptor:
        """Decode a header record from an async byte source.

        Args:
            get_next_bytes: Async function to read the next n bytes from the
                            source. Should return exactly n bytes, or fewer
                            if the source has ended.

        Raises:
            UnsupportedVersionError: If the version is not SUPPORTED_VERSION
            TruncatedError: If the source ends inside the header record
            UnknownFieldTypeError: If a tag has an unknown field type
            ValueError: If get_next_bytes returns more bytes than requested

        Example:
            async with LoggerTransport("socket://192.168.1.50:8889") as transport:
                header = await HeaderDescriptor.from_bytes_async(transport.read)
        """
        version = _check_version(_read_u32(await get_next_bytes(_U32_SIZE), 0, "version"))
        field_block_size = _read_u32(await get_next_bytes(_U32_SIZE), _U32_SIZE, "field block size")
        field_block = _expect_size(await get_next_bytes(field_block_size), field_block_size, PREAMBLE_SIZE, "field block")

        return cls._from_field_block(version, field_block_size, field_block)

    @classmethod
    def _from_field_block(cls, version: int, field_block_size: int, field_block: bytes) -> HeaderDescriptor:
        cursor = ByteCursor(field_block, base_offset=PREAMBLE_SIZE)

        dataset_count = cursor.read_i16_le()
        dataset_length = cursor.read_i16_le()

        analogue_fields: list[AnalogueField] = []
        digital_fields: list[DigitalFieldGroup] = []
        category = ""

        while cursor.has_remaining():
            tag, record = decode_field_record(cursor, category)

            logger.debug("Field record 0x%02X at offset %d: %s", tag.code, tag.offset, record)

            if isinstance(record, CategoryRecord):
                category = record.name
            elif isinstance(record, AnalogueField):
                analogue_fields.append(record)
            elif isinstance(record, DigitalFieldGroup):
                digital_fields.append(record)
            # EnumField labels are not part of the descriptor

        return cls(
            version=version,
            field_block_size=field_block_size,
            dataset_count=dataset_count,
            dataset_length=dataset_length,
            analogue_fields=tuple(analogue_fields),
            digital_fields=tuple(digital_fields),
        )


# =============================================================================
# Header Helper functions
# =============================================================================


def _check_version(version: int) -> int:
    if version != SUPPORTED_VERSION:
        raise UnsupportedVersionError(version)
    return version


def _expect_size(data: bytes, size: int, offset: int, what: str) -> bytes:
    if len(data) < size:
        raise TruncatedError(offset, size, len(data), what)
    if len(data) > size:
        raise ValueError(f"Byte source returned {len(data)} bytes, expected {size}")
    return data


def _read_u32(data: bytes, offset: int, what: str) -> int:
    return ByteCursor(_expect_size(data, _U32_SIZE, offset, what), base_offset=offset).read_u32_le()


def decode_header(data: bytes | bytearray | memoryview) -> HeaderDescriptor:
    """Decode a header record held in memory.

    Equivalent to HeaderDescriptor.from_bytes().
    """
    return HeaderDescriptor.from_bytes(data)
