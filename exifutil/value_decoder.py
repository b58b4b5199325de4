# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF value decoder

Turns an IFD entry into a typed value. Values of four bytes or less are
stored inline in the entry; larger ones live at an offset from the TIFF
header.

ASCII values are decoded as UTF-8 with the "surrogateescape" error
handler, so bytes that are not valid UTF-8 survive decoding and can be
recovered exactly with Value.raw_text().

Copyright 2025 DNAi inc.
"""

import logging
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, NamedTuple, Optional, Union

from exifutil.exceptions import TruncatedError, UnsupportedFieldTypeError
from exifutil.tiff_structure import IFDEntry, TIFFStructure

logger = logging.getLogger(__name__)

TEXT_ENCODING = 'utf-8'
TEXT_ERRORS = 'surrogateescape'


class ExifTagType(IntEnum):
    """EXIF tag data types"""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12


# EXIF tag sizes in bytes
TAG_SIZES = {
    ExifTagType.BYTE: 1,
    ExifTagType.ASCII: 1,
    ExifTagType.SHORT: 2,
    ExifTagType.LONG: 4,
    ExifTagType.RATIONAL: 8,
    ExifTagType.SBYTE: 1,
    ExifTagType.UNDEFINED: 1,
    ExifTagType.SSHORT: 2,
    ExifTagType.SLONG: 4,
    ExifTagType.SRATIONAL: 8,
    ExifTagType.FLOAT: 4,
    ExifTagType.DOUBLE: 8,
}

# struct codes for the numeric types
_STRUCT_CODES = {
    ExifTagType.BYTE: 'B',
    ExifTagType.SBYTE: 'b',
    ExifTagType.SHORT: 'H',
    ExifTagType.SSHORT: 'h',
    ExifTagType.LONG: 'I',
    ExifTagType.SLONG: 'i',
    ExifTagType.FLOAT: 'f',
    ExifTagType.DOUBLE: 'd',
    ExifTagType.RATIONAL: 'I',
    ExifTagType.SRATIONAL: 'i',
}


class Rational(NamedTuple):
    """An exact numerator/denominator pair; never divided while decoding."""
    numerator: int
    denominator: int

    def to_float(self) -> Optional[float]:
        if self.denominator == 0:
            return None
        return self.numerator / self.denominator

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


@dataclass(frozen=True)
class Value:
    """
    A decoded value.

    data holds a tuple of ints for the integer types, a tuple of
    Rational for the rational types, a tuple of floats for FLOAT and
    DOUBLE, a str for ASCII and bytes for UNDEFINED.
    """
    data_type: ExifTagType
    data: Any

    is_error = False

    def __len__(self) -> int:
        return len(self.data)

    @property
    def first(self) -> Any:
        """First element of a numeric value, or None if empty."""
        if isinstance(self.data, tuple):
            return self.data[0] if self.data else None
        return self.data

    def raw_text(self) -> bytes:
        """Original bytes of an ASCII value."""
        if self.data_type != ExifTagType.ASCII:
            raise TypeError(f"{self.data_type.name} value is not text")
        return self.data.encode(TEXT_ENCODING, TEXT_ERRORS)

    def display_text(self) -> str:
        """ASCII value with undecodable bytes shown as \\xNN escapes."""
        return self.raw_text().decode(TEXT_ENCODING, 'backslashreplace')


@dataclass(frozen=True)
class ErrorValue:
    """Stands in for a value that could not be decoded."""
    data_type: int
    count: int
    reason: str

    is_error = True


AnyValue = Union[Value, ErrorValue]


def element_size(data_type: int) -> Optional[int]:
    """Size of one element of a data type, or None if the type is unknown."""
    try:
        return TAG_SIZES[ExifTagType(data_type)]
    except ValueError:
        return None


def is_inline(entry: IFDEntry) -> bool:
    """Whether the entry's value fits in its 4-byte value slot."""
    size = element_size(entry.data_type)
    return size is not None and entry.count * size <= 4


def decode_value(structure: TIFFStructure, entry: IFDEntry, lenient: bool = False) -> AnyValue:
    """
    Decode the value of an IFD entry.

    Args:
        structure: Reader over the TIFF block the entry came from
        entry: Directory entry
        lenient: Return an ErrorValue instead of raising when the value
            lies past the end of the block

    Returns:
        Value, or ErrorValue for an unsupported data type

    Raises:
        TruncatedError: If the value is out of bounds and lenient is False
    """
    try:
        tag_type = ExifTagType(entry.data_type)
    except ValueError:
        error = UnsupportedFieldTypeError(
            f"tag 0x{entry.tag:04X} has unsupported data type {entry.data_type}"
        )
        logger.debug("%s", error)
        return ErrorValue(entry.data_type, entry.count, str(error))

    total_size = TAG_SIZES[tag_type] * entry.count
    if total_size <= 4:
        data = entry.raw_value[:total_size]
    else:
        try:
            data = structure.read_bytes(
                entry.value_or_offset, total_size, f"value of tag 0x{entry.tag:04X}"
            )
        except TruncatedError as e:
            if not lenient:
                raise
            logger.debug("Skipping value: %s", e.message)
            return ErrorValue(entry.data_type, entry.count, e.message)

    return Value(tag_type, _parse(tag_type, entry.count, data, structure.endian))


def _parse(tag_type: ExifTagType, count: int, data: bytes, endian: str) -> Any:
    if tag_type == ExifTagType.ASCII:
        null_pos = data.find(b'\x00')
        if null_pos >= 0:
            data = data[:null_pos]
        return data.decode(TEXT_ENCODING, TEXT_ERRORS)

    if tag_type == ExifTagType.UNDEFINED:
        return bytes(data)

    code = _STRUCT_CODES[tag_type]
    if tag_type in (ExifTagType.RATIONAL, ExifTagType.SRATIONAL):
        numbers = struct.unpack(f'{endian}{count * 2}{code}', data)
        return tuple(Rational(numbers[i], numbers[i + 1]) for i in range(0, len(numbers), 2))

    return struct.unpack(f'{endian}{count}{code}', data)
