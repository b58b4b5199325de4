"""
Helpers for building TIFF and JPEG byte strings by hand.

Offsets are laid out explicitly by the tests: an IFD with n entries
takes 2 + 12 * n + 4 bytes, and the header takes 8.
"""

import struct
from typing import List, Union

SHORT = 3
BYTE = 1
ASCII = 2
LONG = 4
RATIONAL = 5
SBYTE = 6
UNDEFINED = 7
SSHORT = 8
SLONG = 9
SRATIONAL = 10
FLOAT = 11
DOUBLE = 12


def ifd_size(num_entries: int) -> int:
    return 2 + 12 * num_entries + 4


def header(endian: str = '<', ifd0_offset: int = 8, magic: int = 42) -> bytes:
    marker = b'II' if endian == '<' else b'MM'
    return marker + struct.pack(f'{endian}HI', magic, ifd0_offset)


def entry(tag: int, data_type: int, count: int, value: Union[int, bytes], endian: str = '<') -> bytes:
    """
    One IFD entry. An int value is written as a LONG offset or LONG value;
    bytes are written left-aligned into the 4-byte slot.
    """
    if isinstance(value, int):
        slot = struct.pack(f'{endian}I', value)
    else:
        slot = value.ljust(4, b'\x00')
    return struct.pack(f'{endian}HHI', tag, data_type, count) + slot


def short_entry(tag: int, number: int, endian: str = '<') -> bytes:
    return entry(tag, SHORT, 1, struct.pack(f'{endian}H', number), endian)


def ifd(entries: List[bytes], next_offset: int = 0, endian: str = '<') -> bytes:
    return (
        struct.pack(f'{endian}H', len(entries))
        + b''.join(entries)
        + struct.pack(f'{endian}I', next_offset)
    )


def rationals(pairs, endian: str = '<', signed: bool = False) -> bytes:
    code = 'i' if signed else 'I'
    return b''.join(struct.pack(f'{endian}2{code}', n, d) for n, d in pairs)


def jpeg_segment(marker: int, payload: bytes) -> bytes:
    return bytes([0xFF, marker]) + struct.pack('>H', len(payload) + 2) + payload


def jpeg_with_exif(tiff: bytes, before: bytes = b'') -> bytes:
    """A minimal JPEG: SOI, optional segments, EXIF APP1, EOI."""
    return b'\xff\xd8' + before + jpeg_segment(0xE1, b'Exif\x00\x00' + tiff) + b'\xff\xd9'


def minimal_tiff(entries: List[bytes], endian: str = '<') -> bytes:
    """Header plus IFD0 at offset 8 with no linked IFD."""
    return header(endian) + ifd(entries, 0, endian)
