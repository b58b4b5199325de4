# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
TIFF file structure utilities

This module parses the TIFF header that EXIF reuses and walks its Image
File Directories (IFDs): the IFD0 -> IFD1 chain and the EXIF, GPS and
Interoperability sub-IFDs hanging off it.

Copyright 2025 DNAi inc.
"""

import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set, Tuple

from exifutil.config import DEFAULT_MAX_ENTRIES, DecoderOptions
from exifutil.exceptions import (
    InvalidMagicError,
    MalformedDirectoryError,
    TruncatedError,
)
from exifutil.format_detector import Container, ContainerFormat

logger = logging.getLogger(__name__)

TIFF_MAGIC = 42

# ORF ("RO", "RS") and RW2 ("U") headers replace 42 with their own marker
RAW_MAGICS = frozenset({0x4F52, 0x5352, 0x0055})

IFD_ENTRY_SIZE = 12

# Pointer tags
TAG_EXIF_IFD = 0x8769
TAG_GPS_IFD = 0x8825
TAG_INTEROP_IFD = 0xA005

# LONG, the only type accepted for a sub-IFD pointer
POINTER_DATA_TYPE = 4


class ByteOrder(Enum):
    """Byte order of a TIFF block; the value is the struct prefix."""
    LITTLE_ENDIAN = '<'
    BIG_ENDIAN = '>'

    @property
    def marker(self) -> bytes:
        return b'II' if self is ByteOrder.LITTLE_ENDIAN else b'MM'

    @classmethod
    def from_marker(cls, marker: bytes) -> 'ByteOrder':
        if marker == b'II':
            return cls.LITTLE_ENDIAN
        if marker == b'MM':
            return cls.BIG_ENDIAN
        raise InvalidMagicError(f"unknown byte order marker {bytes(marker)!r}")


class IfdKind(Enum):
    """Which directory an entry was read from."""
    PRIMARY = 'IFD0'
    THUMBNAIL = 'IFD1'
    IMAGE = 'IFD'  # IFD2 and beyond in RAW files
    EXIF = 'ExifIFD'
    GPS = 'GPS'
    INTEROP = 'InteropIFD'


# Pointer tags understood in each kind of directory
SUB_IFD_POINTERS: Dict[IfdKind, Dict[int, IfdKind]] = {
    IfdKind.PRIMARY: {TAG_EXIF_IFD: IfdKind.EXIF, TAG_GPS_IFD: IfdKind.GPS},
    IfdKind.THUMBNAIL: {TAG_EXIF_IFD: IfdKind.EXIF, TAG_GPS_IFD: IfdKind.GPS},
    IfdKind.IMAGE: {TAG_EXIF_IFD: IfdKind.EXIF, TAG_GPS_IFD: IfdKind.GPS},
    IfdKind.EXIF: {TAG_INTEROP_IFD: IfdKind.INTEROP},
}


@dataclass(frozen=True)
class TiffHeader:
    byte_order: ByteOrder
    magic: int
    ifd0_offset: int


@dataclass(frozen=True)
class IFDEntry:
    """
    One 12-byte directory entry.

    Attributes:
        tag: Tag number
        data_type: TIFF data type code
        count: Number of values
        value_or_offset: Last four bytes read as an integer in the block's byte order
        raw_value: The same four bytes as stored, used for inline values
        ifd: Kind of directory the entry belongs to
        ifd_index: Position in the IFD0 -> IFD1 chain the entry descends from
        offset: Position of the entry within the TIFF block
    """
    tag: int
    data_type: int
    count: int
    value_or_offset: int
    raw_value: bytes
    ifd: IfdKind
    ifd_index: int = 0
    offset: int = 0

    @property
    def sub_ifd(self) -> Optional[IfdKind]:
        """Directory kind this entry points to, if it is a pointer tag."""
        return SUB_IFD_POINTERS.get(self.ifd, {}).get(self.tag)

    @property
    def is_valid_pointer(self) -> bool:
        return self.data_type == POINTER_DATA_TYPE and self.count == 1


class TIFFStructure:
    """
    Bounds-checked reader over a TIFF block.

    Every read that would go past the end of the block raises
    TruncatedError.
    """

    def __init__(self, tiff: memoryview, byte_order: ByteOrder):
        """
        Initialize TIFF structure reader.

        Args:
            tiff: TIFF block, starting at the byte order marker
            byte_order: Byte order read from the header
        """
        self.tiff = tiff
        self.byte_order = byte_order
        self.endian = byte_order.value

    def __len__(self) -> int:
        return len(self.tiff)

    def check_bounds(self, offset: int, length: int, what: str = "data") -> None:
        if offset < 0 or length < 0 or offset + length > len(self.tiff):
            raise TruncatedError(
                f"{what} at offset {offset} ({length} bytes) exceeds "
                f"the {len(self.tiff)}-byte TIFF block"
            )

    def read_bytes(self, offset: int, length: int, what: str = "data") -> bytes:
        self.check_bounds(offset, length, what)
        return bytes(self.tiff[offset:offset + length])

    def unpack(self, fmt: str, offset: int, what: str = "data") -> Tuple:
        fmt = self.endian + fmt
        self.check_bounds(offset, struct.calcsize(fmt), what)
        return struct.unpack_from(fmt, self.tiff, offset)

    def read_u16(self, offset: int, what: str = "data") -> int:
        return self.unpack('H', offset, what)[0]

    def read_u32(self, offset: int, what: str = "data") -> int:
        return self.unpack('I', offset, what)[0]

    def read_ifd(
        self,
        offset: int,
        ifd: IfdKind,
        ifd_index: int = 0,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> Tuple[List[IFDEntry], int]:
        """
        Read one IFD.

        Args:
            offset: Offset of the directory within the TIFF block
            ifd: Kind of the directory
            ifd_index: Chain position recorded on each entry
            max_entries: Sanity bound on the entry count

        Returns:
            Tuple of (entries in directory order, next IFD offset)
        """
        num_entries = self.read_u16(offset, f"{ifd.value} entry count")
        if num_entries > max_entries:
            raise MalformedDirectoryError(
                f"{ifd.value} at offset {offset} declares {num_entries} entries"
            )

        entries_start = offset + 2
        self.check_bounds(
            entries_start, num_entries * IFD_ENTRY_SIZE + 4, f"{ifd.value} entries"
        )

        entries = []
        for i in range(num_entries):
            entry_offset = entries_start + i * IFD_ENTRY_SIZE
            tag_id, tag_type, count, value_offset = struct.unpack_from(
                f'{self.endian}HHI4s', self.tiff, entry_offset
            )
            entries.append(IFDEntry(
                tag=tag_id,
                data_type=tag_type,
                count=count,
                value_or_offset=struct.unpack(f'{self.endian}I', value_offset)[0],
                raw_value=value_offset,
                ifd=ifd,
                ifd_index=ifd_index,
                offset=entry_offset,
            ))

        next_ifd = self.read_u32(entries_start + num_entries * IFD_ENTRY_SIZE, "next IFD offset")
        return entries, next_ifd


def parse_tiff_header(container: Container) -> TiffHeader:
    """
    Parse the 8-byte TIFF header at the start of the container's TIFF block.

    Raises:
        TruncatedError: If fewer than 8 bytes are available
        InvalidMagicError: If the byte order marker or magic number is wrong
    """
    tiff = container.tiff
    if len(tiff) < 8:
        raise TruncatedError(f"TIFF header needs 8 bytes, {len(tiff)} available")

    byte_order = ByteOrder.from_marker(bytes(tiff[0:2]))
    magic, ifd0_offset = struct.unpack_from(f'{byte_order.value}HI', tiff, 2)

    if magic != TIFF_MAGIC:
        if not (container.format is ContainerFormat.RAW_TIFF and magic in RAW_MAGICS):
            raise InvalidMagicError(f"TIFF magic number is {magic}, expected {TIFF_MAGIC}")

    return TiffHeader(byte_order=byte_order, magic=magic, ifd0_offset=ifd0_offset)


class DirectoryWalker:
    """
    Walks the directories of a TIFF block depth-first.

    IFD0 comes first; each pointer entry is followed by the entries of
    the sub-IFD it references, then the walk resumes in the parent.
    Linked directories (IFD1, ...) follow once IFD0 is exhausted.
    """

    def __init__(self, structure: TIFFStructure, options: Optional[DecoderOptions] = None):
        self.structure = structure
        self.options = options or DecoderOptions()
        self._visited: Set[int] = set()

    def walk(self, ifd0_offset: int) -> Iterator[IFDEntry]:
        """Yield every entry reachable from IFD0, in directory order."""
        offset = ifd0_offset
        index = 0
        while offset:
            if index >= self.options.max_linked_ifds:
                raise MalformedDirectoryError(
                    f"more than {self.options.max_linked_ifds} linked IFDs"
                )
            if index == 0:
                kind = IfdKind.PRIMARY
            elif index == 1:
                kind = IfdKind.THUMBNAIL
            else:
                kind = IfdKind.IMAGE

            next_offset = yield from self._walk_directory(offset, kind, index, depth=0)
            if not self.options.follow_thumbnail:
                break
            offset = next_offset
            index += 1

    def _walk_directory(self, offset: int, kind: IfdKind, index: int, depth: int):
        if depth > self.options.max_depth:
            raise MalformedDirectoryError(
                f"sub-IFD nesting deeper than {self.options.max_depth} at offset {offset}"
            )
        if offset in self._visited:
            raise MalformedDirectoryError(f"directory at offset {offset} is referenced twice")
        self._visited.add(offset)

        entries, next_offset = self.structure.read_ifd(
            offset, kind, index, self.options.max_entries
        )
        logger.debug("Read %s at offset %d: %d entries", kind.value, offset, len(entries))

        for entry in entries:
            yield entry
            sub_kind = entry.sub_ifd
            if sub_kind is None or not entry.is_valid_pointer:
                continue
            if entry.value_or_offset == 0:
                # Zero pointer: directory absent
                continue
            yield from self._walk_directory(entry.value_or_offset, sub_kind, index, depth + 1)

        return next_offset
