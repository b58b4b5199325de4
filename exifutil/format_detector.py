# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Container detector

This module recognizes the containers EXIF metadata is found in (JPEG
APP1 segments, bare TIFF files and TIFF-structured RAW files) and
locates the embedded TIFF header.

Copyright 2025 DNAi inc.
"""

import logging
import struct
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from exifutil.exceptions import (
    MissingExifError,
    TruncatedError,
    UnsupportedContainerError,
)

logger = logging.getLogger(__name__)

JPEG_SOI = b'\xff\xd8'
EXIF_HEADER = b'Exif\x00\x00'

# JPEG markers
MARKER_APP1 = 0xE1
MARKER_SOS = 0xDA
MARKER_EOI = 0xD9
MARKER_SOI = 0xD8
MARKER_TEM = 0x01


class ContainerFormat(Enum):
    """Kinds of containers the decoder understands."""
    JPEG = 'JPEG'
    TIFF = 'TIFF'
    RAW_TIFF = 'RAW-TIFF'


@dataclass(frozen=True)
class Container:
    """
    A byte buffer together with its detected format.

    Attributes:
        data: The complete file contents
        format: Detected container format
        tiff_start: Offset of the TIFF header within data
        tiff_end: End of the TIFF block (end of the APP1 segment for JPEG)
    """
    data: bytes
    format: ContainerFormat
    tiff_start: int
    tiff_end: int

    @property
    def tiff(self) -> memoryview:
        """The TIFF block; all EXIF offsets are relative to its first byte."""
        return memoryview(self.data)[self.tiff_start:self.tiff_end]

    def __len__(self) -> int:
        return self.tiff_end - self.tiff_start


class FormatDetector:
    """
    Detects EXIF containers from file signatures.

    TIFF-structured RAW files are told apart from plain TIFF by their
    own signatures, the Canon "CR" marker, or the file extension.
    """

    TIFF_SIGNATURES = (b'II*\x00', b'MM\x00*')

    RAW_SIGNATURES = (
        b'IIRO',     # Olympus ORF
        b'IIRS',     # Olympus ORF (older bodies)
        b'MMOR',     # Olympus ORF, big-endian
        b'IIU\x00',  # Panasonic RW2
    )

    RAW_EXTENSIONS = frozenset({
        '.cr2', '.nef', '.nrw', '.dng', '.arw', '.srf', '.sr2',
        '.orf', '.rw2', '.pef', '.srw', '.erf', '.3fr',
    })

    @classmethod
    def detect_container(
        cls,
        data: Union[bytes, bytearray, memoryview],
        file_path: Optional[Union[str, Path]] = None,
    ) -> Container:
        """
        Determine the container kind and locate the TIFF header.

        Args:
            data: Complete file contents
            file_path: Optional path, only used as a hint for RAW files

        Returns:
            Container view over the buffer

        Raises:
            UnsupportedContainerError: If no known signature is found
            MissingExifError: If a JPEG has no EXIF APP1 segment
            TruncatedError: If a JPEG segment claims more bytes than remain
        """
        data = bytes(data)

        if data[:2] == JPEG_SOI:
            return cls._find_jpeg_exif(data)

        head = data[:4]
        if head in cls.TIFF_SIGNATURES:
            if data[8:10] == b'CR' or cls._has_raw_extension(file_path):
                return Container(data, ContainerFormat.RAW_TIFF, 0, len(data))
            return Container(data, ContainerFormat.TIFF, 0, len(data))

        if head in cls.RAW_SIGNATURES:
            return Container(data, ContainerFormat.RAW_TIFF, 0, len(data))

        raise UnsupportedContainerError("no JPEG or TIFF signature found")

    @classmethod
    def _has_raw_extension(cls, file_path: Optional[Union[str, Path]]) -> bool:
        if not file_path:
            return False
        return Path(file_path).suffix.lower() in cls.RAW_EXTENSIONS

    @staticmethod
    def _find_jpeg_exif(data: bytes) -> Container:
        """Walk JPEG marker segments until the EXIF APP1 segment."""
        size = len(data)
        offset = 2  # Skip SOI

        while offset < size:
            if data[offset] != 0xFF:
                logger.debug("Expected JPEG marker at offset %d, found 0x%02X", offset, data[offset])
                break

            # Any number of 0xFF fill bytes may precede a marker
            while offset + 1 < size and data[offset + 1] == 0xFF:
                offset += 1
            if offset + 1 >= size:
                break

            marker = data[offset + 1]
            offset += 2

            if marker in (MARKER_SOS, MARKER_EOI):
                break

            # Standalone markers carry no length
            if marker in (MARKER_SOI, MARKER_TEM) or 0xD0 <= marker <= 0xD7:
                continue

            if offset + 2 > size:
                raise TruncatedError(f"segment length of marker 0x{marker:02X} missing")

            length = struct.unpack('>H', data[offset:offset + 2])[0]
            if length < 2:
                raise TruncatedError(f"invalid length {length} for marker 0x{marker:02X}")
            segment_end = offset + length
            if segment_end > size:
                raise TruncatedError(
                    f"segment 0x{marker:02X} at offset {offset - 2} claims {length} bytes, "
                    f"{size - offset} remain"
                )

            payload = offset + 2
            if marker == MARKER_APP1 and data[payload:payload + 6] == EXIF_HEADER:
                return Container(data, ContainerFormat.JPEG, payload + 6, segment_end)

            logger.debug("Skipping JPEG segment 0x%02X (%d bytes)", marker, length)
            offset = segment_end

        raise MissingExifError("JPEG file has no EXIF APP1 segment")


def detect_container(
    data: Union[bytes, bytearray, memoryview],
    file_path: Optional[Union[str, Path]] = None,
) -> Container:
    """Module-level shortcut for FormatDetector.detect_container."""
    return FormatDetector.detect_container(data, file_path)
