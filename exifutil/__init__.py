# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
exifutil - Pure Python EXIF reader and metadata stripper

Reads EXIF metadata from JPEG, TIFF and TIFF-based RAW files by decoding
the binary TIFF/IFD structures directly, and strips metadata from images
by re-encoding them with Pillow.

Copyright 2025 DNAi inc.
"""

__version__ = "0.1.0"
__author__ = "DNAi inc."

from exifutil.config import DecoderOptions
from exifutil.core import ExifData, Field, MetadataDecoder, read_exif
from exifutil.exceptions import (
    ExifUtilError,
    InvalidMagicError,
    MalformedDirectoryError,
    MetadataReadError,
    MetadataWriteError,
    MissingExifError,
    TruncatedError,
    UnsupportedContainerError,
    UnsupportedFieldTypeError,
    UnsupportedImageError,
)
from exifutil.format_detector import Container, ContainerFormat, detect_container
from exifutil.metadata_stripper import batch_strip_metadata, strip_metadata
from exifutil.metadata_utils import batch_read_metadata, iter_image_paths
from exifutil.tiff_structure import ByteOrder, IfdKind
from exifutil.value_decoder import ErrorValue, ExifTagType, Rational, Value
from exifutil.value_formatter import format_value

__all__ = [
    "DecoderOptions",
    "ExifData",
    "Field",
    "MetadataDecoder",
    "read_exif",
    "ExifUtilError",
    "InvalidMagicError",
    "MalformedDirectoryError",
    "MetadataReadError",
    "MetadataWriteError",
    "MissingExifError",
    "TruncatedError",
    "UnsupportedContainerError",
    "UnsupportedFieldTypeError",
    "UnsupportedImageError",
    "Container",
    "ContainerFormat",
    "detect_container",
    "batch_strip_metadata",
    "strip_metadata",
    "batch_read_metadata",
    "iter_image_paths",
    "ByteOrder",
    "IfdKind",
    "ErrorValue",
    "ExifTagType",
    "Rational",
    "Value",
    "format_value",
]
