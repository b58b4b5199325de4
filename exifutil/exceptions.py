# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Exception classes for exifutil

Structural failures (bad container, bad header, truncated data, broken
directories) derive from MetadataReadError and abort the decode of a file.
Field-level failures never escape a decode; they are attached to the
affected field as an ErrorValue.

Copyright 2025 DNAi inc.
"""

from typing import Optional


class ExifUtilError(Exception):
    """
    Base exception for all exifutil errors.

    All exifutil exceptions inherit from this class, allowing
    catch-all error handling for any exifutil-related errors.
    """
    def __init__(self, message: str = ""):
        """
        Initialize the exception with an optional error message.

        Args:
            message: Descriptive error message explaining what went wrong
        """
        self.message = message
        super().__init__(message)


class MetadataReadError(ExifUtilError):
    """
    Raised when the metadata of a file cannot be decoded at all.

    Subclasses name the kind of structural failure. The optional
    file_path identifies the file in batch mode.
    """
    kind = "MetadataReadError"

    def __init__(self, message: str = "", file_path: Optional[str] = None):
        self.file_path = file_path
        super().__init__(message)

    def __str__(self) -> str:
        if self.file_path:
            return f"{self.file_path}: {self.kind}: {self.message}"
        return f"{self.kind}: {self.message}"


class UnsupportedContainerError(MetadataReadError):
    """
    Raised when the buffer is neither a JPEG nor a TIFF-structured file.
    """
    kind = "UnsupportedContainer"


class MissingExifError(UnsupportedContainerError):
    """
    Raised when a JPEG file carries no EXIF APP1 segment.
    """


class InvalidMagicError(MetadataReadError):
    """
    Raised when the TIFF header has an unknown byte order marker or a
    magic number other than 42.
    """
    kind = "InvalidMagic"


class TruncatedError(MetadataReadError):
    """
    Raised when a declared length or offset points past the available bytes.
    """
    kind = "Truncated"


class MalformedDirectoryError(MetadataReadError):
    """
    Raised when the directory structure cannot be trusted.

    This exception is raised when:
    - Sub-IFD nesting exceeds the configured depth
    - A directory offset is referenced more than once (cycle)
    - An entry count is absurdly large
    """
    kind = "MalformedDirectory"


class UnsupportedFieldTypeError(ExifUtilError):
    """
    Describes a single field whose data type is not recognized.

    The decoder never raises this out of a decode; the message is stored
    on the field's ErrorValue and the walk continues.
    """


class MetadataWriteError(ExifUtilError):
    """
    Raised when metadata cannot be stripped from a file.

    This exception is raised when:
    - The image cannot be opened by the image library
    - The re-encoded image cannot be written
    """
    pass


class UnsupportedImageError(MetadataWriteError):
    """
    Raised when the image library does not recognize a file as an image.
    """
