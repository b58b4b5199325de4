# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Core metadata decoder

MetadataDecoder ties the pieces together: the container detector finds
the TIFF block, the header gives the byte order and the IFD0 offset, the
directory walker yields entries and the value decoder turns each entry
into a Field.

Structural errors abort the whole decode; decode() never returns a
partial field list. Field-level errors are stored on the field as an
ErrorValue and the walk continues.

Copyright 2025 DNAi inc.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from exifutil.config import DecoderOptions
from exifutil.exceptions import MetadataReadError
from exifutil.exif_tags import get_tag_name
from exifutil.format_detector import Container, ContainerFormat, detect_container
from exifutil.tiff_structure import (
    ByteOrder,
    DirectoryWalker,
    IFDEntry,
    IfdKind,
    TiffHeader,
    TIFFStructure,
    parse_tiff_header,
)
from exifutil.value_decoder import AnyValue, ErrorValue, decode_value
from exifutil.value_formatter import format_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Field:
    """
    One decoded metadata field.

    Attributes:
        tag: Tag number (e.g., 0x0132 for DateTime)
        ifd: Kind of directory the field was read from
        data_type: TIFF data type code as stored in the file
        count: Number of values as stored in the file
        value: Decoded Value, or ErrorValue if decoding failed
        ifd_index: Position in the IFD0 -> IFD1 chain the field descends from
    """
    tag: int
    ifd: IfdKind
    data_type: int
    count: int
    value: AnyValue
    ifd_index: int = 0

    @property
    def name(self) -> str:
        return get_tag_name(self.tag, self.ifd)

    @property
    def group(self) -> str:
        """Directory name used in output keys, e.g. "IFD0" or "GPS"."""
        if self.ifd is IfdKind.IMAGE:
            return f"IFD{self.ifd_index}"
        return self.ifd.value

    @property
    def ok(self) -> bool:
        return not self.value.is_error

    def display_value(self, fields: Optional[List['Field']] = None) -> str:
        """Human-readable value with unit, resolving sibling tags in fields."""
        return format_value(self, fields or [])


@dataclass
class ExifData:
    """
    Result of decoding one file.

    Fields are kept in directory order.
    """
    container_format: ContainerFormat
    byte_order: ByteOrder
    fields: List[Field]
    file_path: Optional[str] = None

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def get_field(self, tag: int, ifd: IfdKind = IfdKind.PRIMARY) -> Optional[Field]:
        """First field with the given tag in the given kind of directory."""
        for field in self.fields:
            if field.tag == tag and field.ifd is ifd:
                return field
        return None

    @property
    def errors(self) -> List[Field]:
        return [field for field in self.fields if not field.ok]

    def to_dict(self) -> Dict[str, str]:
        """
        Map "Group:TagName" keys to display strings.

        Later duplicates of a key are ignored.
        """
        result: Dict[str, str] = {}
        for field in self.fields:
            key = f"{field.group}:{field.name}"
            if key not in result:
                result[key] = field.display_value(self.fields)
        return result


class MetadataDecoder:
    """
    Decoder for EXIF metadata in JPEG, TIFF and TIFF-based RAW files.

    The decoder holds only its options, so one instance can be shared
    between threads decoding different files.
    """

    def __init__(self, options: Optional[DecoderOptions] = None):
        """
        Initialize the decoder.

        Args:
            options: Bounds and fail-soft policy (defaults apply if None)
        """
        self.options = options or DecoderOptions()

    def decode(self, data: bytes, file_path: Optional[Union[str, Path]] = None) -> ExifData:
        """
        Decode all EXIF fields of a buffer.

        Args:
            data: Complete file contents
            file_path: Optional path, used as a RAW hint and in error messages

        Returns:
            ExifData with every field in directory order

        Raises:
            MetadataReadError: A subclass naming the structural failure
        """
        path_str = str(file_path) if file_path is not None else None
        try:
            container = detect_container(data, file_path)
            header = parse_tiff_header(container)
            fields = list(self._walk(container, header))
        except MetadataReadError as e:
            if e.file_path is None:
                e.file_path = path_str
            raise

        logger.debug(
            "Decoded %d fields from %s (%s, %s)",
            len(fields), path_str or "buffer", container.format.value, header.byte_order.name,
        )
        return ExifData(
            container_format=container.format,
            byte_order=header.byte_order,
            fields=fields,
            file_path=path_str,
        )

    def decode_file(self, file_path: Union[str, Path]) -> ExifData:
        """
        Read a file and decode its EXIF fields.

        Raises:
            MetadataReadError: If the file cannot be read or decoded
        """
        try:
            with open(file_path, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise MetadataReadError(f"cannot read file: {e.strerror or e}", str(file_path)) from e
        return self.decode(data, file_path)

    def iter_fields(self, data: bytes, file_path: Optional[Union[str, Path]] = None) -> Iterator[Field]:
        """
        Lazily yield fields in directory order.

        A structural error is raised when the walk reaches it, after the
        fields before it have been yielded. Use decode() to get all
        fields or none.
        """
        try:
            container = detect_container(data, file_path)
            header = parse_tiff_header(container)
            yield from self._walk(container, header)
        except MetadataReadError as e:
            if e.file_path is None and file_path is not None:
                e.file_path = str(file_path)
            raise

    def _walk(self, container: Container, header: TiffHeader) -> Iterator[Field]:
        structure = TIFFStructure(container.tiff, header.byte_order)
        walker = DirectoryWalker(structure, self.options)
        for entry in walker.walk(header.ifd0_offset):
            yield self._decode_entry(structure, entry)

    def _decode_entry(self, structure: TIFFStructure, entry: IFDEntry) -> Field:
        if entry.sub_ifd is not None and not entry.is_valid_pointer:
            logger.debug(
                "Not following %s pointer 0x%04X: type %d count %d",
                entry.sub_ifd.value, entry.tag, entry.data_type, entry.count,
            )
            value: AnyValue = ErrorValue(
                entry.data_type, entry.count,
                f"{entry.sub_ifd.value} pointer must be a single LONG",
            )
        else:
            value = decode_value(structure, entry, lenient=self.options.lenient_values)

        return Field(
            tag=entry.tag,
            ifd=entry.ifd,
            data_type=entry.data_type,
            count=entry.count,
            value=value,
            ifd_index=entry.ifd_index,
        )


def read_exif(
    source: Union[str, Path, bytes, bytearray],
    options: Optional[DecoderOptions] = None,
) -> ExifData:
    """
    Decode EXIF metadata from a file path or an in-memory buffer.

    Example:
        >>> exif = read_exif('photo.jpg')
        >>> exif.get_field(0x0112).value.data
        (1,)
    """
    decoder = MetadataDecoder(options)
    if isinstance(source, (bytes, bytearray)):
        return decoder.decode(bytes(source))
    return decoder.decode_file(source)
