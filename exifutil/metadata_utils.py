# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Metadata utility functions for batch operations.

A single file and a directory tree are both handled as a sequence of
paths: iter_image_paths() produces the sequence, batch_read_metadata()
decodes every file in it independently.

Copyright 2025 DNAi inc.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, Optional, Union

from exifutil.config import DecoderOptions
from exifutil.core import ExifData, MetadataDecoder
from exifutil.exceptions import ExifUtilError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
ErrorHandler = Callable[[Path, ExifUtilError], None]


def iter_image_paths(path: PathLike, recursive: bool = False) -> Iterator[Path]:
    """
    Expand a command-line path into the files to process.

    Args:
        path: A file or a directory
        recursive: If True, every file below a directory is included;
                   otherwise only the files directly inside it

    Returns:
        Iterator of file paths in sorted order (a file yields itself)

    Raises:
        FileNotFoundError: If the path does not exist
    """
    root = Path(path)
    if root.is_file():
        yield root
        return
    if not root.is_dir():
        raise FileNotFoundError(f"No such file or directory: {root}")

    candidates = root.rglob('*') if recursive else root.iterdir()
    for candidate in sorted(candidates):
        if candidate.is_file():
            yield candidate


def batch_read_metadata(
    file_paths: Iterable[PathLike],
    options: Optional[DecoderOptions] = None,
    error_handler: Optional[ErrorHandler] = None,
) -> Dict[Path, Union[ExifData, ExifUtilError]]:
    """
    Read metadata from multiple files in batch.

    Each file is decoded independently; a failure only affects its own
    entry.

    Args:
        file_paths: Paths to read
        options: Decoder options shared by all files
        error_handler: Optional callback function for handling errors (path, exception).
                       Files passed to it are left out of the result.

    Returns:
        Dictionary mapping file paths to ExifData, or to the error that
        stopped decoding when no error_handler is given

    Example:
        >>> results = batch_read_metadata(iter_image_paths('photos', recursive=True))
        >>> for path, exif in results.items():
        ...     print(path, len(exif))
    """
    decoder = MetadataDecoder(options)
    results: Dict[Path, Union[ExifData, ExifUtilError]] = {}

    for file_path in file_paths:
        path = Path(file_path)
        try:
            results[path] = decoder.decode_file(path)
        except ExifUtilError as e:
            logger.debug("Failed to read %s: %s", path, e)
            if error_handler:
                error_handler(path, e)
            else:
                results[path] = e

    return results
