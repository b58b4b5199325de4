# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Metadata stripper

Removes metadata by decoding the pixels with Pillow and encoding them
into a fresh image of the same format. Nothing but pixel data (and the
palette for palette images) is carried over, so EXIF, XMP, IPTC and ICC
data are all dropped.

Copyright 2025 DNAi inc.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Union

from PIL import Image, UnidentifiedImageError

from exifutil.exceptions import MetadataWriteError, UnsupportedImageError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Encoder options per format
SAVE_OPTIONS: Dict[str, Dict] = {
    'JPEG': {'quality': 95},
    'PNG': {'optimize': True},
}


def strip_metadata(file_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    """
    Strip all metadata from an image file.

    Args:
        file_path: Image to clean
        output_path: Where to write the clean image (default: overwrite file_path)

    Returns:
        Path of the written image

    Raises:
        UnsupportedImageError: If Pillow does not recognize the file as an image
        MetadataWriteError: If the image cannot be decoded or written
    """
    source = Path(file_path)
    target = Path(output_path) if output_path else source

    try:
        with Image.open(source) as img:
            img.load()
            image_format = img.format
            clean = Image.frombytes(img.mode, img.size, img.tobytes())
            if img.mode == 'P':
                clean.putpalette(img.getpalette())
    except UnidentifiedImageError as e:
        raise UnsupportedImageError(f"Not a recognized image: {source}") from e
    except (OSError, ValueError) as e:
        raise MetadataWriteError(f"Failed to decode image {source}: {e}") from e

    if not image_format:
        raise MetadataWriteError(f"Cannot determine image format of {source}")

    try:
        clean.save(target, format=image_format, **SAVE_OPTIONS.get(image_format, {}))
    except (OSError, ValueError, KeyError) as e:
        raise MetadataWriteError(f"Failed to write {image_format} image {target}: {e}") from e

    logger.info("Stripped metadata from %s", source)
    return target


def batch_strip_metadata(
    file_paths: Iterable[PathLike],
    error_handler: Optional[Callable[[Path, MetadataWriteError], None]] = None,
) -> Dict[Path, Optional[MetadataWriteError]]:
    """
    Strip metadata from multiple files in place.

    Returns:
        Dictionary mapping each path to None on success, or to the error
        when no error_handler is given
    """
    results: Dict[Path, Optional[MetadataWriteError]] = {}

    for file_path in file_paths:
        path = Path(file_path)
        try:
            strip_metadata(path)
            results[path] = None
        except MetadataWriteError as e:
            logger.debug("Failed to strip %s: %s", path, e)
            if error_handler:
                error_handler(path, e)
            else:
                results[path] = e

    return results
