# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Command-line interface for exifutil

Reads EXIF metadata from, or strips metadata out of, one image file or
every file below a directory.

Copyright 2025 DNAi inc.
"""

import argparse
import csv
import io
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from exifutil import __version__
from exifutil.config import DecoderOptions
from exifutil.core import ExifData, MetadataDecoder
from exifutil.exceptions import ExifUtilError, UnsupportedContainerError, UnsupportedImageError
from exifutil.logging_config import configure_logging
from exifutil.metadata_stripper import strip_metadata
from exifutil.metadata_utils import iter_image_paths
from exifutil.value_formatter import describe_fields

logger = logging.getLogger(__name__)


def format_text(exif: ExifData) -> str:
    """One "name | value" line per field."""
    return "\n".join(
        f"{name: <10} | {value: <10}" for name, value in describe_fields(exif.fields)
    )


def format_output(results: Dict[Path, ExifData], format_type: str = "text") -> str:
    """
    Format decoded metadata based on format type.

    Args:
        results: Decoded metadata per file
        format_type: Output format ('text', 'json', 'csv')

    Returns:
        Formatted output string
    """
    if format_type == "json":
        payload = {str(path): exif.to_dict() for path, exif in results.items()}
        return json.dumps(payload, indent=2, ensure_ascii=False)
    elif format_type == "csv":
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["File", "Tag", "Value"])
        for path, exif in results.items():
            for tag, value in exif.to_dict().items():
                writer.writerow([str(path), tag, value])
        return buffer.getvalue().rstrip("\n")
    else:  # text format (default)
        if len(results) == 1:
            return format_text(next(iter(results.values())))
        blocks = []
        for path, exif in results.items():
            blocks.append(f"==> {path} <==\n{format_text(exif)}")
        return "\n\n".join(blocks)


def read_command(paths: List[Path], options: DecoderOptions, format_type: str, batch: bool) -> int:
    """Decode every path and print the result; returns the exit code."""
    decoder = MetadataDecoder(options)
    results: Dict[Path, ExifData] = {}
    failures = 0

    for path in paths:
        try:
            results[path] = decoder.decode_file(path)
        except UnsupportedContainerError as e:
            if batch:
                # Directory walks meet plenty of files without EXIF
                logger.info("Skipping %s", e)
                continue
            logger.error("%s", e)
            failures += 1
        except ExifUtilError as e:
            logger.error("%s", e)
            failures += 1

    if results:
        print(format_output(results, format_type))
    return 1 if failures else 0


def strip_command(paths: List[Path], batch: bool) -> int:
    """Strip every path in place; returns the exit code."""
    failures = 0
    for path in paths:
        try:
            strip_metadata(path)
        except UnsupportedImageError as e:
            if batch:
                logger.info("Skipping %s", e)
                continue
            logger.error("%s", e)
            failures += 1
        except ExifUtilError as e:
            logger.error("%s", e)
            failures += 1
    return 1 if failures else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exifutil",
        description="Read EXIF metadata from image files or strip it from them.",
    )
    parser.add_argument("file_path", help="Image file, or directory with -r")
    parser.add_argument("-r", "--recursive", action="store_true",
                        help="Process every file below the directory")
    parser.add_argument("-s", "--strip", action="store_true",
                        help="Strip metadata instead of reading it")
    parser.add_argument("-f", "--format", choices=("text", "json", "csv"), default="text",
                        help="Output format for reading (default: text)")
    parser.add_argument("--lenient", action="store_true",
                        help="Report values pointing past the end of the data as field errors")
    parser.add_argument("--no-thumbnail", action="store_true",
                        help="Only read IFD0 and its sub-directories")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase log verbosity (-v info, -vv debug)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point of the exifutil command.

    Returns:
        Process exit code: 0 on success, 1 if any file failed, 2 on bad usage
    """
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG
    configure_logging(level)

    try:
        paths = list(iter_image_paths(args.file_path, recursive=args.recursive))
    except FileNotFoundError as e:
        logger.error("%s", e)
        return 2

    batch = args.recursive or Path(args.file_path).is_dir()

    if args.strip:
        return strip_command(paths, batch)

    options = DecoderOptions(
        lenient_values=args.lenient,
        follow_thumbnail=not args.no_thumbnail,
    )
    return read_command(paths, options, args.format, batch)


if __name__ == "__main__":
    sys.exit(main())
