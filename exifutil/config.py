# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Decoder configuration

Bounds applied while walking directories and the policy for values
that cannot be read.

Copyright 2025 DNAi inc.
"""

from dataclasses import dataclass


# Nested sub-IFD levels below IFD0 (IFD0 -> EXIF -> Interop is depth 2)
DEFAULT_MAX_DEPTH = 4

# Entries per directory; anything above is treated as garbage
DEFAULT_MAX_ENTRIES = 10000

# Directories reachable through next-IFD pointers (IFD0, IFD1, ...)
DEFAULT_MAX_LINKED_IFDS = 16


@dataclass(frozen=True)
class DecoderOptions:
    """
    Options for MetadataDecoder.

    Attributes:
        max_depth: Maximum sub-IFD nesting before MalformedDirectoryError
        max_entries: Maximum entry count accepted for a single directory
        max_linked_ifds: Maximum length of the IFD0 -> IFD1 -> ... chain
        lenient_values: If True, a value whose data lies past the end of the
            buffer becomes an ErrorValue instead of aborting the decode
        follow_thumbnail: If False, only IFD0 and its sub-IFDs are walked
    """
    max_depth: int = DEFAULT_MAX_DEPTH
    max_entries: int = DEFAULT_MAX_ENTRIES
    max_linked_ifds: int = DEFAULT_MAX_LINKED_IFDS
    lenient_values: bool = False
    follow_thumbnail: bool = True

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError("max_depth must not be negative")
        if self.max_entries < 1:
            raise ValueError("max_entries must be positive")
        if self.max_linked_ifds < 1:
            raise ValueError("max_linked_ifds must be positive")
