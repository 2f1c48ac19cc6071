"""Text segmentation and chunking components.

This package splits documents into sections and sections into speech-sized
sub-chunks, and parses section selections.
"""

from .chunking import SubChunker
from .section_selection import format_section_selection, parse_section_selection
from .segmenter import DocumentSegmenter
from .slug import slugify_title

__all__ = [
    "DocumentSegmenter",
    "SubChunker",
    "format_section_selection",
    "parse_section_selection",
    "slugify_title",
]
