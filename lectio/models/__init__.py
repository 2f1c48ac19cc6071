"""Shared typed data models for Lectio.

This package contains dataclasses used across pipeline modules to avoid
cross-module coupling and circular imports.
"""

from .datatypes import (
    BatchReport,
    DubbingResult,
    DubbingSegment,
    Section,
    SectionStatus,
    SubChunk,
    TranscriptionResult,
)

__all__ = [
    "BatchReport",
    "DubbingResult",
    "DubbingSegment",
    "Section",
    "SectionStatus",
    "SubChunk",
    "TranscriptionResult",
]
