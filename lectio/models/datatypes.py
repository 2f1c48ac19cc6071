"""Core datatypes shared across Lectio modules.

Responsibilities:
- Represent the document sections tracked through the generation lifecycle.
- Represent transient records exchanged between text, speech and dubbing stages.

Key types:
- `SectionStatus`, `Section`, `SubChunk`, `TranscriptionResult`,
  `DubbingSegment`, `DubbingResult`, and `BatchReport`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

CHARS_PER_ESTIMATED_SECOND = 16


class SectionStatus(str, Enum):
    """Generation lifecycle status of one section."""

    IDLE = "idle"
    GENERATING = "generating"
    PAUSED = "paused"
    MERGING = "merging"
    COMPLETED = "completed"
    ERROR = "error"


BOUNDARY_KINDS = (
    "section_end",
    "paragraph",
    "line",
    "sentence",
    "whitespace",
    "forced",
)


@dataclass(slots=True)
class Section:
    """A logically titled portion of the input document.

    Attributes:
        id: Stable section identifier.
        index: 1-based ordinal position in the document.
        title: Section title, possibly user-edited.
        content: Section text, possibly user-edited.
        status: Current lifecycle status.
        progress: Integer generation progress in `[0, 100]`.
        current_step: Human-readable description of the current step or error.
        audio: Merged WAV container bytes once generation completes.
        audio_ref: Optional handle for the delivered result (for example a file path).
        actual_duration_seconds: Duration measured from the merged container.
        generation_time_seconds: Wall-clock time spent generating the result.
    """

    id: str
    index: int
    title: str
    content: str
    status: SectionStatus = SectionStatus.IDLE
    progress: int = 0
    current_step: str | None = None
    audio: bytes | None = None
    audio_ref: str | None = None
    actual_duration_seconds: float | None = None
    generation_time_seconds: float | None = None

    @property
    def char_count(self) -> int:
        """Return the live character count of the section content."""

        return len(self.content)

    @property
    def estimated_duration_seconds(self) -> int:
        """Return a rough spoken-duration estimate at sixteen characters per second."""

        return math.ceil(self.char_count / CHARS_PER_ESTIMATED_SECOND)

    @property
    def has_result(self) -> bool:
        """Return whether a merged audio result is currently held."""

        return self.audio is not None

    def release_result(self) -> None:
        """Drop the held audio result and its measured durations."""

        self.audio = None
        self.audio_ref = None
        self.actual_duration_seconds = None
        self.generation_time_seconds = None


@dataclass(frozen=True, slots=True)
class SubChunk:
    """A bounded slice of section text sent to the speech service in one call.

    Attributes:
        position: 0-based chunk position within the section.
        text: Exact slice of the section content.
        char_start: Inclusive character offset in section content.
        char_end: Exclusive character offset in section content.
        boundary: Boundary kind that ended this chunk (see `BOUNDARY_KINDS`).
    """

    position: int
    text: str
    char_start: int
    char_end: int
    boundary: str = "section_end"


@dataclass(frozen=True, slots=True)
class TranscriptionResult:
    """Transcription and translation output for one audio payload."""

    transcription: str
    translation: str


@dataclass(frozen=True, slots=True)
class DubbingSegment:
    """Outcome of transcribing and re-voicing one audio segment.

    Attributes:
        index: 1-based segment index.
        transcription: Original-language transcription, empty on failure.
        translation: Target-language translation, empty on failure.
        audio: Re-voiced WAV container, or `None` when this segment failed.
        error: Failure message for this segment, or `None` on success.
    """

    index: int
    transcription: str = ""
    translation: str = ""
    audio: bytes | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Return whether the segment produced dubbed audio."""

        return self.audio is not None and self.error is None


@dataclass(frozen=True, slots=True)
class DubbingResult:
    """Aggregated output of the dubbing workflow."""

    transcription: str
    translation: str
    audio: bytes | None
    segments: tuple[DubbingSegment, ...] = field(default_factory=tuple)

    @property
    def failed_segments(self) -> tuple[DubbingSegment, ...]:
        """Return segments that produced no dubbed audio."""

        return tuple(segment for segment in self.segments if not segment.succeeded)


@dataclass(slots=True)
class BatchReport:
    """Summary of one sequential batch run.

    Attributes:
        completed: Section ids generated successfully during this run.
        failed: Section ids that ended in the `error` state.
        cancelled: Section ids cancelled while in flight.
        skipped: Section ids skipped because they were already completed.
        stopped: Whether the batch stopped before visiting every requested section.
    """

    completed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    stopped: bool = False
