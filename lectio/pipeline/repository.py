"""Section repository and generation state machine.

Responsibilities:
- Own the ordered map of document sections for one project.
- Apply user edits (content, title) with result invalidation.
- Expose the status transitions used by the orchestrator, rejecting invalid ones.

Transitions:
- `idle|completed|error -> generating` (`begin_generation`)
- `generating <-> paused` (`mark_paused`, `mark_resumed`)
- `generating|paused -> merging -> completed`
- `generating|paused|merging -> error`
- any `-> idle` (`reset`, used by cancellation and edits)
"""

from __future__ import annotations

import threading

from ..errors import SectionStateError
from ..models.datatypes import Section, SectionStatus
from ..text.segmenter import DocumentSegmenter

ACTIVE_STATUSES = frozenset({SectionStatus.GENERATING, SectionStatus.PAUSED, SectionStatus.MERGING})
_STARTABLE_STATUSES = frozenset({SectionStatus.IDLE, SectionStatus.COMPLETED, SectionStatus.ERROR})


class SectionRepository:
    """Ordered, lock-guarded store of sections keyed by identifier."""

    def __init__(self, segmenter: DocumentSegmenter | None = None) -> None:
        """Initialize an empty repository with the segmenter used by `load_text`."""

        self.segmenter = segmenter or DocumentSegmenter()
        self._sections: dict[str, Section] = {}
        self._lock = threading.RLock()

    def load_text(self, text: str, fallback_title: str) -> list[Section]:
        """Segment `text` and replace all sections, releasing previous results."""

        with self._lock:
            self._require_no_active_section()
            sections = self.segmenter.split(text, fallback_title)
            self._release_all()
            self._sections = {section.id: section for section in sections}
            return list(sections)

    def get(self, section_id: str) -> Section:
        """Return a section by identifier.

        Raises:
            KeyError: If no section has this identifier.
        """

        with self._lock:
            try:
                return self._sections[section_id]
            except KeyError:
                raise KeyError(f"Unknown section `{section_id}`.") from None

    def sections(self) -> list[Section]:
        """Return sections ordered by index."""

        with self._lock:
            return sorted(self._sections.values(), key=lambda section: section.index)

    def ids(self) -> list[str]:
        """Return section identifiers ordered by index."""

        return [section.id for section in self.sections()]

    def by_index(self, index: int) -> Section:
        """Return the section with a 1-based index."""

        for section in self.sections():
            if section.index == index:
                return section
        raise KeyError(f"No section with index {index}.")

    def clear(self) -> None:
        """Remove every section and release held results."""

        with self._lock:
            self._require_no_active_section()
            self._release_all()
            self._sections = {}

    def edit_content(self, section_id: str, content: str) -> bool:
        """Replace section content; resets status and result only on a real change.

        Returns:
            Whether the content changed.

        Raises:
            SectionStateError: While the section is generating, paused or merging.
        """

        with self._lock:
            section = self.get(section_id)
            if section.status in ACTIVE_STATUSES:
                raise SectionStateError(
                    section_id,
                    f"cannot edit content while `{section.status.value}`.",
                )
            if content == section.content:
                return False
            section.content = content
            self._reset(section)
            return True

    def sync_document_text(self, text: str) -> bool:
        """Live-update the only section from edited document text.

        Returns:
            `True` when exactly one section exists and its content changed.
        """

        with self._lock:
            if len(self._sections) != 1:
                return False
            only = next(iter(self._sections.values()))
            return self.edit_content(only.id, text.strip())

    def set_title(self, section_id: str, title: str) -> None:
        """Rename a section."""

        normalized = title.strip()
        if not normalized:
            raise ValueError("Section title must be a non-empty string.")
        with self._lock:
            self.get(section_id).title = normalized

    def attach_audio_reference(self, section_id: str, audio_ref: str | None) -> None:
        """Record where a completed section's audio was delivered."""

        with self._lock:
            section = self.get(section_id)
            if not section.has_result:
                raise SectionStateError(section_id, "has no audio result to reference.")
            section.audio_ref = audio_ref

    def begin_generation(self, section_id: str) -> Section:
        """Move a section into `generating`, releasing any previous result."""

        with self._lock:
            section = self._require_status(section_id, _STARTABLE_STATUSES, "start generation")
            section.release_result()
            section.status = SectionStatus.GENERATING
            section.progress = 0
            section.current_step = None
            return section

    def mark_paused(self, section_id: str) -> None:
        """Move a generating section into `paused`."""

        with self._lock:
            section = self._require_status(section_id, {SectionStatus.GENERATING}, "pause")
            section.status = SectionStatus.PAUSED

    def mark_resumed(self, section_id: str) -> None:
        """Move a paused section back into `generating`."""

        with self._lock:
            section = self._require_status(section_id, {SectionStatus.PAUSED}, "resume")
            section.status = SectionStatus.GENERATING

    def update_progress(self, section_id: str, progress: int, current_step: str) -> None:
        """Record chunk-level progress for an in-flight section."""

        with self._lock:
            section = self._require_status(
                section_id,
                {SectionStatus.GENERATING, SectionStatus.PAUSED},
                "update progress",
            )
            section.progress = max(0, min(100, int(progress)))
            section.current_step = current_step

    def mark_merging(self, section_id: str) -> None:
        """Move an in-flight section into `merging`."""

        with self._lock:
            section = self._require_status(
                section_id,
                {SectionStatus.GENERATING, SectionStatus.PAUSED},
                "merge",
            )
            section.status = SectionStatus.MERGING

    def mark_completed(
        self,
        section_id: str,
        *,
        audio: bytes,
        duration_seconds: float,
        generation_time_seconds: float,
    ) -> None:
        """Attach the merged result and move the section into `completed`."""

        with self._lock:
            section = self._require_status(section_id, {SectionStatus.MERGING}, "complete")
            section.audio = audio
            section.actual_duration_seconds = duration_seconds
            section.generation_time_seconds = generation_time_seconds
            section.status = SectionStatus.COMPLETED
            section.progress = 100
            section.current_step = None

    def mark_error(self, section_id: str, message: str) -> None:
        """Move an in-flight section into `error` with a user-facing message."""

        with self._lock:
            section = self._require_status(section_id, ACTIVE_STATUSES, "record an error")
            section.status = SectionStatus.ERROR
            section.current_step = message

    def reset(self, section_id: str) -> None:
        """Return a section to `idle` with no progress, step or result."""

        with self._lock:
            self._reset(self.get(section_id))

    @staticmethod
    def _reset(section: Section) -> None:
        """Apply the idle reset to one section."""

        section.release_result()
        section.status = SectionStatus.IDLE
        section.progress = 0
        section.current_step = None

    def _require_status(
        self,
        section_id: str,
        allowed: frozenset[SectionStatus] | set[SectionStatus],
        action: str,
    ) -> Section:
        """Return the section when its status allows `action`, else raise."""

        section = self.get(section_id)
        if section.status not in allowed:
            raise SectionStateError(section_id, f"cannot {action} while `{section.status.value}`.")
        return section

    def _require_no_active_section(self) -> None:
        """Reject project-wide replacement while any section is in flight."""

        for section in self._sections.values():
            if section.status in ACTIVE_STATUSES:
                raise SectionStateError(
                    section.id,
                    "project cannot be replaced while a section is generating.",
                )

    def _release_all(self) -> None:
        """Release results held by every section."""

        for section in self._sections.values():
            section.release_result()
