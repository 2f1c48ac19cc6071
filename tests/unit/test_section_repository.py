"""Unit tests for the section repository and its status transitions."""

from __future__ import annotations

import pytest

from lectio.errors import SectionStateError
from lectio.models.datatypes import SectionStatus
from lectio.pipeline.repository import SectionRepository
from lectio.text.segmenter import DocumentSegmenter


def _repository(text: str = "# One\nFirst body.\n# Two\nSecond body.") -> SectionRepository:
    """Build a repository loaded with deterministic section ids."""

    repository = SectionRepository(segmenter=DocumentSegmenter(id_factory=lambda index: f"s{index}"))
    repository.load_text(text, "Doc")
    return repository


def _complete(repository: SectionRepository, section_id: str) -> None:
    """Drive a section through a full successful generation."""

    repository.begin_generation(section_id)
    repository.mark_merging(section_id)
    repository.mark_completed(
        section_id,
        audio=b"RIFF",
        duration_seconds=1.0,
        generation_time_seconds=2.0,
    )


def test_load_text_orders_sections_and_supports_lookup() -> None:
    """Loaded sections should be retrievable by id and index in order."""

    repository = _repository()

    assert repository.ids() == ["s1", "s2"]
    assert repository.by_index(2).title == "Two"
    assert repository.get("s1").content == "First body."
    with pytest.raises(KeyError, match="Unknown section"):
        repository.get("missing")
    with pytest.raises(KeyError):
        repository.by_index(9)


def test_full_lifecycle_records_result_and_resets_on_restart() -> None:
    """Completion should hold the result; a new generation releases it first."""

    repository = _repository()
    _complete(repository, "s1")

    section = repository.get("s1")
    assert section.status is SectionStatus.COMPLETED
    assert section.progress == 100
    assert section.has_result
    assert section.actual_duration_seconds == 1.0

    repository.begin_generation("s1")
    assert section.status is SectionStatus.GENERATING
    assert section.audio is None
    assert section.progress == 0


def test_invalid_transitions_are_rejected() -> None:
    """Transitions outside the state machine should raise `SectionStateError`."""

    repository = _repository()

    with pytest.raises(SectionStateError, match="cannot pause while `idle`"):
        repository.mark_paused("s1")
    with pytest.raises(SectionStateError):
        repository.mark_completed("s1", audio=b"", duration_seconds=0.0, generation_time_seconds=0.0)

    repository.begin_generation("s1")
    with pytest.raises(SectionStateError):
        repository.begin_generation("s1")
    repository.mark_paused("s1")
    repository.update_progress("s1", 150, "Generating part 2/2")
    assert repository.get("s1").progress == 100
    repository.mark_resumed("s1")
    repository.mark_error("s1", "Gemini request failed")
    assert repository.get("s1").status is SectionStatus.ERROR
    assert repository.get("s1").current_step == "Gemini request failed"
    with pytest.raises(SectionStateError):
        repository.mark_error("s1", "again")


def test_edit_content_resets_only_on_real_change() -> None:
    """Unchanged content keeps the result; changed content resets to idle."""

    repository = _repository()
    _complete(repository, "s1")

    assert repository.edit_content("s1", "First body.") is False
    assert repository.get("s1").status is SectionStatus.COMPLETED

    assert repository.edit_content("s1", "New body.") is True
    section = repository.get("s1")
    assert section.status is SectionStatus.IDLE
    assert section.audio is None
    assert section.char_count == len("New body.")


def test_edits_and_reloads_are_rejected_while_generating() -> None:
    """Content edits and project replacement should be refused for active sections."""

    repository = _repository()
    repository.begin_generation("s2")

    with pytest.raises(SectionStateError, match="cannot edit content"):
        repository.edit_content("s2", "changed")
    with pytest.raises(SectionStateError):
        repository.load_text("other", "Doc")
    with pytest.raises(SectionStateError):
        repository.clear()
    repository.reset("s2")
    repository.clear()
    assert repository.sections() == []


def test_sync_document_text_updates_only_single_section_projects() -> None:
    """Live document edits should apply only when exactly one section exists."""

    single = _repository("Only body.")
    assert single.sync_document_text("  Edited body.  ") is True
    assert single.sections()[0].content == "Edited body."

    assert _repository().sync_document_text("Edited") is False


def test_set_title_and_attach_audio_reference() -> None:
    """Titles must be non-empty and references require a held result."""

    repository = _repository()

    repository.set_title("s1", "  Renamed ")
    assert repository.get("s1").title == "Renamed"
    with pytest.raises(ValueError):
        repository.set_title("s1", " ")
    with pytest.raises(SectionStateError):
        repository.attach_audio_reference("s1", "out/001.wav")

    _complete(repository, "s1")
    repository.attach_audio_reference("s1", "out/001.wav")
    assert repository.get("s1").audio_ref == "out/001.wav"


def test_estimated_duration_uses_sixteen_characters_per_second() -> None:
    """Estimated duration should be the ceiling of characters over sixteen."""

    section = _repository("a" * 33).sections()[0]

    assert section.estimated_duration_seconds == 3
