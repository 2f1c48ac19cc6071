"""Unit tests for sequential batch generation and merging."""

from __future__ import annotations

import io

import pytest

from lectio.audio.assembler import WAV_HEADER_BYTES
from lectio.errors import SectionStateError
from lectio.io.sinks import MemoryAudioSink
from lectio.models.datatypes import SectionStatus
from lectio.pipeline.batch import BatchCoordinator
from lectio.pipeline.orchestrator import GenerationOrchestrator
from lectio.pipeline.repository import SectionRepository
from lectio.telemetry.logger import RunLogger
from lectio.text.segmenter import DocumentSegmenter
from tests.doubles import FakeSynthesizer, RecordingSleeper, spanish_voice

THREE_SECTIONS = "# A\nuno.\n# B\ndos.\n# C\ntres."


def _coordinator(
    synthesizer: FakeSynthesizer | None = None,
    *,
    continue_on_error: bool = True,
    batch_sleeper: RecordingSleeper | None = None,
    logger: RunLogger | None = None,
) -> tuple[BatchCoordinator, FakeSynthesizer]:
    """Build a coordinator over three single-chunk sections `s1`..`s3`."""

    repository = SectionRepository(segmenter=DocumentSegmenter(id_factory=lambda index: f"s{index}"))
    repository.load_text(THREE_SECTIONS, "Doc")
    fake = synthesizer or FakeSynthesizer()
    orchestrator = GenerationOrchestrator(repository, fake, sleeper=RecordingSleeper())
    coordinator = BatchCoordinator(
        orchestrator,
        continue_on_error=continue_on_error,
        sleeper=batch_sleeper or RecordingSleeper(),
        logger=logger,
    )
    return coordinator, fake


def test_batch_runs_selected_sections_in_index_order_once() -> None:
    """Selections should be deduplicated and generated by ascending index."""

    coordinator, fake = _coordinator()

    report = coordinator.run(["s3", "s1", "s3"], spanish_voice(), "key")

    assert report.completed == ["s1", "s3"]
    assert [call[0] for call in fake.calls] == ["uno.", "tres."]
    assert report.stopped is False
    assert coordinator.orchestrator.repository.get("s2").status is SectionStatus.IDLE


def test_batch_continues_after_failure_by_default() -> None:
    """A failed section should be reported while later sections still run."""

    coordinator, _ = _coordinator(FakeSynthesizer(fail_on_call=2))

    report = coordinator.run(["s1", "s2", "s3"], spanish_voice(), "key")

    assert report.completed == ["s1", "s3"]
    assert report.failed == ["s2"]
    assert report.stopped is False


def test_batch_stops_after_failure_when_configured() -> None:
    """Stop-on-error should leave later sections untouched."""

    coordinator, fake = _coordinator(FakeSynthesizer(fail_on_call=2), continue_on_error=False)

    report = coordinator.run(["s1", "s2", "s3"], spanish_voice(), "key")

    assert report.completed == ["s1"]
    assert report.failed == ["s2"]
    assert report.stopped is True
    assert len(fake.calls) == 2
    assert coordinator.orchestrator.repository.get("s3").status is SectionStatus.IDLE


def test_stop_lets_active_section_finish_and_skips_the_rest() -> None:
    """A plain stop should not cancel the active section."""

    coordinator: BatchCoordinator

    def _stop(call_number: int) -> None:
        """Request a stop during the first section."""

        if call_number == 1:
            coordinator.stop()

    coordinator, fake = _coordinator(FakeSynthesizer(before_call=_stop))

    report = coordinator.run(["s1", "s2", "s3"], spanish_voice(), "key")

    assert report.completed == ["s1"]
    assert report.stopped is True
    assert len(fake.calls) == 1


def test_stop_with_cancel_rolls_back_active_section() -> None:
    """Stopping with cancellation should roll the active section back to idle."""

    coordinator: BatchCoordinator

    def _stop(call_number: int) -> None:
        """Request a cancelling stop during the first section."""

        if call_number == 1:
            assert coordinator.active_section_id == "s1"
            coordinator.stop(cancel_active=True)

    coordinator, _ = _coordinator(FakeSynthesizer(before_call=_stop))

    report = coordinator.run(["s1", "s2"], spanish_voice(), "key")

    assert report.cancelled == ["s1"]
    assert report.completed == []
    assert report.stopped is True
    assert coordinator.orchestrator.repository.get("s1").status is SectionStatus.IDLE


def test_control_requests_racing_a_finished_section_are_ignored() -> None:
    """Pause or cancel reaching a section that just finished should not raise."""

    coordinator: BatchCoordinator
    log_stream = io.StringIO()

    def _finished(section_id: str) -> None:
        """Behave like a control call arriving after the run released its token."""

        raise SectionStateError(section_id, "no generation is running.")

    def _interrupt(call_number: int) -> None:
        """Pause and then stop with cancellation during the first section."""

        if call_number == 1:
            coordinator.pause()
            coordinator.stop(cancel_active=True)

    coordinator, fake = _coordinator(
        FakeSynthesizer(before_call=_interrupt),
        logger=RunLogger(log_stream, level="DEBUG"),
    )
    coordinator.orchestrator.pause = _finished  # type: ignore[method-assign]
    coordinator.orchestrator.cancel = _finished  # type: ignore[method-assign]

    report = coordinator.run(["s1", "s2"], spanish_voice(), "key")

    assert report.completed == ["s1"]
    assert report.stopped is True
    assert len(fake.calls) == 1
    assert log_stream.getvalue().count("event=control_ignored") == 2


def test_global_pause_holds_next_section_until_resumed() -> None:
    """A batch pause should wait between sections and continue after resume."""

    coordinator: BatchCoordinator
    batch_sleeper = RecordingSleeper(on_sleep=lambda _seconds: coordinator.resume())

    def _pause(call_number: int) -> None:
        """Pause the batch during the first section."""

        if call_number == 1:
            coordinator.pause()

    coordinator, _ = _coordinator(FakeSynthesizer(before_call=_pause), batch_sleeper=batch_sleeper)

    report = coordinator.run(["s1", "s2"], spanish_voice(), "key")

    assert report.completed == ["s1", "s2"]
    assert batch_sleeper.calls == [0.5]
    assert coordinator.paused is False


def test_batch_skips_sections_already_completed() -> None:
    """Completed sections should be skipped, not regenerated."""

    coordinator, fake = _coordinator()
    coordinator.run(["s1"], spanish_voice(), "key")

    report = coordinator.run(["s1", "s2"], spanish_voice(), "key")

    assert report.skipped == ["s1"]
    assert report.completed == ["s2"]
    assert len(fake.calls) == 2


def test_merge_all_combines_completed_results_in_index_order() -> None:
    """Merging should concatenate completed sections and deliver one container."""

    coordinator, _ = _coordinator()
    coordinator.run(["s1", "s2", "s3"], spanish_voice(), "key")
    sink = MemoryAudioSink()

    merged = coordinator.merge_all(["s3", "s1", "s2"], sink, title="Doc complete")

    assert len(merged) == WAV_HEADER_BYTES + 3 * 4800
    assert sink.deliveries[0].title == "Doc complete"
    assert sink.deliveries[0].container == merged


def test_merge_all_requires_two_completed_sections() -> None:
    """Merging fewer than two completed sections should be rejected."""

    coordinator, _ = _coordinator()
    coordinator.run(["s1"], spanish_voice(), "key")

    with pytest.raises(ValueError, match="At least two completed sections"):
        coordinator.merge_all(["s1", "s2"])
