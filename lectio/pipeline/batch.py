"""Sequential batch generation across selected sections.

Responsibilities:
- Run the orchestrator over selected sections one at a time in index order.
- Honor a global stop flag and a global pause flag between sections.
- Merge completed section results into one combined container.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Iterable

from ..audio.assembler import AudioAssembler
from ..errors import SectionStateError
from ..io.sinks import AudioSink
from ..models.datatypes import BatchReport, SectionStatus
from ..telemetry.logger import RunLogger
from ..tts.voices import VoiceParameters
from .orchestrator import GenerationOrchestrator


class BatchCoordinator:
    """Drive a batch of sections through one orchestrator, never concurrently."""

    def __init__(
        self,
        orchestrator: GenerationOrchestrator,
        *,
        continue_on_error: bool = True,
        assembler: AudioAssembler | None = None,
        logger: RunLogger | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize batch policy and collaborators."""

        self.orchestrator = orchestrator
        self.continue_on_error = continue_on_error
        self.assembler = assembler or orchestrator.assembler
        self._logger = logger
        self._sleeper = sleeper or time.sleep
        self._stop_requested = threading.Event()
        self._pause_requested = threading.Event()
        self._active_section_id: str | None = None

    @property
    def active_section_id(self) -> str | None:
        """Return the section currently being generated, if any."""

        return self._active_section_id

    @property
    def paused(self) -> bool:
        """Return whether the global pause flag is set."""

        return self._pause_requested.is_set()

    def pause(self) -> None:
        """Pause the batch and the active section."""

        self._pause_requested.set()
        self._signal_active(self.orchestrator.pause)

    def resume(self) -> None:
        """Resume the batch and the active section."""

        self._pause_requested.clear()
        self._signal_active(self.orchestrator.resume)

    def stop(self, *, cancel_active: bool = False) -> None:
        """Prevent further sections from starting; optionally cancel the active one."""

        self._stop_requested.set()
        if cancel_active:
            self._signal_active(self.orchestrator.cancel)

    def _signal_active(self, action: Callable[[str], object]) -> None:
        """Apply a control action to the active section while it is still running.

        A section that finishes between the running check and the action raises
        `SectionStateError`; the action is then dropped.
        """

        active = self._active_section_id
        if active is None or not self.orchestrator.is_running(active):
            return
        try:
            action(active)
        except SectionStateError as exc:
            if self._logger is not None:
                self._logger.control_ignored(active, detail=str(exc))

    def run(
        self,
        section_ids: Iterable[str],
        voice: VoiceParameters,
        credential: str | None = None,
    ) -> BatchReport:
        """Generate the selected sections sequentially and return a summary.

        Raises:
            MissingCredentialError: If no credential is available; the batch aborts.
        """

        self._stop_requested.clear()
        repository = self.orchestrator.repository
        sections = sorted(
            (repository.get(section_id) for section_id in dict.fromkeys(section_ids)),
            key=lambda section: section.index,
        )
        report = BatchReport()
        if self._logger is not None:
            self._logger.batch_started(sections=len(sections))

        for position, section in enumerate(sections):
            if not self._wait_until_startable():
                report.stopped = True
                if self._logger is not None:
                    self._logger.batch_stopped(remaining=len(sections) - position)
                break
            if section.status is SectionStatus.COMPLETED:
                report.skipped.append(section.id)
                continue

            self._active_section_id = section.id
            try:
                result = self.orchestrator.generate(section.id, voice, credential)
            finally:
                self._active_section_id = None

            if result.status is SectionStatus.COMPLETED:
                report.completed.append(section.id)
            elif result.status is SectionStatus.ERROR:
                report.failed.append(section.id)
                if not self.continue_on_error:
                    report.stopped = position + 1 < len(sections)
                    break
            else:
                report.cancelled.append(section.id)

        if self._logger is not None:
            self._logger.batch_completed(
                completed=len(report.completed),
                failed=len(report.failed),
                skipped=len(report.skipped),
            )
        return report

    def merge_all(
        self,
        section_ids: Iterable[str],
        sink: AudioSink | None = None,
        title: str = "Merged",
    ) -> bytes:
        """Combine completed section results in index order into one container.

        Raises:
            ValueError: If fewer than two selected sections hold a completed result.
        """

        repository = self.orchestrator.repository
        completed = sorted(
            (
                section
                for section in (repository.get(section_id) for section_id in dict.fromkeys(section_ids))
                if section.status is SectionStatus.COMPLETED and section.audio is not None
            ),
            key=lambda section: section.index,
        )
        if len(completed) < 2:
            raise ValueError("At least two completed sections are required to merge.")

        merged = self.assembler.merge_containers(section.audio for section in completed)
        if sink is not None:
            sink.deliver(merged, title)
        return merged

    def _wait_until_startable(self) -> bool:
        """Block while the global pause is set; return `False` once stop is requested."""

        poll_seconds = self.orchestrator.timings.pause_poll_seconds
        while self._pause_requested.is_set() and not self._stop_requested.is_set():
            self._sleeper(poll_seconds)
        return not self._stop_requested.is_set()
