"""Per-section generation orchestration.

Responsibilities:
- Drive one section's sub-chunks through optional optimization and speech synthesis.
- Apply throttle waits, cooperative pause/cancel, and error/rollback transitions.
- Merge sub-chunk audio into one container and hand it to an optional sink.

Key types:
- `GenerationOrchestrator`: start/pause/resume/cancel entry points keyed by section id.
"""

from __future__ import annotations

import time
from typing import Callable

from ..audio.assembler import AudioAssembler
from ..errors import MissingCredentialError, SectionStateError
from ..io.sinks import AudioSink
from ..llm.gemini_client import GeminiProviderError
from ..llm.optimizer import TextOptimizer
from ..models.datatypes import Section, SectionStatus
from ..telemetry.logger import RunLogger
from ..text.chunking import SubChunker
from ..tts.synthesizer import SpeechSynthesizer
from ..tts.voices import VoiceParameters
from .control import GenerationControl
from .repository import ACTIVE_STATUSES, SectionRepository
from .timing import GenerationTimings

CredentialProvider = Callable[[], str | None]


class GenerationOrchestrator:
    """Generate audio for one section at a time with per-run control tokens."""

    def __init__(
        self,
        repository: SectionRepository,
        synthesizer: SpeechSynthesizer,
        *,
        optimizer: TextOptimizer | None = None,
        chunker: SubChunker | None = None,
        assembler: AudioAssembler | None = None,
        timings: GenerationTimings | None = None,
        credential_provider: CredentialProvider | None = None,
        sink: AudioSink | None = None,
        logger: RunLogger | None = None,
        sleeper: Callable[[float], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize orchestration collaborators; waits and timing are injectable."""

        self.repository = repository
        self.synthesizer = synthesizer
        self.optimizer = optimizer
        self.chunker = chunker or SubChunker()
        self.assembler = assembler or AudioAssembler()
        self.timings = timings or GenerationTimings()
        self.credential_provider = credential_provider
        self.sink = sink
        self._logger = logger
        self._sleeper = sleeper or time.sleep
        self._clock = clock or time.monotonic
        self._controls: dict[str, GenerationControl] = {}

    def is_running(self, section_id: str) -> bool:
        """Return whether a generation run for the section is in flight."""

        return section_id in self._controls

    def pause(self, section_id: str) -> bool:
        """Pause a running section before its next sub-chunk.

        Returns:
            Whether the section status moved to `paused`.
        """

        control = self._require_control(section_id)
        control.pause()
        if self.repository.get(section_id).status is SectionStatus.GENERATING:
            self.repository.mark_paused(section_id)
            return True
        return False

    def resume(self, section_id: str) -> bool:
        """Resume a paused section.

        Returns:
            Whether the section status moved back to `generating`.
        """

        control = self._require_control(section_id)
        control.resume()
        if self.repository.get(section_id).status is SectionStatus.PAUSED:
            self.repository.mark_resumed(section_id)
            return True
        return False

    def cancel(self, section_id: str) -> None:
        """Request cancellation; the run rolls the section back to `idle`."""

        self._require_control(section_id).cancel()

    def generate(
        self,
        section_id: str,
        voice: VoiceParameters,
        credential: str | None = None,
    ) -> Section:
        """Generate, merge and attach audio for one section.

        Provider failures end in the `error` status and are not raised; the
        returned section carries the status. Cancellation ends in `idle`.

        Raises:
            MissingCredentialError: If no credential is available; the section is untouched.
            SectionStateError: If the section is already running or has no content.
        """

        section = self.repository.get(section_id)
        if self.is_running(section_id):
            raise SectionStateError(section_id, "generation is already running.")
        api_key = self._resolve_credential(credential)

        chunks = self.chunker.split(section.content, voice.dialogue_mode)
        if not chunks:
            raise SectionStateError(section_id, "has no content to generate.")

        control = GenerationControl()
        self._controls[section_id] = control
        self.repository.begin_generation(section_id)
        optimizer = self.optimizer if voice.auto_optimize else None
        optimizing = optimizer is not None
        if self._logger is not None:
            self._logger.section_started(section_id, chunks=len(chunks), optimize=optimizing)
        started_at = self._clock()

        try:
            buffers: list[bytes] = []
            total = len(chunks)
            for chunk in chunks:
                if not control.wait_while_paused(self.timings.pause_poll_seconds, self._sleeper):
                    return self._roll_back(section_id)
                position = chunk.position + 1
                self.repository.update_progress(
                    section_id,
                    round(chunk.position / total * 100),
                    f"Generating part {position}/{total}",
                )

                text = chunk.text
                if optimizer is not None:
                    text = self._optimize(
                        optimizer, section_id, chunk.position, text, api_key, voice.language
                    )
                if text.strip():
                    buffers.append(self.synthesizer.synthesize(text, voice, api_key))
                if self._logger is not None:
                    self._logger.chunk_progress(section_id, position=position, total=total)

                if position < total:
                    self._sleeper(self.timings.throttle_seconds(optimizing))

            if control.cancelled:
                return self._roll_back(section_id)
            if not buffers:
                self.repository.mark_error(section_id, "No speakable text left to synthesize.")
                if self._logger is not None:
                    self._logger.section_failed(section_id, error_type="empty_audio")
                return self.repository.get(section_id)

            self.repository.mark_merging(section_id)
            container = self.assembler.merge(buffers)
            duration = self.assembler.duration_seconds(container)
            self.repository.mark_completed(
                section_id,
                audio=container,
                duration_seconds=duration,
                generation_time_seconds=self._clock() - started_at,
            )
            if self.sink is not None:
                completed = self.repository.get(section_id)
                audio_ref = self.sink.deliver(container, completed.title, index=completed.index)
                self.repository.attach_audio_reference(section_id, audio_ref)
            if self._logger is not None:
                self._logger.section_completed(section_id, duration_seconds=duration)
        except GeminiProviderError as exc:
            self.repository.mark_error(section_id, str(exc))
            if self._logger is not None:
                self._logger.section_failed(section_id, error_type=exc.failure_kind)
        except Exception as exc:
            if self.repository.get(section_id).status in ACTIVE_STATUSES:
                self.repository.mark_error(section_id, f"Unexpected error: {exc}")
            if self._logger is not None:
                self._logger.section_failed(section_id, error_type=type(exc).__name__)
            raise
        finally:
            self._controls.pop(section_id, None)

        return self.repository.get(section_id)

    def _resolve_credential(self, credential: str | None) -> str:
        """Return the explicit credential, else the provider's, else raise."""

        candidate = credential
        if (candidate is None or not candidate.strip()) and self.credential_provider is not None:
            candidate = self.credential_provider()
        if candidate is None or not candidate.strip():
            raise MissingCredentialError()
        return candidate.strip()

    def _optimize(
        self,
        optimizer: TextOptimizer,
        section_id: str,
        position: int,
        text: str,
        api_key: str,
        language: str,
    ) -> str:
        """Return optimized chunk text, or the original text when optimization fails."""

        error_type = "empty_result"
        try:
            optimized = optimizer.optimize(text, api_key, language)
        except Exception as exc:
            optimized = ""
            error_type = type(exc).__name__
        if optimized.strip():
            return optimized
        if self._logger is not None:
            self._logger.optimizer_fallback(section_id, position=position, error_type=error_type)
        return text

    def _roll_back(self, section_id: str) -> Section:
        """Reset a cancelled section to `idle` and return it."""

        self.repository.reset(section_id)
        if self._logger is not None:
            self._logger.section_cancelled(section_id)
        return self.repository.get(section_id)

    def _require_control(self, section_id: str) -> GenerationControl:
        """Return the control token of a running section, else raise."""

        control = self._controls.get(section_id)
        if control is None:
            raise SectionStateError(section_id, "no generation is running.")
        return control
