"""Audio dubbing workflow: transcribe, translate, and re-voice recorded audio.

Responsibilities:
- Split oversized WAV inputs into fixed-length segments for inline upload.
- Transcribe and translate each segment, recording per-segment failures.
- Re-voice each translation with a catalog voice and merge the dubbed segments.
"""

from __future__ import annotations

from ..audio.assembler import AudioAssembler
from ..audio.splitter import DEFAULT_SEGMENT_SECONDS, split_container
from ..errors import MissingCredentialError
from ..llm.gemini_client import GeminiProviderError
from ..llm.rate_limiter import RateLimiter
from ..llm.transcriber import MAX_INLINE_FILE_SIZE_BYTES, Transcriber, resolve_mime_type
from ..models.datatypes import DubbingResult, DubbingSegment
from ..telemetry.logger import RunLogger
from ..tts.synthesizer import SpeechSynthesizer
from ..tts.voices import VoiceOption, VoiceParameters


class DubbingWorkflow:
    """Turn recorded speech into re-voiced audio in a target language."""

    def __init__(
        self,
        transcriber: Transcriber,
        synthesizer: SpeechSynthesizer,
        *,
        assembler: AudioAssembler | None = None,
        rate_limiter: RateLimiter | None = None,
        segment_seconds: float = DEFAULT_SEGMENT_SECONDS,
        max_inline_bytes: int = MAX_INLINE_FILE_SIZE_BYTES,
        logger: RunLogger | None = None,
    ) -> None:
        """Initialize dubbing collaborators; synthesis calls are paced at 0.3 s by default."""

        self.transcriber = transcriber
        self.synthesizer = synthesizer
        self.assembler = assembler or AudioAssembler()
        self.rate_limiter = rate_limiter or RateLimiter(min_interval_seconds=0.3)
        self.segment_seconds = segment_seconds
        self.max_inline_bytes = max_inline_bytes
        self._logger = logger

    def run(
        self,
        audio_bytes: bytes,
        file_name: str,
        voice: VoiceOption,
        credential: str,
        *,
        target_language: str | None = None,
    ) -> DubbingResult:
        """Dub an audio payload into `target_language` (the voice's language by default).

        Raises:
            MissingCredentialError: If `credential` is blank.
            ValueError: If a non-WAV payload exceeds the inline size limit.
        """

        if not credential or not credential.strip():
            raise MissingCredentialError()
        language = target_language or voice.language
        voice_parameters = VoiceParameters(voice=voice, language=language, pitch=0.0, speed=1.0)
        mime_type = resolve_mime_type(file_name)
        segments = self._segment_input(audio_bytes, mime_type)

        results: list[DubbingSegment] = []
        for index, segment in enumerate(segments, start=1):
            results.append(
                self._dub_segment(index, segment, mime_type, voice_parameters, credential)
            )

        dubbed = [segment.audio for segment in results if segment.audio is not None]
        merged = self.assembler.merge_containers(dubbed) if dubbed else None
        segmented = len(results) > 1
        return DubbingResult(
            transcription=_join_texts([segment.transcription for segment in results], segmented),
            translation=_join_texts([segment.translation for segment in results], segmented),
            audio=merged,
            segments=tuple(results),
        )

    def _segment_input(self, audio_bytes: bytes, mime_type: str) -> list[bytes]:
        """Return inline-sized payloads, splitting oversized WAV input by time."""

        if len(audio_bytes) <= self.max_inline_bytes:
            return [audio_bytes]
        if mime_type != "audio/wav":
            raise ValueError(
                f"Audio file too large ({len(audio_bytes) / 1024 / 1024:.1f}MB). "
                "Only WAV input can be split automatically."
            )
        return split_container(audio_bytes, self.segment_seconds, self.assembler)

    def _dub_segment(
        self,
        index: int,
        payload: bytes,
        mime_type: str,
        voice_parameters: VoiceParameters,
        credential: str,
    ) -> DubbingSegment:
        """Transcribe, translate and re-voice one segment, capturing its failure."""

        try:
            transcript = self.transcriber.transcribe_and_translate(
                payload,
                mime_type,
                voice_parameters.language,
                credential=credential,
            )
        except (GeminiProviderError, ValueError) as exc:
            self._log_failure("transcribe", exc)
            return DubbingSegment(index=index, error=str(exc))

        if not transcript.translation.strip():
            return DubbingSegment(
                index=index,
                transcription=transcript.transcription,
                error="Translation is empty.",
            )

        try:
            self.rate_limiter.acquire("dub")
            pcm = self.synthesizer.synthesize(transcript.translation, voice_parameters, credential)
        except GeminiProviderError as exc:
            self._log_failure("tts", exc)
            return DubbingSegment(
                index=index,
                transcription=transcript.transcription,
                translation=transcript.translation,
                error=str(exc),
            )

        return DubbingSegment(
            index=index,
            transcription=transcript.transcription,
            translation=transcript.translation,
            audio=self.assembler.wrap(pcm),
        )

    def _log_failure(self, stage: str, error: Exception) -> None:
        """Emit a stage failure event for one segment."""

        if self._logger is not None:
            self._logger.log_stage_failure(stage, getattr(error, "failure_kind", type(error).__name__))


def _join_texts(texts: list[str], segmented: bool) -> str:
    """Join per-segment texts, prefixing `[Part N]` when the input was segmented."""

    if not segmented:
        return texts[0] if texts else ""
    return "\n\n".join(
        f"[Part {number}]\n{text}" for number, text in enumerate(texts, start=1) if text
    )
