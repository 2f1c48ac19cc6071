"""Shared deterministic test doubles for speech, optimization and transcription."""

from __future__ import annotations

from typing import Callable

from lectio.llm.gemini_client import GeminiProviderError
from lectio.models.datatypes import TranscriptionResult
from lectio.tts.voices import VoiceParameters, default_voice


def pcm_frames(frame_count: int) -> bytes:
    """Return silent 16-bit mono PCM with `frame_count` frames."""

    return b"\x00\x00" * frame_count


def spanish_voice(**overrides: object) -> VoiceParameters:
    """Return default Spanish voice parameters with optional field overrides."""

    values: dict[str, object] = {"voice": default_voice("es"), "language": "es"}
    values.update(overrides)
    return VoiceParameters(**values)  # type: ignore[arg-type]


class RecordingSleeper:
    """Record requested waits without sleeping; optionally run a hook per wait."""

    def __init__(self, on_sleep: Callable[[float], None] | None = None) -> None:
        """Initialize empty wait history."""

        self.calls: list[float] = []
        self._on_sleep = on_sleep

    def __call__(self, seconds: float) -> None:
        """Record one wait."""

        self.calls.append(seconds)
        if self._on_sleep is not None:
            self._on_sleep(seconds)


class FakeSynthesizer:
    """Speech synthesizer double returning fixed PCM and recording calls."""

    def __init__(
        self,
        *,
        frames_per_call: int = 2400,
        fail_on_call: int | None = None,
        error: Exception | None = None,
        before_call: Callable[[int], None] | None = None,
    ) -> None:
        """Initialize optional failure injection on a 1-based call number."""

        self.frames_per_call = frames_per_call
        self.fail_on_call = fail_on_call
        self.error = error or GeminiProviderError(
            "Gemini request failed (HTTP 500): boom",
            failure_kind="http_error",
            status_code=500,
        )
        self.before_call = before_call
        self.calls: list[tuple[str, VoiceParameters, str]] = []

    def synthesize(self, text: str, voice_parameters: VoiceParameters, credential: str) -> bytes:
        """Record the call and return PCM, or raise the configured failure."""

        self.calls.append((text, voice_parameters, credential))
        call_number = len(self.calls)
        if self.before_call is not None:
            self.before_call(call_number)
        if self.fail_on_call == call_number:
            raise self.error
        return pcm_frames(self.frames_per_call)


class FakeOptimizer:
    """Text optimizer double that uppercases text or raises."""

    def __init__(self, *, error: Exception | None = None) -> None:
        """Initialize optional failure injection."""

        self.error = error
        self.calls: list[str] = []

    def optimize(self, text: str, credential: str, language: str) -> str:
        """Return uppercased text or raise the configured failure."""

        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return text.upper()


class FakeTranscriber:
    """Transcriber double returning scripted results per call."""

    def __init__(self, results: list[TranscriptionResult | Exception]) -> None:
        """Initialize scripted outcomes consumed in call order."""

        self._results = list(results)
        self.calls: list[tuple[int, str, str]] = []

    def transcribe_and_translate(
        self,
        audio: bytes,
        mime_type: str,
        target_language: str,
        *,
        credential: str,
    ) -> TranscriptionResult:
        """Return or raise the next scripted outcome."""

        self.calls.append((len(audio), mime_type, target_language))
        outcome = self._results.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
