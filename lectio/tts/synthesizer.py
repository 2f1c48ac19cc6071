"""Speech synthesizer interfaces and Gemini-backed implementation.

Responsibilities:
- Define the protocol the generation orchestrator uses for chunk-level speech.
- Wire prompt construction, the Gemini speech client and the retry policy together.
"""

from __future__ import annotations

import time
from typing import Callable, Protocol

from ..errors import MissingCredentialError
from ..llm.gemini_client import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TTS_MODEL,
    GeminiProviderError,
    GeminiSpeechClient,
)
from ..llm.prompts import PromptLibrary
from ..llm.rate_limiter import RateLimiter
from ..llm.retry import RetryPolicy, call_with_retry
from ..telemetry.logger import RunLogger
from .voices import VoiceParameters


class SpeechSynthesizer(Protocol):
    """Protocol for speech provider implementations returning raw PCM."""

    def synthesize(self, text: str, voice_parameters: VoiceParameters, credential: str) -> bytes:
        """Render text with the given voice and return raw PCM bytes."""


class GeminiSpeechSynthesizer:
    """Gemini-backed synthesizer with classified retry and optional request pacing."""

    def __init__(
        self,
        *,
        model: str = DEFAULT_TTS_MODEL,
        retry_policy: RetryPolicy | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        prompts: PromptLibrary | None = None,
        rate_limiter: RateLimiter | None = None,
        sleeper: Callable[[float], None] | None = None,
        logger: RunLogger | None = None,
    ) -> None:
        """Initialize Gemini speech settings and retry collaborators."""

        self.model = model
        self.retry_policy = retry_policy or RetryPolicy()
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.prompts = prompts or PromptLibrary()
        self.rate_limiter = rate_limiter
        self._sleeper = sleeper or time.sleep
        self._logger = logger
        self.retry_attempt_count = 0

    def synthesize(self, text: str, voice_parameters: VoiceParameters, credential: str) -> bytes:
        """Return raw PCM for `text`, retrying transient and quota failures.

        Raises:
            MissingCredentialError: If `credential` is blank.
            GeminiProviderError: After the retry budget is exhausted, or at once
                for authentication, permission and model failures.
        """

        if not credential or not credential.strip():
            raise MissingCredentialError()

        client = GeminiSpeechClient(
            api_key=credential,
            base_url=self.base_url,
            timeout_seconds=self.timeout_seconds,
        )
        prompt = self.prompts.speech_prompt(text, voice_parameters)

        def _request() -> bytes:
            if self.rate_limiter is not None:
                self.rate_limiter.acquire("tts")
            return client.synthesize_pcm(
                model=self.model,
                voice_name=voice_parameters.voice.provider_voice_id,
                prompt=prompt,
            )

        return call_with_retry(
            _request,
            self.retry_policy,
            sleeper=self._sleeper,
            on_retry=self._record_retry,
        )

    def _record_retry(self, attempt: int, delay_seconds: float, error: GeminiProviderError) -> None:
        """Count and log one scheduled retry."""

        self.retry_attempt_count += 1
        if self._logger is not None:
            self._logger.retry_scheduled(
                "tts",
                attempt=attempt,
                delay_seconds=delay_seconds,
                failure_kind=error.failure_kind,
            )
