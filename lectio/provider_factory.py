"""Provider factory helpers for speech, optimization, and transcription stages.

Responsibilities:
- Build Gemini-backed stage clients from a validated `LectioConfig`.
- Keep orchestration independent from concrete provider class construction.
"""

from __future__ import annotations

from .config import LectioConfig
from .llm.cache import ResponseCache
from .llm.optimizer import GeminiTextOptimizer, TextOptimizer
from .llm.retry import RetryPolicy
from .llm.transcriber import GeminiTranscriber, Transcriber
from .telemetry.logger import RunLogger
from .tts.synthesizer import GeminiSpeechSynthesizer, SpeechSynthesizer


class ProviderFactory:
    """Factory for Gemini-backed stage clients used by the pipeline."""

    @staticmethod
    def create_speech_synthesizer(
        config: LectioConfig,
        logger: RunLogger | None = None,
    ) -> SpeechSynthesizer:
        """Create the speech synthesizer with the configured retry policy."""

        return GeminiSpeechSynthesizer(
            model=config.model_tts,
            retry_policy=config.retry_policy(),
            timeout_seconds=config.request_timeout_seconds,
            logger=logger,
        )

    @staticmethod
    def create_text_optimizer(
        config: LectioConfig,
        cache: ResponseCache | None = None,
    ) -> TextOptimizer:
        """Create the narration optimizer; each piece is retried once."""

        return GeminiTextOptimizer(
            model=config.model_text,
            retry_policy=RetryPolicy(
                max_retries=1,
                backoff_base_seconds=config.retry_backoff_base_seconds,
                quota_cooldown_seconds=config.quota_cooldown_seconds,
            ),
            timeout_seconds=config.request_timeout_seconds,
            cache=cache,
        )

    @staticmethod
    def create_transcriber(config: LectioConfig) -> Transcriber:
        """Create the transcription and translation client."""

        return GeminiTranscriber(
            model=config.model_text,
            retry_policy=config.retry_policy(),
            timeout_seconds=config.request_timeout_seconds,
        )
