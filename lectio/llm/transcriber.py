"""Audio transcription and translation stage.

Responsibilities:
- Send inline audio to Gemini with a JSON response schema.
- Parse model output tolerantly (code fences, surrounding prose).
- Resolve audio MIME types from file names.
"""

from __future__ import annotations

import json
import time
from pathlib import PurePath
from typing import Callable, Protocol

from ..errors import MissingCredentialError
from ..models.datatypes import TranscriptionResult
from .gemini_client import (
    DEFAULT_BASE_URL,
    DEFAULT_TEXT_MODEL,
    DEFAULT_TIMEOUT_SECONDS,
    GeminiProviderError,
    GeminiTextClient,
)
from .prompts import TRANSCRIPTION_SCHEMA, PromptLibrary
from .retry import RetryPolicy, call_with_retry

MAX_INLINE_FILE_SIZE_BYTES = 18 * 1024 * 1024

_EXTENSION_MIME_TYPES = {
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".mp3": "audio/mpeg",
}


class Transcriber(Protocol):
    """Protocol for transcription-plus-translation collaborators."""

    def transcribe_and_translate(
        self,
        audio: bytes,
        mime_type: str,
        target_language: str,
        *,
        credential: str,
    ) -> TranscriptionResult:
        """Return transcription and target-language translation for an audio payload."""


def resolve_mime_type(file_name: str, declared: str | None = None) -> str:
    """Return a Gemini-accepted audio MIME type for a file."""

    if declared == "audio/mp3":
        return "audio/mpeg"
    if declared and declared != "application/octet-stream":
        return declared
    return _EXTENSION_MIME_TYPES.get(PurePath(file_name).suffix.lower(), "audio/mpeg")


def parse_transcription_payload(text: str) -> TranscriptionResult:
    """Parse a transcription JSON payload, tolerating code fences and surrounding prose.

    Raises:
        GeminiProviderError: If no JSON object with the expected fields can be read.
    """

    cleaned = text.strip().replace("```json", "").replace("```", "")
    first_brace = cleaned.find("{")
    last_brace = cleaned.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        cleaned = cleaned[first_brace : last_brace + 1]

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise GeminiProviderError(
            "Invalid JSON response from Gemini. Please retry.",
            failure_kind="malformed_response",
        ) from exc
    if not isinstance(payload, dict):
        raise GeminiProviderError(
            "Gemini transcription payload is not a JSON object.",
            failure_kind="malformed_response",
        )

    transcription = payload.get("transcription")
    translation = payload.get("translation")
    if not isinstance(transcription, str) or not isinstance(translation, str):
        raise GeminiProviderError(
            "Gemini transcription payload is missing `transcription` or `translation`.",
            failure_kind="malformed_response",
        )
    return TranscriptionResult(transcription=transcription.strip(), translation=translation.strip())


class GeminiTranscriber:
    """Gemini-backed transcriber returning schema-constrained JSON output."""

    def __init__(
        self,
        *,
        model: str = DEFAULT_TEXT_MODEL,
        retry_policy: RetryPolicy | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        prompts: PromptLibrary | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize transcription settings."""

        self.model = model
        self.retry_policy = retry_policy or RetryPolicy()
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.prompts = prompts or PromptLibrary()
        self._sleeper = sleeper or time.sleep

    def transcribe_and_translate(
        self,
        audio: bytes,
        mime_type: str,
        target_language: str,
        *,
        credential: str,
    ) -> TranscriptionResult:
        """Transcribe `audio` and translate it into `target_language`.

        Raises:
            MissingCredentialError: If `credential` is blank.
            ValueError: If the payload exceeds the inline size limit.
            GeminiProviderError: On provider or parsing failure after retries.
        """

        if not credential or not credential.strip():
            raise MissingCredentialError()
        if len(audio) > MAX_INLINE_FILE_SIZE_BYTES:
            raise ValueError(
                f"Audio payload too large ({len(audio) / 1024 / 1024:.1f}MB). "
                f"Max {MAX_INLINE_FILE_SIZE_BYTES // (1024 * 1024)}MB per request."
            )

        client = GeminiTextClient(
            api_key=credential,
            base_url=self.base_url,
            timeout_seconds=self.timeout_seconds,
        )
        prompt = self.prompts.transcription_prompt(target_language)

        def _request() -> TranscriptionResult:
            raw = client.generate_text(
                model=self.model,
                prompt=prompt,
                response_schema=TRANSCRIPTION_SCHEMA,
                inline_audio=(audio, mime_type),
            )
            return parse_transcription_payload(raw)

        return call_with_retry(_request, self.retry_policy, sleeper=self._sleeper)
