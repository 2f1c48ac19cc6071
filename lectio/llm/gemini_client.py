"""Gemini HTTP client utilities for speech, text and transcription calls.

Responsibilities:
- Send `generateContent` requests to Gemini's REST API with `requests`.
- Extract inline audio and text parts from Gemini responses.
- Raise classified provider exceptions for retry and stage-level error mapping.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
import socket
from typing import Any

import requests

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_TTS_MODEL = "gemini-2.5-flash-preview-tts"
DEFAULT_TEXT_MODEL = "gemini-2.5-flash"

_QUOTA_MARKERS = (
    "resource_exhausted",
    "quota",
    "quotafailure",
    "exceeded your current quota",
    "rate limit",
)


class GeminiProviderError(RuntimeError):
    """Raised when a Gemini request fails or returns malformed output."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "http_error",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata for retry and stage-aware diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code


def is_quota_message(text: str) -> bool:
    """Return whether provider text signals quota or rate-limit exhaustion."""

    lowered = text.lower()
    return "429" in lowered or any(marker in lowered for marker in _QUOTA_MARKERS)


class _GeminiBaseClient:
    """Shared Gemini HTTP settings and helpers used by task-specific clients."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180

    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize Gemini HTTP client settings."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def _require_api_key(self) -> None:
        """Require API key presence before issuing Gemini requests."""

        if not self.api_key:
            raise GeminiProviderError(
                "Missing Gemini API key. Set `GEMINI_API_KEY`, use `--api-key`, or store "
                "one with `lectio credentials`.",
                failure_kind="invalid_api_key",
            )

    def _generate_content(self, model: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a `generateContent` request and return the decoded JSON response."""

        self._require_api_key()
        endpoint = f"{self.base_url}/models/{model}:generateContent"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                endpoint,
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            raw_payload = bytes(response.content).decode("utf-8", errors="replace")
        except requests.HTTPError as exc:
            raise self._http_error_to_provider_error(exc) from exc
        except requests.RequestException as exc:
            failure_kind = self._classify_transport_failure(exc)
            if failure_kind == "timeout":
                detail = "Gemini request timed out."
            else:
                detail = f"Gemini request transport error: {self._short_message(str(exc))}"
            raise GeminiProviderError(detail, failure_kind=failure_kind) from exc
        except TimeoutError as exc:
            raise GeminiProviderError("Gemini request timed out.", failure_kind="timeout") from exc

        try:
            decoded = json.loads(raw_payload)
        except json.JSONDecodeError as exc:
            raise GeminiProviderError(
                "Gemini returned invalid JSON payload.",
                failure_kind="malformed_response",
            ) from exc
        if not isinstance(decoded, dict):
            raise GeminiProviderError(
                "Gemini response root is not a JSON object.",
                failure_kind="malformed_response",
            )
        return decoded

    @classmethod
    def _response_parts(cls, payload: dict[str, Any]) -> list[dict[str, Any]]:
        """Return the content parts of the first candidate."""

        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            feedback = payload.get("promptFeedback")
            block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            if block_reason:
                raise GeminiProviderError(
                    f"Gemini blocked the request ({block_reason}).",
                    failure_kind="malformed_response",
                )
            raise GeminiProviderError(
                "Gemini response missing non-empty `candidates` list.",
                failure_kind="malformed_response",
            )

        first_candidate = candidates[0]
        content = first_candidate.get("content") if isinstance(first_candidate, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            raise GeminiProviderError(
                "Gemini response missing `candidates[0].content.parts`.",
                failure_kind="malformed_response",
            )
        return [part for part in parts if isinstance(part, dict)]

    @staticmethod
    def _decode_error_body(exc: requests.HTTPError) -> str:
        """Decode an HTTP error body into a best-effort UTF-8 payload string."""

        response = exc.response
        if response is None:
            return ""
        return bytes(response.content or b"").decode("utf-8", errors="replace").strip()

    @classmethod
    def _redact_sensitive_tokens(cls, text: str) -> str:
        """Redact API-key-like tokens from provider error content."""

        redacted = re.sub(r"\bAIza[0-9A-Za-z_-]{10,}", "[redacted-key]", text)
        redacted = re.sub(r"(?i)(key=)[A-Za-z0-9._-]{8,}", r"\1[redacted-key]", redacted)
        return redacted

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize and cap user-facing provider message length."""

        compact = " ".join(cls._redact_sensitive_tokens(text).split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _extract_provider_message(cls, body: str) -> tuple[str, str | None]:
        """Extract a concise provider message and optional provider status code."""

        if not body:
            return "", None

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(body), None

        provider_code: str | None = None
        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                status_value = error_payload.get("status")
                if isinstance(status_value, str) and status_value.strip():
                    provider_code = status_value.strip()
                message_value = error_payload.get("message")
                if isinstance(message_value, str) and message_value.strip():
                    message = message_value.strip()

        return cls._short_message(message if message is not None else body), provider_code

    @staticmethod
    def _classify_http_failure(
        status_code: int,
        provider_message: str,
        provider_code: str | None,
    ) -> str:
        """Classify Gemini HTTP errors into diagnostic failure kinds."""

        message_lower = provider_message.lower()
        normalized_code = provider_code.upper() if provider_code is not None else ""

        if status_code == 401 or normalized_code == "UNAUTHENTICATED" or "api key" in message_lower:
            return "invalid_api_key"
        if status_code == 403 or normalized_code == "PERMISSION_DENIED" or "permission" in message_lower:
            return "permission_denied"
        if status_code == 429 or normalized_code == "RESOURCE_EXHAUSTED" or is_quota_message(
            provider_message
        ):
            return "quota_exceeded"
        if "model" in message_lower and (
            status_code == 404
            or any(phrase in message_lower for phrase in ("not found", "does not exist", "not supported"))
        ):
            return "invalid_model"
        if (
            status_code in {408, 504}
            or normalized_code == "DEADLINE_EXCEEDED"
            or "timed out" in message_lower
            or "timeout" in message_lower
        ):
            return "timeout"
        return "http_error"

    @staticmethod
    def _classify_transport_failure(reason: object) -> str:
        """Classify network-layer failures into diagnostic failure kinds."""

        if isinstance(reason, TimeoutError | socket.timeout | requests.Timeout):
            return "timeout"
        return "transport"

    @classmethod
    def _http_error_to_provider_error(cls, exc: requests.HTTPError) -> GeminiProviderError:
        """Convert HTTP errors into normalized provider exceptions with metadata."""

        status_code = exc.response.status_code if exc.response is not None else 0
        body = cls._decode_error_body(exc)
        provider_message, provider_code = cls._extract_provider_message(body)
        failure_kind = cls._classify_http_failure(status_code, provider_message, provider_code)

        headline = {
            "invalid_api_key": "Gemini rejected the API key",
            "permission_denied": "Gemini denied permission for this request",
            "quota_exceeded": "Gemini quota exceeded",
            "invalid_model": "Gemini rejected the selected model",
            "timeout": "Gemini request timed out",
        }.get(failure_kind, "Gemini request failed")

        if provider_message:
            detail = f"{headline} (HTTP {status_code}): {provider_message}"
        else:
            detail = f"{headline} (HTTP {status_code})."

        return GeminiProviderError(
            detail,
            failure_kind=failure_kind,
            status_code=status_code,
            provider_code=provider_code,
        )


class GeminiSpeechClient(_GeminiBaseClient):
    """Minimal requests-based client for Gemini native speech generation."""

    def synthesize_pcm(self, *, model: str, voice_name: str, prompt: str) -> bytes:
        """Return raw PCM bytes for a speech prompt rendered with a prebuilt voice."""

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice_name}},
                },
            },
        }
        response_payload = self._generate_content(model, payload)
        return self._extract_audio(response_payload)

    @classmethod
    def _extract_audio(cls, payload: dict[str, Any]) -> bytes:
        """Decode and concatenate base64 inline audio parts of the first candidate."""

        chunks: list[bytes] = []
        for part in cls._response_parts(payload):
            inline_data = part.get("inlineData")
            if not isinstance(inline_data, dict):
                continue
            encoded = inline_data.get("data")
            if not isinstance(encoded, str) or not encoded:
                continue
            try:
                chunks.append(base64.b64decode(encoded, validate=True))
            except (binascii.Error, ValueError) as exc:
                raise GeminiProviderError(
                    "Gemini returned undecodable inline audio data.",
                    failure_kind="malformed_response",
                ) from exc

        audio = b"".join(chunks)
        if not audio:
            raise GeminiProviderError(
                "Gemini response did not contain audio data.",
                failure_kind="malformed_response",
            )
        return audio


class GeminiTextClient(_GeminiBaseClient):
    """Minimal requests-based client for Gemini text generation, optionally with audio input."""

    def generate_text(
        self,
        *,
        model: str,
        prompt: str,
        temperature: float | None = None,
        response_schema: dict[str, Any] | None = None,
        inline_audio: tuple[bytes, str] | None = None,
    ) -> str:
        """Return concatenated text parts of the first candidate.

        Args:
            model: Gemini model identifier.
            prompt: Instruction text.
            temperature: Optional sampling temperature.
            response_schema: Optional JSON schema; requests `application/json` output.
            inline_audio: Optional `(payload, mime_type)` audio attachment.
        """

        parts: list[dict[str, Any]] = []
        if inline_audio is not None:
            audio_bytes, mime_type = inline_audio
            parts.append(
                {
                    "inlineData": {
                        "mimeType": mime_type,
                        "data": base64.b64encode(audio_bytes).decode("ascii"),
                    }
                }
            )
        parts.append({"text": prompt})

        payload: dict[str, Any] = {"contents": [{"parts": parts}]}
        generation_config: dict[str, Any] = {}
        if temperature is not None:
            generation_config["temperature"] = temperature
        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = response_schema
        if generation_config:
            payload["generationConfig"] = generation_config

        response_payload = self._generate_content(model, payload)
        text = "".join(
            part["text"]
            for part in self._response_parts(response_payload)
            if isinstance(part.get("text"), str)
        ).strip()
        if not text:
            raise GeminiProviderError(
                "Gemini response text is empty.",
                failure_kind="malformed_response",
            )
        return text
