"""Narration-oriented text optimization stage.

Responsibilities:
- Rewrite text for natural spoken delivery (expanded abbreviations, spelled-out numbers).
- Split long input on paragraph boundaries into provider-sized pieces.
- Fall back to the original piece whenever a piece cannot be optimized.
"""

from __future__ import annotations

import re
import time
from typing import Callable, Protocol

from ..errors import MissingCredentialError
from .cache import ResponseCache
from .gemini_client import (
    DEFAULT_BASE_URL,
    DEFAULT_TEXT_MODEL,
    DEFAULT_TIMEOUT_SECONDS,
    GeminiProviderError,
    GeminiTextClient,
)
from .prompts import PromptLibrary
from .retry import RetryPolicy, call_with_retry

OPTIMIZATION_CHUNK_SIZE = 4000


class TextOptimizer(Protocol):
    """Protocol for optional narration rewrite collaborators."""

    def optimize(self, text: str, credential: str, language: str) -> str:
        """Return text rewritten for narration."""


def split_for_optimization(text: str, max_chars: int = OPTIMIZATION_CHUNK_SIZE) -> list[str]:
    """Group paragraphs into pieces below `max_chars`; oversized paragraphs stay whole."""

    if len(text) <= max_chars:
        return [text]

    pieces: list[str] = []
    current = ""
    for paragraph in re.split(r"\n+", text):
        if len(current) + len(paragraph) < max_chars:
            current = f"{current}\n\n{paragraph}" if current else paragraph
            continue
        if current:
            pieces.append(current)
        current = paragraph
    if current:
        pieces.append(current)
    return pieces


class GeminiTextOptimizer:
    """Gemini-backed narration optimizer with per-piece fallback and response caching."""

    def __init__(
        self,
        *,
        model: str = DEFAULT_TEXT_MODEL,
        retry_policy: RetryPolicy | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        cache: ResponseCache | None = None,
        prompts: PromptLibrary | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize optimizer settings; pieces are retried once by default."""

        self.model = model
        self.retry_policy = retry_policy or RetryPolicy(max_retries=1, backoff_base_seconds=2.0)
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.cache = cache if cache is not None else ResponseCache()
        self.prompts = prompts or PromptLibrary()
        self._sleeper = sleeper or time.sleep
        self.fallback_count = 0

    def optimize(self, text: str, credential: str, language: str) -> str:
        """Return narration-optimized text, or the original pieces where optimization failed.

        Raises:
            MissingCredentialError: If `credential` is blank.
        """

        if not credential or not credential.strip():
            raise MissingCredentialError()
        if not text.strip():
            return ""

        client = GeminiTextClient(
            api_key=credential,
            base_url=self.base_url,
            timeout_seconds=self.timeout_seconds,
        )
        pieces = split_for_optimization(text)
        optimized: list[str] = []
        for part, piece in enumerate(pieces, start=1):
            cache_key = ResponseCache.make_key(
                model=self.model,
                operation="optimize",
                language=language,
                text=piece,
            )
            cached = self.cache.get(cache_key)
            if cached is not None:
                optimized.append(cached)
                continue

            prompt = self.prompts.optimize_prompt(piece, language, part=part, total=len(pieces))
            try:
                result = call_with_retry(
                    lambda: client.generate_text(model=self.model, prompt=prompt),
                    self.retry_policy,
                    sleeper=self._sleeper,
                )
            except GeminiProviderError:
                self.fallback_count += 1
                optimized.append(piece)
                continue
            rewritten = _strip_wrapping_quotes(result) or piece
            self.cache.set(cache_key, rewritten)
            optimized.append(rewritten)

        return "\n\n".join(optimized)


def _strip_wrapping_quotes(text: str) -> str:
    """Remove one pair of straight quotes the model may echo around its output."""

    stripped = text.strip()
    if len(stripped) >= 2 and stripped[0] == '"' and stripped[-1] == '"':
        return stripped[1:-1].strip()
    return stripped
