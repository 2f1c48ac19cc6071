"""In-memory response cache for provider-backed text operations.

Responsibilities:
- Build stable cache keys from model, operation, language and input text.
- Reuse optimized text for repeated chunks within one session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from hashlib import sha256


@dataclass(slots=True)
class ResponseCache:
    """Cache keyed by model/operation/language and a hash of whitespace-normalized input."""

    entries: dict[str, str] = field(default_factory=dict)
    hits: int = 0
    misses: int = 0

    @staticmethod
    def make_key(*, model: str, operation: str, language: str, text: str) -> str:
        """Build a cache key with a normalized input hash suffix."""

        normalized_text = " ".join(text.split())
        text_hash = sha256(normalized_text.encode("utf-8")).hexdigest()
        return f"gemini:{model.strip()}:{operation.strip().lower()}:{language}:{text_hash}"

    def get(self, cache_key: str) -> str | None:
        """Return the cached response for a key and update hit/miss counters."""

        if cache_key in self.entries:
            self.hits += 1
            return self.entries[cache_key]
        self.misses += 1
        return None

    def set(self, cache_key: str, value: str) -> None:
        """Store a response under a cache key."""

        self.entries[cache_key] = value

    def clear(self) -> None:
        """Drop every cached entry and reset counters."""

        self.entries.clear()
        self.hits = 0
        self.misses = 0
