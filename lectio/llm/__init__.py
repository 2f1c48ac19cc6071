"""Gemini-facing clients, prompts, and call policies.

This package defines the REST clients, retry policy, rate limiting, response
caching, and the text optimizer and transcriber built on them.
"""

from .cache import ResponseCache
from .gemini_client import GeminiProviderError, GeminiSpeechClient, GeminiTextClient
from .optimizer import GeminiTextOptimizer, TextOptimizer
from .prompts import PromptLibrary
from .rate_limiter import RateLimiter
from .retry import RetryPolicy, call_with_retry
from .transcriber import GeminiTranscriber, Transcriber

__all__ = [
    "GeminiProviderError",
    "GeminiSpeechClient",
    "GeminiTextClient",
    "GeminiTextOptimizer",
    "GeminiTranscriber",
    "PromptLibrary",
    "RateLimiter",
    "ResponseCache",
    "RetryPolicy",
    "TextOptimizer",
    "Transcriber",
    "call_with_retry",
]
