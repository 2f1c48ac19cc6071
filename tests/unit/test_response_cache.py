"""Unit tests for response cache keys and counters."""

from __future__ import annotations

from lectio.llm.cache import ResponseCache


def test_cache_key_normalizes_whitespace_and_separates_dimensions() -> None:
    """Keys should ignore whitespace layout but differ by model, operation and language."""

    base = ResponseCache.make_key(model="m", operation="optimize", language="es", text="Hola  mundo\n")

    assert base == ResponseCache.make_key(
        model=" m ", operation="OPTIMIZE", language="es", text="Hola mundo"
    )
    assert base.startswith("gemini:m:optimize:es:")
    assert base != ResponseCache.make_key(model="m2", operation="optimize", language="es", text="Hola mundo")
    assert base != ResponseCache.make_key(model="m", operation="optimize", language="en", text="Hola mundo")
    assert base != ResponseCache.make_key(model="m", operation="optimize", language="es", text="Hola")


def test_cache_counts_hits_and_misses_and_clears() -> None:
    """Lookups should update counters and `clear` should reset the cache."""

    cache = ResponseCache()
    key = ResponseCache.make_key(model="m", operation="optimize", language="es", text="x")

    assert cache.get(key) is None
    cache.set(key, "X")
    assert cache.get(key) == "X"
    assert (cache.hits, cache.misses) == (1, 1)

    cache.clear()
    assert cache.entries == {}
    assert (cache.hits, cache.misses) == (0, 0)
