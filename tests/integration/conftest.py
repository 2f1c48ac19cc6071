"""Integration-test fixtures for deterministic provider and credential behavior."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from lectio.llm.gemini_client import GeminiSpeechClient, GeminiTextClient


class InMemoryCredentialStore:
    """In-memory secure store used in place of the OS keyring during CLI tests."""

    def __init__(self) -> None:
        """Initialize with no stored API key."""

        self.api_key: str | None = None

    def is_available(self) -> bool:
        """Report secure storage as available."""

        return True

    def get_api_key(self) -> str | None:
        """Return the stored API key."""

        return self.api_key

    def set_api_key(self, api_key: str) -> None:
        """Store a normalized API key."""

        self.api_key = api_key.strip()

    def clear_api_key(self) -> bool:
        """Clear the stored API key and report whether one existed."""

        existed = self.api_key is not None
        self.api_key = None
        return existed


@pytest.fixture
def provider_calls() -> list[dict[str, object]]:
    """Collect keyword arguments of every mocked Gemini call."""

    return []


@pytest.fixture(autouse=True)
def _mock_gemini_calls(
    monkeypatch: pytest.MonkeyPatch,
    provider_calls: list[dict[str, object]],
) -> None:
    """Mock Gemini calls in integration tests to avoid network/key requirements."""

    def _mock_synthesize_pcm(self, **kwargs: object) -> bytes:
        """Return 0.1 s of silent 24 kHz PCM for every speech prompt."""

        provider_calls.append({"kind": "speech", "api_key": self.api_key, **kwargs})
        return b"\x00\x00" * 2400

    def _mock_generate_text(self, **kwargs: object) -> str:
        """Return transcription JSON for schema requests and rewritten text otherwise."""

        provider_calls.append({"kind": "text", "api_key": self.api_key, **kwargs})
        if kwargs.get("response_schema") is not None:
            return json.dumps(
                {"transcription": "integration source text", "translation": "texto traducido"}
            )
        return "integration-mocked-narration"

    monkeypatch.setattr(GeminiSpeechClient, "synthesize_pcm", _mock_synthesize_pcm)
    monkeypatch.setattr(GeminiTextClient, "generate_text", _mock_generate_text)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove API keys and `LECTIO_*` settings inherited from the developer shell."""

    for name in list(os.environ):
        if name.startswith("LECTIO_") or name in {"GEMINI_API_KEY", "API_KEY"}:
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def credential_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryCredentialStore:
    """Replace the keyring-backed store used by CLI commands."""

    store = InMemoryCredentialStore()
    monkeypatch.setattr("lectio.cli.create_credential_store", lambda: store)
    return store


@pytest.fixture
def fast_config(tmp_path: Path) -> Path:
    """Write a config file with zero throttle waits."""

    config_path = tmp_path / "lectio.yml"
    config_path.write_text(
        "\n".join(
            [
                "free_tier_wait_seconds: 0",
                "paid_tier_wait_seconds: 0",
                "optimize_extra_wait_seconds: 0",
                "retry_backoff_base_seconds: 0",
                "quota_cooldown_seconds: 0",
            ]
        )
        + "\n",
        encoding="utf-8",
    )
    return config_path


@pytest.fixture
def sample_document(tmp_path: Path) -> Path:
    """Write a three-section Markdown document."""

    document_path = tmp_path / "relatos.md"
    document_path.write_text(
        "# Capítulo 1\nÉrase una vez un faro.\n\n"
        "# Capítulo 2\nEl faro se apagó.\n\n"
        "# Capítulo 3\nVolvió la luz.\n",
        encoding="utf-8",
    )
    return document_path
