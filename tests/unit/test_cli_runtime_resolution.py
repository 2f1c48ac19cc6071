"""Unit tests for CLI credential runtime resolution helpers."""

from __future__ import annotations

import pytest

from lectio.cli_runtime import require_api_key, resolve_credential_sources
from lectio.config import RuntimeConfigSources
from lectio.errors import PipelineStageError


class InMemoryCredentialStore:
    """In-memory credential store implementation for runtime-resolution tests."""

    def __init__(self, initial_api_key: str | None = None) -> None:
        """Initialize the store with an optional initial API key."""

        self._api_key = initial_api_key
        self.stored_values: list[str] = []

    def get_api_key(self) -> str | None:
        """Return currently stored API key value."""

        return self._api_key

    def set_api_key(self, api_key: str) -> None:
        """Persist API key value and keep a history for assertions."""

        self._api_key = api_key
        self.stored_values.append(api_key)


class FailingCredentialStore:
    """Credential store that raises when persisting API key values."""

    def get_api_key(self) -> str | None:
        """Return no pre-existing secure API key."""

        return None

    def set_api_key(self, api_key: str) -> None:
        """Raise deterministic storage failure used for error-path assertions."""

        raise RuntimeError("no keyring backend")


def test_resolve_credential_sources_collects_cli_secure_and_env_values() -> None:
    """Resolver should normalize the CLI key and include the secure fallback."""

    store = InMemoryCredentialStore(initial_api_key="secure-api-key")

    sources = resolve_credential_sources(
        api_key=" cli-key ",
        prompt_api_key=False,
        store_api_key=False,
        credential_store_factory=lambda: store,
        env={"GEMINI_API_KEY": "env-key"},
    )

    assert sources.cli == {"api_key": "cli-key"}
    assert sources.secure == {"api_key": "secure-api-key"}
    assert sources.env == {"GEMINI_API_KEY": "env-key"}
    assert store.stored_values == []


def test_resolve_credential_sources_prompts_and_stores_entered_key(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """A prompted key should become the CLI value and be stored when requested."""

    def _fake_prompt(*args: object, **kwargs: object) -> str:
        """Return a deterministic prompted API key."""

        del args, kwargs
        return "  prompted-api-key  "

    monkeypatch.setattr("lectio.cli_runtime.typer.prompt", _fake_prompt)
    store = InMemoryCredentialStore()

    sources = resolve_credential_sources(
        api_key=None,
        prompt_api_key=True,
        store_api_key=True,
        credential_store_factory=lambda: store,
        env={},
    )

    assert sources.cli == {"api_key": "prompted-api-key"}
    assert store.stored_values == ["prompted-api-key"]
    assert "Stored API key in secure credential storage." in capsys.readouterr().out


def test_resolve_credential_sources_skips_storing_unchanged_key() -> None:
    """An entered key identical to the stored one should not be written again."""

    store = InMemoryCredentialStore(initial_api_key="same-key")

    resolve_credential_sources(
        api_key="same-key",
        prompt_api_key=False,
        store_api_key=True,
        credential_store_factory=lambda: store,
        env={},
    )

    assert store.stored_values == []


def test_resolve_credential_sources_maps_store_failure_to_stage_error() -> None:
    """Secure storage failures should surface as credentials-stage errors with a hint."""

    with pytest.raises(PipelineStageError) as exc_info:
        resolve_credential_sources(
            api_key="cli-key",
            prompt_api_key=False,
            store_api_key=True,
            credential_store_factory=FailingCredentialStore,
            env={},
        )

    assert exc_info.value.stage == "credentials"
    assert "no keyring backend" in exc_info.value.detail
    assert "--no-store-api-key" in (exc_info.value.hint or "")


def test_require_api_key_follows_precedence_and_raises_when_missing() -> None:
    """The required key should follow source precedence and fail clearly when absent."""

    assert (
        require_api_key(
            RuntimeConfigSources(secure={"api_key": "secure"}, env={"API_KEY": "env"}),
            "config",
        )
        == "secure"
    )
    assert require_api_key(RuntimeConfigSources(env={}), " config ") == "config"

    with pytest.raises(PipelineStageError) as exc_info:
        require_api_key(RuntimeConfigSources(env={}), None)

    assert exc_info.value.stage == "credentials"
    assert exc_info.value.detail == "Gemini API key is not configured."
