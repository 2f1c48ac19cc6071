"""CLI runtime credential resolution helpers.

This module isolates API-key prompting, runtime source assembly, and secure
API-key persistence from the command wiring layer.
"""

from __future__ import annotations

import os
from typing import Callable, Mapping, Protocol

import typer

from .config import RuntimeConfigSources, resolve_api_key
from .credentials import create_credential_store
from .errors import PipelineStageError
from .parsing import normalize_optional_string

_API_KEY_PROMPT = "Gemini API key (hidden; leave blank to skip)"


class CredentialStoreProtocol(Protocol):
    """Protocol for secure credential store operations used by CLI runtime resolution."""

    def get_api_key(self) -> str | None:
        """Return currently stored API key, if available."""

    def set_api_key(self, api_key: str) -> None:
        """Persist API key value in secure storage."""


def _prompt_api_key() -> str | None:
    """Prompt for an API key with hidden input."""

    return normalize_optional_string(
        typer.prompt(
            _API_KEY_PROMPT,
            default="",
            hide_input=True,
            show_default=False,
        )
    )


def resolve_credential_sources(
    api_key: str | None,
    prompt_api_key: bool,
    store_api_key: bool,
    credential_store_factory: Callable[[], CredentialStoreProtocol] = create_credential_store,
    env: Mapping[str, str] | None = None,
) -> RuntimeConfigSources:
    """Resolve CLI, secure-storage, and environment sources for the API key."""

    runtime_cli_values: dict[str, str] = {}
    normalized = normalize_optional_string(api_key)
    if normalized is not None:
        runtime_cli_values["api_key"] = normalized
    elif prompt_api_key:
        prompted = _prompt_api_key()
        if prompted is not None:
            runtime_cli_values["api_key"] = prompted

    credential_store = credential_store_factory()
    runtime_secure_values: dict[str, str] = {}
    stored_api_key = credential_store.get_api_key()
    if stored_api_key is not None:
        runtime_secure_values["api_key"] = stored_api_key

    entered = runtime_cli_values.get("api_key")
    if entered is not None and store_api_key and entered != stored_api_key:
        try:
            credential_store.set_api_key(entered)
        except Exception as exc:
            raise PipelineStageError(
                stage="credentials",
                detail=f"Failed to store API key securely: {exc}",
                hint=(
                    "Install and configure a keyring backend, or rerun with "
                    "`--no-store-api-key` for one-off usage."
                ),
            ) from exc
        typer.echo("Stored API key in secure credential storage.")

    return RuntimeConfigSources(
        cli=runtime_cli_values,
        secure=runtime_secure_values,
        env=os.environ if env is None else env,
    )


def require_api_key(sources: RuntimeConfigSources, config_value: str | None) -> str:
    """Resolve the API key or raise a credentials-stage error."""

    resolved = resolve_api_key(sources, config_value)
    if resolved is None:
        raise PipelineStageError(
            stage="credentials",
            detail="Gemini API key is not configured.",
            hint=(
                "Pass `--api-key`, use `--prompt-api-key`, run `lectio credentials "
                "--set-api-key`, or set `GEMINI_API_KEY`."
            ),
        )
    return resolved
