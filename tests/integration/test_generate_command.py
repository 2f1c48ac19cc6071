"""Integration tests for the `generate` command."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from lectio.audio.assembler import WAV_HEADER_BYTES
from lectio.cli import app
from lectio.llm.gemini_client import GeminiProviderError, GeminiSpeechClient


def _generate_args(document: Path, config: Path, out: Path, *extra: str) -> list[str]:
    """Return generate arguments with a throwaway API key."""

    return [
        "generate",
        str(document),
        "--config",
        str(config),
        "--out",
        str(out),
        "--api-key",
        "cli-key",
        "--no-store-api-key",
        *extra,
    ]


def test_generate_writes_one_numbered_wav_per_selected_section(
    tmp_path: Path,
    sample_document: Path,
    fast_config: Path,
    provider_calls: list[dict[str, object]],
) -> None:
    """Selected sections should each produce one WAV named by index and title slug."""

    out_dir = tmp_path / "out"
    result = CliRunner().invoke(
        app, _generate_args(sample_document, fast_config, out_dir, "--sections", "1,3")
    )

    assert result.exit_code == 0, result.output
    assert "Generating 2 section(s): 1,3" in result.output
    first = out_dir / "001_capitulo-1.wav"
    third = out_dir / "003_capitulo-3.wav"
    assert first.exists()
    assert third.exists()
    assert not (out_dir / "002_capitulo-2.wav").exists()
    assert len(first.read_bytes()) == WAV_HEADER_BYTES + 4800
    assert f"[completed] 1. Capítulo 1: {first} (0:00)" in result.output
    assert "Completed: 2  Failed: 0  Cancelled: 0  Skipped: 0" in result.output
    speech_calls = [call for call in provider_calls if call["kind"] == "speech"]
    assert len(speech_calls) == 2
    assert all(call["api_key"] == "cli-key" for call in speech_calls)
    assert all(call["voice_name"] == "Charon" for call in speech_calls)
    assert "Érase una vez un faro." in str(speech_calls[0]["prompt"])


def test_generate_merge_writes_combined_file(
    tmp_path: Path,
    sample_document: Path,
    fast_config: Path,
) -> None:
    """`--merge` should also write one combined file of all completed sections."""

    out_dir = tmp_path / "out"
    result = CliRunner().invoke(app, _generate_args(sample_document, fast_config, out_dir, "--merge"))

    merged_path = out_dir / "relatos-complete.wav"
    assert result.exit_code == 0, result.output
    assert f"Merged audio: {merged_path}" in result.output
    assert len(merged_path.read_bytes()) == WAV_HEADER_BYTES + 3 * 4800


def test_generate_uses_selected_voice_language_and_optimizer(
    tmp_path: Path,
    sample_document: Path,
    fast_config: Path,
    provider_calls: list[dict[str, object]],
) -> None:
    """Voice, language and optimization options should reach the provider calls."""

    result = CliRunner().invoke(
        app,
        _generate_args(
            sample_document,
            fast_config,
            tmp_path / "out",
            "--sections",
            "2",
            "--language",
            "en",
            "--voice",
            "Emily",
            "--optimize",
        ),
    )

    assert result.exit_code == 0, result.output
    text_calls = [call for call in provider_calls if call["kind"] == "text"]
    speech_calls = [call for call in provider_calls if call["kind"] == "speech"]
    assert len(text_calls) == 1
    assert "El faro se apagó." in str(text_calls[0]["prompt"])
    assert speech_calls[0]["voice_name"] == "Kore"
    assert "integration-mocked-narration" in str(speech_calls[0]["prompt"])


def test_generate_reports_failed_section_and_exits_nonzero(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    sample_document: Path,
    fast_config: Path,
) -> None:
    """A failed section should be listed with its message while others still complete."""

    def _failing_second_section(self, **kwargs: object) -> bytes:
        """Reject the second section's prompt and return PCM otherwise."""

        _ = self
        if "El faro se apagó." in str(kwargs["prompt"]):
            raise GeminiProviderError("Gemini model is not available.", failure_kind="invalid_model")
        return b"\x00\x00" * 2400

    monkeypatch.setattr(GeminiSpeechClient, "synthesize_pcm", _failing_second_section)
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(app, _generate_args(sample_document, fast_config, out_dir))

    assert result.exit_code == 1
    assert "[error] 2. Capítulo 2: Gemini model is not available." in result.output
    assert "Completed: 2  Failed: 1" in result.output
    assert (out_dir / "003_capitulo-3.wav").exists()


def test_generate_stop_on_error_skips_remaining_sections(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    sample_document: Path,
    fast_config: Path,
) -> None:
    """`--stop-on-error` should stop the batch after the first failed section."""

    def _always_failing(self, **kwargs: object) -> bytes:
        """Reject every speech request."""

        _ = (self, kwargs)
        raise GeminiProviderError("Gemini rejected the API key.", failure_kind="invalid_api_key")

    monkeypatch.setattr(GeminiSpeechClient, "synthesize_pcm", _always_failing)

    result = CliRunner().invoke(
        app,
        _generate_args(sample_document, fast_config, tmp_path / "out", "--stop-on-error"),
    )

    assert result.exit_code == 1
    assert "Completed: 0  Failed: 1" in result.output
    assert "Batch stopped before all selected sections ran." in result.output
    assert "[idle] 2. Capítulo 2" in result.output


def test_generate_resolves_api_key_from_environment_and_secure_store(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    sample_document: Path,
    fast_config: Path,
    credential_store,  # type: ignore[no-untyped-def]
    provider_calls: list[dict[str, object]],
) -> None:
    """Stored keys should win over the environment, which is used when nothing is stored."""

    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    base_args = [
        "generate",
        str(sample_document),
        "--config",
        str(fast_config),
        "--out",
        str(tmp_path / "out"),
        "--sections",
        "1",
    ]

    env_result = CliRunner().invoke(app, base_args)
    credential_store.set_api_key("stored-key")
    stored_result = CliRunner().invoke(app, base_args)

    assert env_result.exit_code == 0, env_result.output
    assert stored_result.exit_code == 0, stored_result.output
    assert [call["api_key"] for call in provider_calls] == ["env-key", "stored-key"]


def test_generate_stores_cli_api_key_by_default(
    tmp_path: Path,
    sample_document: Path,
    fast_config: Path,
    credential_store,  # type: ignore[no-untyped-def]
) -> None:
    """A CLI-entered key should be persisted unless `--no-store-api-key` is passed."""

    result = CliRunner().invoke(
        app,
        [
            "generate",
            str(sample_document),
            "--config",
            str(fast_config),
            "--out",
            str(tmp_path / "out"),
            "--sections",
            "1",
            "--api-key",
            "new-key",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Stored API key in secure credential storage." in result.output
    assert credential_store.get_api_key() == "new-key"
