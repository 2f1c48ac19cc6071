"""Configuration model and loaders for Lectio.

Responsibilities:
- Define runtime configuration as a typed dataclass.
- Build voice parameters, throttle timings and retry policy from configuration.
- Provide YAML and environment loaders with strict key and type validation.
- Resolve the Gemini API key with deterministic source precedence.

Key types:
- `LectioConfig`: normalized runtime settings.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `LectioConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .llm.gemini_client import DEFAULT_TEXT_MODEL, DEFAULT_TTS_MODEL
from .llm.retry import RetryPolicy
from .parsing import normalize_optional_string, parse_bounded_float, parse_permissive_boolean
from .pipeline.timing import GenerationTimings
from .tts.voices import (
    PITCH_MAX,
    PITCH_MIN,
    SPEED_MAX,
    SPEED_MIN,
    SUPPORTED_LANGUAGES,
    VoiceParameters,
    default_voice,
    find_voice,
)

API_KEY_ENV_KEYS = ("GEMINI_API_KEY", "API_KEY")
_ENV_PREFIX = "LECTIO_"


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class LectioConfig:
    """Runtime configuration for generation, batching and dubbing.

    Attributes:
        language: Narration language (`es` or `en`).
        voice: Voice id, narrator name, or provider voice name; default voice when `None`.
        pitch: Relative pitch in `[-2, 2]`.
        speed: Speaking-rate multiplier in `[0.5, 2]`.
        dialogue_mode: Whether each line is a separate speech chunk.
        auto_optimize: Whether chunks are rewritten for narration first.
        paid_tier: Whether the API key is on an unrestricted tier (short throttle).
        api_key: Optional Gemini API key (lowest precedence).
        output_dir: Directory receiving WAV outputs.
        model_tts: Gemini speech model.
        model_text: Gemini text model for optimization and transcription.
        max_chars_per_chunk: Sub-chunk ceiling.
        long_audio_threshold_chars: Section size above which a section is split into parts.
        free_tier_wait_seconds: Throttle between sub-chunks on free keys.
        paid_tier_wait_seconds: Throttle between sub-chunks on paid keys.
        optimize_extra_wait_seconds: Extra throttle when optimizing.
        pause_poll_seconds: Poll interval while paused.
        quota_cooldown_seconds: Wait after a quota failure.
        retry_backoff_base_seconds: First wait after a transient failure.
        max_retries: Retries after the first attempt.
        request_timeout_seconds: Hard timeout of each provider call.
        continue_on_error: Whether a batch continues after a failed section.
        merge_output: Whether a batch also writes one merged file.
    """

    language: str = "es"
    voice: str | None = None
    pitch: float = 0.0
    speed: float = 1.0
    dialogue_mode: bool = False
    auto_optimize: bool = False
    paid_tier: bool = False
    api_key: str | None = None
    output_dir: Path = Path("out")
    model_tts: str = DEFAULT_TTS_MODEL
    model_text: str = DEFAULT_TEXT_MODEL
    max_chars_per_chunk: int = 1000
    long_audio_threshold_chars: int = 12000
    free_tier_wait_seconds: float = 12.0
    paid_tier_wait_seconds: float = 0.5
    optimize_extra_wait_seconds: float = 4.0
    pause_poll_seconds: float = 0.5
    quota_cooldown_seconds: float = 30.0
    retry_backoff_base_seconds: float = 2.0
    max_retries: int = 3
    request_timeout_seconds: float = 120.0
    continue_on_error: bool = True
    merge_output: bool = False

    def validate(self) -> None:
        """Validate configuration values before a run."""

        if self.language not in SUPPORTED_LANGUAGES:
            raise ValueError(
                f"Unsupported `language` value `{self.language}`; supported: "
                f"{', '.join(SUPPORTED_LANGUAGES)}."
            )
        if self.voice is not None:
            find_voice(self.voice, self.language)
        parse_bounded_float(self.pitch, "pitch", minimum=PITCH_MIN, maximum=PITCH_MAX)
        parse_bounded_float(self.speed, "speed", minimum=SPEED_MIN, maximum=SPEED_MAX)
        self._require_non_empty(self.model_tts, "model_tts")
        self._require_non_empty(self.model_text, "model_text")
        for name in ("max_chars_per_chunk", "long_audio_threshold_chars"):
            if getattr(self, name) <= 0:
                raise ValueError(f"`{name}` must be a positive integer.")
        if self.max_retries < 0:
            raise ValueError("`max_retries` must be >= 0.")
        if self.request_timeout_seconds <= 0:
            raise ValueError("`request_timeout_seconds` must be > 0.")
        self.generation_timings()
        self.retry_policy()

    def voice_parameters(self) -> VoiceParameters:
        """Build validated voice parameters from this configuration."""

        voice = (
            find_voice(self.voice, self.language)
            if self.voice is not None
            else default_voice(self.language)
        )
        return VoiceParameters(
            voice=voice,
            language=self.language,
            pitch=float(self.pitch),
            speed=float(self.speed),
            dialogue_mode=self.dialogue_mode,
            auto_optimize=self.auto_optimize,
        )

    def generation_timings(self) -> GenerationTimings:
        """Build throttle timings from this configuration."""

        return GenerationTimings(
            free_tier_wait_seconds=self.free_tier_wait_seconds,
            paid_tier_wait_seconds=self.paid_tier_wait_seconds,
            optimize_extra_wait_seconds=self.optimize_extra_wait_seconds,
            pause_poll_seconds=self.pause_poll_seconds,
            paid_tier=self.paid_tier,
        )

    def retry_policy(self) -> RetryPolicy:
        """Build the provider retry policy from this configuration."""

        return RetryPolicy(
            max_retries=self.max_retries,
            backoff_base_seconds=self.retry_backoff_base_seconds,
            quota_cooldown_seconds=self.quota_cooldown_seconds,
        )

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


def resolve_api_key(
    sources: RuntimeConfigSources,
    config_value: str | None = None,
) -> str | None:
    """Resolve the Gemini API key.

    Precedence is `cli` > `secure` > env (`GEMINI_API_KEY`, then `API_KEY`) >
    config value.
    """

    for mapping in (sources.cli, sources.secure):
        value = normalize_optional_string(mapping.get("api_key"))
        if value is not None:
            return value
    for env_key in API_KEY_ENV_KEYS:
        value = normalize_optional_string(sources.env.get(env_key))
        if value is not None:
            return value
    return normalize_optional_string(config_value)


_FIELD_KINDS: dict[str, str] = {
    "language": "string",
    "voice": "string",
    "pitch": "float",
    "speed": "float",
    "dialogue_mode": "bool",
    "auto_optimize": "bool",
    "paid_tier": "bool",
    "api_key": "string",
    "output_dir": "path",
    "model_tts": "string",
    "model_text": "string",
    "max_chars_per_chunk": "positive_int",
    "long_audio_threshold_chars": "positive_int",
    "free_tier_wait_seconds": "float",
    "paid_tier_wait_seconds": "float",
    "optimize_extra_wait_seconds": "float",
    "pause_poll_seconds": "float",
    "quota_cooldown_seconds": "float",
    "retry_backoff_base_seconds": "float",
    "max_retries": "non_negative_int",
    "request_timeout_seconds": "float",
    "continue_on_error": "bool",
    "merge_output": "bool",
}


class ConfigLoader:
    """Factory methods for creating `LectioConfig` from external sources."""

    _SUPPORTED_KEYS = frozenset(field_.name for field_ in fields(LectioConfig))

    @staticmethod
    def from_yaml(path: Path) -> LectioConfig:
        """Create a validated config from a YAML file."""

        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ValueError(f"YAML config `{path}` could not be read: {exc}") from exc
        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` is not valid YAML: {exc}") from exc

        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")

        source_label = f"YAML `{path}`"
        unknown = sorted(str(key) for key in set(payload).difference(ConfigLoader._SUPPORTED_KEYS))
        if unknown:
            raise ValueError(f"{source_label} includes unsupported key(s): {', '.join(unknown)}.")

        values = {
            key: ConfigLoader._coerce(key, raw_value, f"{source_label} field `{key}`")
            for key, raw_value in payload.items()
        }
        return ConfigLoader._build(values)

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> LectioConfig:
        """Create a validated config from `LECTIO_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        values: dict[str, Any] = {}
        for key in _FIELD_KINDS:
            env_key = f"{_ENV_PREFIX}{key.upper()}"
            if key == "api_key" or env_key not in env_map:
                continue
            if normalize_optional_string(env_map.get(env_key)) is None:
                continue
            values[key] = ConfigLoader._coerce(
                key,
                env_map[env_key],
                f"Environment variable `{env_key}`",
            )
        values["api_key"] = resolve_api_key(RuntimeConfigSources(env=env_map))
        return ConfigLoader._build(values)

    @staticmethod
    def _build(values: Mapping[str, Any]) -> LectioConfig:
        """Construct and validate a config from coerced values."""

        config = LectioConfig(**{key: value for key, value in values.items() if value is not None})
        config.validate()
        return config

    @staticmethod
    def _coerce(key: str, raw_value: Any, label: str) -> Any:
        """Coerce one raw value according to the field kind."""

        kind = _FIELD_KINDS[key]
        if kind in {"string", "path"}:
            value = normalize_optional_string(raw_value)
            if value is None:
                return None
            if key == "language":
                value = value.lower()
            return Path(value) if kind == "path" else value
        if kind == "bool":
            parsed = parse_permissive_boolean(raw_value)
            if parsed is None:
                raise ValueError(
                    f"{label} must be a boolean value (`true`/`false`, `1`/`0`, `yes`/`no`)."
                )
            return parsed
        if kind == "float":
            try:
                return parse_bounded_float(raw_value, key)
            except ValueError as exc:
                raise ValueError(f"{label} must be a number.") from exc
        return ConfigLoader._coerce_int(raw_value, label, allow_zero=kind == "non_negative_int")

    @staticmethod
    def _coerce_int(raw_value: Any, label: str, *, allow_zero: bool) -> int:
        """Parse and validate an integer field."""

        requirement = "a non-negative integer" if allow_zero else "a positive integer"
        if isinstance(raw_value, bool):
            raise ValueError(f"{label} must be {requirement}.")
        if isinstance(raw_value, int):
            parsed = raw_value
        else:
            normalized = normalize_optional_string(raw_value)
            try:
                parsed = int(normalized) if normalized is not None else -1
            except ValueError as exc:
                raise ValueError(f"{label} must be {requirement}.") from exc
        if parsed < 0 or (parsed == 0 and not allow_zero):
            raise ValueError(f"{label} must be {requirement}.")
        return parsed
