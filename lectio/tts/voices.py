"""Voice catalog and per-request voice parameter models.

Responsibilities:
- Represent the selectable narrator voices for each supported language.
- Validate pitch/speed/language settings and map them to descriptive bands.
- Decouple pipeline logic from provider-specific voice naming.
"""

from __future__ import annotations

from dataclasses import dataclass

SUPPORTED_LANGUAGES = ("es", "en")

PITCH_MIN = -2.0
PITCH_MAX = 2.0
SPEED_MIN = 0.5
SPEED_MAX = 2.0


@dataclass(frozen=True, slots=True)
class VoiceOption:
    """One selectable narrator voice.

    Attributes:
        id: Stable catalog identifier (for example `es_voice_1`).
        name: Human-readable narrator name.
        provider_voice_id: Provider-native prebuilt voice name.
        gender: `male` or `female`.
        accent: Accent label used in the speech prompt.
        description: Short user-facing description.
        language: Catalog language code.
    """

    id: str
    name: str
    provider_voice_id: str
    gender: str
    accent: str
    description: str
    language: str


VOICE_CATALOG: dict[str, tuple[VoiceOption, ...]] = {
    "es": (
        VoiceOption("es_voice_1", "Mateo", "Charon", "male", "España (Neutro)", "Voz grave y profunda", "es"),
        VoiceOption("es_voice_2", "Lucía", "Kore", "female", "España (Neutro)", "Voz clara y serena", "es"),
        VoiceOption("es_voice_3", "Alejandro", "Puck", "male", "España (Juvenil)", "Voz enérgica y cercana", "es"),
        VoiceOption("es_voice_4", "Marcos", "Fenrir", "male", "España (Profesional)", "Voz firme de locutor", "es"),
        VoiceOption("es_voice_5", "Elena", "Zephyr", "female", "España (Amable)", "Voz cálida y suave", "es"),
    ),
    "en": (
        VoiceOption("en_voice_1", "Arthur", "Charon", "male", "British", "Deep and authoritative", "en"),
        VoiceOption("en_voice_2", "Emily", "Kore", "female", "American", "Clear and calm", "en"),
        VoiceOption("en_voice_3", "Oliver", "Puck", "male", "British", "Lively and friendly", "en"),
        VoiceOption("en_voice_4", "James", "Fenrir", "male", "American", "Steady broadcaster", "en"),
        VoiceOption("en_voice_5", "Sophia", "Zephyr", "female", "British", "Warm and gentle", "en"),
    ),
}


def _require_language(language: str) -> str:
    """Return a normalized supported language code or raise `ValueError`."""

    normalized = language.strip().lower()
    if normalized not in SUPPORTED_LANGUAGES:
        raise ValueError(
            f"Unsupported language `{language}`. Expected one of: {', '.join(SUPPORTED_LANGUAGES)}."
        )
    return normalized


def voices_for_language(language: str) -> tuple[VoiceOption, ...]:
    """Return the catalog voices for a supported language."""

    return VOICE_CATALOG[_require_language(language)]


def default_voice(language: str) -> VoiceOption:
    """Return the first catalog voice for a language."""

    return voices_for_language(language)[0]


def find_voice(identifier: str, language: str) -> VoiceOption:
    """Find a voice by catalog id, narrator name, or provider voice name.

    Raises:
        ValueError: If no voice in the language catalog matches.
    """

    needle = identifier.strip().lower()
    for voice in voices_for_language(language):
        if needle in {voice.id.lower(), voice.name.lower(), voice.provider_voice_id.lower()}:
            return voice
    raise ValueError(f"Unknown voice `{identifier}` for language `{language}`.")


@dataclass(frozen=True, slots=True)
class VoiceParameters:
    """Immutable voice settings captured at generation start.

    Attributes:
        voice: Selected narrator voice.
        language: Narration language (`es` or `en`).
        pitch: Relative pitch in `[-2.0, 2.0]`, `0` meaning natural.
        speed: Speaking-rate multiplier in `[0.5, 2.0]`.
        dialogue_mode: Whether line breaks delimit separate speech chunks.
        auto_optimize: Whether chunks are rewritten for narration before synthesis.
    """

    voice: VoiceOption
    language: str = "es"
    pitch: float = 0.0
    speed: float = 1.0
    dialogue_mode: bool = False
    auto_optimize: bool = False

    def __post_init__(self) -> None:
        """Validate ranges and language at construction time."""

        if self.language not in SUPPORTED_LANGUAGES:
            raise ValueError(
                f"Unsupported language `{self.language}`. "
                f"Expected one of: {', '.join(SUPPORTED_LANGUAGES)}."
            )
        if not PITCH_MIN <= self.pitch <= PITCH_MAX:
            raise ValueError(f"Pitch must be between {PITCH_MIN:g} and {PITCH_MAX:g}.")
        if not SPEED_MIN <= self.speed <= SPEED_MAX:
            raise ValueError(f"Speed must be between {SPEED_MIN:g} and {SPEED_MAX:g}.")

    def tone_band(self) -> str:
        """Map pitch to a descriptive tone band."""

        if self.pitch <= -1.5:
            return "very_low"
        if self.pitch < 0:
            return "low"
        if self.pitch == 0:
            return "natural"
        if self.pitch <= 1.5:
            return "high"
        return "very_high"

    def pace_band(self) -> str:
        """Map speed to a descriptive pace band."""

        if self.speed <= 0.6:
            return "extremely_slow"
        if self.speed <= 0.8:
            return "slow"
        if self.speed < 1.0:
            return "relaxed"
        if self.speed == 1.0:
            return "normal"
        if self.speed <= 1.3:
            return "fast"
        if self.speed <= 1.6:
            return "very_fast"
        return "extreme"
