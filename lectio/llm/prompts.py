"""Prompt template library for Gemini speech, optimization and transcription calls.

Responsibilities:
- Centralize prompt construction for narration, text optimization and transcription.
- Map voice parameter bands to Spanish or English delivery instructions.
"""

from __future__ import annotations

from ..tts.voices import VoiceParameters

LANGUAGE_NAMES = {"es": "Spanish (Spain)", "en": "English"}

_TONE_INSTRUCTIONS = {
    "es": {
        "very_low": "TONO: EXTREMADAMENTE GRAVE. Voz muy profunda, seria y resonante.",
        "low": "TONO: GRAVE. Voz más profunda de lo habitual.",
        "natural": "TONO: NATURAL. Voz equilibrada y estándar.",
        "high": "TONO: AGUDO. Voz brillante y ligera.",
        "very_high": "TONO: MUY AGUDO. Voz juvenil y alta.",
    },
    "en": {
        "very_low": "PITCH: VERY DEEP. Low, resonant and serious voice.",
        "low": "PITCH: LOW. Deeper than normal.",
        "natural": "PITCH: NATURAL. Balanced standard voice.",
        "high": "PITCH: HIGH. Bright and light voice.",
        "very_high": "PITCH: VERY HIGH. Youthful and high-pitched.",
    },
}

_PACE_INSTRUCTIONS = {
    "es": {
        "extremely_slow": "VELOCIDAD: EXTREMADAMENTE LENTA. Habla muy despacio, separando cada sílaba.",
        "slow": "VELOCIDAD: LENTA. Habla pausadamente y con calma.",
        "relaxed": "VELOCIDAD: RELAJADA. Un poco más despacio de lo normal.",
        "normal": "VELOCIDAD: NORMAL. Ritmo de conversación natural.",
        "fast": "VELOCIDAD: RÁPIDA. Habla con agilidad y dinamismo.",
        "very_fast": "VELOCIDAD: MUY RÁPIDA. Habla de forma acelerada.",
        "extreme": "VELOCIDAD: EXTREMA. Habla lo más rápido posible.",
    },
    "en": {
        "extremely_slow": "SPEED: EXTREMELY SLOW. Speak very slowly, enunciating every syllable.",
        "slow": "SPEED: SLOW. Speak calmly and take your time.",
        "relaxed": "SPEED: RELAXED. Slightly slower than normal.",
        "normal": "SPEED: NORMAL. Natural conversational pace.",
        "fast": "SPEED: FAST. Agile and dynamic speaking.",
        "very_fast": "SPEED: VERY FAST. Accelerated speech.",
        "extreme": "SPEED: EXTREME. Speak as fast as possible.",
    },
}

_OPTIMIZER_INSTRUCTIONS = {
    "es": (
        "Eres un experto redactor de guiones para locución en español de España.\n"
        "Reescribe el siguiente texto para que suene natural al ser leído por una voz sintética.\n"
        "Reglas obligatorias:\n"
        "1. No resumas. Mantén todo el contenido.\n"
        "2. Expande abreviaturas (\"Sr.\" -> \"Señor\").\n"
        "3. Escribe cifras y fechas con letras si mejora la fluidez.\n"
        "4. Usa la puntuación para marcar pausas naturales.\n"
        "5. Usa español de España neutro."
    ),
    "en": (
        "You are an expert scriptwriter for English voiceovers.\n"
        "Rewrite the following text so it sounds natural when read by a synthetic voice.\n"
        "Mandatory rules:\n"
        "1. Do not summarize. Keep all content.\n"
        "2. Expand abbreviations (\"Mr.\" -> \"Mister\", \"St.\" -> \"Street\").\n"
        "3. Convert numbers and dates to words if it improves flow.\n"
        "4. Use punctuation for natural pauses.\n"
        "5. Use neutral standard English."
    ),
}

TRANSCRIPTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "transcription": {"type": "STRING"},
        "translation": {"type": "STRING"},
    },
    "required": ["transcription", "translation"],
}


class PromptLibrary:
    """Build prompt strings for supported Gemini tasks."""

    def tone_instruction(self, voice_parameters: VoiceParameters) -> str:
        """Return the pitch instruction for the voice parameters' language."""

        return _TONE_INSTRUCTIONS[voice_parameters.language][voice_parameters.tone_band()]

    def pace_instruction(self, voice_parameters: VoiceParameters) -> str:
        """Return the speed instruction for the voice parameters' language."""

        return _PACE_INSTRUCTIONS[voice_parameters.language][voice_parameters.pace_band()]

    def speech_prompt(self, text: str, voice_parameters: VoiceParameters) -> str:
        """Return the narration prompt embedding delivery instructions and the literal text."""

        voice = voice_parameters.voice
        return (
            "[Role: Professional Voice Actor]\n"
            "[Task: Read the text below]\n\n"
            "[INSTRUCTIONS START]\n"
            f"1. Language: {LANGUAGE_NAMES[voice_parameters.language]}\n"
            f"2. Accent: {voice.accent or 'Standard'}\n"
            f"3. {self.tone_instruction(voice_parameters)}\n"
            f"4. {self.pace_instruction(voice_parameters)}\n"
            f"5. Voice Gender: {voice.gender}\n"
            "[INSTRUCTIONS END]\n\n"
            "[TEXT TO READ START]\n"
            f'"{text}"\n'
            "[TEXT TO READ END]"
        )

    def optimize_prompt(self, text: str, language: str, *, part: int, total: int) -> str:
        """Return the narration-rewrite prompt for one optimization piece."""

        return (
            f"{_OPTIMIZER_INSTRUCTIONS[language]}\n\n"
            f"Input Text (Part {part} of {total}):\n"
            f'"{text}"\n\n'
            "Output (Rewritten text only):"
        )

    def transcription_prompt(self, target_language: str) -> str:
        """Return the transcription-plus-translation prompt for an attached audio payload."""

        target_name = LANGUAGE_NAMES[target_language]
        return (
            "Listen to this audio chunk.\n"
            "Task 1: Transcribe the audio precisely in its original language.\n"
            f"Task 2: Translate the transcription into {target_name}.\n"
            f"If the audio is already in {target_name}, copy the transcription as the translation.\n"
            "Return a JSON object with the fields `transcription` and `translation`."
        )
