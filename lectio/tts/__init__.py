"""Text-to-speech voice types.

This package contains the voice catalog and voice parameters. Synthesizers live
in `lectio.tts.synthesizer`.
"""

from .voices import VOICE_CATALOG, VoiceOption, VoiceParameters

__all__ = ["VOICE_CATALOG", "VoiceOption", "VoiceParameters"]
