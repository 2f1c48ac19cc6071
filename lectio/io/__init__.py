"""Input/output components for Lectio.

This package contains document loading and audio delivery sinks.
"""

from .document_loader import DocumentLoader, DocumentLoadError, LoadedDocument
from .sinks import AudioSink, FileAudioSink, MemoryAudioSink

__all__ = [
    "AudioSink",
    "DocumentLoadError",
    "DocumentLoader",
    "FileAudioSink",
    "LoadedDocument",
    "MemoryAudioSink",
]
