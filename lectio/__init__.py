"""Top-level package for Lectio.

This package turns long documents into narrated audio with Gemini speech
generation. It splits text into sections, generates each section chunk by
chunk with pause/resume/cancel control, and merges the results into WAV files.
"""

from .pipeline import BatchCoordinator, GenerationOrchestrator, SectionRepository

__all__ = ["BatchCoordinator", "GenerationOrchestrator", "SectionRepository", "__version__"]

__version__ = "0.1.0"
