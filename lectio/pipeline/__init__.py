"""Lectio generation pipeline package.

This package contains the section repository, per-section orchestration,
batch coordination, and the dubbing workflow.
"""

from .batch import BatchCoordinator
from .control import GenerationControl
from .dubbing import DubbingWorkflow
from .orchestrator import GenerationOrchestrator
from .repository import SectionRepository
from .timing import GenerationTimings

__all__ = [
    "BatchCoordinator",
    "DubbingWorkflow",
    "GenerationControl",
    "GenerationOrchestrator",
    "GenerationTimings",
    "SectionRepository",
]
