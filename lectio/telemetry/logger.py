"""Structured run logging utilities.

Responsibilities:
- Emit concise, deterministic event lines for generation, batch and retry activity.
- Keep secrets and document text out of log payloads.
"""

from __future__ import annotations

import sys
from typing import TextIO

from loguru import logger as _loguru_logger


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = str(value).strip()
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class RunLogger:
    """Emit deterministic event lines for CLI-observable generation activity."""

    def __init__(self, sink: TextIO | None = None, *, level: str = "INFO") -> None:
        """Initialize logger sink and configure deterministic formatting."""

        self._sink = sink or sys.stderr
        _loguru_logger.remove()
        _loguru_logger.add(self._sink, format="{message}", level=level, colorize=False)

    def _emit(self, level: str, event: str, stage: str, **context: object) -> None:
        """Emit one structured runtime log line."""

        line = f"[lectio] level={level} stage={stage} event={event}{_format_context(context)}"
        _loguru_logger.log(level, line)

    def section_started(self, section_id: str, *, chunks: int, optimize: bool) -> None:
        """Emit a section-generation start event."""

        self._emit("INFO", "start", "generate", section=section_id, chunks=chunks, optimize=optimize)

    def chunk_progress(self, section_id: str, *, position: int, total: int) -> None:
        """Emit a per-chunk progress event."""

        self._emit("DEBUG", "chunk", "generate", section=section_id, part=f"{position}/{total}")

    def section_completed(self, section_id: str, *, duration_seconds: float) -> None:
        """Emit a section-generation completion event."""

        self._emit(
            "INFO",
            "complete",
            "generate",
            section=section_id,
            duration=f"{duration_seconds:.2f}",
        )

    def section_cancelled(self, section_id: str) -> None:
        """Emit a section cancellation event."""

        self._emit("INFO", "cancel", "generate", section=section_id)

    def control_ignored(self, section_id: str, *, detail: str) -> None:
        """Emit an event when a control request reached a section that already finished."""

        self._emit("DEBUG", "control_ignored", "batch", section=section_id, detail=detail)

    def section_failed(self, section_id: str, *, error_type: str) -> None:
        """Emit a section-failure event without sensitive payload details."""

        self._emit("ERROR", "failure", "generate", section=section_id, error_type=error_type)

    def retry_scheduled(self, stage: str, *, attempt: int, delay_seconds: float, failure_kind: str) -> None:
        """Emit a provider retry event."""

        self._emit(
            "WARNING",
            "retry",
            stage,
            attempt=attempt,
            delay=f"{delay_seconds:.1f}",
            kind=failure_kind,
        )

    def optimizer_fallback(self, section_id: str, *, position: int, error_type: str) -> None:
        """Emit an event when optimization fell back to the original chunk text."""

        self._emit(
            "WARNING",
            "fallback",
            "optimize",
            section=section_id,
            part=position,
            error_type=error_type,
        )

    def batch_started(self, *, sections: int) -> None:
        """Emit a batch start event."""

        self._emit("INFO", "start", "batch", sections=sections)

    def batch_stopped(self, *, remaining: int) -> None:
        """Emit a batch stop event."""

        self._emit("INFO", "stop", "batch", remaining=remaining)

    def batch_completed(self, *, completed: int, failed: int, skipped: int) -> None:
        """Emit a batch completion summary event."""

        self._emit("INFO", "complete", "batch", completed=completed, failed=failed, skipped=skipped)

    def log_stage_failure(self, stage: str, error_type: str) -> None:
        """Emit a generic stage-failure event."""

        self._emit("ERROR", "failure", stage, error_type=error_type)
