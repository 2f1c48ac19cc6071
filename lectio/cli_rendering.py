"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
section listings, voice listings, and batch summaries.
"""

from __future__ import annotations

from typing import Iterable, NoReturn

import typer

from .errors import PipelineStageError
from .models.datatypes import BatchReport, Section, SectionStatus
from .tts.voices import VoiceOption


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    if isinstance(exc, PipelineStageError):
        typer.secho(
            f"{command_name} failed at stage `{exc.stage}`: {exc.detail}",
            fg=typer.colors.RED,
            err=True,
        )
        if exc.hint:
            typer.secho(f"Hint: {exc.hint}", fg=typer.colors.YELLOW, err=True)
    else:
        typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1) from exc


def format_duration(seconds: float) -> str:
    """Format seconds as `m:ss`."""

    total = max(0, int(round(seconds)))
    return f"{total // 60}:{total % 60:02d}"


def echo_section_list(sections: Iterable[Section]) -> None:
    """Print compact index/title rows with size and estimated duration."""

    for section in sorted(sections, key=lambda item: item.index):
        typer.echo(
            f"{section.index}. {section.title} "
            f"({section.char_count} chars, ~{format_duration(section.estimated_duration_seconds)})"
        )


def echo_voice_list(voices: Iterable[VoiceOption]) -> None:
    """Print catalog voices as `id  name (gender, accent): description` rows."""

    for voice in voices:
        typer.echo(
            f"{voice.id}  {voice.name} ({voice.gender}, {voice.accent}): {voice.description}"
        )


def echo_section_result(section: Section) -> None:
    """Print the outcome of one generated section."""

    status = section.status.value
    if section.actual_duration_seconds is not None and section.audio_ref:
        typer.echo(
            f"[{status}] {section.index}. {section.title}: {section.audio_ref} "
            f"({format_duration(section.actual_duration_seconds)})"
        )
    elif section.status is SectionStatus.ERROR and section.current_step:
        typer.echo(f"[{status}] {section.index}. {section.title}: {section.current_step}")
    else:
        typer.echo(f"[{status}] {section.index}. {section.title}")


def echo_batch_summary(report: BatchReport) -> None:
    """Print batch counters and whether the batch stopped early."""

    typer.echo(
        f"Completed: {len(report.completed)}  Failed: {len(report.failed)}  "
        f"Cancelled: {len(report.cancelled)}  Skipped: {len(report.skipped)}"
    )
    if report.stopped:
        typer.echo("Batch stopped before all selected sections ran.")
