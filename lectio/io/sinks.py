"""Output sinks receiving finished audio containers.

Responsibilities:
- Define the one-way handoff used for completed sections and merged results.
- Persist WAV containers with numbered, slugged file names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from ..text.slug import slugify_title


class AudioSink(Protocol):
    """One-way consumer of finished audio containers."""

    def deliver(
        self,
        container: bytes,
        title: str,
        raw: bytes | None = None,
        *,
        index: int | None = None,
    ) -> str | None:
        """Take ownership of a container and return an optional reference to it."""


class FileAudioSink:
    """Write delivered containers as `<NNN>_<slug>.wav` files under an output directory."""

    def __init__(self, output_dir: Path) -> None:
        """Initialize sink output directory."""

        self.output_dir = output_dir

    def deliver(
        self,
        container: bytes,
        title: str,
        raw: bytes | None = None,
        *,
        index: int | None = None,
    ) -> str | None:
        """Write the container (and optional raw payload) and return the WAV path."""

        stem = slugify_title(title)
        if index is not None:
            stem = f"{index:03d}_{stem}"
        self.output_dir.mkdir(parents=True, exist_ok=True)
        wav_path = self.output_dir / f"{stem}.wav"
        wav_path.write_bytes(container)
        if raw is not None:
            (self.output_dir / f"{stem}.pcm").write_bytes(raw)
        return str(wav_path)


@dataclass(slots=True)
class DeliveredAudio:
    """One delivery recorded by `MemoryAudioSink`."""

    container: bytes
    title: str
    raw: bytes | None = None
    index: int | None = None


@dataclass(slots=True)
class MemoryAudioSink:
    """Keep delivered containers in memory."""

    deliveries: list[DeliveredAudio] = field(default_factory=list)

    def deliver(
        self,
        container: bytes,
        title: str,
        raw: bytes | None = None,
        *,
        index: int | None = None,
    ) -> str | None:
        """Record a delivery and return a `memory:<n>` reference."""

        self.deliveries.append(DeliveredAudio(container=container, title=title, raw=raw, index=index))
        return f"memory:{len(self.deliveries)}"
