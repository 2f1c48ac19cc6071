"""Audio container assembly for synthesized PCM buffers.

Responsibilities:
- Wrap raw PCM buffers into WAV containers with exact header sizes.
- Merge ordered PCM buffers, or finished WAV containers, into one container.
- Derive playback duration from container size.

Raw PCM inputs are assumed to share the configured format; mixing sample rates
or widths in `merge` yields garbled audio. `merge_containers` validates formats.
"""

from __future__ import annotations

import io
import wave
from dataclasses import dataclass
from typing import Iterable

WAV_HEADER_BYTES = 44
SAMPLE_RATE = 24000


@dataclass(frozen=True, slots=True)
class PcmFormat:
    """Linear PCM stream format.

    Attributes:
        sample_rate: Frames per second.
        channels: Channel count.
        sample_width: Bytes per sample.
    """

    sample_rate: int = SAMPLE_RATE
    channels: int = 1
    sample_width: int = 2

    @property
    def frame_size(self) -> int:
        """Return bytes per frame across all channels."""

        return self.channels * self.sample_width

    @property
    def byte_rate(self) -> int:
        """Return payload bytes per second of audio."""

        return self.sample_rate * self.frame_size


class AudioAssembler:
    """Build WAV containers from PCM buffers in caller-provided order."""

    def __init__(self, pcm_format: PcmFormat | None = None) -> None:
        """Initialize assembler for one fixed PCM format."""

        self.format = pcm_format or PcmFormat()

    def wrap(self, pcm: bytes) -> bytes:
        """Wrap one raw PCM buffer in a WAV container."""

        return self.merge([pcm])

    def merge(self, buffers: Iterable[bytes]) -> bytes:
        """Concatenate raw PCM buffers into one WAV container, preserving order."""

        payload = b"".join(bytes(buffer) for buffer in buffers)
        return self._write_container(payload, self.format)

    def merge_containers(self, containers: Iterable[bytes]) -> bytes:
        """Merge WAV containers into one container.

        Raises:
            ValueError: If containers are unreadable or their formats differ.
        """

        payloads: list[bytes] = []
        merged_format: PcmFormat | None = None
        for position, container in enumerate(containers, start=1):
            container_format, pcm = self._read(container)
            if merged_format is None:
                merged_format = container_format
            elif container_format != merged_format:
                raise ValueError(f"Incompatible WAV parameters for container {position}.")
            payloads.append(pcm)

        return self._write_container(b"".join(payloads), merged_format or self.format)

    def read_pcm(self, container: bytes) -> bytes:
        """Return the raw PCM payload of a WAV container."""

        return self._read(container)[1]

    def read_format(self, container: bytes) -> PcmFormat:
        """Return the PCM format declared by a WAV container."""

        return self._read(container)[0]

    def duration_seconds(self, container: bytes) -> float:
        """Return playback duration derived from container size and its declared format.

        Containers whose header cannot be read are measured with the assembler's
        own format.
        """

        payload_bytes = max(0, len(container) - WAV_HEADER_BYTES)
        try:
            pcm_format = self.read_format(container)
        except ValueError:
            pcm_format = self.format
        return payload_bytes / float(pcm_format.byte_rate)

    @staticmethod
    def _write_container(payload: bytes, pcm_format: PcmFormat) -> bytes:
        """Write a PCM payload into a WAV container, dropping any partial trailing frame."""

        usable = len(payload) - (len(payload) % pcm_format.frame_size)
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as output:
            output.setnchannels(pcm_format.channels)
            output.setsampwidth(pcm_format.sample_width)
            output.setframerate(pcm_format.sample_rate)
            output.writeframes(payload[:usable])
        return buffer.getvalue()

    @staticmethod
    def _read(container: bytes) -> tuple[PcmFormat, bytes]:
        """Read format and PCM frames from WAV container bytes."""

        try:
            with wave.open(io.BytesIO(container), "rb") as source:
                pcm_format = PcmFormat(
                    sample_rate=source.getframerate(),
                    channels=source.getnchannels(),
                    sample_width=source.getsampwidth(),
                )
                frames = source.readframes(source.getnframes())
        except (wave.Error, EOFError) as exc:
            raise ValueError(f"Audio payload is not a readable WAV container: {exc}") from exc
        return pcm_format, frames
