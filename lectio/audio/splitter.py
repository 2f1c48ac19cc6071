"""Time-based splitting of WAV containers.

Responsibilities:
- Cut a WAV container into consecutive fixed-length WAV containers for
  providers that limit inline payload size.
"""

from __future__ import annotations

from .assembler import AudioAssembler

DEFAULT_SEGMENT_SECONDS = 300


def split_container(
    container: bytes,
    segment_seconds: float = DEFAULT_SEGMENT_SECONDS,
    assembler: AudioAssembler | None = None,
) -> list[bytes]:
    """Split a WAV container into consecutive containers of at most `segment_seconds`.

    Raises:
        ValueError: If the container is unreadable or the segment length is not positive.
    """

    if segment_seconds <= 0:
        raise ValueError("`segment_seconds` must be positive.")

    helper = assembler or AudioAssembler()
    pcm_format = helper.read_format(container)
    pcm = helper.read_pcm(container)
    segment_bytes = max(1, int(segment_seconds * pcm_format.sample_rate)) * pcm_format.frame_size

    source_assembler = AudioAssembler(pcm_format)
    return [
        source_assembler.merge([pcm[offset : offset + segment_bytes]])
        for offset in range(0, len(pcm), segment_bytes)
    ] or [source_assembler.merge([])]
