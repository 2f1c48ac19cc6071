"""Audio container assembly and splitting components.

This package wraps raw PCM speech into WAV containers, merges results, and
splits long recordings into fixed-length segments.
"""

from .assembler import AudioAssembler, PcmFormat
from .splitter import split_container

__all__ = ["AudioAssembler", "PcmFormat", "split_container"]
