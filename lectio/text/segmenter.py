"""Document-to-section segmentation.

Responsibilities:
- Detect chapter/part/document headings in raw text (Spanish and English wording).
- Accumulate body lines into titled sections and drop whitespace-only bodies.
- Split oversized section bodies into roughly equal parts without breaking words.
"""

from __future__ import annotations

import math
import re
import uuid
from typing import Callable

from ..models.datatypes import Section

LONG_AUDIO_THRESHOLD_CHARS = 12000

_HEADING_PATTERN = re.compile(
    r"^(#{1,3}\s+|cap[íi]tulo\s+|chapter\s+|parte?\s+|documento?\s+)(.+)",
    re.IGNORECASE,
)
_MARKDOWN_PREFIX_PATTERN = re.compile(r"^#{1,3}\s+")
_UPPERCASE_HEADING_MIN_CHARS = 4
_UPPERCASE_HEADING_MAX_CHARS = 80


def _default_id_factory(index: int) -> str:
    """Return a fresh section identifier for the given 1-based index."""

    return f"sec-{index}-{uuid.uuid4().hex[:8]}"


def is_heading_line(line: str) -> bool:
    """Return whether a line starts a new section."""

    stripped = line.strip()
    if not stripped:
        return False
    if _HEADING_PATTERN.match(stripped):
        return True
    return (
        _UPPERCASE_HEADING_MIN_CHARS <= len(stripped) <= _UPPERCASE_HEADING_MAX_CHARS
        and stripped.isupper()
        and any(character.isalpha() for character in stripped)
    )


def heading_title(line: str) -> str:
    """Return the display title for a heading line."""

    stripped = line.strip()
    return _MARKDOWN_PREFIX_PATTERN.sub("", stripped).strip()


class DocumentSegmenter:
    """Split raw document text into ordered, titled sections."""

    def __init__(
        self,
        long_audio_threshold_chars: int = LONG_AUDIO_THRESHOLD_CHARS,
        id_factory: Callable[[int], str] = _default_id_factory,
    ) -> None:
        """Initialize segmenter with the oversized-section threshold."""

        if long_audio_threshold_chars <= 0:
            raise ValueError("`long_audio_threshold_chars` must be a positive integer.")
        self.long_audio_threshold_chars = long_audio_threshold_chars
        self._id_factory = id_factory

    def split(self, text: str, fallback_title: str) -> list[Section]:
        """Split text into sections.

        Args:
            text: Raw document text.
            fallback_title: Title for text preceding the first heading, or for
                documents without any heading.

        Returns:
            Ordered sections with 1-based indices; empty for blank input.
        """

        normalized = text.replace("\r\n", "\n").replace("\r", "\n")
        titled_bodies: list[tuple[str, str]] = []
        current_title = fallback_title
        buffer: list[str] = []

        for line in normalized.split("\n"):
            if is_heading_line(line):
                self._flush(titled_bodies, current_title, buffer)
                current_title = heading_title(line) or fallback_title
                buffer = []
                continue
            buffer.append(line)
        self._flush(titled_bodies, current_title, buffer)

        if not titled_bodies and normalized.strip():
            titled_bodies.append((fallback_title, normalized.strip()))

        sections: list[Section] = []
        for title, body in titled_bodies:
            for part_title, part_body in self._split_oversized(title, body):
                index = len(sections) + 1
                sections.append(
                    Section(
                        id=self._id_factory(index),
                        index=index,
                        title=part_title,
                        content=part_body,
                    )
                )
        return sections

    @staticmethod
    def _flush(titled_bodies: list[tuple[str, str]], title: str, buffer: list[str]) -> None:
        """Emit the pending body when it holds non-whitespace content."""

        body = "\n".join(buffer).strip()
        if body:
            titled_bodies.append((title, body))

    def _split_oversized(self, title: str, body: str) -> list[tuple[str, str]]:
        """Split a body above the threshold into titled parts of roughly equal size."""

        threshold = self.long_audio_threshold_chars
        if len(body) <= threshold:
            return [(title, body)]

        part_count = math.ceil(len(body) / threshold)
        parts: list[str] = []
        remaining = body
        while remaining:
            if len(remaining) <= threshold:
                parts.append(remaining)
                break
            parts_left = max(1, part_count - len(parts))
            target = min(threshold, math.ceil(len(remaining) / parts_left))
            cut = self._find_cut(remaining, target)
            part = remaining[:cut].strip()
            if part:
                parts.append(part)
            remaining = remaining[cut:].strip()

        return [(f"{title} (Part {number})", part) for number, part in enumerate(parts, start=1)]

    @staticmethod
    def _find_cut(text: str, target: int) -> int:
        """Return the nearest whitespace offset at or before `target`, else `target`."""

        for index in range(target, 0, -1):
            if text[index].isspace():
                return index
        return target
