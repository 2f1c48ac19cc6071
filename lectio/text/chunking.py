"""Section-to-sub-chunk splitting logic.

Responsibilities:
- Split section text into contiguous slices that fit the speech provider's input limit.
- Prefer natural boundaries (paragraph, line, sentence, whitespace) over forced cuts.
- Keep dialogue lines separate when dialogue mode is enabled.
"""

from __future__ import annotations

import re

from ..models.datatypes import SubChunk

MAX_CHARS_PER_CHUNK = 1000


class SubChunker:
    """Create bounded sub-chunks whose concatenation reproduces the input exactly."""

    _MIN_BOUNDARY_RATIO = 0.50
    _SENTENCE_TERMINATORS = ".!?…"
    _TRAILING_SENTENCE_CLOSERS = "\"')]}»”"
    _COMMON_ABBREVIATIONS = frozenset(
        {
            "mr.",
            "mrs.",
            "ms.",
            "dr.",
            "dra.",
            "prof.",
            "sr.",
            "sra.",
            "srta.",
            "jr.",
            "st.",
            "etc.",
            "e.g.",
            "i.e.",
            "vs.",
            "no.",
            "núm.",
            "pág.",
            "fig.",
            "al.",
            "ud.",
            "uds.",
        }
    )
    _ACRONYM_PATTERN = re.compile(r"(?:[A-Za-z]\.){2,}$")

    def __init__(self, max_chars: int = MAX_CHARS_PER_CHUNK) -> None:
        """Initialize chunker with the per-call character ceiling."""

        if max_chars <= 0:
            raise ValueError("`max_chars` must be a positive integer.")
        self.max_chars = max_chars

    def split(self, text: str, dialogue_mode: bool = False) -> list[SubChunk]:
        """Split text into ordered sub-chunks.

        Args:
            text: Section content.
            dialogue_mode: When enabled, every line break ends a chunk.

        Returns:
            Ordered sub-chunks; empty for empty input.
        """

        chunks: list[SubChunk] = []
        start = 0
        text_length = len(text)
        while start < text_length:
            end, boundary = self._resolve_boundary(text, start, dialogue_mode)
            chunks.append(
                SubChunk(
                    position=len(chunks),
                    text=text[start:end],
                    char_start=start,
                    char_end=end,
                    boundary=boundary,
                )
            )
            start = end
        return chunks

    def _resolve_boundary(self, text: str, start: int, dialogue_mode: bool) -> tuple[int, str]:
        """Resolve the exclusive end offset and boundary kind for the chunk at `start`."""

        text_length = len(text)
        window_end = min(start + self.max_chars, text_length)

        if dialogue_mode:
            newline_index = text.find("\n", start, window_end)
            if newline_index != -1:
                end = self._consume_trailing_whitespace(text, newline_index + 1, window_end)
                if end < text_length:
                    return end, "line"

        if text_length - start <= self.max_chars:
            return text_length, "section_end"

        min_boundary = start + int(self.max_chars * self._MIN_BOUNDARY_RATIO)

        paragraph_index = text.rfind("\n\n", min_boundary, window_end)
        if paragraph_index != -1:
            return self._consume_trailing_whitespace(text, paragraph_index + 2, window_end), "paragraph"

        line_index = text.rfind("\n", min_boundary, window_end)
        if line_index != -1:
            return self._consume_trailing_whitespace(text, line_index + 1, window_end), "line"

        sentence_end = self._find_backward_sentence_boundary(text, min_boundary, window_end)
        if sentence_end is not None:
            return self._consume_trailing_whitespace(text, sentence_end, window_end), "sentence"

        for index in range(window_end - 1, min_boundary - 1, -1):
            if text[index].isspace():
                return self._consume_trailing_whitespace(text, index + 1, window_end), "whitespace"

        return window_end, "forced"

    def _find_backward_sentence_boundary(
        self,
        text: str,
        min_boundary: int,
        window_end: int,
    ) -> int | None:
        """Return the offset just past the last sentence terminator followed by whitespace."""

        index = window_end - 2
        while index >= min_boundary:
            if text[index] in self._SENTENCE_TERMINATORS and self._is_sentence_boundary(text, index):
                after = index + 1
                while after < window_end and text[after] in self._TRAILING_SENTENCE_CLOSERS:
                    after += 1
                if after < window_end and text[after].isspace():
                    return after
            index -= 1
        return None

    def _is_sentence_boundary(self, text: str, punctuation_index: int) -> bool:
        """Return whether punctuation at index terminates a sentence."""

        if text[punctuation_index] != ".":
            return True
        if self._is_decimal_period(text, punctuation_index):
            return False
        return not self._is_abbreviation_period(text, punctuation_index)

    def _is_decimal_period(self, text: str, punctuation_index: int) -> bool:
        """Return whether a period is part of a decimal number."""

        if punctuation_index <= 0 or punctuation_index + 1 >= len(text):
            return False
        return text[punctuation_index - 1].isdigit() and text[punctuation_index + 1].isdigit()

    def _is_abbreviation_period(self, text: str, punctuation_index: int) -> bool:
        """Return whether a period belongs to a likely abbreviation token."""

        start = punctuation_index
        while start > 0 and text[start - 1].isalpha():
            start -= 1
        token = text[start : punctuation_index + 1].lower()
        if token in self._COMMON_ABBREVIATIONS:
            return True

        acronym_start = max(0, punctuation_index - 8)
        acronym_window = text[acronym_start : punctuation_index + 1]
        return bool(self._ACRONYM_PATTERN.search(acronym_window))

    @staticmethod
    def _consume_trailing_whitespace(text: str, index: int, limit: int) -> int:
        """Advance past whitespace after a boundary without crossing `limit`."""

        adjusted = index
        while adjusted < limit and text[adjusted].isspace():
            adjusted += 1
        return adjusted
