"""Section selection parsing utilities for CLI and batch flows.

Responsibilities:
- Parse 1-based section selection expressions (`1`, `1,3`, `2-5`, mixed).
- Validate indices against available section indices.
- Produce normalized selection labels.
"""

from __future__ import annotations

from typing import Iterable, Sequence

_SYNTAX_HINT = "Use syntax like `1`, `1,3`, `2-4`, or `1,3-5`."


def parse_section_selection(selection: str | None, available_indices: Sequence[int]) -> list[int]:
    """Parse a section selection expression into sorted unique indices.

    Args:
        selection: User selection string. `None` or blank selects all sections.
        available_indices: Existing 1-based section indices that can be selected.

    Returns:
        Sorted selected section indices.

    Raises:
        ValueError: If the selection syntax or bounds are invalid.
    """

    available = sorted(set(int(index) for index in available_indices))
    if not available:
        raise ValueError("No sections are available for selection.")

    if selection is None or not selection.strip():
        return available

    tokens = [part.strip() for part in selection.split(",")]
    if any(not token for token in tokens):
        raise ValueError(f"Malformed section selection: empty item in list. {_SYNTAX_HINT}")

    selected: set[int] = set()
    for token in tokens:
        for index in _expand_token(token, available):
            if index in selected:
                raise ValueError(f"Section selection contains duplicate index `{index}`.")
            selected.add(index)
    return sorted(selected)


def format_section_selection(indices: Iterable[int]) -> str:
    """Format selected section indices into compact range syntax."""

    ordered = sorted(set(int(index) for index in indices))
    if not ordered:
        return ""

    ranges: list[list[int]] = [[ordered[0], ordered[0]]]
    for index in ordered[1:]:
        if index == ranges[-1][1] + 1:
            ranges[-1][1] = index
        else:
            ranges.append([index, index])
    return ",".join(str(start) if start == end else f"{start}-{end}" for start, end in ranges)


def _expand_token(token: str, available: list[int]) -> list[int]:
    """Expand one token (`N` or `N-M`) to concrete section indices."""

    if "-" not in token:
        expanded = [_parse_positive_index(token)]
    else:
        start_text, _, end_text = token.partition("-")
        if not start_text.strip() or not end_text.strip() or "-" in end_text:
            raise ValueError(f"Malformed section range `{token}`. {_SYNTAX_HINT}")
        start = _parse_positive_index(start_text.strip())
        end = _parse_positive_index(end_text.strip())
        if start > end:
            raise ValueError(
                f"Malformed section range `{token}`: range start must be less than or equal to end."
            )
        expanded = list(range(start, end + 1))

    available_set = set(available)
    for index in expanded:
        if index not in available_set:
            raise ValueError(
                f"Section index `{index}` is out of available bounds "
                f"`{available[0]}-{available[-1]}`."
            )
    return expanded


def _parse_positive_index(token: str) -> int:
    """Parse one 1-based positive section index token."""

    try:
        value = int(token, 10)
    except ValueError as exc:
        raise ValueError(f"Invalid section index `{token}`. Indices must be integers.") from exc
    if value < 1:
        raise ValueError(f"Invalid section index `{token}`. Indices must be positive and 1-based.")
    return value
