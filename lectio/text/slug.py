"""Slug helpers for filesystem-safe audio file names.

Responsibilities:
- Normalize free-form section titles (including accented Spanish text) into ASCII slugs.
"""

from __future__ import annotations

import re
import unicodedata


def slugify_title(value: str, fallback: str = "section") -> str:
    """Return a filesystem-safe ASCII slug for a section or document title."""

    normalized = unicodedata.normalize("NFKD", value)
    ascii_only = normalized.encode("ascii", "ignore").decode("ascii")
    collapsed = re.sub(r"[^a-z0-9]+", "-", ascii_only.lower())
    slug = collapsed.strip("-")
    return slug[:80].rstrip("-") or fallback
