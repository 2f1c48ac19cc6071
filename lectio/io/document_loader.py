"""Document loading for narration input.

Responsibilities:
- Read plain-text and Markdown documents as UTF-8.
- Extract text from text-based PDFs with `pypdf`.
- Derive a fallback section title from the file name.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError

SUPPORTED_SUFFIXES = frozenset({".txt", ".md", ".markdown", ".pdf"})


class DocumentLoadError(RuntimeError):
    """Raised when a document cannot be read or holds no text."""


@dataclass(frozen=True, slots=True)
class LoadedDocument:
    """Document text with its fallback title.

    Attributes:
        title: File stem used as the fallback section title.
        text: Extracted document text.
        path: Source path.
    """

    title: str
    text: str
    path: Path


class DocumentLoader:
    """Load narration text from `.txt`, `.md` and `.pdf` files."""

    def load(self, path: Path) -> LoadedDocument:
        """Load a document and return its text and title.

        Raises:
            DocumentLoadError: If the file is missing, unsupported, unreadable or empty.
        """

        if not path.exists():
            raise DocumentLoadError(f"Input document not found: {path}")
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            supported = ", ".join(sorted(SUPPORTED_SUFFIXES))
            raise DocumentLoadError(f"Unsupported document type `{suffix or path.name}`; supported: {supported}.")

        if suffix == ".pdf":
            text = "\n".join(self.extract_pdf_pages(path))
        else:
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise DocumentLoadError(f"Could not read text document {path}: {exc}") from exc

        if not text.strip():
            raise DocumentLoadError(f"No extractable text found in document: {path}")
        return LoadedDocument(title=path.stem, text=text, path=path)

    def extract_pdf_pages(self, path: Path) -> list[str]:
        """Extract per-page text from a text-based PDF."""

        try:
            reader = PdfReader(str(path))
            return [
                (page.extract_text() or "").replace("\f", "\n").strip()
                for page in reader.pages
            ]
        except (PdfReadError, OSError) as exc:
            raise DocumentLoadError(f"Could not read PDF {path}: {exc}") from exc
