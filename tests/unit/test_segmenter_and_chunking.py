"""Unit tests for document segmentation and sub-chunk splitting."""

from __future__ import annotations

import pytest

from lectio.text.chunking import SubChunker
from lectio.text.segmenter import DocumentSegmenter, heading_title, is_heading_line


def _sequential_ids(index: int) -> str:
    """Return deterministic section ids for assertions."""

    return f"sec-{index}"


def test_segmenter_splits_on_markdown_and_chapter_headings() -> None:
    """Headings should open new sections and text before them should use the fallback title."""

    text = (
        "Preface text.\n"
        "# Introduction\n"
        "Intro body.\n"
        "Capítulo 2 El viaje\n"
        "Travel body.\n"
    )
    sections = DocumentSegmenter(id_factory=_sequential_ids).split(text, "Book")

    assert [(section.index, section.title, section.content) for section in sections] == [
        (1, "Book", "Preface text."),
        (2, "Introduction", "Intro body."),
        (3, "Capítulo 2 El viaje", "Travel body."),
    ]
    assert [section.id for section in sections] == ["sec-1", "sec-2", "sec-3"]


def test_segmenter_uses_fallback_title_without_headings_and_skips_empty_bodies() -> None:
    """Documents without headings become one section; headings with empty bodies are dropped."""

    assert [section.title for section in DocumentSegmenter().split("Just text.\n", "Doc")] == ["Doc"]

    sections = DocumentSegmenter().split("# Empty\n\n   \n# Full\nBody", "Doc")
    assert [section.title for section in sections] == ["Full"]
    assert DocumentSegmenter().split("   \n\n", "Doc") == []


def test_segmenter_treats_short_uppercase_lines_as_headings() -> None:
    """All-caps lines of 4 to 80 characters should be headings; short or numeric lines are not."""

    assert is_heading_line("THE BEGINNING")
    assert is_heading_line("Chapter 1: Dawn")
    assert is_heading_line("### Notes")
    assert not is_heading_line("ABC")
    assert not is_heading_line("1234 5678")
    assert not is_heading_line("A regular sentence.")
    assert heading_title("## Notes ") == "Notes"


def test_segmenter_splits_oversized_section_into_balanced_parts() -> None:
    """A body of about 25,000 characters should become three roughly equal titled parts."""

    body = " ".join(["palabra"] * 3125)
    sections = DocumentSegmenter(long_audio_threshold_chars=12000).split(f"# Long\n{body}", "Doc")

    assert [section.title for section in sections] == [
        "Long (Part 1)",
        "Long (Part 2)",
        "Long (Part 3)",
    ]
    assert all(len(section.content) <= 12000 for section in sections)
    assert all(section.content == section.content.strip() for section in sections)
    lengths = [len(section.content) for section in sections]
    assert max(lengths) - min(lengths) < 200
    assert [section.index for section in sections] == [1, 2, 3]


def test_segmenter_parts_keep_every_word_whole_and_in_order() -> None:
    """Joined parts should reproduce the body's words, with cuts only between words."""

    vocabulary = ["luz", "faro", "marinero", "tormenta", "a", "horizonte"]
    words = [f"{vocabulary[number % len(vocabulary)]}{number}" for number in range(2800)]
    body = " ".join(words)
    sections = DocumentSegmenter(long_audio_threshold_chars=12000).split(f"# Long\n{body}", "Doc")

    assert len(sections) == 3
    assert " ".join(section.content for section in sections).split() == body.split()
    known_words = set(words)
    for section in sections:
        tokens = section.content.split()
        assert tokens[0] in known_words
        assert tokens[-1] in known_words
        assert section.content[0].isalnum()
        assert section.content[-1].isalnum()


def test_segmenter_normalizes_windows_newlines() -> None:
    """CRLF input should segment identically to LF input."""

    sections = DocumentSegmenter().split("# One\r\nFirst\r\n# Two\r\nSecond", "Doc")

    assert [(section.title, section.content) for section in sections] == [
        ("One", "First"),
        ("Two", "Second"),
    ]


def test_sub_chunker_reproduces_input_and_respects_ceiling() -> None:
    """Chunks should concatenate back to the input and never exceed the ceiling."""

    text = ("Una frase corta. " * 40 + "\n\n") * 5
    chunks = SubChunker(max_chars=300).split(text)

    assert "".join(chunk.text for chunk in chunks) == text
    assert all(len(chunk.text) <= 300 for chunk in chunks)
    assert [chunk.position for chunk in chunks] == list(range(len(chunks)))
    assert chunks[-1].boundary == "section_end"
    for previous, current in zip(chunks, chunks[1:]):
        assert previous.char_end == current.char_start


def test_sub_chunker_prefers_paragraph_then_line_then_sentence() -> None:
    """Boundary search should prefer paragraph breaks, then line breaks, then sentences."""

    chunker = SubChunker(max_chars=100)

    paragraph_text = "a" * 60 + "\n\n" + "b" * 80
    assert chunker.split(paragraph_text)[0].boundary == "paragraph"
    assert chunker.split(paragraph_text)[0].text == "a" * 60 + "\n\n"

    line_text = "a" * 60 + "\n" + "b" * 80
    assert chunker.split(line_text)[0].boundary == "line"

    sentence_text = "a" * 60 + ". " + "b" * 80
    first = chunker.split(sentence_text)[0]
    assert first.boundary == "sentence"
    assert first.text == "a" * 60 + ". "


def test_sub_chunker_ignores_boundaries_before_half_window() -> None:
    """Breaks in the first half of the window should not end a chunk early."""

    text = "a" * 10 + "\n\n" + "b" * 70 + " " + "c" * 60
    first = SubChunker(max_chars=100).split(text)[0]

    assert first.boundary == "whitespace"
    assert first.text == "a" * 10 + "\n\n" + "b" * 70 + " "


def test_sub_chunker_skips_decimals_and_abbreviations() -> None:
    """Decimal points and abbreviations should not count as sentence ends."""

    text = "x" * 55 + " Dr. Smith paid 3.5 euros" + "y" * 40
    first = SubChunker(max_chars=100).split(text)[0]

    assert first.boundary == "whitespace"
    assert not first.text.endswith("Dr. ")


def test_sub_chunker_forces_cut_without_any_boundary() -> None:
    """Text without whitespace should be cut exactly at the ceiling."""

    chunks = SubChunker(max_chars=100).split("z" * 250)

    assert [len(chunk.text) for chunk in chunks] == [100, 100, 50]
    assert [chunk.boundary for chunk in chunks] == ["forced", "forced", "section_end"]


def test_sub_chunker_dialogue_mode_emits_one_chunk_per_line() -> None:
    """Dialogue mode should end a chunk at every line break."""

    text = "—Hola.\n—¿Qué tal?\n—Bien."
    chunks = SubChunker().split(text, dialogue_mode=True)

    assert [chunk.text for chunk in chunks] == ["—Hola.\n", "—¿Qué tal?\n", "—Bien."]
    assert [chunk.boundary for chunk in chunks] == ["line", "line", "section_end"]


def test_sub_chunker_handles_empty_text_and_rejects_invalid_ceiling() -> None:
    """Empty input should yield no chunks and a non-positive ceiling should be rejected."""

    assert SubChunker().split("") == []
    with pytest.raises(ValueError):
        SubChunker(max_chars=0)
