"""Tests for MarkdownChunker."""

from __future__ import annotations

from strata.ingest.markdown import MarkdownChunker

DOC = """Intro paragraph before any heading.

# Title

Top-level text.

## Setup

Install the thing.

### Details

Fine print.
"""


def test_markdown_empty():
    assert MarkdownChunker().chunk("a.md", "") == []


def test_markdown_splits_on_headings():
    chunks = MarkdownChunker().chunk("a.md", DOC)
    texts = [c.text for c in chunks]
    assert texts[0] == "Intro paragraph before any heading."
    assert texts[1].startswith("# Title")
    assert texts[2].startswith("## Setup")
    assert texts[3].startswith("### Details")
    assert len(chunks) == 4


def test_markdown_h4_is_not_a_boundary():
    chunks = MarkdownChunker().chunk("a.md", "# A\n\ntext\n\n#### deep\n\nmore")
    assert len(chunks) == 1
    assert "#### deep" in chunks[0].text


def test_markdown_no_headings_falls_back_to_window():
    chunker = MarkdownChunker(chunk_size=10, overlap=0.0)
    chunks = chunker.chunk("a.md", "word " * 40)
    assert len(chunks) > 1


def test_markdown_large_section_is_windowed():
    chunker = MarkdownChunker(chunk_size=10, overlap=0.0)
    content = "# Big\n\n" + "y" * 200
    chunks = chunker.chunk("a.md", content)
    assert len(chunks) > 1
    assert [c.chunk_index for c in chunks] == list(range(len(chunks)))


def test_markdown_document_path():
    chunks = MarkdownChunker().chunk("guide/intro.md", DOC)
    assert {c.document_path for c in chunks} == {"guide/intro.md"}


def test_markdown_section_trail_metadata():
    chunks = MarkdownChunker().chunk("a.md", DOC)
    assert "section" not in chunks[0].metadata
    assert chunks[1].metadata["section"] == "Title"
    assert chunks[2].metadata["section"] == "Title > Setup"
    assert chunks[3].metadata["section"] == "Title > Setup > Details"


def test_markdown_trail_resets_on_higher_heading():
    content = "# One\n\na\n\n## Sub\n\nb\n\n# Two\n\nc"
    chunks = MarkdownChunker().chunk("a.md", content)
    assert [c.metadata["section"] for c in chunks] == ["One", "One > Sub", "Two"]


def test_markdown_windowed_pieces_share_section():
    chunker = MarkdownChunker(chunk_size=10, overlap=0.0)
    chunks = chunker.chunk("a.md", "# Big\n\n" + "y" * 200)
    assert {c.metadata["section"] for c in chunks} == {"Big"}
