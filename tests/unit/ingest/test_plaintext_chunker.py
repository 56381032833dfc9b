"""Tests for PlainTextChunker and the shared fixed-window helpers."""

from __future__ import annotations

import pytest

from strata.db.models import DocumentChunk
from strata.ingest.plaintext import PlainTextChunker


def test_plaintext_default_settings():
    chunker = PlainTextChunker()
    assert chunker.chunk_size == 512
    assert chunker.overlap == pytest.approx(0.10)


@pytest.mark.parametrize("size,overlap", [(0, 0.1), (10, -0.1), (10, 1.0)])
def test_plaintext_invalid_settings(size, overlap):
    with pytest.raises(ValueError):
        PlainTextChunker(chunk_size=size, overlap=overlap)


def test_plaintext_empty_content():
    assert PlainTextChunker().chunk("a.txt", "") == []
    assert PlainTextChunker().chunk("a.txt", "  \n  ") == []


def test_plaintext_returns_chunks():
    chunks = PlainTextChunker().chunk("a.txt", "Hello world.")
    assert all(isinstance(c, DocumentChunk) for c in chunks)
    assert all(c.content_type == "text" for c in chunks)


def test_plaintext_document_path_set():
    chunks = PlainTextChunker().chunk("notes/a.txt", "Some text.")
    assert all(c.document_path == "notes/a.txt" for c in chunks)


def test_plaintext_short_text_single_chunk():
    chunks = PlainTextChunker(chunk_size=512).chunk("a.txt", "Short text.")
    assert len(chunks) == 1
    assert chunks[0].text == "Short text."


def test_plaintext_long_text_multiple_chunks():
    chunker = PlainTextChunker(chunk_size=10, overlap=0.0)  # 40 chars per window
    chunks = chunker.chunk("a.txt", "x" * 200)
    assert len(chunks) == 5
    assert all(len(c.text) == 40 for c in chunks)


def test_plaintext_chunk_index_sequential():
    chunker = PlainTextChunker(chunk_size=10, overlap=0.0)
    chunks = chunker.chunk("a.txt", "a" * 200)
    assert [c.chunk_index for c in chunks] == list(range(len(chunks)))


def test_plaintext_overlap_produces_more_chunks():
    text = "x" * 400
    no_overlap = PlainTextChunker(chunk_size=10, overlap=0.0).chunk("a.txt", text)
    with_overlap = PlainTextChunker(chunk_size=10, overlap=0.50).chunk("a.txt", text)
    assert len(with_overlap) > len(no_overlap)


def test_plaintext_overlap_repeats_tail():
    text = "".join(chr(ord("a") + i % 26) for i in range(80))
    chunks = PlainTextChunker(chunk_size=10, overlap=0.25).chunk("a.txt", text)
    # 40-char window, 10-char overlap
    assert chunks[0].text[-10:] == chunks[1].text[:10]


def test_count_tokens_approximation():
    assert PlainTextChunker.count_tokens("") == 1
    assert PlainTextChunker.count_tokens("x" * 400) == 100
