"""Strata ingest pipeline: document discovery, chunkers, document summaries."""

from strata.ingest.base import BaseChunker
from strata.ingest.html import HtmlChunker
from strata.ingest.json_chunker import JsonChunker
from strata.ingest.loader import (
    SUPPORTED_EXTENSIONS,
    SourceFile,
    get_chunker,
    get_mime_type,
    is_supported_file,
    load_and_chunk,
    scan_documents,
)
from strata.ingest.markdown import MarkdownChunker
from strata.ingest.pdf import PdfChunker
from strata.ingest.plaintext import PlainTextChunker
from strata.ingest.summarizer import DocumentSummarizer

__all__ = [
    "BaseChunker",
    "DocumentSummarizer",
    "HtmlChunker",
    "JsonChunker",
    "MarkdownChunker",
    "PdfChunker",
    "PlainTextChunker",
    "SUPPORTED_EXTENSIONS",
    "SourceFile",
    "get_chunker",
    "get_mime_type",
    "is_supported_file",
    "load_and_chunk",
    "scan_documents",
]
