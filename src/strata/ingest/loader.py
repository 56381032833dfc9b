"""Document discovery and chunker dispatch.

Extension → chunker:
  .md .markdown          → MarkdownChunker
  .json                  → JsonChunker
  .pdf                   → PdfChunker
  .html .htm             → HtmlChunker
  .txt .csv .rst .log    → PlainTextChunker
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from strata.db.models import DocumentChunk
from strata.ingest.base import BaseChunker
from strata.ingest.html import HtmlChunker
from strata.ingest.json_chunker import JsonChunker
from strata.ingest.markdown import MarkdownChunker
from strata.ingest.pdf import PdfChunker
from strata.ingest.plaintext import PlainTextChunker
from strata.paths import normalize_relpath

SUPPORTED_EXTENSIONS: dict[str, str] = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".json": "application/json",
    ".csv": "text/csv",
    ".html": "text/html",
    ".htm": "text/html",
    ".rst": "text/x-rst",
    ".log": "text/plain",
}

_CHUNKERS: dict[str, type[BaseChunker]] = {
    ".md": MarkdownChunker,
    ".markdown": MarkdownChunker,
    ".json": JsonChunker,
    ".pdf": PdfChunker,
    ".html": HtmlChunker,
    ".htm": HtmlChunker,
}

_BINARY_EXTS = {".pdf"}


@dataclass(frozen=True)
class SourceFile:
    """A supported file found under a project's documents folder.

    ``modified`` is the file mtime as a UTC ISO-8601 string, the same format
    the manifest uses for ``lastModified`` and ``indexedAt``.
    """

    path: Path
    relative_path: str
    size: int
    modified: str


def is_supported_file(name: str | Path) -> bool:
    return Path(name).suffix.lower() in SUPPORTED_EXTENSIONS


def get_mime_type(name: str | Path) -> str:
    return SUPPORTED_EXTENSIONS.get(Path(name).suffix.lower(), "application/octet-stream")


def iso_mtime(path: Path) -> str:
    """Return the mtime of *path* as an ISO-8601 UTC timestamp."""
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc).isoformat()


def scan_documents(docs_path: Path) -> list[SourceFile]:
    """Return every supported file under *docs_path*, sorted by relative path.

    Hidden files and directories (leading ``.``) are skipped.
    """
    if not docs_path.is_dir():
        return []

    files: list[SourceFile] = []

    def _scan(directory: Path) -> None:
        try:
            entries = sorted(directory.iterdir())
        except PermissionError:
            return
        for entry in entries:
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                _scan(entry)
            elif entry.is_file() and is_supported_file(entry.name):
                stat = entry.stat()
                files.append(
                    SourceFile(
                        path=entry,
                        relative_path=normalize_relpath(entry.relative_to(docs_path)),
                        size=stat.st_size,
                        modified=iso_mtime(entry),
                    )
                )

    _scan(docs_path)
    return sorted(files, key=lambda f: f.relative_path)


def get_chunker(name: str | Path, chunk_size: int = 512, chunk_overlap: float = 0.10) -> BaseChunker:
    """Return the chunker for *name*'s extension.

    Raises:
        ValueError: If the extension is not supported.
    """
    ext = Path(name).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported file type: {ext!r}")
    cls = _CHUNKERS.get(ext, PlainTextChunker)
    return cls(chunk_size=chunk_size, overlap=chunk_overlap)


def load_and_chunk(
    file_path: Path | str,
    relative_path: str,
    chunk_size: int = 512,
    chunk_overlap: float = 0.10,
) -> list[DocumentChunk]:
    """Read *file_path* and split it into ordered chunks for *relative_path*."""
    path = Path(file_path)
    chunker = get_chunker(path, chunk_size=chunk_size, chunk_overlap=chunk_overlap)
    if path.suffix.lower() in _BINARY_EXTS:
        content = ""
    else:
        content = path.read_text(encoding="utf-8", errors="replace")
    return chunker.chunk(relative_path, content, path=str(path))
