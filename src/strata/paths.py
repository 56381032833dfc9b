"""Relative document paths used as manifest keys and vector-store document ids."""

from __future__ import annotations

from pathlib import Path, PurePosixPath


def normalize_relpath(path: str | Path) -> str:
    """Return *path* as a POSIX-style path relative to ``documents/``.

    Backslashes become forward slashes and ``.`` segments are dropped so the
    same file maps to the same key on every platform.

    Raises:
        ValueError: If *path* is empty, absolute, or escapes the documents
            folder via ``..``.
    """
    raw = str(path).replace("\\", "/").strip()
    if not raw:
        raise ValueError("document path must not be empty")
    if raw.startswith("/") or (len(raw) > 1 and raw[1] == ":"):
        raise ValueError(f"document path must be relative: '{path}'")

    parts = [p for p in PurePosixPath(raw).parts if p not in ("", ".")]
    if not parts:
        raise ValueError(f"document path must name a file: '{path}'")
    if ".." in parts:
        raise ValueError(f"document path must stay inside documents/: '{path}'")
    return "/".join(parts)
