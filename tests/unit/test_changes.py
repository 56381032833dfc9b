"""Tests for incremental change detection."""

from __future__ import annotations

from pathlib import Path

from strata.changes import detect_changes
from strata.ingest.loader import SourceFile
from strata.manifest import STATUS_FAILED, STATUS_INDEXED, DocumentRecord

T0 = "2024-05-01T10:00:00+00:00"
T1 = "2024-05-01T11:00:00+00:00"


def _file(rel: str, modified: str = T0) -> SourceFile:
    return SourceFile(path=Path("/docs") / rel, relative_path=rel, size=1, modified=modified)


def _record(rel: str, status: str = STATUS_INDEXED, indexed_at: str | None = T1) -> DocumentRecord:
    return DocumentRecord(
        path=rel, name=rel, size=1, mime_type="text/plain", status=status, indexed_at=indexed_at
    )


def test_everything_new_on_empty_manifest():
    changes = detect_changes({}, [_file("a.txt"), _file("b.txt")])
    assert [f.relative_path for f in changes.new] == ["a.txt", "b.txt"]
    assert changes.changed == []
    assert changes.removed == []
    assert changes.total == 2


def test_unchanged_when_indexed_after_modification():
    changes = detect_changes({"a.txt": _record("a.txt")}, [_file("a.txt", T0)])
    assert changes.unchanged == 1
    assert changes.is_empty


def test_same_instant_counts_as_unchanged():
    changes = detect_changes({"a.txt": _record("a.txt", indexed_at=T0)}, [_file("a.txt", T0)])
    assert changes.unchanged == 1


def test_changed_when_modified_after_index():
    changes = detect_changes({"a.txt": _record("a.txt", indexed_at=T0)}, [_file("a.txt", T1)])
    assert [f.relative_path for f in changes.changed] == ["a.txt"]


def test_failed_documents_are_retried():
    changes = detect_changes(
        {"a.txt": _record("a.txt", status=STATUS_FAILED, indexed_at=None)}, [_file("a.txt")]
    )
    assert [f.relative_path for f in changes.changed] == ["a.txt"]


def test_removed_documents():
    documents = {"a.txt": _record("a.txt"), "gone.txt": _record("gone.txt")}
    changes = detect_changes(documents, [_file("a.txt")])
    assert changes.removed == ["gone.txt"]
    assert changes.unchanged == 1
    assert changes.total == 1


def test_to_index_lists_new_before_changed():
    documents = {"b.txt": _record("b.txt", indexed_at=T0)}
    changes = detect_changes(documents, [_file("a.txt"), _file("b.txt", T1), _file("c.txt")])
    assert [f.relative_path for f in changes.to_index] == ["a.txt", "c.txt", "b.txt"]
