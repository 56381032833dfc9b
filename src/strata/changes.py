"""Incremental change detection: which documents need (re-)indexing."""

from __future__ import annotations

from dataclasses import dataclass, field

from strata.ingest.loader import SourceFile
from strata.manifest import STATUS_INDEXED, DocumentRecord, parse_iso


@dataclass
class ChangeSet:
    """Classification of the on-disk files against the manifest.

    ``new``, ``changed`` and ``removed`` are disjoint. ``unchanged`` is only a
    count; those files are skipped entirely.
    """

    new: list[SourceFile] = field(default_factory=list)
    changed: list[SourceFile] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    unchanged: int = 0

    @property
    def to_index(self) -> list[SourceFile]:
        """New then changed files, in scan order within each group."""
        return [*self.new, *self.changed]

    @property
    def total(self) -> int:
        return len(self.new) + len(self.changed) + len(self.removed)

    @property
    def is_empty(self) -> bool:
        return self.total == 0


def detect_changes(documents: dict[str, DocumentRecord], files: list[SourceFile]) -> ChangeSet:
    """Compare *files* on disk with the manifest *documents*.

    A file is unchanged only if it was indexed successfully and has not been
    modified since; every other known file, failed ones included, is changed.
    """
    changes = ChangeSet()
    on_disk: set[str] = set()

    for source in files:
        on_disk.add(source.relative_path)
        record = documents.get(source.relative_path)
        if record is None:
            changes.new.append(source)
        elif _is_unchanged(record, source):
            changes.unchanged += 1
        else:
            changes.changed.append(source)

    changes.removed = [path for path in documents if path not in on_disk]
    return changes


def _is_unchanged(record: DocumentRecord, source: SourceFile) -> bool:
    if record.status != STATUS_INDEXED or not record.indexed_at:
        return False
    return parse_iso(source.modified) <= parse_iso(record.indexed_at)
