"""Per-project manifest: indexing settings and the status of every document.

The manifest lives at ``<root>/<project>/.strata/manifest.json``. It is
rewritten in full on every save (temp file + ``os.replace``) and keeps the
camelCase keys of its on-disk JSON shape.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any

from strata.errors import ManifestLoadError
from strata.paths import normalize_relpath
from strata.strategies.base import StrategyConfig

logger = logging.getLogger(__name__)

METADATA_DIR = ".strata"
MANIFEST_FILE = "manifest.json"

STATUS_PENDING = "pending"
STATUS_INDEXED = "indexed"
STATUS_FAILED = "failed"
DOCUMENT_STATUSES = (STATUS_PENDING, STATUS_INDEXED, STATUS_FAILED)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _valid_timestamp(path: str, key: str, value: Any) -> str | None:
    """Return *value* if it parses as ISO-8601; otherwise log and drop it.

    A record without a usable ``indexedAt`` counts as changed, so the next
    index run re-indexes the document instead of failing on it.
    """
    if not value:
        return None
    try:
        parse_iso(str(value))
    except ValueError:
        logger.warning("%s: ignoring malformed %s timestamp %r", path, key, value)
        return None
    return str(value)


# ------------------------------------------------------------------
# Data model
# ------------------------------------------------------------------


@dataclass
class ProjectSettings:
    """Indexing settings of one project.

    Attributes:
        chunk_size: Target chunk size in tokens (~4 characters per token).
        chunk_overlap: Overlap between neighbouring chunks, as a fraction.
        strategies: Strategy configs; None or no enabled entry means legacy
            single-table mode.
        fusion_method: Project default fusion (``rrf`` / ``weighted_score``).
    """

    chunk_size: int = 512
    chunk_overlap: float = 0.10
    strategies: list[StrategyConfig] | None = None
    fusion_method: str | None = None

    @property
    def enabled_strategies(self) -> list[StrategyConfig]:
        return [s for s in self.strategies or [] if s.enabled]

    @property
    def is_multi_strategy(self) -> bool:
        return bool(self.enabled_strategies)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"chunkSize": self.chunk_size, "chunkOverlap": self.chunk_overlap}
        if self.strategies is not None:
            data["strategies"] = [s.to_dict() for s in self.strategies]
        if self.fusion_method:
            data["fusionMethod"] = self.fusion_method
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectSettings:
        strategies = data.get("strategies")
        return cls(
            chunk_size=int(data.get("chunkSize", 512)),
            chunk_overlap=float(data.get("chunkOverlap", 0.10)),
            strategies=(
                [StrategyConfig.from_dict(s) for s in strategies] if strategies is not None else None
            ),
            fusion_method=data.get("fusionMethod"),
        )


@dataclass
class DocumentRecord:
    path: str
    name: str
    size: int
    mime_type: str
    status: str = STATUS_PENDING
    chunk_count: int = 0
    last_modified: str = ""
    indexed_at: str | None = None
    error: str | None = None
    summary: str | None = None

    def is_stale(self) -> bool:
        """True when the document has to be (re-)indexed."""
        if self.status != STATUS_INDEXED or not self.indexed_at:
            return True
        if not self.last_modified:
            return False
        return parse_iso(self.last_modified) > parse_iso(self.indexed_at)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "name": self.name,
            "size": self.size,
            "mimeType": self.mime_type,
            "status": self.status,
            "chunkCount": self.chunk_count,
            "lastModified": self.last_modified,
        }
        if self.indexed_at:
            data["indexedAt"] = self.indexed_at
        if self.status == STATUS_FAILED:
            data["error"] = self.error or "unknown error"
        if self.summary:
            data["summary"] = self.summary
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DocumentRecord:
        path = normalize_relpath(data["path"])
        status = data.get("status", STATUS_PENDING)
        if status not in DOCUMENT_STATUSES:
            status = STATUS_PENDING
        return cls(
            path=path,
            name=data.get("name") or PurePosixPath(path).name,
            size=int(data.get("size", 0)),
            mime_type=data.get("mimeType", "application/octet-stream"),
            status=status,
            chunk_count=int(data.get("chunkCount", 0)),
            last_modified=_valid_timestamp(path, "lastModified", data.get("lastModified")) or "",
            indexed_at=_valid_timestamp(path, "indexedAt", data.get("indexedAt")),
            error=data.get("error") if status == STATUS_FAILED else None,
            summary=data.get("summary"),
        )


@dataclass
class Manifest:
    id: str
    created_at: str
    updated_at: str
    settings: ProjectSettings = field(default_factory=ProjectSettings)
    documents: dict[str, DocumentRecord] = field(default_factory=dict)
    vector_count: int = 0
    last_indexed_at: str | None = None
    summary: str | None = None

    @classmethod
    def new(cls, project_id: str, settings: ProjectSettings | None = None) -> Manifest:
        now = now_iso()
        return cls(
            id=project_id,
            created_at=now,
            updated_at=now,
            settings=settings or ProjectSettings(),
        )

    @property
    def indexed_count(self) -> int:
        return sum(1 for d in self.documents.values() if d.status == STATUS_INDEXED)

    def set_document(self, record: DocumentRecord) -> None:
        """Insert or replace *record*, keyed by its normalised relative path."""
        record.path = normalize_relpath(record.path)
        self.documents[record.path] = record

    def remove_document(self, relative_path: str) -> None:
        self.documents.pop(normalize_relpath(relative_path), None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "settings": self.settings.to_dict(),
            "documents": {path: doc.to_dict() for path, doc in self.documents.items()},
            "vectorCount": self.vector_count,
        }
        if self.last_indexed_at:
            data["lastIndexedAt"] = self.last_indexed_at
        if self.summary:
            data["summary"] = self.summary
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Manifest:
        manifest = cls(
            id=data["id"],
            created_at=data.get("createdAt") or now_iso(),
            updated_at=data.get("updatedAt") or data.get("createdAt") or now_iso(),
            settings=ProjectSettings.from_dict(data.get("settings") or {}),
            vector_count=int(data.get("vectorCount", 0)),
            last_indexed_at=data.get("lastIndexedAt"),
            summary=data.get("summary"),
        )
        for doc in (data.get("documents") or {}).values():
            manifest.set_document(DocumentRecord.from_dict(doc))
        return manifest


# ------------------------------------------------------------------
# Store
# ------------------------------------------------------------------


class ManifestStore:
    """Load and save project manifests under a projects root.

    Args:
        root: Directory holding one sub-directory per project.
        default_settings: Settings given to manifests created on first load.
    """

    def __init__(self, root: Path, default_settings: ProjectSettings | None = None) -> None:
        self._root = Path(root)
        self._default_settings = default_settings or ProjectSettings()

    def path_for(self, project_id: str) -> Path:
        return self._root / project_id / METADATA_DIR / MANIFEST_FILE

    def exists(self, project_id: str) -> bool:
        return self.path_for(project_id).is_file()

    def load(self, project_id: str) -> Manifest:
        """Return the manifest of *project_id*, creating and saving a default one if absent.

        A manifest that cannot be read or parsed is logged and replaced by a
        fresh one; the next index run then rebuilds the document records.
        """
        path = self.path_for(project_id)
        if path.is_file():
            try:
                return self._read(path, project_id)
            except ManifestLoadError as exc:
                logger.warning("%s; starting from a fresh manifest", exc)

        manifest = self.new_manifest(project_id)
        self.save(manifest)
        return manifest

    def new_manifest(self, project_id: str, settings: ProjectSettings | None = None) -> Manifest:
        base = settings or self._default_settings
        return Manifest.new(
            project_id,
            ProjectSettings(
                chunk_size=base.chunk_size,
                chunk_overlap=base.chunk_overlap,
                strategies=list(base.strategies) if base.strategies is not None else None,
                fusion_method=base.fusion_method,
            ),
        )

    def save(self, manifest: Manifest) -> None:
        """Atomically overwrite the manifest file of *manifest.id*."""
        path = self.path_for(manifest.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".manifest-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _read(self, path: Path, project_id: str) -> Manifest:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("manifest root is not an object")
            data.setdefault("id", project_id)
            return Manifest.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise ManifestLoadError(f"Failed to load manifest {path}: {exc}") from exc
