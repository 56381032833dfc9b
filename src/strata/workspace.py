"""Projects root: project layout on disk, catalogue, per-project vector stores.

Layout of one project::

    <root>/<project_id>/
        documents/            source files (any depth)
        .strata/manifest.json indexing state
        .strata/index.db      sqlite-vec vector tables
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from strata.db.store import VectorStore
from strata.errors import ProjectExistsError, ProjectNotFoundError
from strata.ingest.loader import get_mime_type, scan_documents
from strata.manifest import (
    METADATA_DIR,
    STATUS_PENDING,
    DocumentRecord,
    Manifest,
    ManifestStore,
    ProjectSettings,
)
from strata.strategies.base import StrategyConfig

logger = logging.getLogger(__name__)

DOCUMENTS_DIR = "documents"
INDEX_DB = "index.db"


def format_project_name(project_id: str) -> str:
    """``my-docs`` → ``My Docs``."""
    words = project_id.replace("_", "-").split("-")
    return " ".join(w[:1].upper() + w[1:] for w in words if w)


def validate_project_id(project_id: str) -> str:
    """Return *project_id* if it names a single visible directory.

    Raises:
        ValueError: If the id is empty, hidden, or contains a path separator.
    """
    if not project_id or project_id in (".", ".."):
        raise ValueError("project id must not be empty")
    if "/" in project_id or "\\" in project_id:
        raise ValueError(f"project id must not contain path separators: '{project_id}'")
    if project_id.startswith("."):
        raise ValueError(f"project id must not start with '.': '{project_id}'")
    return project_id


@dataclass
class ProjectInfo:
    id: str
    name: str
    path: Path
    document_count: int
    indexed_count: int
    vector_count: int
    settings: ProjectSettings
    created_at: str
    updated_at: str
    last_indexed_at: str | None = None
    summary: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "path": str(self.path),
            "documentCount": self.document_count,
            "indexedCount": self.indexed_count,
            "vectorCount": self.vector_count,
            "settings": self.settings.to_dict(),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.last_indexed_at:
            data["lastIndexedAt"] = self.last_indexed_at
        if self.summary:
            data["summary"] = self.summary
        return data


@dataclass
class ProjectDetails(ProjectInfo):
    documents: list[DocumentRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["documents"] = [d.to_dict() for d in self.documents]
        return data


class Workspace:
    """Everything that lives under one projects root.

    Vector stores are opened lazily and cached per project; call ``close()``
    when done.
    """

    def __init__(self, root: Path, default_settings: ProjectSettings | None = None) -> None:
        self.root = Path(root)
        self.manifests = ManifestStore(self.root, default_settings)
        self._stores: dict[str, VectorStore] = {}
        self._stores_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def project_path(self, project_id: str) -> Path:
        return self.root / validate_project_id(project_id)

    def documents_path(self, project_id: str) -> Path:
        return self.project_path(project_id) / DOCUMENTS_DIR

    def index_path(self, project_id: str) -> Path:
        return self.project_path(project_id) / METADATA_DIR / INDEX_DB

    def require_project(self, project_id: str) -> Path:
        """Return the project directory.

        Raises:
            ProjectNotFoundError: If the directory does not exist.
        """
        try:
            path = self.project_path(project_id)
        except ValueError as exc:
            raise ProjectNotFoundError(project_id) from exc
        if not path.is_dir():
            raise ProjectNotFoundError(project_id)
        return path

    # ------------------------------------------------------------------
    # Vector stores
    # ------------------------------------------------------------------

    def store(self, project_id: str) -> VectorStore:
        """Return the (cached) vector store of *project_id*, opening it on first use."""
        with self._stores_lock:
            store = self._stores.get(project_id)
            if store is None:
                store = VectorStore.open(self.index_path(project_id))
                self._stores[project_id] = store
            return store

    def close(self) -> None:
        with self._stores_lock:
            for store in self._stores.values():
                store.close()
            self._stores.clear()

    def __enter__(self) -> Workspace:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Catalogue
    # ------------------------------------------------------------------

    def create_project(
        self,
        project_id: str,
        strategies: list[StrategyConfig] | None = None,
        fusion_method: str | None = None,
    ) -> Manifest:
        """Create the project folders and its initial manifest.

        Raises:
            ProjectExistsError: If the project already has a manifest.
            ValueError: If *project_id* is not a valid directory name.
        """
        validate_project_id(project_id)
        if self.manifests.exists(project_id):
            raise ProjectExistsError(project_id)

        self.documents_path(project_id).mkdir(parents=True, exist_ok=True)
        manifest = self.manifests.new_manifest(project_id)
        if strategies is not None:
            manifest.settings.strategies = list(strategies)
        if fusion_method is not None:
            manifest.settings.fusion_method = fusion_method
        self.manifests.save(manifest)
        logger.info("Created project %s at %s", project_id, self.project_path(project_id))
        return manifest

    def list_projects(self) -> list[ProjectInfo]:
        """Every project under the root, sorted by display name.

        Hidden directories are skipped. A project folder without
        ``documents/`` gets one created.
        """
        if not self.root.is_dir():
            return []

        projects: list[ProjectInfo] = []
        for entry in sorted(self.root.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            try:
                projects.append(self._project_info(entry.name))
            except OSError as exc:
                logger.warning("Skipping project %s: %s", entry.name, exc)
        return sorted(projects, key=lambda p: p.name.lower())

    def project_details(self, project_id: str) -> ProjectDetails:
        """Project info plus one record per file on disk.

        Files the manifest does not know yet are reported as ``pending``;
        size and mtime always come from disk.

        Raises:
            ProjectNotFoundError: If the project directory does not exist.
        """
        self.require_project(project_id)
        info = self._project_info(project_id)
        manifest = self.manifests.load(project_id)

        documents: list[DocumentRecord] = []
        for source in scan_documents(self.documents_path(project_id)):
            existing = manifest.documents.get(source.relative_path)
            documents.append(
                DocumentRecord(
                    path=source.relative_path,
                    name=source.path.name,
                    size=source.size,
                    mime_type=get_mime_type(source.relative_path),
                    status=existing.status if existing else STATUS_PENDING,
                    chunk_count=existing.chunk_count if existing else 0,
                    last_modified=source.modified,
                    indexed_at=existing.indexed_at if existing else None,
                    error=existing.error if existing else None,
                    summary=existing.summary if existing else None,
                )
            )

        return ProjectDetails(**vars(info), documents=documents)

    def _project_info(self, project_id: str) -> ProjectInfo:
        docs_path = self.documents_path(project_id)
        docs_path.mkdir(parents=True, exist_ok=True)
        manifest = self.manifests.load(project_id)

        return ProjectInfo(
            id=manifest.id,
            name=format_project_name(project_id),
            path=self.project_path(project_id),
            document_count=len(scan_documents(docs_path)),
            indexed_count=manifest.indexed_count,
            vector_count=manifest.vector_count,
            settings=manifest.settings,
            created_at=manifest.created_at,
            updated_at=manifest.updated_at,
            last_indexed_at=manifest.last_indexed_at,
            summary=manifest.summary,
        )
