"""Incremental project indexing.

One run of ``Indexer.index_project``::

    lock → load manifest → scan documents/ → resolve strategies
         → (force: clear tables + documents) → detect changes → started
         → purge removed → drop vectors of changed docs
         → per new/changed doc: processing → chunk → summary → embed + write
         → collection summary → vectorCount → save manifest → completed

Any exception escaping the per-document handler emits an ``error`` event and
is re-raised. The per-project lock is always released.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from strata.changes import detect_changes
from strata.db.models import DocumentChunk, VectorRecord, vector_record_id
from strata.db.store import VectorStore
from strata.db.vectors import LEGACY_TABLE, strategy_table_id
from strata.errors import AlreadyIndexingError, DocumentIndexError
from strata.ingest.loader import SourceFile, get_mime_type, load_and_chunk, scan_documents
from strata.ingest.summarizer import DocumentSummarizer
from strata.manifest import (
    STATUS_FAILED,
    STATUS_INDEXED,
    DocumentRecord,
    Manifest,
    ProjectSettings,
    now_iso,
)
from strata.progress import (
    COMPLETED,
    ERROR,
    PROCESSING,
    STARTED,
    IndexingProgress,
    ProgressEmitter,
)
from strata.rag.llm_client import Embedder, Summarizer
from strata.strategies.base import RetrievalStrategy
from strata.strategies.preprocessor import ChunkPreprocessor
from strata.strategies.registry import resolve_strategies
from strata.workspace import Workspace

logger = logging.getLogger(__name__)

# (file_path, relative_path, chunk_size, chunk_overlap) → ordered chunks
Chunker = Callable[..., list[DocumentChunk]]


class IndexLocks:
    """In-process, per-project index locks with acquire-or-reject semantics."""

    def __init__(self) -> None:
        self._held: set[str] = set()
        self._guard = threading.Lock()

    def is_held(self, project_id: str) -> bool:
        with self._guard:
            return project_id in self._held

    @contextmanager
    def hold(self, project_id: str) -> Iterator[None]:
        """Hold the lock of *project_id* for the duration of the block.

        Raises:
            AlreadyIndexingError: If the lock is already held.
        """
        with self._guard:
            if project_id in self._held:
                raise AlreadyIndexingError(project_id)
            self._held.add(project_id)
        try:
            yield
        finally:
            with self._guard:
                self._held.discard(project_id)


@dataclass
class IndexReport:
    """Outcome of one index run."""

    project_id: str
    new: int = 0
    changed: int = 0
    removed: int = 0
    unchanged: int = 0
    indexed: int = 0
    failed: list[str] = field(default_factory=list)
    vector_count: int = 0
    strategies: list[str] = field(default_factory=list)

    @property
    def multi_strategy(self) -> bool:
        return bool(self.strategies)


@dataclass
class _RunState:
    total: int = 0
    processed: int = 0


class Indexer:
    """Keep a project's vector tables in sync with its ``documents/`` folder.

    Args:
        workspace: Projects root (manifests and vector stores).
        embedder: Embedding collaborator; its failures fail the document.
        summarizer: LLM collaborator for summaries and LLM strategies. None
            disables both.
        emitter: Progress event sink. A private one is created when omitted.
        chunker: ``load_and_chunk`` compatible callable.
        generate_summaries: Generate document and collection summaries.
    """

    def __init__(
        self,
        workspace: Workspace,
        embedder: Embedder,
        summarizer: Summarizer | None = None,
        *,
        emitter: ProgressEmitter | None = None,
        chunker: Chunker = load_and_chunk,
        generate_summaries: bool = True,
    ) -> None:
        self.workspace = workspace
        self.embedder = embedder
        self.summarizer = summarizer
        self.emitter = emitter or ProgressEmitter()
        self._chunker = chunker
        self._doc_summarizer = (
            DocumentSummarizer(summarizer) if summarizer is not None and generate_summaries else None
        )
        self._locks = IndexLocks()

    def is_indexing(self, project_id: str) -> bool:
        return self._locks.is_held(project_id)

    def index_project(self, project_id: str, force: bool = False) -> IndexReport:
        """Index new and changed documents of *project_id* and purge removed ones.

        Args:
            project_id: Directory name under the workspace root.
            force: Drop every vector table and re-index all documents.

        Raises:
            AlreadyIndexingError: If this project is already being indexed.
            ProjectNotFoundError: If the project directory does not exist.
        """
        with self._locks.hold(project_id):
            self.workspace.require_project(project_id)
            state = _RunState()
            try:
                return self._run(project_id, force, state)
            except Exception as exc:
                logger.error("Indexing %s failed: %s", project_id, exc)
                self._emit(project_id, ERROR, state, error=str(exc) or type(exc).__name__)
                raise

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def _run(self, project_id: str, force: bool, state: _RunState) -> IndexReport:
        manifest = self.workspace.manifests.load(project_id)
        files = scan_documents(self.workspace.documents_path(project_id))
        store = self.workspace.store(project_id)

        strategies = resolve_strategies(manifest.settings.strategies, self.summarizer)
        table_ids = (
            [strategy_table_id(s.id) for s in strategies] if strategies else [LEGACY_TABLE]
        )
        if strategies:
            logger.info("%s: multi-strategy mode (%s)", project_id, ", ".join(s.id for s in strategies))

        if force:
            logger.info("%s: force re-index, clearing all vector tables", project_id)
            store.clear_all()
            manifest.documents = {}

        changes = detect_changes(manifest.documents, files)
        state.total = changes.total
        logger.info(
            "%s: %s index: %d new, %d changed, %d unchanged, %d removed",
            project_id,
            "force" if force else "incremental",
            len(changes.new), len(changes.changed), changes.unchanged, len(changes.removed),
        )
        self._emit(project_id, STARTED, state)

        for relative_path in changes.removed:
            for table_id in table_ids:
                store.delete_by_document(relative_path, table_id)
            manifest.remove_document(relative_path)
            state.processed += 1

        # New documents too: a crashed earlier run may have left rows behind
        for source in changes.to_index:
            for table_id in table_ids:
                store.delete_by_document(source.relative_path, table_id)

        report = IndexReport(
            project_id=project_id,
            new=len(changes.new),
            changed=len(changes.changed),
            removed=len(changes.removed),
            unchanged=changes.unchanged,
            strategies=[s.id for s in strategies] if strategies else [],
        )

        preprocessor = ChunkPreprocessor(strategies, self.summarizer) if strategies else None

        for source in changes.to_index:
            self._emit(project_id, PROCESSING, state, current_document=source.relative_path)
            if preprocessor is not None:
                preprocessor.clear_cache()
            try:
                record = self._index_document(
                    project_id, source, manifest.settings, store, strategies, preprocessor
                )
                report.indexed += 1
            except Exception as exc:
                error = DocumentIndexError(source.relative_path, str(exc) or type(exc).__name__)
                logger.error("Error indexing %s", error, exc_info=exc)
                record = _document_record(source, STATUS_FAILED, error=str(exc) or type(exc).__name__)
                report.failed.append(source.relative_path)
            manifest.set_document(record)
            state.processed += 1

        if self._doc_summarizer is not None and not changes.is_empty:
            self._update_collection_summary(manifest)

        if strategies:
            manifest.vector_count = store.get_total_vector_count()
        else:
            manifest.vector_count = store.get_vector_count(LEGACY_TABLE)
        report.vector_count = manifest.vector_count

        finished = now_iso()
        manifest.last_indexed_at = finished
        manifest.updated_at = finished
        self.workspace.manifests.save(manifest)

        logger.info(
            "%s: indexed %d, failed %d, removed %d, %d vectors",
            project_id, report.indexed, len(report.failed), report.removed, report.vector_count,
        )
        self._emit(project_id, COMPLETED, state)
        return report

    def _index_document(
        self,
        project_id: str,
        source: SourceFile,
        settings: ProjectSettings,
        store: VectorStore,
        strategies: list[RetrievalStrategy] | None,
        preprocessor: ChunkPreprocessor | None,
    ) -> DocumentRecord:
        chunks = self._chunker(
            source.path,
            source.relative_path,
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
        )

        summary = None
        if self._doc_summarizer is not None:
            summary = self._doc_summarizer.summarize_document(source.relative_path, chunks)

        if strategies:
            assert preprocessor is not None
            batches: dict[str, list[VectorRecord]] = {s.id: [] for s in strategies}
            for chunk in chunks:
                preprocessed = preprocessor.process(chunk.text) if preprocessor.is_active else None
                for strategy in strategies:
                    text = strategy.prepare_chunk_text(chunk, preprocessed)
                    batches[strategy.id].append(
                        _vector_record(project_id, source, chunk, self.embedder.embed(text))
                    )
            for strategy_id, records in batches.items():
                store.add_vectors(records, strategy_table_id(strategy_id))
        else:
            records = [
                _vector_record(project_id, source, chunk, self.embedder.embed(chunk.text))
                for chunk in chunks
            ]
            store.add_vectors(records, LEGACY_TABLE)

        return _document_record(source, STATUS_INDEXED, chunk_count=len(chunks), summary=summary)

    def _update_collection_summary(self, manifest: Manifest) -> None:
        assert self._doc_summarizer is not None
        summaries = {doc.name: doc.summary for doc in manifest.documents.values() if doc.summary}
        summary = self._doc_summarizer.summarize_collection(summaries)
        if summary:
            manifest.summary = summary

    def _emit(
        self,
        project_id: str,
        status: str,
        state: _RunState,
        current_document: str | None = None,
        error: str | None = None,
    ) -> None:
        self.emitter.emit(
            IndexingProgress(
                project_id=project_id,
                status=status,
                total_documents=state.total,
                processed_documents=state.processed,
                current_document=current_document,
                error=error,
            )
        )


# ------------------------------------------------------------------
# Record builders
# ------------------------------------------------------------------


def _vector_record(
    project_id: str, source: SourceFile, chunk: DocumentChunk, vector: list[float]
) -> VectorRecord:
    return VectorRecord(
        id=vector_record_id(project_id, source.relative_path, chunk.chunk_index),
        document_path=source.relative_path,
        text=chunk.text,
        vector=vector,
        chunk_index=chunk.chunk_index,
        content_type=chunk.content_type,
        metadata=dict(chunk.metadata),
    )


def _document_record(
    source: SourceFile,
    status: str,
    chunk_count: int = 0,
    summary: str | None = None,
    error: str | None = None,
) -> DocumentRecord:
    return DocumentRecord(
        path=source.relative_path,
        name=Path(source.relative_path).name,
        size=source.size,
        mime_type=get_mime_type(source.relative_path),
        status=status,
        chunk_count=chunk_count,
        last_modified=source.modified,
        indexed_at=now_iso() if status == STATUS_INDEXED else None,
        error=error,
        summary=summary,
    )
