"""Indexing progress events and a minimal subscriber list."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from strata.manifest import now_iso

logger = logging.getLogger(__name__)

STARTED = "started"
PROCESSING = "processing"
COMPLETED = "completed"
ERROR = "error"


@dataclass(frozen=True)
class IndexingProgress:
    project_id: str
    status: str
    total_documents: int
    processed_documents: int
    current_document: str | None = None
    error: str | None = None
    timestamp: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "projectId": self.project_id,
            "status": self.status,
            "totalDocuments": self.total_documents,
            "processedDocuments": self.processed_documents,
            "timestamp": self.timestamp,
        }
        if self.current_document is not None:
            data["currentDocument"] = self.current_document
        if self.error is not None:
            data["error"] = self.error
        return data


ProgressCallback = Callable[[IndexingProgress], None]


class ProgressEmitter:
    """Deliver progress events to subscribers in emission order.

    Subscribers are called synchronously on the indexing thread. An exception
    raised by a subscriber is logged and does not interrupt indexing.
    """

    def __init__(self) -> None:
        self._subscribers: list[ProgressCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register *callback*; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: ProgressCallback) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def emit(self, event: IndexingProgress) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception("Progress subscriber failed on %s event", event.status)
