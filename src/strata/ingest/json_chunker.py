"""JSON chunker — object-based splits for arrays and flat dicts."""

from __future__ import annotations

import json
from typing import Any

from strata.db.models import DocumentChunk
from strata.ingest.base import BaseChunker


class JsonChunker(BaseChunker):
    """Split a JSON document into chunks.

    Supported top-level shapes:
    - **Array**: each item serialised to JSON is a candidate segment;
      adjacent items are grouped until ``chunk_size`` tokens is exceeded.
      Chunk metadata carries the item range (``{"items": "0-4"}``).
    - **Object**: each top-level pair is serialised as ``"key": value`` and
      grouped the same way. Metadata lists the keys (``{"keys": "a, b"}``).
    - **Scalar**: a single chunk.

    Invalid JSON falls back to the plain-text fixed window.
    """

    def chunk(self, document_path: str, content: str, path: str = "") -> list[DocumentChunk]:
        if not content.strip():
            return []

        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            return self._make_chunks(document_path, self._split_fixed_window(content))

        return [
            DocumentChunk(
                document_path=document_path,
                chunk_index=i,
                text=text,
                content_type=self.content_type,
                metadata=metadata,
            )
            for i, (text, metadata) in enumerate(self._segment(data))
        ]

    def _segment(self, data: object) -> list[tuple[str, dict[str, Any]]]:
        if isinstance(data, list):
            items = [(str(i), json.dumps(item, ensure_ascii=False)) for i, item in enumerate(data)]
            return [
                (text, {"items": labels[0] if len(labels) == 1 else f"{labels[0]}-{labels[-1]}"})
                for text, labels in self._group(items)
            ]
        if isinstance(data, dict):
            pairs = [(str(k), f'"{k}": {json.dumps(v, ensure_ascii=False)}') for k, v in data.items()]
            return [(text, {"keys": ", ".join(labels)}) for text, labels in self._group(pairs)]
        return [(json.dumps(data, ensure_ascii=False), {})]

    def _group(self, items: list[tuple[str, str]]) -> list[tuple[str, list[str]]]:
        """Pack ``(label, text)`` items into groups of at most chunk_size tokens.

        A single item larger than the budget becomes its own group.
        """
        groups: list[tuple[str, list[str]]] = []
        parts: list[str] = []
        labels: list[str] = []
        tokens = 0

        for label, text in items:
            size = self.count_tokens(text)
            if parts and tokens + size > self.chunk_size:
                groups.append(("\n".join(parts), labels))
                parts, labels, tokens = [], [], 0
            parts.append(text)
            labels.append(label)
            tokens += size

        if parts:
            groups.append(("\n".join(parts), labels))
        return [(text, labels) for text, labels in groups if text.strip()]
