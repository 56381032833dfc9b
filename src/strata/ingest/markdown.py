"""Markdown chunker — heading-aware splits with fixed-window fallback."""

from __future__ import annotations

import re
from dataclasses import dataclass

from strata.db.models import DocumentChunk
from strata.ingest.base import BaseChunker

# H1..H3 at line start; group 1 is the level marker, group 2 the title.
_HEADING_RE = re.compile(r"^(#{1,3}) +(.+?)\s*#*\s*$", re.MULTILINE)


@dataclass
class _Section:
    text: str
    trail: list[str]


class MarkdownChunker(BaseChunker):
    """Split Markdown on H1/H2/H3 heading boundaries.

    Every section starts at a heading and runs to the next one; text before
    the first heading is its own section. Sections over ``chunk_size``
    tokens are windowed. Each chunk records its heading trail in
    ``metadata["section"]`` (``"Title > Setup"``), absent for the preamble.

    A document without any H1/H2/H3 heading is windowed as plain text.
    """

    def chunk(self, document_path: str, content: str, path: str = "") -> list[DocumentChunk]:
        if not content.strip():
            return []

        sections = self._sections(content)
        if not sections:
            return self._make_chunks(document_path, self._split_fixed_window(content))

        chunks: list[DocumentChunk] = []
        for section in sections:
            if self.count_tokens(section.text) <= self.chunk_size:
                pieces = [section.text]
            else:
                pieces = self._split_fixed_window(section.text)
            metadata = {"section": " > ".join(section.trail)} if section.trail else {}
            for piece in pieces:
                chunks.append(
                    DocumentChunk(
                        document_path=document_path,
                        chunk_index=len(chunks),
                        text=piece,
                        content_type=self.content_type,
                        metadata=dict(metadata),
                    )
                )
        return chunks

    def _sections(self, content: str) -> list[_Section]:
        matches = list(_HEADING_RE.finditer(content))
        if not matches:
            return []

        sections: list[_Section] = []
        preamble = content[: matches[0].start()].strip()
        if preamble:
            sections.append(_Section(preamble, []))

        # trail[level - 1] holds the current heading at that level
        trail: list[str] = []
        for i, match in enumerate(matches):
            level = len(match.group(1))
            trail = trail[: level - 1] + [match.group(2).strip()]
            end = matches[i + 1].start() if i + 1 < len(matches) else len(content)
            text = content[match.start():end].strip()
            if text:
                sections.append(_Section(text, list(trail)))
        return sections
