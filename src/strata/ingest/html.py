"""HTML chunker — strip markup, convert to text, then fixed-window split."""

from __future__ import annotations

import html2text
from bs4 import BeautifulSoup

from strata.db.models import DocumentChunk
from strata.ingest.base import BaseChunker

_h2t = html2text.HTML2Text()
_h2t.ignore_links = True
_h2t.ignore_images = True
_h2t.body_width = 0


class HtmlChunker(BaseChunker):
    """Chunk a local HTML file.

    ``script``/``style``/``nav``/``footer``/``head`` are removed before the
    html2text conversion. The page ``<title>`` (if any) goes into metadata.
    """

    def chunk(self, document_path: str, content: str, path: str = "") -> list[DocumentChunk]:
        if not content.strip():
            return []
        text, title = self._to_plain_text(content)
        if not text.strip():
            return []
        metadata = {"title": title} if title else None
        return self._make_chunks(document_path, self._split_fixed_window(text), metadata=metadata)

    @staticmethod
    def _to_plain_text(content: str) -> tuple[str, str]:
        soup = BeautifulSoup(content, "html.parser")
        title = soup.title.get_text(strip=True) if soup.title else ""
        for tag in soup.find_all(["script", "style", "nav", "footer", "head"]):
            tag.decompose()
        return _h2t.handle(str(soup)).strip(), title
