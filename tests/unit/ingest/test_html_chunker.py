"""Tests for HtmlChunker."""

from __future__ import annotations

from strata.ingest.html import HtmlChunker

PAGE = """<html>
<head><title>Lighting Guide</title><style>body { color: red; }</style></head>
<body>
<nav>Home | About</nav>
<h1>DMX basics</h1>
<p>DMX512 carries 512 channels per universe.</p>
<script>console.log("tracking");</script>
<footer>Copyright</footer>
</body>
</html>"""


def test_html_empty():
    assert HtmlChunker().chunk("a.html", "") == []


def test_html_strips_markup_and_boilerplate():
    [chunk] = HtmlChunker().chunk("a.html", PAGE)
    assert "DMX512 carries 512 channels" in chunk.text
    assert "<p>" not in chunk.text
    assert "tracking" not in chunk.text
    assert "color: red" not in chunk.text
    assert "Home | About" not in chunk.text
    assert "Copyright" not in chunk.text


def test_html_title_in_metadata():
    [chunk] = HtmlChunker().chunk("a.html", PAGE)
    assert chunk.metadata == {"title": "Lighting Guide"}


def test_html_without_title_has_no_metadata():
    [chunk] = HtmlChunker().chunk("a.html", "<p>Just a paragraph.</p>")
    assert chunk.metadata == {}


def test_html_only_boilerplate_returns_empty():
    assert HtmlChunker().chunk("a.html", "<script>x()</script><style>p{}</style>") == []
