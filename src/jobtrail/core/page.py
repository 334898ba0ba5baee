"""Read-only page signal consumed by the detection pipeline.

The pipeline never touches HTML directly; it asks a ``PageSignal`` for
selector text, metadata tags, the document title, body text and the raw
JSON-LD blocks. ``HtmlPageSignal`` answers those questions from an HTML
string with BeautifulSoup, which is also how tests build fixtures.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from bs4 import BeautifulSoup

from .extract import extract_all_text_bs4, fetch_main_text
from .utils import normalize_whitespace


class PageSignal(Protocol):
    url: str

    def text_by_selector(self, selector: str) -> str: ...

    def attr_by_selector(self, selector: str, attr: str) -> str: ...

    def meta(self, key: str) -> str: ...

    def body_text(self) -> str: ...

    def main_text(self) -> str: ...

    def document_title(self) -> str: ...

    def structured_blocks(self) -> List[str]: ...


class HtmlPageSignal:
    def __init__(self, html: str, *, url: str = "") -> None:
        self.html = html or ""
        self.url = url or ""
        self.soup = BeautifulSoup(self.html, "html.parser")
        self._body_text: Optional[str] = None
        self._main_text: Optional[str] = None

    def text_by_selector(self, selector: str) -> str:
        node = self.soup.select_one(selector)
        if not node:
            return ""
        return normalize_whitespace(node.get_text(" ", strip=True))

    def attr_by_selector(self, selector: str, attr: str) -> str:
        node = self.soup.select_one(selector)
        if not node or not node.has_attr(attr):
            return ""
        return normalize_whitespace(str(node.get(attr) or ""))

    def meta(self, key: str) -> str:
        """Content of ``<meta name=key>`` or ``<meta property=key>``."""
        m = self.soup.find("meta", attrs={"property": key}) or self.soup.find(
            "meta", attrs={"name": key}
        )
        if not m:
            return ""
        return normalize_whitespace(str(m.get("content") or ""))

    def body_text(self) -> str:
        if self._body_text is None:
            self._body_text = normalize_whitespace(extract_all_text_bs4(self.html))
        return self._body_text

    def main_text(self) -> str:
        if self._main_text is None:
            self._main_text = fetch_main_text(self.html)
        return self._main_text

    def document_title(self) -> str:
        t = self.soup.title
        if not t:
            return ""
        return normalize_whitespace(t.get_text(" ", strip=True))

    def structured_blocks(self) -> List[str]:
        blocks: List[str] = []
        for s in self.soup.find_all("script", attrs={"type": "application/ld+json"}):
            raw = (s.string or s.get_text() or "").strip()
            if raw:
                blocks.append(raw)
        return blocks


def is_empty_signal(page: PageSignal) -> bool:
    return not (
        page.structured_blocks()
        or page.document_title()
        or page.body_text()
        or page.meta("og:title")
        or page.meta("twitter:title")
    )
