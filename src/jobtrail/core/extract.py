from __future__ import annotations

import trafilatura
from bs4 import BeautifulSoup


def extract_all_text_bs4(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    root = soup.body or soup
    return root.get_text("\n", strip=True)


def fetch_main_text(html: str, *, min_len: int = 200) -> str:
    """Main readable text of a page, used for the remote extraction payload."""
    if not html:
        return ""

    # 1) readability-style extraction
    extracted = trafilatura.extract(
        html,
        output_format="txt",
        include_comments=False,
        include_tables=True,
    )
    if extracted and len(extracted.strip()) >= min_len:
        return extracted.strip()

    # 2) noisy fallback
    return extract_all_text_bs4(html)
