import sys
from pathlib import Path

import pytest

# Allow running the suite from a checkout without installing the package.
root_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root_dir / "src"))

from jobtrail.core.page import HtmlPageSignal


def make_page(head: str = "", body: str = "", *, url: str = "https://jobs.example.com/123"):
    html = f"<html><head>{head}</head><body>{body}</body></html>"
    return HtmlPageSignal(html, url=url)


@pytest.fixture
def page_factory():
    """Build an HtmlPageSignal from head/body fragments."""
    return make_page


@pytest.fixture
def jsonld():
    """Wrap a JSON string in an ld+json script tag."""

    def _wrap(raw: str) -> str:
        return f'<script type="application/ld+json">{raw}</script>'

    return _wrap
