from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


@dataclass
class HttpClient:
    """Shared requests session for page fetches and the remote extraction call.

    ``retries=0`` disables urllib3 retries entirely; the remote extraction
    client is built that way so a failing endpoint degrades on the first try.
    """

    user_agent: str
    timeout_sec: int = 20
    retries: int = 3

    def __post_init__(self) -> None:
        self.session = requests.Session()
        retry = Retry(
            total=self.retries,
            read=self.retries,
            connect=self.retries,
            backoff_factor=0.8,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("GET", "HEAD", "POST"),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _headers(self, extra: Optional[dict]) -> dict:
        h = {"User-Agent": self.user_agent}
        if extra:
            h.update(extra)
        return h

    def get(self, url: str, *, headers: Optional[dict] = None) -> requests.Response:
        return self.session.get(url, headers=self._headers(headers), timeout=self.timeout_sec)

    def post_json(
        self, url: str, *, payload: Any, headers: Optional[dict] = None
    ) -> requests.Response:
        h = self._headers({"Content-Type": "application/json", **(headers or {})})
        return self.session.post(url, json=payload, headers=h, timeout=self.timeout_sec)

    def fetch_page(self, url: str) -> Tuple[str, str]:
        """Return ``(html, final_url)``; retries once with browser-like headers."""
        last_exc: Optional[Exception] = None
        for extra in (None, BROWSER_HEADERS):
            try:
                resp = self.get(url, headers=extra)
                resp.raise_for_status()
            except requests.RequestException as ex:
                last_exc = ex
                continue
            resp.encoding = resp.encoding or "utf-8"
            return resp.text, resp.url or url
        assert last_exc is not None
        raise last_exc
