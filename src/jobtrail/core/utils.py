from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Optional


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


def normalize_whitespace(text: str) -> str:
    return " ".join((text or "").split()).strip()


def clamp(text: Any, max_chars: int) -> str:
    """Whitespace-normalized string cut to at most ``max_chars`` characters."""
    if text is None:
        return ""
    if not isinstance(text, str):
        text = str(text)
    return normalize_whitespace(text)[:max_chars].strip()


def within(text: str, max_chars: int) -> str:
    """Return ``text`` only when it is non-empty and no longer than ``max_chars``."""
    if text and len(text) <= max_chars:
        return text
    return ""


def try_parse_json(text: Any) -> Optional[Any]:
    if not isinstance(text, (str, bytes, bytearray)):
        return None
    try:
        return json.loads(text)
    except (ValueError, TypeError):
        return None


def preview(text: str, limit: int = 240) -> str:
    if not text:
        return ""
    t = text.replace("\n", "\\n")
    if len(t) <= limit:
        return t
    return t[:limit] + "…"

