from __future__ import annotations

import html as _html
import re

EMAIL_TOKEN = "[REDACTED_EMAIL]"
PHONE_TOKEN = "[REDACTED_PHONE]"

RE_EMAIL = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
# 10+ digits, separators limited to whitespace, punctuation and parentheses.
RE_PHONE = re.compile(r"\+?\(?\d(?:[\s().\-/]*\d){9,}")

RE_MULTI_SPACE = re.compile(r"[ \t\r\f\v]+")
RE_MULTI_NEWLINE = re.compile(r"\n\s*\n+")
RE_REPEAT_PUNCT = re.compile(r"([.!?])\1+")

JUNK_HINTS = [
    "cookie",
    "privacy policy",
    "terms of use",
    "all rights reserved",
    "accept cookies",
    "javascript",
]


def sanitize(text: str | None) -> str:
    """Redact email addresses and phone numbers.

    Idempotent: neither redaction token contains digits or ``@``, so a second
    pass finds nothing new.
    """
    if not text:
        return ""
    if not isinstance(text, str):
        text = str(text)
    text = RE_EMAIL.sub(EMAIL_TOKEN, text)
    return RE_PHONE.sub(PHONE_TOKEN, text)


def clean_text_for_llm(text: str) -> str:
    if not text:
        return ""

    text = _html.unescape(text)
    text = RE_MULTI_SPACE.sub(" ", text)
    text = RE_REPEAT_PUNCT.sub(r"\1", text)

    # drop short boilerplate lines (cookie banners, footers)
    kept = []
    for line in RE_MULTI_NEWLINE.split(text):
        line = " ".join(line.split())
        if not line:
            continue
        low = line.lower()
        if len(line) < 120 and any(h in low for h in JUNK_HINTS):
            continue
        kept.append(line)
    return "\n".join(kept).strip()


def truncate_text(text: str, max_chars: int) -> str:
    if not text:
        return ""
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text

    cut = text[:max_chars]
    for sep in [". ", "\n", "; ", ", "]:
        idx = cut.rfind(sep)
        if idx > max_chars * 0.7:
            return cut[: idx + len(sep)].strip()
    return cut.strip()
