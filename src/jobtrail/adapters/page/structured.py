from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from ...core.logging import log_event
from ...core.schema import SOURCE_STRUCTURED, ExtractionResult
from ...core.utils import normalize_whitespace, preview, try_parse_json

STRUCTURED_CONFIDENCE = 0.95
JOB_POSTING_TYPES = {"jobposting"}


def _iter_jsonld_objects(raw: Any) -> Iterable[Dict[str, Any]]:
    """Yield every object in document order, descending into ``@graph`` containers."""
    if isinstance(raw, list):
        for n in raw:
            yield from _iter_jsonld_objects(n)
        return
    if not isinstance(raw, dict):
        return
    yield raw
    graph = raw.get("@graph")
    if isinstance(graph, (list, dict)):
        yield from _iter_jsonld_objects(graph)


def _is_job_posting(obj: Dict[str, Any]) -> bool:
    t = obj.get("@type") or obj.get("type")
    if isinstance(t, list):
        return any(str(x).strip().lower() in JOB_POSTING_TYPES for x in t)
    return str(t or "").strip().lower() in JOB_POSTING_TYPES


def _text(value: Any) -> str:
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return normalize_whitespace(str(value))
    return ""


def _company(obj: Dict[str, Any]) -> str:
    org = obj.get("hiringOrganization")
    if isinstance(org, list):
        org = org[0] if org else None
    if isinstance(org, str):
        return normalize_whitespace(org)
    if isinstance(org, dict):
        return _text(org.get("name")) or _text(org.get("legalName"))
    return ""


def _country(value: Any) -> str:
    if isinstance(value, dict):
        return _text(value.get("name"))
    return _text(value)


def _location(obj: Dict[str, Any]) -> str:
    loc = obj.get("jobLocation")
    if isinstance(loc, list):
        loc = loc[0] if loc else None
    if not isinstance(loc, dict):
        return ""
    addr = loc.get("address")
    if isinstance(addr, list):
        addr = addr[0] if addr else None
    if isinstance(addr, str):
        return normalize_whitespace(addr)
    if not isinstance(addr, dict):
        return ""
    parts = [
        _text(addr.get("addressLocality")),
        _text(addr.get("addressRegion")),
        _country(addr.get("addressCountry")),
    ]
    return ", ".join(p for p in parts if p)


def _first_job_posting(raw_blocks: Sequence[str]) -> Optional[Dict[str, Any]]:
    for idx, raw in enumerate(raw_blocks or []):
        data = try_parse_json((raw or "").strip())
        if data is None:
            log_event("structured_block_skipped", block=idx, preview=preview(raw or "", 120))
            continue
        for obj in _iter_jsonld_objects(data):
            if _is_job_posting(obj):
                return obj
    return None


def parse_structured(raw_blocks: Sequence[str]) -> Optional[ExtractionResult]:
    """First JobPosting found across all JSON-LD blocks, in document order.

    Malformed blocks are skipped. Returns None when nothing matches. A match
    with at least one field carries confidence 0.95; an entirely empty match
    carries 0.0 so the caller can fall back to heuristics.
    """
    obj = _first_job_posting(raw_blocks)
    if obj is None:
        return None
    result = ExtractionResult(
        job_title=_text(obj.get("title")),
        company=_company(obj),
        location=_location(obj),
        source=SOURCE_STRUCTURED,
    )
    result.confidence = STRUCTURED_CONFIDENCE if result.has_any_field() else 0.0
    return result
