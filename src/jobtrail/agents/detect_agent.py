from __future__ import annotations

from typing import Optional

from ..adapters.page.heuristic import LocatedFields, locate_fields
from ..adapters.page.structured import parse_structured
from ..core.config import DEFAULT_ESCALATION_THRESHOLD, DetectionSettings
from ..core.http import HttpClient
from ..core.logging import log_event
from ..core.page import PageSignal, is_empty_signal
from ..core.remote import extract_remote
from ..core.schema import (
    FIELD_NAMES,
    PAYLOAD_TEXT_MAX,
    SOURCE_HEURISTIC,
    SOURCE_MERGED,
    SOURCE_REMOTE,
    SOURCE_STRUCTURED,
    ExtractionResult,
    RemoteExtractionPayload,
    RemoteExtractionResponse,
)
from ..core.text_cleaner import clean_text_for_llm, sanitize, truncate_text

BASE_CONFIDENCE = 0.35
TITLE_WEIGHT = 0.25
COMPANY_WEIGHT = 0.25
LOCATION_WEIGHT = 0.15
HEURISTIC_CAP = 0.9

CONFIRMATION_PHRASES = (
    "application submitted",
    "application has been submitted",
    "thank you for applying",
    "thanks for applying",
    "we received your application",
    "we have received your application",
    "your application has been submitted",
    "your application has been received",
)


def score(fields: LocatedFields) -> float:
    """Heuristic confidence from field presence, in [0.35, 0.9]."""
    total = BASE_CONFIDENCE
    if fields.job_title:
        total += TITLE_WEIGHT
    if fields.company:
        total += COMPANY_WEIGHT
    if fields.location:
        total += LOCATION_WEIGHT
    return round(min(total, HEURISTIC_CAP), 2)


def looks_like_confirmation(body_text: str) -> bool:
    body = " ".join((body_text or "").split()).lower()
    if not body:
        return False
    return any(p in body for p in CONFIRMATION_PHRASES)


def should_escalate(
    result: ExtractionResult,
    remote_configured: bool,
    threshold: float = DEFAULT_ESCALATION_THRESHOLD,
) -> bool:
    if not remote_configured or result.source == SOURCE_STRUCTURED:
        return False
    return not result.job_title or not result.company or result.confidence < threshold


def merge(
    local: ExtractionResult, remote: Optional[RemoteExtractionResponse]
) -> ExtractionResult:
    """Fill empty local fields from the remote response; never overwrite."""
    if remote is None:
        return local

    changes = {}
    for name in FIELD_NAMES:
        remote_value = getattr(remote, name)
        if not getattr(local, name) and remote_value:
            changes[name] = remote_value

    if changes and local.has_any_field():
        source = SOURCE_MERGED
    elif changes:
        source = SOURCE_REMOTE
    else:
        source = local.source
    return local.with_fields(source=source, status_hint=remote.status_hint, **changes)


def build_payload(page: PageSignal) -> RemoteExtractionPayload:
    text = clean_text_for_llm(page.main_text() or page.body_text())
    return RemoteExtractionPayload.build(
        text=truncate_text(sanitize(text), PAYLOAD_TEXT_MAX),
        url=page.url,
        title=sanitize(page.document_title()),
    )


def extract_local(page: PageSignal) -> ExtractionResult:
    structured = parse_structured(page.structured_blocks())
    if structured is not None and structured.has_any_field():
        return structured

    fields = locate_fields(page)
    return ExtractionResult(
        job_title=fields.job_title,
        company=fields.company,
        location=fields.location,
        confidence=score(fields),
        source=SOURCE_HEURISTIC,
    )


def run_detection(
    page: PageSignal,
    *,
    settings: Optional[DetectionSettings] = None,
    http: Optional[HttpClient] = None,
) -> ExtractionResult:
    settings = settings or DetectionSettings(remote_enabled=False)

    if is_empty_signal(page):
        log_event("detect_empty_page", url=page.url)
        return ExtractionResult(
            confidence=score(LocatedFields()), source=SOURCE_HEURISTIC, url=page.url
        )

    local = extract_local(page)
    local.likely_applied = looks_like_confirmation(page.body_text())
    local.url = page.url
    local.page_title = page.document_title()
    log_event(
        "detect_local",
        url=page.url,
        source=local.source,
        confidence=local.confidence,
        likely_applied=local.likely_applied,
    )

    if not should_escalate(local, settings.remote_configured, settings.escalation_threshold):
        return local

    remote = extract_remote(build_payload(page), settings.remote_endpoint, http=http)
    final = merge(local, remote)
    log_event(
        "detect_merged",
        url=page.url,
        remote_used=remote is not None,
        source=final.source,
    )
    return final
