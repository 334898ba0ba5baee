from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from .utils import clamp, now_utc_iso

TITLE_MAX = 140
COMPANY_MAX = 120
LOCATION_MAX = 140

PAYLOAD_TEXT_MAX = 18000
PAYLOAD_URL_MAX = 500
PAYLOAD_TITLE_MAX = 300

REMOTE_FIELD_MAX = 120

SOURCE_STRUCTURED = "structured"
SOURCE_HEURISTIC = "heuristic"
SOURCE_REMOTE = "remote"
SOURCE_MERGED = "merged"
SOURCES = (SOURCE_STRUCTURED, SOURCE_HEURISTIC, SOURCE_REMOTE, SOURCE_MERGED)

STATUS_SUBMITTED = "submitted"
STATUS_UNKNOWN = "unknown"

FIELD_NAMES = ("job_title", "company", "location")


@dataclass
class ExtractionResult:
    job_title: str = ""
    company: str = ""
    location: str = ""
    confidence: float = 0.0
    source: str = SOURCE_HEURISTIC
    likely_applied: bool = False
    status_hint: str = STATUS_UNKNOWN
    url: str = ""
    page_title: str = ""
    detected_at: str = field(default_factory=now_utc_iso)

    def __post_init__(self) -> None:
        self.job_title = clamp(self.job_title, TITLE_MAX)
        self.company = clamp(self.company, COMPANY_MAX)
        self.location = clamp(self.location, LOCATION_MAX)
        if self.source not in SOURCES:
            raise ValueError(f"unknown extraction source: {self.source!r}")

    def has_any_field(self) -> bool:
        return bool(self.job_title or self.company or self.location)

    def with_fields(self, **changes: Any) -> "ExtractionResult":
        return replace(self, **changes)

    def to_record(self) -> Dict[str, Any]:
        return {
            "jobTitle": self.job_title,
            "company": self.company,
            "location": self.location,
            "confidence": self.confidence,
            "source": self.source,
            "likelyApplied": self.likely_applied,
            "statusHint": self.status_hint,
            "url": self.url,
            "pageTitle": self.page_title,
            "detectedAt": self.detected_at,
        }


@dataclass(frozen=True)
class RemoteExtractionPayload:
    text: str
    url: str
    title: str

    @classmethod
    def build(cls, *, text: str, url: str, title: str) -> "RemoteExtractionPayload":
        # Callers sanitize first; clamping here keeps the size caps in one place.
        return cls(
            text=(text or "")[:PAYLOAD_TEXT_MAX],
            url=(url or "").strip()[:PAYLOAD_URL_MAX],
            title=(title or "").strip()[:PAYLOAD_TITLE_MAX],
        )

    def to_json(self) -> Dict[str, str]:
        return {"text": self.text, "url": self.url, "title": self.title}


@dataclass(frozen=True)
class RemoteExtractionResponse:
    job_title: str = ""
    company: str = ""
    location: str = ""
    status_hint: str = STATUS_UNKNOWN

    def to_json(self) -> Dict[str, str]:
        return {
            "jobTitle": self.job_title,
            "company": self.company,
            "location": self.location,
            "statusHint": self.status_hint,
        }


def normalize_status_hint(raw: Any) -> str:
    return STATUS_SUBMITTED if raw == STATUS_SUBMITTED else STATUS_UNKNOWN


def remote_response_from_obj(obj: Any) -> Optional[RemoteExtractionResponse]:
    """Build a response from a decoded JSON value, or None when it has the wrong shape."""
    if not isinstance(obj, dict):
        return None
    if not any(k in obj for k in ("jobTitle", "company", "location", "statusHint")):
        return None
    values: Dict[str, str] = {}
    for key in ("jobTitle", "company", "location"):
        raw = obj.get(key, "")
        if raw is None:
            raw = ""
        if not isinstance(raw, str):
            return None
        values[key] = clamp(raw, REMOTE_FIELD_MAX)
    return RemoteExtractionResponse(
        job_title=values["jobTitle"],
        company=values["company"],
        location=values["location"],
        status_hint=normalize_status_hint(obj.get("statusHint")),
    )
