from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

from jsonschema import ValidationError
from jsonschema import validate as js_validate

from .llm_providers.base import ProviderError
from .llm_providers.registry import get_provider, provider_chain
from .logging import log_error, log_event
from .schema import REMOTE_FIELD_MAX, RemoteExtractionResponse, normalize_status_hint
from .utils import clamp, preview

EXTRACTION_JSON_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["jobTitle", "company", "location", "statusHint"],
    "properties": {
        "jobTitle": {"type": "string"},
        "company": {"type": "string"},
        "location": {"type": "string"},
        "statusHint": {"type": "string"},
    },
}

DETAILS_MAX = 500


class UpstreamCredentialError(RuntimeError):
    """No provider in the chain has an API key configured."""


class UpstreamCallError(RuntimeError):
    def __init__(self, message: str, *, status: Optional[int] = None, details: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.details = (details or message)[:DETAILS_MAX]


class UpstreamOutputError(RuntimeError):
    """The model answered, but not with the JSON object we asked for."""


def build_extraction_prompt(*, text: str, url: str, title: str) -> str:
    return (
        "Extract the job application details from the page below.\n"
        "Return ONLY a JSON object with exactly these keys:\n"
        '  "jobTitle": the job title, or "" if unknown\n'
        '  "company": the hiring company, or "" if unknown\n'
        '  "location": the job location, or "" if unknown\n'
        '  "statusHint": "submitted" if the page confirms an application was submitted, '
        'otherwise "unknown"\n'
        'statusHint must be exactly "submitted" or "unknown". '
        "Do not add other keys, comments or markdown.\n\n"
        f"URL: {url or '(none)'}\n"
        f"Page title: {title or '(none)'}\n"
        "Page text:\n"
        f"{text or '(none)'}\n"
    )


def _extract_first_json_object(text: str) -> str:
    """Best-effort: pull the first JSON object out of fenced or chatty model output."""
    if not text:
        return ""

    m = re.search(r"```(?:json)?\s*(.*?)\s*```", text, flags=re.IGNORECASE | re.DOTALL)
    if m:
        cand = (m.group(1) or "").strip()
        if cand.startswith("{") and cand.endswith("}"):
            return cand

    start = text.find("{")
    if start < 0:
        return ""

    # Bracket-balance scan with string/escape awareness.
    depth = 0
    in_str = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_str:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1].strip()
    return ""


def parse_model_output(content: str) -> RemoteExtractionResponse:
    """Decode and validate model output; raises ``UpstreamOutputError``."""
    try:
        obj = json.loads(content)
    except (json.JSONDecodeError, TypeError):
        extracted = _extract_first_json_object(content or "")
        try:
            obj = json.loads(extracted) if extracted else None
        except json.JSONDecodeError:
            obj = None
        if obj is None:
            raise UpstreamOutputError("Model output is not JSON")
    try:
        js_validate(obj, EXTRACTION_JSON_SCHEMA)
    except ValidationError as exc:
        raise UpstreamOutputError(f"Model output failed schema: {exc.message}") from exc
    return RemoteExtractionResponse(
        job_title=clamp(obj["jobTitle"], REMOTE_FIELD_MAX),
        company=clamp(obj["company"], REMOTE_FIELD_MAX),
        location=clamp(obj["location"], REMOTE_FIELD_MAX),
        status_hint=normalize_status_hint(obj["statusHint"]),
    )


class LLMExtractor:
    """Upstream side of ``POST /extract``: one model call per request, with provider fallback."""

    def __init__(self, cfg: Dict[str, Any], *, run_id: str = "") -> None:
        self.cfg = cfg
        self.provider = (cfg.get("provider", "openai") or "openai").lower()
        self.model = cfg.get("model", "gpt-4o-mini")
        self.temperature = float(cfg.get("temperature", 0))
        self.timeout_sec = int(cfg.get("timeout_sec", 45))
        self.fallback_providers = list(cfg.get("fallback_providers") or [])
        self.provider_options = cfg.get("provider_options", {}) or {}
        self.run_id = run_id

    def _options(self, provider: str) -> Dict[str, Any]:
        opts = self.provider_options.get(provider) if isinstance(self.provider_options, dict) else None
        return dict(opts) if isinstance(opts, dict) else {}

    def ready_providers(self) -> List[str]:
        ready: List[str] = []
        for name in provider_chain(self.provider, self.fallback_providers):
            provider = get_provider(name)
            if provider and provider.ready(self._options(name)):
                ready.append(name)
        return ready

    def ready(self) -> bool:
        return bool(self.ready_providers())

    def extract(self, *, text: str, url: str = "", title: str = "") -> RemoteExtractionResponse:
        names = self.ready_providers()
        if not names:
            raise UpstreamCredentialError("No upstream provider credential is configured")

        prompt = build_extraction_prompt(text=text, url=url, title=title)
        last_error: Optional[ProviderError] = None
        for name in names:
            provider = get_provider(name)
            opts = self._options(name)
            model = str(opts.get("model", self.model))
            try:
                content, usage = provider.call_json(
                    model=model,
                    temperature=self.temperature,
                    timeout_sec=self.timeout_sec,
                    user_prompt=prompt,
                    response_schema=EXTRACTION_JSON_SCHEMA,
                    cfg=opts,
                )
            except ProviderError as exc:
                last_error = exc
                log_error(
                    "llm_provider_failed",
                    run_id=self.run_id,
                    provider=name,
                    model=model,
                    status=exc.status,
                    error=str(exc)[:300],
                )
                continue

            log_event(
                "llm_extract_ok",
                run_id=self.run_id,
                provider=name,
                model=model,
                input_chars=len(prompt),
                usage=usage,
            )
            try:
                return parse_model_output(content)
            except UpstreamOutputError as exc:
                log_event(
                    "llm_provider_bad_output",
                    run_id=self.run_id,
                    provider=name,
                    model=model,
                    error=str(exc)[:200],
                    content_preview=preview(content),
                )
                raise

        assert last_error is not None
        raise UpstreamCallError(
            "Upstream extraction call failed",
            status=last_error.status,
            details=last_error.details,
        )
