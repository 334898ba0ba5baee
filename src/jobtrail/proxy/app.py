"""
Companion extraction proxy: POST /extract -> upstream LLM -> {jobTitle, company, location, statusHint}
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.llm import (
    LLMExtractor,
    UpstreamCallError,
    UpstreamCredentialError,
    UpstreamOutputError,
)
from ..core.logging import log_error, log_event
from ..core.schema import PAYLOAD_TEXT_MAX, PAYLOAD_TITLE_MAX, PAYLOAD_URL_MAX
from ..core.text_cleaner import sanitize
from ..core.utils import try_parse_json

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def _field(body: Dict[str, Any], key: str) -> str:
    value = body.get(key)
    return value.strip() if isinstance(value, str) else ""


def create_app(cfg: Dict[str, Any], *, extractor: Optional[LLMExtractor] = None) -> FastAPI:
    """Build the proxy app. ``cfg`` is the loaded config; ``extractor`` overrides the LLM side."""
    llm_cfg = ((cfg.get("proxy") or {}).get("llm")) or {}
    extractor = extractor or LLMExtractor(llm_cfg, run_id="proxy")

    app = FastAPI(title="jobtrail extraction proxy")

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.options("/extract")
    async def extract_preflight() -> Dict[str, bool]:
        return {"ok": True}

    @app.post("/extract")
    async def extract(request: Request) -> JSONResponse:
        # misconfiguration fails before the body is even read
        if not extractor.ready():
            log_error("proxy_missing_credential")
            return _error(500, "Upstream credential is not configured")

        body = try_parse_json(await request.body())
        if not isinstance(body, dict):
            return _error(400, "Request body must be a JSON object")

        text = sanitize(_field(body, "text"))[:PAYLOAD_TEXT_MAX]
        title = sanitize(_field(body, "title"))[:PAYLOAD_TITLE_MAX]
        url = _field(body, "url")[:PAYLOAD_URL_MAX]
        if not text and not title:
            return _error(400, "Provide at least one of 'text' or 'title'")

        try:
            result = await run_in_threadpool(extractor.extract, text=text, url=url, title=title)
        except UpstreamCredentialError as exc:
            return _error(500, str(exc))
        except UpstreamOutputError as exc:
            return _error(500, "Malformed upstream model output", details=str(exc)[:500])
        except UpstreamCallError as exc:
            return _error(502, "Upstream call failed", status=exc.status, details=exc.details)
        except Exception as exc:
            # anything the providers did not wrap is still an upstream failure
            log_error("proxy_upstream_unexpected", url=url, error=repr(exc)[:300])
            return _error(502, "Upstream call failed", status=None, details=str(exc)[:500])

        log_event("proxy_extract_ok", url=url, status_hint=result.status_hint)
        return JSONResponse(result.to_json())

    return app
