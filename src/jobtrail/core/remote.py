from __future__ import annotations

from typing import Optional

import requests

from .http import HttpClient
from .logging import log_error, log_event
from .schema import RemoteExtractionPayload, RemoteExtractionResponse, remote_response_from_obj
from .utils import preview, try_parse_json


def make_remote_http(user_agent: str, *, timeout_sec: int = 20, retries: int = 0) -> HttpClient:
    return HttpClient(user_agent=user_agent, timeout_sec=timeout_sec, retries=retries)


def extract_remote(
    payload: RemoteExtractionPayload,
    endpoint: str,
    http: Optional[HttpClient] = None,
) -> Optional[RemoteExtractionResponse]:
    """POST the payload to the extraction endpoint.

    Every failure mode (transport error, non-2xx, non-JSON body, wrong shape)
    returns None so the caller keeps its local result.
    """
    if not endpoint:
        return None
    http = http or make_remote_http("jobtrail/0.1")

    try:
        resp = http.post_json(endpoint, payload=payload.to_json())
    except requests.RequestException as ex:
        log_error("remote_extract_transport_failed", endpoint=endpoint, error=repr(ex)[:300])
        return None

    if not 200 <= resp.status_code < 300:
        log_event(
            "remote_extract_bad_status",
            endpoint=endpoint,
            status=resp.status_code,
            body_preview=preview(resp.text or "", 200),
        )
        return None

    obj = try_parse_json(resp.text)
    result = remote_response_from_obj(obj)
    if result is None:
        log_event(
            "remote_extract_invalid_body",
            endpoint=endpoint,
            body_preview=preview(resp.text or "", 200),
        )
        return None

    log_event(
        "remote_extract_ok",
        endpoint=endpoint,
        has_title=bool(result.job_title),
        has_company=bool(result.company),
        has_location=bool(result.location),
        status_hint=result.status_hint,
    )
    return result
