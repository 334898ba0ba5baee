import itertools
import json
from unittest.mock import Mock

import pytest

from jobtrail.adapters.page.heuristic import LocatedFields
from jobtrail.agents import detect_agent
from jobtrail.agents.detect_agent import (
    build_payload,
    looks_like_confirmation,
    merge,
    run_detection,
    score,
    should_escalate,
)
from jobtrail.core.config import DetectionSettings
from jobtrail.core.schema import ExtractionResult, RemoteExtractionResponse
from jobtrail.core.text_cleaner import EMAIL_TOKEN, PHONE_TOKEN

REMOTE = DetectionSettings(remote_endpoint="https://proxy.example.com/extract")

FIELDS = ("job_title", "company", "location")


def _fields(present):
    return LocatedFields(**{name: ("x" if name in present else "") for name in FIELDS})


def test_score_known_values():
    assert score(_fields(())) == 0.35
    assert score(_fields(("job_title",))) == 0.6
    assert score(_fields(("job_title", "company"))) == 0.85
    assert score(_fields(("location",))) == 0.5
    assert score(_fields(FIELDS)) == 0.9


def test_score_bounded_and_strictly_increasing():
    for r in range(len(FIELDS) + 1):
        for present in itertools.combinations(FIELDS, r):
            value = score(_fields(present))
            assert 0.35 <= value <= 0.9
            for extra in set(FIELDS) - set(present):
                assert score(_fields(present + (extra,))) > value


@pytest.mark.parametrize(
    "result",
    [
        ExtractionResult(confidence=0.35),
        ExtractionResult(job_title="A", company="B", confidence=0.95, source="structured"),
    ],
)
def test_never_escalate_without_remote(result):
    assert should_escalate(result, False) is False


def test_escalation_rules():
    full = ExtractionResult(job_title="A", company="B", confidence=0.85)
    assert should_escalate(full, True) is False
    assert should_escalate(full.with_fields(company=""), True) is True
    assert should_escalate(ExtractionResult(job_title="A", company="B", confidence=0.6), True)
    assert should_escalate(full, True, threshold=0.9) is True
    structured = ExtractionResult(job_title="A", company="B", confidence=0.95, source="structured")
    assert should_escalate(structured, True) is False
    assert should_escalate(structured.with_fields(company="", location=""), True) is False


def test_merge_none_returns_local():
    local = ExtractionResult(job_title="A", confidence=0.6)
    assert merge(local, None) is local


def test_merge_fills_only_empty_fields():
    local = ExtractionResult(job_title="Local Title", company="", location="", confidence=0.6)
    remote = RemoteExtractionResponse(
        job_title="Remote Title", company="Globex", location="", status_hint="submitted"
    )
    merged = merge(local, remote)
    assert merged.job_title == "Local Title"
    assert merged.company == "Globex"
    assert merged.location == ""
    assert merged.source == "merged"
    assert merged.status_hint == "submitted"
    assert merged.confidence == 0.6


def test_merge_keeps_likely_applied():
    local = ExtractionResult(likely_applied=True, confidence=0.35)
    merged = merge(local, RemoteExtractionResponse(job_title="X", status_hint="unknown"))
    assert merged.likely_applied is True
    assert merged.source == "remote"


def test_confirmation_phrases():
    assert looks_like_confirmation("We received your application for this role")
    assert looks_like_confirmation("THANK YOU FOR APPLYING!")
    assert not looks_like_confirmation("Apply now for this exciting role")
    assert not looks_like_confirmation("")


def test_scenario_a_structured_wins(page_factory, jsonld, monkeypatch):
    block = json.dumps(
        {
            "@type": "JobPosting",
            "title": "Data Engineer",
            "hiringOrganization": {"name": "Acme"},
            "jobLocation": {"address": {"addressLocality": "Austin", "addressRegion": "TX"}},
        }
    )
    page = page_factory(
        head="<title>Something Else - Other Co</title>",
        body="<h1>Heuristic Title</h1>" + jsonld(block),
    )
    monkeypatch.setattr(detect_agent, "extract_remote", Mock(side_effect=AssertionError))
    result = run_detection(page, settings=REMOTE)
    assert result.to_record()["jobTitle"] == "Data Engineer"
    assert result.company == "Acme"
    assert result.location == "Austin, TX"
    assert result.confidence == 0.95
    assert result.source == "structured"


def test_scenario_b_metadata_and_title(page_factory):
    page = page_factory(
        head=(
            "<title>Senior SWE - Acme</title>"
            '<meta property="og:title" content="Senior SWE | Acme Careers">'
        ),
        body="<p>Join our team.</p>",
    )
    result = run_detection(page)
    assert result.job_title == "Senior SWE"
    assert result.company == "Acme"
    assert result.confidence == 0.85
    assert result.source == "heuristic"


def test_scenario_c_remote_fills_empty_fields(page_factory, monkeypatch):
    page = page_factory(body="<p>Loading… questions? jane@example.com / 555 123 4567</p>")
    seen = {}

    def fake_remote(payload, endpoint, http=None):
        seen["payload"] = payload
        seen["endpoint"] = endpoint
        return RemoteExtractionResponse(
            job_title="Backend Engineer", company="Globex", location="", status_hint="unknown"
        )

    monkeypatch.setattr(detect_agent, "extract_remote", fake_remote)
    result = run_detection(page, settings=REMOTE)
    assert (result.job_title, result.company, result.location) == (
        "Backend Engineer",
        "Globex",
        "",
    )
    assert seen["endpoint"] == REMOTE.remote_endpoint
    assert "jane@example.com" not in seen["payload"].text
    assert EMAIL_TOKEN in seen["payload"].text
    assert PHONE_TOKEN in seen["payload"].text
    assert seen["payload"].url == "https://jobs.example.com/123"


@pytest.mark.parametrize("status,body", [(500, '{"error": "boom"}'), (200, "not json")])
def test_scenario_d_remote_failure_keeps_local(page_factory, status, body):
    page = page_factory(head="<title>Line Cook</title>", body="<p>Menu</p>")
    http = Mock()
    http.post_json.return_value = Mock(status_code=status, text=body)
    local = run_detection(page)
    result = run_detection(page, settings=REMOTE, http=http)
    assert http.post_json.called
    assert result.to_record() | {"detectedAt": ""} == local.to_record() | {"detectedAt": ""}


def test_scenario_e_likely_applied(page_factory):
    applied = page_factory(
        head="<title>Done</title>",
        body="<p>We received your application for this role</p>",
    )
    assert run_detection(applied).likely_applied is True
    assert run_detection(page_factory(head="<title>Role</title>")).likely_applied is False


def test_structured_without_company_stays_local(page_factory, jsonld, monkeypatch):
    page = page_factory(head=jsonld(json.dumps({"@type": "JobPosting", "title": "Data Engineer"})))
    spy = Mock(return_value=None)
    monkeypatch.setattr(detect_agent, "extract_remote", spy)
    result = run_detection(page, settings=REMOTE)
    assert (result.job_title, result.company) == ("Data Engineer", "")
    assert result.source == "structured"
    assert result.confidence == 0.95
    assert not spy.called


def test_empty_page_returns_blank_result(page_factory, monkeypatch):
    spy = Mock(return_value=None)
    monkeypatch.setattr(detect_agent, "extract_remote", spy)
    result = run_detection(page_factory(), settings=REMOTE)
    record = result.to_record()
    assert record["jobTitle"] == record["company"] == record["location"] == ""
    assert record["confidence"] == 0.35
    assert record["source"] == "heuristic"
    assert record["likelyApplied"] is False
    assert not spy.called


def test_payload_is_clamped(page_factory):
    page = page_factory(
        head="<title>" + "T" * 400 + "</title>",
        body="<p>" + ("word " * 5000) + "</p>",
        url="https://example.com/" + "p" * 600,
    )
    payload = build_payload(page)
    assert len(payload.text) <= 18000
    assert len(payload.title) <= 300
    assert len(payload.url) <= 500
