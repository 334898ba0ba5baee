import json
import logging

import pytest

from jobtrail.core.logging import (
    LOGGER_NAME,
    bind_context,
    clear_context,
    log_error,
    log_event,
    setup_logging,
)


@pytest.fixture
def events(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    clear_context()
    yield lambda: [json.loads(r.getMessage()) for r in caplog.records if r.name == LOGGER_NAME]
    clear_context()


def test_event_lines_are_json(events):
    log_event("detect_local", url="https://x", confidence=0.85)
    log_error("remote_extract_failed", error=ValueError("boom"))
    ok, failed = events()
    assert ok["event"] == "detect_local"
    assert ok["level"] == "INFO"
    assert ok["confidence"] == 0.85
    assert failed["level"] == "ERROR"
    assert failed["error"] == "boom"


def test_bound_context_is_merged(events):
    bind_context(run_id="r1", command="detect", env="")
    log_event("detect_local")
    log_event("llm_extract_ok", run_id="proxy")
    first, second = events()
    assert first["run_id"] == "r1"
    assert first["command"] == "detect"
    assert "env" not in first
    assert second["run_id"] == "proxy"


def test_setup_logging_writes_run_file(tmp_path, events):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        path = setup_logging("20260101_000000", log_dir=str(tmp_path))
        log_event("detect_empty_page", url="")
        for handler in root.handlers:
            handler.flush()
        lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
    assert [line["event"] for line in lines] == ["logging_initialized", "detect_empty_page"]
    assert all(line["run_id"] == "20260101_000000" for line in lines)
