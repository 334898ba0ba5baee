from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

LOGGER_NAME = "jobtrail"

# fields merged into every event (run id, CLI command); explicit fields win
_CONTEXT: Dict[str, Any] = {}


def setup_logging(run_id: str, log_dir: str = "logs", level: str = "INFO") -> Path:
    """Log to the console (stderr) + a jsonl file so detection runs can be inspected later."""
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_path = Path(log_dir) / f"run_{run_id}.jsonl"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    formatter = logging.Formatter("%(message)s")
    for handler in (logging.StreamHandler(), logging.FileHandler(log_path, encoding="utf-8")):
        handler.setLevel(root.level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    clear_context()
    bind_context(run_id=run_id)
    log_event("logging_initialized", log_path=str(log_path), level=level.upper())
    return log_path


def bind_context(**fields: Any) -> None:
    _CONTEXT.update({k: v for k, v in fields.items() if v is not None and v != ""})


def clear_context() -> None:
    _CONTEXT.clear()


def _ts() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _dump(level: str, event: str, fields: Dict[str, Any]) -> str:
    payload: Dict[str, Any] = {"ts": _ts(), "level": level, "event": event, **_CONTEXT, **fields}
    return json.dumps(payload, ensure_ascii=False, default=str)


def log_event(event: str, **fields: Any) -> None:
    logging.getLogger(LOGGER_NAME).info(_dump("INFO", event, fields))


def log_error(event: str, **fields: Any) -> None:
    logging.getLogger(LOGGER_NAME).error(_dump("ERROR", event, fields))
