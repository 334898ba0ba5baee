#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT / "src"))

from dateutil import parser as date_parser

from jobtrail.agents.detect_agent import run_detection
from jobtrail.core.config import ConfigError, detection_settings, load_config
from jobtrail.core.db import STATUSES, Database
from jobtrail.core.http import HttpClient
from jobtrail.core.logging import bind_context, log_error, log_event, setup_logging
from jobtrail.core.page import HtmlPageSignal
from jobtrail.core.remote import make_remote_http


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Track job applications detected from web pages")
    ap.add_argument("--config", default=str(ROOT / "config.yaml"), help="Path to config.yaml")
    sub = ap.add_subparsers(dest="command", required=True)

    d = sub.add_parser("detect", help="Extract job fields from a page")
    src = d.add_mutually_exclusive_group(required=True)
    src.add_argument("--url", help="Fetch and analyse this page")
    src.add_argument("--html-file", help="Analyse a saved HTML file")
    d.add_argument("--page-url", default="", help="URL to record when using --html-file")
    d.add_argument("--no-remote", action="store_true", help="Never escalate to the remote extractor")
    d.add_argument("--save", action="store_true", help="Store the result as a tracked application")
    d.add_argument("--status", choices=STATUSES, default="pending")
    d.add_argument("--notes", default="")
    d.add_argument("--follow-up", default="", help="Follow-up date/time, e.g. '2026-11-01 09:00'")

    ls = sub.add_parser("list", help="List tracked applications")
    ls.add_argument("--status", choices=("all",) + STATUSES, default="all")
    ls.add_argument("--limit", type=int, default=200)

    st = sub.add_parser("status", help="Change an application's status")
    st.add_argument("id")
    st.add_argument("status", choices=STATUSES)

    nt = sub.add_parser("notes", help="Replace an application's notes")
    nt.add_argument("id")
    nt.add_argument("notes")
    nt.add_argument("--follow-up", default=None)

    de = sub.add_parser("delete", help="Delete an application")
    de.add_argument("id")

    sv = sub.add_parser("serve", help="Run the /extract proxy")
    sv.add_argument("--host", default="")
    sv.add_argument("--port", type=int, default=0)
    return ap.parse_args(argv)


def _parse_follow_up(raw: str) -> str:
    if not raw:
        return ""
    dt = date_parser.parse(raw, fuzzy=True)
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat()


def _print(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def cmd_detect(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    runtime = cfg["runtime"]
    if args.url:
        http = HttpClient(
            user_agent=runtime["user_agent"],
            timeout_sec=int(runtime["http_timeout_sec"]),
            retries=int(runtime["http_retries"]),
        )
        try:
            html, final_url = http.fetch_page(args.url)
        except Exception as ex:
            log_error("page_fetch_failed", url=args.url, error=repr(ex)[:300])
            return 1
    else:
        html = Path(args.html_file).read_text(encoding="utf-8", errors="replace")
        final_url = args.page_url

    settings = detection_settings(cfg)
    if args.no_remote:
        settings.remote_enabled = False
    remote_http = make_remote_http(
        runtime["user_agent"],
        timeout_sec=int(cfg["remote"]["timeout_sec"]),
        retries=int(cfg["remote"]["retries"]),
    )

    result = run_detection(HtmlPageSignal(html, url=final_url), settings=settings, http=remote_http)
    record = result.to_record()
    out: Dict[str, Any] = {"record": record}

    if args.save:
        db = Database(cfg["store"]["path"])
        try:
            row = db.add_application(
                record,
                status=args.status,
                notes=args.notes,
                follow_up_at=_parse_follow_up(args.follow_up),
            )
        finally:
            db.close()
        out["saved"] = row.to_dict()
        log_event("application_saved", id=row.id, source=record["source"])

    _print(out)
    return 0


def cmd_store(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    db = Database(cfg["store"]["path"])
    try:
        if args.command == "list":
            _print([r.to_dict() for r in db.list_applications(args.status, limit=args.limit)])
            return 0
        if args.command == "status":
            ok = db.update_status(args.id, args.status)
        elif args.command == "notes":
            follow_up = None if args.follow_up is None else _parse_follow_up(args.follow_up)
            ok = db.update_notes(args.id, args.notes, follow_up_at=follow_up)
        else:
            ok = db.delete_application(args.id)
    finally:
        db.close()
    if not ok:
        print(f"No application with id {args.id}")
        return 1
    print("OK")
    return 0


def cmd_serve(args: argparse.Namespace, cfg: Dict[str, Any]) -> int:
    import uvicorn

    from jobtrail.proxy.app import create_app

    proxy = cfg["proxy"]
    uvicorn.run(
        create_app(cfg),
        host=args.host or proxy["host"],
        port=args.port or int(proxy["port"]),
        log_config=None,
    )
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        print(f"Failed to load config: {e}")
        return 2

    run_id = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    setup_logging(run_id, level=cfg["runtime"]["log_level"])
    bind_context(command=args.command, env=cfg["runtime"]["env"])

    if args.command == "detect":
        return cmd_detect(args, cfg)
    if args.command == "serve":
        return cmd_serve(args, cfg)
    return cmd_store(args, cfg)


if __name__ == "__main__":
    raise SystemExit(main())
