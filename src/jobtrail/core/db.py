from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .utils import new_id, now_utc_iso

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS applications (
  id TEXT PRIMARY KEY,
  job_title TEXT NOT NULL,
  company TEXT NOT NULL,
  location TEXT,
  url TEXT,
  status TEXT NOT NULL,
  notes TEXT,
  follow_up_at TEXT,
  likely_applied INTEGER,
  confidence REAL,
  source TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_applications_status ON applications(status);
"""

STATUSES = ("pending", "applied", "interview", "offer", "rejected")
UNKNOWN_ROLE = "Unknown role"
UNKNOWN_COMPANY = "Unknown company"


@dataclass
class ApplicationRow:
    id: str
    job_title: str
    company: str
    location: str
    url: str
    status: str
    notes: str
    follow_up_at: str
    likely_applied: bool
    confidence: float
    source: str
    created_at: str
    updated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _check_status(status: str) -> str:
    status = (status or "").strip().lower()
    if status not in STATUSES:
        raise ValueError(f"unknown status {status!r}; expected one of {', '.join(STATUSES)}")
    return status


class Database:
    """sqlite store for tracked applications; the detector only hands it finished records."""

    def __init__(self, path: str) -> None:
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self.path = path
        self.conn = sqlite3.connect(path)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA synchronous=NORMAL;")
        self.conn.executescript(SCHEMA_SQL)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    def add_application(
        self,
        record: Dict[str, Any],
        *,
        status: str = "pending",
        notes: str = "",
        follow_up_at: str = "",
    ) -> ApplicationRow:
        """Persist a detection record (camelCase keys, as produced by ``to_record``)."""
        now = now_utc_iso()
        row = ApplicationRow(
            id=new_id(),
            job_title=(record.get("jobTitle") or "").strip() or UNKNOWN_ROLE,
            company=(record.get("company") or "").strip() or UNKNOWN_COMPANY,
            location=(record.get("location") or "").strip(),
            url=(record.get("url") or "").strip(),
            status=_check_status(status),
            notes=notes or "",
            follow_up_at=follow_up_at or "",
            likely_applied=bool(record.get("likelyApplied")),
            confidence=float(record.get("confidence") or 0.0),
            source=record.get("source") or "",
            created_at=now,
            updated_at=now,
        )
        self.conn.execute(
            """INSERT INTO applications(
                id,job_title,company,location,url,status,notes,follow_up_at,
                likely_applied,confidence,source,created_at,updated_at
            ) VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?)""",
            (
                row.id,
                row.job_title,
                row.company,
                row.location,
                row.url,
                row.status,
                row.notes,
                row.follow_up_at,
                1 if row.likely_applied else 0,
                row.confidence,
                row.source,
                row.created_at,
                row.updated_at,
            ),
        )
        self.conn.commit()
        return row

    def _update(self, app_id: str, **cols: Any) -> bool:
        cols["updated_at"] = now_utc_iso()
        assignments = ", ".join(f"{k}=?" for k in cols)
        cur = self.conn.execute(
            f"UPDATE applications SET {assignments} WHERE id=?", (*cols.values(), app_id)
        )
        self.conn.commit()
        return cur.rowcount > 0

    def update_status(self, app_id: str, status: str) -> bool:
        return self._update(app_id, status=_check_status(status))

    def update_notes(self, app_id: str, notes: str, *, follow_up_at: Optional[str] = None) -> bool:
        if follow_up_at is None:
            return self._update(app_id, notes=notes or "")
        return self._update(app_id, notes=notes or "", follow_up_at=follow_up_at)

    def delete_application(self, app_id: str) -> bool:
        cur = self.conn.execute("DELETE FROM applications WHERE id=?", (app_id,))
        self.conn.commit()
        return cur.rowcount > 0

    def get_application(self, app_id: str) -> Optional[ApplicationRow]:
        cur = self.conn.execute("SELECT * FROM applications WHERE id=?", (app_id,))
        r = cur.fetchone()
        return _row(r) if r else None

    def list_applications(self, status: str = "all", limit: int = 200) -> List[ApplicationRow]:
        if status and status != "all":
            cur = self.conn.execute(
                "SELECT * FROM applications WHERE status=? ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (_check_status(status), int(limit)),
            )
        else:
            cur = self.conn.execute(
                "SELECT * FROM applications ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (int(limit),),
            )
        return [_row(r) for r in cur.fetchall()]


def _row(r: sqlite3.Row) -> ApplicationRow:
    return ApplicationRow(
        id=r["id"],
        job_title=r["job_title"],
        company=r["company"],
        location=r["location"] or "",
        url=r["url"] or "",
        status=r["status"],
        notes=r["notes"] or "",
        follow_up_at=r["follow_up_at"] or "",
        likely_applied=bool(r["likely_applied"]),
        confidence=float(r["confidence"] or 0.0),
        source=r["source"] or "",
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )
