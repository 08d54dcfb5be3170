from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .settings import settings


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def resolve_db_path(path: str) -> str:
    """Return a file path usable by sqlite.

    If the configured path is a directory (e.g. a volume mounted where a file
    was expected) the DB file is placed inside it.
    """
    p = os.path.abspath(path)
    if os.path.isdir(p):
        p = os.path.join(p, "mdr.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


@dataclass(frozen=True)
class PassRow:
    id: int
    namespace: str
    started_at: str
    finished_at: str | None
    outcome: str  # running|ok|failed
    failed_step: str | None
    error: str | None


class Journal:
    """Sqlite history of reconciliation passes and their per-step events."""

    def __init__(self, db_path: str | None = None):
        self.db_path = resolve_db_path(db_path or settings.db_path)

    def connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        with self.connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS passes (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  namespace TEXT NOT NULL,
                  started_at TEXT NOT NULL,
                  finished_at TEXT,
                  outcome TEXT NOT NULL, -- running|ok|failed
                  failed_step TEXT,
                  error TEXT
                );

                CREATE TABLE IF NOT EXISTS events (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  pass_id INTEGER,
                  ts TEXT NOT NULL,
                  level TEXT NOT NULL,
                  namespace TEXT,
                  step TEXT,
                  resource TEXT,
                  message TEXT NOT NULL,
                  FOREIGN KEY(pass_id) REFERENCES passes(id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
                CREATE INDEX IF NOT EXISTS idx_events_pass_id ON events(pass_id);
                """
            )

    def log_event(
        self,
        level: str,
        message: str,
        namespace: str | None = None,
        step: str | None = None,
        resource: str | None = None,
        pass_id: int | None = None,
    ) -> None:
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO events (pass_id, ts, level, namespace, step, resource, message) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (pass_id, utc_now(), level.upper(), namespace, step, resource, message),
            )

    def begin_pass(self, namespace: str) -> int:
        with self.connect() as conn:
            cur = conn.execute(
                "INSERT INTO passes (namespace, started_at, outcome) VALUES (?, ?, 'running')",
                (namespace, utc_now()),
            )
            return int(cur.lastrowid)

    def finish_pass(self, pass_id: int, failed_step: str | None = None, error: str | None = None) -> None:
        outcome = "failed" if error else "ok"
        with self.connect() as conn:
            conn.execute(
                "UPDATE passes SET finished_at=?, outcome=?, failed_step=?, error=? WHERE id=?",
                (utc_now(), outcome, failed_step, error, pass_id),
            )

    def get_pass(self, pass_id: int) -> PassRow | None:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM passes WHERE id=?", (pass_id,)).fetchone()
            return PassRow(**dict(row)) if row else None

    def latest_passes(self, limit: int = 20) -> list[dict[str, Any]]:
        with self.connect() as conn:
            rows = conn.execute("SELECT * FROM passes ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
            return [dict(r) for r in rows]

    def latest_events(self, limit: int = 100, pass_id: int | None = None) -> list[dict[str, Any]]:
        with self.connect() as conn:
            if pass_id is not None:
                rows = conn.execute(
                    "SELECT * FROM events WHERE pass_id=? ORDER BY id DESC LIMIT ?", (pass_id, limit)
                ).fetchall()
            else:
                rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
            return [dict(r) for r in rows]
