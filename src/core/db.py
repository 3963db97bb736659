"""SQLite store for candidates, jobs, system messages and notification history.

This is the storage collaborator of the matching engine: it loads pools into
memory before scoring and persists what the orchestrator decides to send.
"""

import json
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path

from src.core.schemas import CandidateProfile, JobPosting

_CANDIDATES_TABLE = """
CREATE TABLE IF NOT EXISTS candidates (
    id              TEXT    PRIMARY KEY,
    email           TEXT    NOT NULL DEFAULT '',
    has_skills      INTEGER NOT NULL DEFAULT 0,
    profile_json    TEXT    NOT NULL,
    updated_at      TEXT    NOT NULL
);
"""

_JOBS_TABLE = """
CREATE TABLE IF NOT EXISTS jobs (
    id              TEXT    PRIMARY KEY,
    status          TEXT    NOT NULL DEFAULT 'Open',
    posted_at       TEXT,
    job_json        TEXT    NOT NULL,
    updated_at      TEXT    NOT NULL
);
"""

_SYSTEM_MESSAGES_TABLE = """
CREATE TABLE IF NOT EXISTS system_messages (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    candidate_id    TEXT    NOT NULL,
    job_id          TEXT    NOT NULL,
    message_type    TEXT    NOT NULL DEFAULT 'job_notification',
    title           TEXT    NOT NULL DEFAULT '',
    content         TEXT    NOT NULL,
    score           REAL    NOT NULL DEFAULT 0.0,
    reasons_json    TEXT    NOT NULL DEFAULT '[]',
    is_visible      INTEGER NOT NULL DEFAULT 0,
    requires_reply  INTEGER NOT NULL DEFAULT 1,
    has_replied     INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL
);
"""

_NOTIFICATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS notifications (
    candidate_id    TEXT NOT NULL,
    job_id          TEXT NOT NULL,
    channel         TEXT NOT NULL,
    notified_at     TEXT NOT NULL,
    PRIMARY KEY (candidate_id, job_id, channel)
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_CANDIDATES_TABLE)
    conn.execute(_JOBS_TABLE)
    conn.execute(_SYSTEM_MESSAGES_TABLE)
    conn.execute(_NOTIFICATIONS_TABLE)
    conn.commit()
    return conn


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------


def upsert_candidate(conn: sqlite3.Connection, candidate: CandidateProfile) -> None:
    """Insert or replace a candidate profile."""
    conn.execute(
        """
        INSERT INTO candidates (id, email, has_skills, profile_json, updated_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            email = excluded.email,
            has_skills = excluded.has_skills,
            profile_json = excluded.profile_json,
            updated_at = excluded.updated_at
        """,
        (
            candidate.id,
            candidate.email,
            int(bool(candidate.skills)),
            candidate.model_dump_json(),
            _now(),
        ),
    )
    conn.commit()


def find_candidates_with_skills(conn: sqlite3.Connection) -> list[CandidateProfile]:
    """Return every candidate with at least one skill, in insertion order."""
    rows = conn.execute(
        "SELECT profile_json FROM candidates WHERE has_skills = 1 ORDER BY rowid"
    ).fetchall()
    return [CandidateProfile.model_validate_json(r["profile_json"]) for r in rows]


def find_all_candidates(conn: sqlite3.Connection) -> list[CandidateProfile]:
    rows = conn.execute("SELECT profile_json FROM candidates ORDER BY rowid").fetchall()
    return [CandidateProfile.model_validate_json(r["profile_json"]) for r in rows]


def find_candidate_by_id(conn: sqlite3.Connection, candidate_id: str) -> CandidateProfile | None:
    row = conn.execute(
        "SELECT profile_json FROM candidates WHERE id = ?", (candidate_id,)
    ).fetchone()
    if row is None:
        return None
    return CandidateProfile.model_validate_json(row["profile_json"])


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


def upsert_job(conn: sqlite3.Connection, job: JobPosting) -> None:
    """Insert or replace a job posting."""
    conn.execute(
        """
        INSERT INTO jobs (id, status, posted_at, job_json, updated_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            status = excluded.status,
            posted_at = excluded.posted_at,
            job_json = excluded.job_json,
            updated_at = excluded.updated_at
        """,
        (
            job.id,
            job.status,
            job.posted_at.isoformat() if job.posted_at else None,
            job.model_dump_json(),
            _now(),
        ),
    )
    conn.commit()


def find_job_by_id(conn: sqlite3.Connection, job_id: str) -> JobPosting | None:
    row = conn.execute("SELECT job_json FROM jobs WHERE id = ?", (job_id,)).fetchone()
    if row is None:
        return None
    return JobPosting.model_validate_json(row["job_json"])


def find_open_jobs(
    conn: sqlite3.Connection,
    posted_within_days: int | None = None,
    now: datetime | None = None,
) -> list[JobPosting]:
    """Return open jobs, optionally only those posted within the last N days.

    Jobs without a posting date are always included.
    """
    rows = conn.execute(
        "SELECT job_json FROM jobs WHERE status = 'Open' ORDER BY rowid"
    ).fetchall()
    jobs = [JobPosting.model_validate_json(r["job_json"]) for r in rows]
    if posted_within_days is None:
        return jobs

    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=posted_within_days)
    if cutoff.tzinfo is None:
        cutoff = cutoff.replace(tzinfo=timezone.utc)
    result = []
    for job in jobs:
        posted = job.posted_at
        if posted is not None and posted.tzinfo is None:
            posted = posted.replace(tzinfo=timezone.utc)
        if posted is None or posted >= cutoff:
            result.append(job)
    return result


# ---------------------------------------------------------------------------
# System messages
# ---------------------------------------------------------------------------


def create_system_message(
    conn: sqlite3.Connection,
    candidate_id: str,
    job_id: str,
    content: str,
    score: float,
    reasons: list[str],
    message_type: str = "job_notification",
    title: str = "",
) -> int:
    """Store a hidden, reply-gated system message. Returns the message ID."""
    cursor = conn.execute(
        """
        INSERT INTO system_messages
            (candidate_id, job_id, message_type, title, content, score,
             reasons_json, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            candidate_id,
            job_id,
            message_type,
            title,
            content,
            score,
            json.dumps(reasons),
            _now(),
        ),
    )
    conn.commit()
    return cursor.lastrowid or 0


def list_system_messages(
    conn: sqlite3.Connection,
    candidate_id: str,
    include_replied: bool = False,
) -> list[sqlite3.Row]:
    """Return a candidate's system messages, newest first."""
    query = "SELECT * FROM system_messages WHERE candidate_id = ?"
    if not include_replied:
        query += " AND has_replied = 0"
    query += " ORDER BY id DESC"
    return conn.execute(query, (candidate_id,)).fetchall()


def mark_message_replied(conn: sqlite3.Connection, message_id: int, candidate_id: str) -> bool:
    """Mark a system message replied and visible. Returns False if not found."""
    cursor = conn.execute(
        """
        UPDATE system_messages SET has_replied = 1, is_visible = 1
        WHERE id = ? AND candidate_id = ?
        """,
        (message_id, candidate_id),
    )
    conn.commit()
    return cursor.rowcount > 0


# ---------------------------------------------------------------------------
# Notification history
# ---------------------------------------------------------------------------


def was_notified(conn: sqlite3.Connection, candidate_id: str, job_id: str, channel: str) -> bool:
    row = conn.execute(
        """
        SELECT 1 FROM notifications
        WHERE candidate_id = ? AND job_id = ? AND channel = ?
        LIMIT 1
        """,
        (candidate_id, job_id, channel),
    ).fetchone()
    return row is not None


def record_notification(conn: sqlite3.Connection, candidate_id: str, job_id: str, channel: str) -> bool:
    """Record that a candidate was notified. Returns False if already recorded."""
    try:
        conn.execute(
            "INSERT INTO notifications (candidate_id, job_id, channel, notified_at) VALUES (?, ?, ?, ?)",
            (candidate_id, job_id, channel, _now()),
        )
        conn.commit()
        return True
    except sqlite3.IntegrityError:
        return False
