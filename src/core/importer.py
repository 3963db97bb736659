"""Load candidate and job records from YAML into the store."""

import logging
import sqlite3
from pathlib import Path
from typing import Any

import yaml

from src.core.db import upsert_candidate, upsert_job
from src.core.schemas import CandidateProfile, JobPosting

logger = logging.getLogger(__name__)


def load_records(path: str | Path) -> tuple[list[CandidateProfile], list[JobPosting]]:
    """Parse a YAML file with top-level ``candidates`` and/or ``jobs`` lists.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If a record is malformed.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Data file not found: {path}"
        raise FileNotFoundError(msg)
    raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
    candidates = [CandidateProfile.model_validate(c) for c in raw.get("candidates") or []]
    jobs = [JobPosting.model_validate(j) for j in raw.get("jobs") or []]
    return candidates, jobs


def import_records(conn: sqlite3.Connection, path: str | Path) -> tuple[int, int]:
    """Upsert every record from ``path``. Returns (candidates, jobs) counts."""
    candidates, jobs = load_records(path)
    for c in candidates:
        upsert_candidate(conn, c)
    for j in jobs:
        upsert_job(conn, j)
    logger.info("Imported %d candidates and %d jobs from %s", len(candidates), len(jobs), path)
    return len(candidates), len(jobs)
