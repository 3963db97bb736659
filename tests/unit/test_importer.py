"""Tests for YAML record import."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from src.core.db import find_all_candidates, find_open_jobs, init_db
from src.core.importer import import_records, load_records

REPO_ROOT = Path(__file__).resolve().parents[2]


class TestLoadRecords:
    def test_sample_data(self) -> None:
        candidates, jobs = load_records(REPO_ROOT / "config" / "sample_data.yaml")
        assert [c.id for c in candidates] == ["cand-ava", "cand-liam", "cand-noor"]
        assert [j.id for j in jobs] == ["job-101", "job-102"]
        assert candidates[1].not_interested[0].subcategory == "Software Development"

    def test_only_jobs(self, tmp_path: Path) -> None:
        path = tmp_path / "jobs.yaml"
        path.write_text("jobs:\n  - {id: j1, title: Dev}\n")
        candidates, jobs = load_records(path)
        assert candidates == []
        assert jobs[0].title == "Dev"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Data file not found"):
            load_records(tmp_path / "missing.yaml")

    def test_invalid_record(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("jobs:\n  - {id: j1, title: ''}\n")
        with pytest.raises(ValidationError):
            load_records(path)


class TestImportRecords:
    def test_counts_and_idempotent(self, tmp_path: Path) -> None:
        conn = init_db(tmp_path / "t.db")
        sample = REPO_ROOT / "config" / "sample_data.yaml"
        assert import_records(conn, sample) == (3, 2)
        assert import_records(conn, sample) == (3, 2)
        assert len(find_all_candidates(conn)) == 3
        assert len(find_open_jobs(conn)) == 2
        conn.close()
