"""Integration test: job-posted flow, recommendations and promotions against SQLite."""

import json
import sqlite3
from datetime import datetime, timezone

import pytest

from src.core.config import DispatchConfig, Settings
from src.core.db import (
    find_job_by_id,
    init_db,
    list_system_messages,
    upsert_candidate,
    upsert_job,
    was_notified,
)
from src.core.schemas import CandidateProfile, JobPosting, NotInterestedEntry
from src.notify.mailer import LogMailer, MailDispatcher
from src.pipeline.orchestrator import (
    export_results_json,
    get_recommendations,
    handle_job_posted,
    promote_job,
    reply_to_message,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _candidate(id: str, **kw: object) -> CandidateProfile:
    defaults: dict[str, object] = {
        "name": id.title(),
        "email": f"{id}@example.com",
        "preferred_job_types": ["Full-time"],
        "work_env_preferences": ["Remote"],
    }
    defaults.update(kw)
    return CandidateProfile(id=id, **defaults)  # type: ignore[arg-type]


def _job(**kw: object) -> JobPosting:
    defaults: dict[str, object] = {
        "id": "j1",
        "title": "Software Engineer",
        "company_name": "Acme",
        "location": "Sydney, Australia",
        "category": "Software",
        "subcategory": "Software Development",
        "work_type": "Full-time",
        "workspace_option": "Remote",
        "skills": ["Python", "SQL"],
    }
    defaults.update(kw)
    return JobPosting(**defaults)  # type: ignore[arg-type]


def _pool() -> list[CandidateProfile]:
    return [
        # 100: every field matches
        _candidate(
            "ava",
            skills=["Python", "SQL"],
            dream_job_title="Software Engineer",
            resident_country="Sydney, Australia",
        ),
        # 49: half the skills, same country, no title
        _candidate("ben", skills=["Python"], resident_country="Melbourne, Australia"),
        # 0: ranked and emailed, but below the message floor
        _candidate("cara", skills=["Cooking"], preferred_job_types=[], work_env_preferences=[]),
        _candidate("dan", skills=[], preferred_job_types=[], work_env_preferences=[]),
        _candidate(
            "eve",
            skills=["Python", "SQL"],
            not_interested=[NotInterestedEntry(subcategory="Software Development")],
        ),
    ]


@pytest.fixture
def db(tmp_path) -> sqlite3.Connection:  # type: ignore[no-untyped-def]
    conn = init_db(tmp_path / "test.db")
    for c in _pool():
        upsert_candidate(conn, c)
    yield conn
    conn.close()


def _settings(**dispatch: object) -> Settings:
    return Settings(dispatch=DispatchConfig(**dispatch))  # type: ignore[arg-type]


class RejectingMailer(MailDispatcher):
    """Transport whose every delivery fails."""

    @property
    def transport_id(self) -> str:
        return "rejecting"

    def deliver(self, job: JobPosting, recipients: list[str]) -> None:
        msg = "mailbox unavailable"
        raise OSError(msg)


# ---------------------------------------------------------------------------
# Job posted
# ---------------------------------------------------------------------------


class TestHandleJobPosted:
    """End-to-end: pool -> rank -> dispatch -> email + system messages."""

    def test_full_flow(self, db: sqlite3.Connection) -> None:
        mailer = LogMailer()
        result = handle_job_posted(_job(), db, _settings(), mailer=mailer)

        assert [r.candidate_id for r in result.ranked] == ["ava", "ben", "cara"]
        assert [r.aggregate_score for r in result.ranked] == [100.0, 49.0, 0.0]

        assert mailer.deliveries == [
            ("j1", ["ava@example.com", "ben@example.com", "cara@example.com"]),
        ]
        assert result.email_report is not None
        assert result.email_report.sent_count == 3

        assert len(result.message_ids) == 2
        messages = list_system_messages(db, "ava")
        assert len(messages) == 1
        assert "Match Score: 100%" in messages[0]["content"]
        assert "Hi Ava," in messages[0]["content"]
        assert list_system_messages(db, "cara") == []

    def test_message_cap(self, db: sqlite3.Connection) -> None:
        result = handle_job_posted(_job(), db, _settings(message_max_recipients=1), mailer=LogMailer())
        assert len(result.message_ids) == 1
        assert list_system_messages(db, "ben") == []

    def test_dry_run_sends_nothing(self, db: sqlite3.Connection) -> None:
        mailer = LogMailer()
        result = handle_job_posted(_job(), db, _settings(), mailer=mailer, dry_run=True)
        assert len(result.plan.message_batch) == 2
        assert mailer.deliveries == []
        assert result.email_report is None
        assert result.message_ids == []
        assert list_system_messages(db, "ava") == []

    def test_without_mailer_still_messages(self, db: sqlite3.Connection) -> None:
        result = handle_job_posted(_job(), db, _settings(), mailer=None)
        assert result.email_report is None
        assert len(result.message_ids) == 2

    def test_app_only_job(self, db: sqlite3.Connection) -> None:
        mailer = LogMailer()
        result = handle_job_posted(_job(notification_option="app"), db, _settings(), mailer=mailer)
        assert result.plan.email_suppressed
        assert mailer.deliveries == []
        assert len(result.message_ids) == 2

    def test_no_notifications_job(self, db: sqlite3.Connection) -> None:
        mailer = LogMailer()
        result = handle_job_posted(_job(notification_option="none"), db, _settings(), mailer=mailer)
        assert len(result.ranked) == 3
        assert mailer.deliveries == []
        assert result.message_ids == []

    def test_repeat_posting_notifies_again_by_default(self, db: sqlite3.Connection) -> None:
        handle_job_posted(_job(), db, _settings(), mailer=LogMailer())
        handle_job_posted(_job(), db, _settings(), mailer=LogMailer())
        assert len(list_system_messages(db, "ava")) == 2

    def test_dedupe_skips_already_notified(self, db: sqlite3.Connection) -> None:
        settings = _settings(dedupe=True)
        first = handle_job_posted(_job(), db, settings, mailer=LogMailer())
        assert len(first.message_ids) == 2
        assert was_notified(db, "ava", "j1", "email")
        assert was_notified(db, "ava", "j1", "app")

        mailer = LogMailer()
        second = handle_job_posted(_job(), db, settings, mailer=mailer)
        assert mailer.deliveries == []
        assert second.email_report is None
        assert second.message_ids == []
        assert len(list_system_messages(db, "ava")) == 1

    def test_dedupe_does_not_record_failed_padded_address(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        conn = init_db(tmp_path / "padded.db")
        upsert_candidate(conn, _pool()[0].model_copy(update={"email": " ava@example.com "}))

        result = handle_job_posted(_job(), conn, _settings(dedupe=True), mailer=RejectingMailer())

        assert result.email_report is not None
        assert result.email_report.failed_emails == ["ava@example.com"]
        assert not was_notified(conn, "ava", "j1", "email")
        conn.close()

    def test_dedupe_records_every_candidate_sharing_an_address(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        conn = init_db(tmp_path / "shared.db")
        ava = _pool()[0]
        upsert_candidate(conn, ava.model_copy(update={"email": "team@example.com"}))
        upsert_candidate(conn, ava.model_copy(update={"id": "ava2", "email": "team@example.com"}))
        settings = _settings(dedupe=True)

        first = LogMailer()
        handle_job_posted(_job(), conn, settings, mailer=first)
        assert first.deliveries == [("j1", ["team@example.com"])]
        assert was_notified(conn, "ava", "j1", "email")
        assert was_notified(conn, "ava2", "j1", "email")

        second = LogMailer()
        handle_job_posted(_job(), conn, settings, mailer=second)
        assert second.deliveries == []
        conn.close()

    def test_empty_pool(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        conn = init_db(tmp_path / "empty.db")
        result = handle_job_posted(_job(), conn, _settings(), mailer=LogMailer())
        assert result.ranked == []
        assert result.email_report is None
        assert result.message_ids == []
        conn.close()

    def test_export_json(self, db: sqlite3.Connection) -> None:
        result = handle_job_posted(_job(), db, _settings(), dry_run=True)
        data = json.loads(export_results_json(result.ranked))
        assert data[0]["candidate_id"] == "ava"
        assert data[0]["score"] == 100.0
        assert set(data[0]["per_field_scores"]) == {"skills", "title_quality", "location", "work_type", "work_env"}


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


class TestGetRecommendations:
    def test_recommends_open_jobs(self, db: sqlite3.Connection) -> None:
        upsert_job(db, _job())
        upsert_job(db, _job(id="j2", title="Barista", skills=["Coffee"], category="Hospitality",
                            subcategory="Cafe", work_type="Part-time", workspace_option="On-site",
                            location="Perth, Australia"))
        upsert_job(db, _job(id="j3", status="Closed"))

        result = get_recommendations("ava", db, Settings(), now=NOW)
        assert [r.job.id for r in result.recommendations] == ["j1"]
        assert result.recommendations[0].match_percentage == 84
        assert result.low_confidence is False

    def test_stale_jobs_excluded(self, db: sqlite3.Connection) -> None:
        upsert_job(db, _job(posted_at=datetime(2025, 1, 1, tzinfo=timezone.utc)))
        result = get_recommendations("ava", db, Settings(), now=NOW)
        assert result.recommendations == []

    def test_unknown_candidate(self, db: sqlite3.Connection) -> None:
        with pytest.raises(LookupError, match="Candidate not found: zed"):
            get_recommendations("zed", db, Settings(), now=NOW)


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------


class TestPromoteJob:
    def test_notifies_matching_candidates(self, db: sqlite3.Connection) -> None:
        upsert_job(db, _job())
        result = promote_job("j1", "premium_listing", db, Settings(), now=NOW)

        notified = {n["candidate_id"]: n for n in result.notified}
        assert set(notified) == {"ava", "ben"}
        assert notified["ava"]["match_score"] == 84.0
        assert notified["ava"]["boost_score"] == 126.0

        messages = list_system_messages(db, "ava")
        assert messages[0]["message_type"] == "promotion"
        assert messages[0]["title"] == "Premium Job Match Found!"
        assert find_job_by_id(db, "j1").is_premium is True  # type: ignore[union-attr]

    def test_urgent_hiring_sets_immediate_start(self, db: sqlite3.Connection) -> None:
        upsert_job(db, _job())
        promote_job("j1", "urgent_hiring", db, Settings(), now=NOW)
        job = find_job_by_id(db, "j1")
        assert job is not None
        assert job.has_immediate_start is True
        assert job.is_premium is False

    def test_skips_applied_and_saved(self, db: sqlite3.Connection) -> None:
        upsert_job(db, _job())
        upsert_candidate(db, _pool()[0].model_copy(update={"applied_job_ids": ["j1"]}))
        upsert_candidate(db, _pool()[1].model_copy(update={"saved_job_ids": ["j1"]}))
        result = promote_job("j1", "featured_job", db, Settings(), now=NOW)
        assert result.notified == []

    def test_unknown_job(self, db: sqlite3.Connection) -> None:
        with pytest.raises(LookupError, match="Job not found: nope"):
            promote_job("nope", "featured_job", db, Settings(), now=NOW)

    def test_skips_incomplete_profiles(self, db: sqlite3.Connection) -> None:
        upsert_job(db, _job())
        # missing dream title, job types and summary; would otherwise score 43
        upsert_candidate(db, _candidate("fay", skills=["Python", "SQL"], preferred_job_types=[]))
        result = promote_job("j1", "featured_job", db, Settings(), now=NOW)
        assert "fay" not in {n["candidate_id"] for n in result.notified}
        assert list_system_messages(db, "fay") == []


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------


class TestReplyToMessage:
    def test_reply_marks_message_visible(self, db: sqlite3.Connection) -> None:
        result = handle_job_posted(_job(), db, _settings())
        message_id = list_system_messages(db, "ava")[0]["id"]
        assert message_id in result.message_ids

        reply_to_message(message_id, "ava", db)

        assert list_system_messages(db, "ava") == []
        row = list_system_messages(db, "ava", include_replied=True)[0]
        assert row["has_replied"] == 1
        assert row["is_visible"] == 1

    def test_other_candidates_message(self, db: sqlite3.Connection) -> None:
        handle_job_posted(_job(), db, _settings())
        message_id = list_system_messages(db, "ava")[0]["id"]
        with pytest.raises(LookupError, match=f"System message not found: {message_id}"):
            reply_to_message(message_id, "ben", db)

    def test_unknown_message(self, db: sqlite3.Connection) -> None:
        with pytest.raises(LookupError, match="System message not found: 999"):
            reply_to_message(999, "ava", db)
