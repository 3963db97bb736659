"""Tests for core data models."""

import pytest
from pydantic import ValidationError

from src.core.schemas import (
    CandidateProfile,
    Direction,
    FieldMatch,
    JobPosting,
    MatchResult,
    Recommendation,
    RecommendationResult,
)


class TestCandidateProfile:
    def test_blank_skills_dropped(self) -> None:
        c = CandidateProfile(id="c", skills=[" Python ", "", "   ", "SQL"])
        assert c.skills == ["Python", "SQL"]

    def test_frozen(self) -> None:
        c = CandidateProfile(id="c")
        with pytest.raises(ValidationError):
            c.name = "x"  # type: ignore[misc]


class TestJobPosting:
    def test_title_required(self) -> None:
        with pytest.raises(ValidationError, match="job title must not be empty"):
            JobPosting(id="j", title="   ")

    def test_notification_option_normalized(self) -> None:
        assert JobPosting(id="j", title="Dev", notification_option=" Email ").notification_option == "email"

    def test_notification_option_rejected(self) -> None:
        with pytest.raises(ValidationError, match="notification_option"):
            JobPosting(id="j", title="Dev", notification_option="sms")

    def test_defaults(self) -> None:
        job = JobPosting(id="j", title="Dev")
        assert job.currency == "AUD"
        assert job.status == "Open"
        assert job.notification_option == "both"


class TestScoreBounds:
    def test_field_match_bounded(self) -> None:
        with pytest.raises(ValidationError):
            FieldMatch(score=100.1)

    def test_match_result_bounded(self) -> None:
        with pytest.raises(ValidationError):
            MatchResult(candidate_id="c", job_id="j", direction=Direction.JOB_TO_CANDIDATES, aggregate_score=-1)


class TestRecommendationResult:
    def test_average_rounds_half_up(self) -> None:
        job = JobPosting(id="j", title="Dev")
        result = RecommendationResult(
            candidate_id="c",
            recommendations=[Recommendation(job=job, score=80.0), Recommendation(job=job, score=81.0)],
        )
        assert result.average_score == 81
