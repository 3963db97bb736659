"""Tests for the notification dispatch policy."""

import pytest

from src.core.config import DispatchConfig
from src.core.schemas import Direction, MatchResult
from src.notify.dispatch import plan_dispatch


def _ranked(*scores: float) -> list[MatchResult]:
    return [
        MatchResult(
            candidate_id=f"c{i}",
            job_id="j1",
            direction=Direction.JOB_TO_CANDIDATES,
            aggregate_score=s,
        )
        for i, s in enumerate(scores)
    ]


class TestPlanDispatch:
    def test_message_floor_and_cap(self) -> None:
        config = DispatchConfig(message_min_score=40, message_max_recipients=2)
        plan = plan_dispatch(_ranked(90, 60, 45, 39, 10), config)
        assert [r.aggregate_score for r in plan.message_batch] == [90, 60]

    def test_email_takes_everyone_by_default(self) -> None:
        plan = plan_dispatch(_ranked(90, 60, 45, 39, 10), DispatchConfig())
        assert len(plan.email_batch) == 5

    def test_email_cap(self) -> None:
        plan = plan_dispatch(_ranked(90, 60, 45), DispatchConfig(email_max_recipients=2))
        assert [r.candidate_id for r in plan.email_batch] == ["c0", "c1"]

    def test_floor_inclusive(self) -> None:
        plan = plan_dispatch(_ranked(40, 39.9), DispatchConfig(message_min_score=40))
        assert [r.aggregate_score for r in plan.message_batch] == [40]

    def test_batches_may_overlap(self) -> None:
        plan = plan_dispatch(_ranked(90), DispatchConfig())
        assert plan.email_batch == plan.message_batch

    def test_empty_ranking(self) -> None:
        plan = plan_dispatch([], DispatchConfig())
        assert plan.email_batch == []
        assert plan.message_batch == []

    def test_zero_cap(self) -> None:
        plan = plan_dispatch(_ranked(90), DispatchConfig(message_max_recipients=0))
        assert plan.message_batch == []


class TestNotificationOption:
    @pytest.mark.parametrize(
        ("option", "emails", "messages"),
        [("both", 2, 1), ("email", 2, 0), ("app", 0, 1), ("none", 0, 0)],
    )
    def test_channels(self, option: str, emails: int, messages: int) -> None:
        plan = plan_dispatch(_ranked(90, 20), DispatchConfig(), option)
        assert len(plan.email_batch) == emails
        assert len(plan.message_batch) == messages
        assert plan.email_suppressed == (emails == 0)
        assert plan.message_suppressed == (messages == 0)
