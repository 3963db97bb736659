"""Notification dispatch policy: split a ranked list into email and in-app batches.

Email is the cheap broad-reach channel (low floor, large cap); in-app system
messages are reply-gated and high visibility, so they need a higher score and
get a small cap. The two batches are independent and may overlap.
"""

import logging

from src.core.config import DispatchConfig
from src.core.schemas import DispatchResult, MatchResult

logger = logging.getLogger(__name__)


def _select(ranked: list[MatchResult], min_score: float, cap: int) -> list[MatchResult]:
    """Take entries clearing ``min_score`` in rank order until ``cap`` is reached."""
    return [r for r in ranked if r.aggregate_score >= min_score][:cap]


def plan_dispatch(
    ranked: list[MatchResult],
    config: DispatchConfig,
    notification_option: str = "both",
) -> DispatchResult:
    """Decide which ranked candidates get an email alert and which get a system message.

    Args:
        ranked: Match results for one job, already sorted best first.
        config: Thresholds and caps per channel.
        notification_option: The job's channel choice: both, email, app or none.

    Returns:
        DispatchResult with both batches. An empty ranked list yields empty
        batches; that is a normal outcome, not an error.
    """
    email_suppressed = notification_option in ("app", "none")
    message_suppressed = notification_option in ("email", "none")

    email_batch = (
        [] if email_suppressed
        else _select(ranked, config.email_min_score, config.email_max_recipients)
    )
    message_batch = (
        [] if message_suppressed
        else _select(ranked, config.message_min_score, config.message_max_recipients)
    )

    logger.info(
        "Dispatch plan: %d ranked -> %d email, %d system messages (option=%s)",
        len(ranked), len(email_batch), len(message_batch), notification_option,
    )
    return DispatchResult(
        email_batch=email_batch,
        message_batch=message_batch,
        email_suppressed=email_suppressed,
        message_suppressed=message_suppressed,
    )
