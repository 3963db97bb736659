"""Orchestrator: wires storage, composite scorer, dispatch policy, mail and messages.

Job posted:
  1. Load skilled candidate pool
  2. Rank candidates for the job (pure scoring)
  3. Dispatch policy -> email batch + system-message batch
  4. Optional dedup against notification history
  5. Email alert via the mail transport
  6. System messages persisted for the top matches

Recommendations and promotions reuse the candidate -> jobs direction; a
candidate reply makes the system message visible.
"""

import json
import logging
import sqlite3
from datetime import datetime

from src.core.config import Settings
from src.core.db import (
    create_system_message,
    find_all_candidates,
    find_candidate_by_id,
    find_candidates_with_skills,
    find_job_by_id,
    find_open_jobs,
    mark_message_replied,
    record_notification,
    upsert_job,
    was_notified,
)
from src.core.schemas import (
    CandidateProfile,
    DispatchResult,
    JobPosting,
    MatchResult,
    RecommendationResult,
)
from src.matching.completeness import is_profile_incomplete
from src.matching.filters import is_not_interested
from src.matching.scorer import CompositeScorer, round_half_up
from src.notify.dispatch import plan_dispatch
from src.notify.mailer import MailDispatcher, SendReport
from src.notify.messages import render_job_notification, render_promotion

logger = logging.getLogger(__name__)

PROMOTION_BOOST = 1.5


class JobPostedResult:
    """Summary of matching and notifying for one posted job."""

    def __init__(
        self,
        job: JobPosting,
        ranked: list[MatchResult],
        plan: DispatchResult,
        email_report: SendReport | None,
        message_ids: list[int],
    ) -> None:
        self.job = job
        self.ranked = ranked
        self.plan = plan
        self.email_report = email_report
        self.message_ids = message_ids


class PromotionResult:
    """Candidates notified about a promoted job."""

    def __init__(self, job: JobPosting, promotion_type: str, notified: list[dict]) -> None:
        self.job = job
        self.promotion_type = promotion_type
        self.notified = notified


def _scorer(settings: Settings) -> CompositeScorer:
    return CompositeScorer(settings.scoring, settings.recommendations)


def handle_job_posted(
    job: JobPosting,
    conn: sqlite3.Connection,
    settings: Settings,
    mailer: MailDispatcher | None = None,
    dry_run: bool = False,
) -> JobPostedResult:
    """Rank the skilled candidate pool for a new job and notify the best matches.

    With ``dry_run`` nothing is sent or written; the plan is still computed.
    """
    dispatch = settings.dispatch
    candidates = find_candidates_with_skills(conn)
    by_id = {c.id: c for c in candidates}
    logger.info("Job '%s' posted - %d candidates with skills", job.title, len(candidates))

    ranked = _scorer(settings).rank_candidates(job, candidates)
    plan = plan_dispatch(ranked, dispatch, job.notification_option)

    email_batch = plan.email_batch
    message_batch = plan.message_batch
    if dispatch.dedupe:
        email_batch = [r for r in email_batch if not was_notified(conn, r.candidate_id, job.id, "email")]
        message_batch = [r for r in message_batch if not was_notified(conn, r.candidate_id, job.id, "app")]
        logger.info(
            "Dedup: %d email, %d message recipients not notified before",
            len(email_batch), len(message_batch),
        )

    if dry_run:
        logger.info(
            "[DRY RUN] Would email %d and message %d candidates",
            len(email_batch), len(message_batch),
        )
        return JobPostedResult(job, ranked, plan, None, [])

    email_report = _send_emails(job, email_batch, by_id, mailer, conn, dedupe=dispatch.dedupe)
    message_ids = _create_messages(job, message_batch, by_id, conn, settings)

    return JobPostedResult(job, ranked, plan, email_report, message_ids)


def _send_emails(
    job: JobPosting,
    batch: list[MatchResult],
    by_id: dict[str, CandidateProfile],
    mailer: MailDispatcher | None,
    conn: sqlite3.Connection,
    dedupe: bool,
) -> SendReport | None:
    if not batch:
        return None
    if mailer is None:
        logger.warning("No mail transport configured - skipping %d email alerts", len(batch))
        return None

    # address -> every candidate using it; keys match what send_batch reports
    recipients: dict[str, list[str]] = {}
    for r in batch:
        email = by_id[r.candidate_id].email.strip()
        if email:
            recipients.setdefault(email, []).append(r.candidate_id)

    report = mailer.send_batch(job, list(recipients))
    if dedupe:
        failed = set(report.failed_emails)
        for email, candidate_ids in recipients.items():
            if email in failed:
                continue
            for candidate_id in candidate_ids:
                record_notification(conn, candidate_id, job.id, "email")
    return report


def _create_messages(
    job: JobPosting,
    batch: list[MatchResult],
    by_id: dict[str, CandidateProfile],
    conn: sqlite3.Connection,
    settings: Settings,
) -> list[int]:
    message_ids: list[int] = []
    for result in batch:
        candidate = by_id[result.candidate_id]
        content = render_job_notification(
            job,
            candidate,
            result.aggregate_score,
            result.match_reasons,
            template=settings.dispatch.message_template,
        )
        try:
            message_id = create_system_message(
                conn,
                candidate_id=candidate.id,
                job_id=job.id,
                content=content,
                score=result.aggregate_score,
                reasons=result.match_reasons,
            )
        except sqlite3.Error:
            logger.warning(
                "Failed to store system message for candidate %s (job %s)",
                candidate.id, job.id,
                exc_info=True,
            )
            continue
        if settings.dispatch.dedupe:
            record_notification(conn, candidate.id, job.id, "app")
        message_ids.append(message_id)
    logger.info("Stored %d/%d system messages for job '%s'", len(message_ids), len(batch), job.id)
    return message_ids


def get_recommendations(
    candidate_id: str,
    conn: sqlite3.Connection,
    settings: Settings,
    now: datetime | None = None,
) -> RecommendationResult:
    """Personalized top-N open jobs for one candidate.

    Raises:
        LookupError: If the candidate does not exist.
    """
    candidate = find_candidate_by_id(conn, candidate_id)
    if candidate is None:
        msg = f"Candidate not found: {candidate_id}"
        raise LookupError(msg)

    jobs = find_open_jobs(conn, settings.recommendations.posted_within_days, now=now)
    if not jobs:
        logger.info("No open jobs available for recommendations")
    return _scorer(settings).recommend_jobs(candidate, jobs, now)


def promote_job(
    job_id: str,
    promotion_type: str,
    conn: sqlite3.Connection,
    settings: Settings,
    now: datetime | None = None,
) -> PromotionResult:
    """Send promotion messages to candidates who match a promoted job.

    Only candidates with a complete profile are considered; those who applied,
    saved, or opted out of the job's subcategory are skipped. The job's
    premium / immediate-start flags are updated afterwards.

    Raises:
        LookupError: If the job does not exist.
    """
    job = find_job_by_id(conn, job_id)
    if job is None:
        msg = f"Job not found: {job_id}"
        raise LookupError(msg)

    scorer = _scorer(settings)
    title, message = render_promotion(job, promotion_type)
    notified: list[dict] = []

    for candidate in find_all_candidates(conn):
        if is_profile_incomplete(candidate):
            continue
        if job.id in candidate.applied_job_ids or job.id in candidate.saved_job_ids:
            continue
        if is_not_interested(candidate, job):
            continue
        result = scorer.score_job(candidate, job, now)
        if result.aggregate_score <= settings.dispatch.promotion_min_score:
            continue
        create_system_message(
            conn,
            candidate_id=candidate.id,
            job_id=job.id,
            content=message,
            score=result.aggregate_score,
            reasons=result.match_reasons,
            message_type="promotion",
            title=title,
        )
        notified.append({
            "candidate_id": candidate.id,
            "match_score": result.aggregate_score,
            "boost_score": round_half_up(result.aggregate_score * PROMOTION_BOOST, 1),
        })

    updates: dict[str, object] = {}
    if promotion_type == "premium_listing":
        updates["is_premium"] = True
    elif promotion_type == "urgent_hiring":
        updates["has_immediate_start"] = True
    if updates:
        job = job.model_copy(update=updates)
        upsert_job(conn, job)

    logger.info("Promotion '%s' for job '%s' sent to %d candidates", promotion_type, job.id, len(notified))
    return PromotionResult(job, promotion_type, notified)


def reply_to_message(message_id: int, candidate_id: str, conn: sqlite3.Connection) -> None:
    """Record a candidate's reply to a system message, making it visible.

    Raises:
        LookupError: If the message does not exist or belongs to another candidate.
    """
    if not mark_message_replied(conn, message_id, candidate_id):
        msg = f"System message not found: {message_id}"
        raise LookupError(msg)
    logger.info("Candidate %s replied to system message %d", candidate_id, message_id)


def export_results_json(ranked: list[MatchResult]) -> str:
    """Export a ranked list as a JSON string."""
    data = [
        {
            "candidate_id": r.candidate_id,
            "job_id": r.job_id,
            "score": r.aggregate_score,
            "per_field_scores": r.per_field_scores,
            "match_reasons": r.match_reasons,
        }
        for r in ranked
    ]
    return json.dumps(data, indent=2)
