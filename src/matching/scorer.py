"""Composite scorer: weighted aggregation of field matchers in two directions.

JOB_TO_CANDIDATES ranks every skilled candidate for one job (integer scores,
no cutoff). CANDIDATE_TO_JOBS scores open jobs for one candidate (one-decimal
scores plus flat bonuses) and returns the top-N recommendations.

Ties keep input order: sorting is stable and there is no secondary key.
"""

import logging
import math
from collections.abc import Callable, Iterable
from concurrent.futures import ProcessPoolExecutor
from datetime import datetime, timezone
from functools import partial
from typing import TypeVar

from src.core.config import RecommendationConfig, ScoringConfig
from src.core.schemas import (
    CandidateProfile,
    Direction,
    FieldMatch,
    JobPosting,
    MatchResult,
    Recommendation,
    RecommendationResult,
)
from src.matching.completeness import is_profile_incomplete, missing_critical_fields
from src.matching.filters import (
    AlreadyEngagedFilter,
    ExcludedJobsFilter,
    HasSkillsFilter,
    NotInterestedFilter,
    run_filter_chain,
)
from src.matching.location import match_location
from src.matching.preferences import (
    has_relevant_experience,
    match_category,
    match_experience,
    match_salary,
    match_work_env,
    match_work_type,
)
from src.matching.skills import describe_skill_matches, match_skills, match_skills_weighted
from src.matching.title import match_title

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

FALLBACK_REASON = "New opportunity in your field"

# Title tiers at or above this count as "matches your dream role".
_DREAM_ROLE_MIN_SCORE = 85.0


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero for non-negative scores (0.5 -> 1, not 0)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def _days_since(posted_at: datetime, now: datetime) -> float:
    if posted_at.tzinfo is None:
        posted_at = posted_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - posted_at).total_seconds() / 86400.0


class CompositeScorer:
    """Combine field matcher outputs into one aggregate score per candidate/job pair.

    Usage::

        scorer = CompositeScorer(settings.scoring, settings.recommendations)
        ranked = scorer.rank_candidates(job, candidates)
        recs = scorer.recommend_jobs(candidate, open_jobs)
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        recommendations: RecommendationConfig | None = None,
    ) -> None:
        self._config = config or ScoringConfig()
        self._recs = recommendations or RecommendationConfig()

    # ------------------------------------------------------------------
    # Job -> candidates
    # ------------------------------------------------------------------

    def score_candidate(self, job: JobPosting, candidate: CandidateProfile) -> MatchResult:
        """Score one candidate for a job using the job -> candidates weight table."""
        w = self._config.job_to_candidates
        skills = match_skills(candidate.skills, job.skills)
        title = match_title(candidate.dream_job_title, job.title)
        location = match_location(candidate.resident_country, job.location, candidate.preferred_locations)
        work_type = match_work_type(candidate.preferred_job_types, job.work_type)
        work_env = match_work_env(candidate.work_env_preferences, job.workspace_option)

        total = (
            skills.score * w.skills
            + title.score * w.title
            + location.score * w.location
            + work_type.score * w.work_type
            + work_env.score * w.work_env
        ) / 100.0

        reasons: list[str] = []
        if skills.matched:
            reasons.append(describe_skill_matches(skills.matched))
        if title.score:
            reasons.append(f"Job title: {title.reason}")
        if location.score:
            reasons.append(f"Location: {location.reason}")
        if work_type.score:
            reasons.append(work_type.reason)
        if work_env.score:
            reasons.append(work_env.reason)

        return MatchResult(
            candidate_id=candidate.id,
            job_id=job.id,
            direction=Direction.JOB_TO_CANDIDATES,
            aggregate_score=_clamp(round_half_up(total)),
            per_field_scores={
                "skills": skills.score,
                "title_quality": title.score,
                "location": location.score,
                "work_type": work_type.score,
                "work_env": work_env.score,
            },
            match_reasons=reasons,
        )

    def rank_candidates(
        self,
        job: JobPosting,
        candidates: list[CandidateProfile],
    ) -> list[MatchResult]:
        """Score every eligible candidate for ``job``, best first. No cutoff is applied."""
        pool = run_filter_chain(candidates, [HasSkillsFilter(), NotInterestedFilter(job)])
        results = self._map(partial(self.score_candidate, job), pool)
        results.sort(key=lambda r: r.aggregate_score, reverse=True)
        logger.info(
            "Ranked %d/%d candidates for job '%s' (%s)",
            len(results), len(candidates), job.title, job.id,
        )
        return results

    # ------------------------------------------------------------------
    # Candidate -> jobs
    # ------------------------------------------------------------------

    def score_job(
        self,
        candidate: CandidateProfile,
        job: JobPosting,
        now: datetime | None = None,
    ) -> MatchResult:
        """Score one job for a candidate using the candidate -> jobs table plus bonuses."""
        w = self._config.candidate_to_jobs
        recs = self._recs
        now = now or datetime.now(timezone.utc)

        skills = match_skills_weighted(candidate.skills, job.skills, job.keywords)
        title = match_title(candidate.dream_job_title, job.title)
        category = match_category(candidate.work_history, candidate.dream_job_title, job.category)
        work_type = match_work_type(candidate.preferred_job_types, job.work_type)
        work_env = match_work_env(candidate.work_env_preferences, job.workspace_option)
        location = self._location_preference(candidate, job)
        experience = match_experience(candidate.work_history, job.title)
        salary = match_salary(job.salary_from, job.salary_to, recs.salary_threshold)

        total = (
            skills.score * w.skills
            + title.score * w.title
            + category.score * w.category
            + work_type.score * w.work_type
            + work_env.score * w.work_env
            + location.score * w.location
            + experience.score * w.experience
            + salary.score * w.salary
        ) / 100.0

        if job.is_premium:
            total += recs.premium_bonus
        if job.has_immediate_start:
            total += recs.immediate_start_bonus
        if job.posted_at is not None:
            days = _days_since(job.posted_at, now)
            if days <= 7:
                total += recs.recent_week_bonus
            elif days <= 30:
                total += recs.recent_month_bonus

        return MatchResult(
            candidate_id=candidate.id,
            job_id=job.id,
            direction=Direction.CANDIDATE_TO_JOBS,
            aggregate_score=round_half_up(_clamp(total), 1),
            per_field_scores={
                "skills": skills.score,
                "title_quality": title.score,
                "category": category.score,
                "work_type": work_type.score,
                "work_env": work_env.score,
                "location": location.score,
                "experience": experience.score,
                "salary": salary.score,
            },
            match_reasons=self._recommendation_reasons(candidate, job, title, work_type, work_env),
        )

    def rank_jobs(
        self,
        candidate: CandidateProfile,
        jobs: list[JobPosting],
        now: datetime | None = None,
    ) -> list[tuple[JobPosting, MatchResult]]:
        """Score every eligible job for ``candidate``, best first."""
        now = now or datetime.now(timezone.utc)
        pool = run_filter_chain(jobs, [ExcludedJobsFilter(candidate), AlreadyEngagedFilter(candidate)])
        results = self._map(partial(self.score_job, candidate, now=now), pool)
        paired = list(zip(pool, results))
        paired.sort(key=lambda p: p[1].aggregate_score, reverse=True)
        return paired

    def recommend_jobs(
        self,
        candidate: CandidateProfile,
        jobs: list[JobPosting],
        now: datetime | None = None,
    ) -> RecommendationResult:
        """Top-N jobs scoring above the relevance floor, or the best available as a fallback.

        The fallback guarantees a non-empty answer whenever any eligible job
        exists; it is flagged ``low_confidence``.
        """
        recs = self._recs
        ranked = self.rank_jobs(candidate, jobs, now)

        top = [p for p in ranked if p[1].aggregate_score > recs.min_score][: recs.top_n]
        low_confidence = not top and bool(ranked)
        if low_confidence:
            top = ranked[: recs.top_n]
            logger.info(
                "No job cleared %.0f for candidate %s - falling back to best %d",
                recs.min_score, candidate.id, len(top),
            )

        recommendations = [
            Recommendation(
                job=job,
                score=result.aggregate_score,
                match_reasons=(
                    result.match_reasons or [FALLBACK_REASON]
                    if low_confidence else result.match_reasons
                ),
                match_percentage=int(min(round_half_up(result.aggregate_score), 100)),
            )
            for job, result in top
        ]
        return RecommendationResult(
            candidate_id=candidate.id,
            recommendations=recommendations,
            low_confidence=low_confidence,
            profile_incomplete=is_profile_incomplete(candidate),
            missing_critical_fields=missing_critical_fields(candidate),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _location_preference(self, candidate: CandidateProfile, job: JobPosting) -> FieldMatch:
        if candidate.willing_to_relocate and job.location:
            return FieldMatch(score=100.0, reason="Open to relocation")
        return match_location(candidate.resident_country, job.location, candidate.preferred_locations)

    def _recommendation_reasons(
        self,
        candidate: CandidateProfile,
        job: JobPosting,
        title: FieldMatch,
        work_type: FieldMatch,
        work_env: FieldMatch,
    ) -> list[str]:
        reasons: list[str] = []

        # Reasons quote every overlapping candidate skill, not just the weighted ones.
        overlap = match_skills(job.skills + job.keywords, candidate.skills)
        if overlap.matched:
            reasons.append(describe_skill_matches(overlap.matched))
        if title.score >= _DREAM_ROLE_MIN_SCORE:
            reasons.append(f"Matches your dream role: {candidate.dream_job_title}")
        if work_type.score:
            reasons.append(work_type.reason)
        if work_env.score:
            reasons.append(work_env.reason)
        if has_relevant_experience(candidate.work_history, job.title, job.category):
            reasons.append("Relevant work experience")
        if job.is_premium and job.has_immediate_start:
            reasons.append("Premium listing with immediate start")
        elif job.is_premium:
            reasons.append("Premium listing")
        elif job.has_immediate_start:
            reasons.append("Immediate start available")

        return reasons[: self._recs.max_reasons]

    def _map(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        items = list(items)
        workers = self._config.workers
        if workers > 1 and len(items) >= self._config.parallel_min_pool:
            chunksize = max(1, len(items) // (workers * 4))
            logger.debug("Scoring %d items on %d workers", len(items), workers)
            with ProcessPoolExecutor(max_workers=workers) as pool:
                return list(pool.map(fn, items, chunksize=chunksize))
        return [fn(item) for item in items]
