"""Job-title matcher with tiered exact / contains / word-overlap / seniority scoring.

Tiers are checked from strongest to weakest and the first hit wins, so
near-exact matches always dominate fuzzy word overlap, which in turn dominates
a seniority-only signal.
"""

import logging

from src.core.schemas import FieldMatch
from src.matching.text import contains_either, normalize, title_words

logger = logging.getLogger(__name__)

SENIORITY_KEYWORDS = ("junior", "mid", "senior", "lead", "principal", "staff", "associate", "entry")

# (minimum overlap percentage, score), checked top-down.
_OVERLAP_BANDS: tuple[tuple[float, float], ...] = (
    (80.0, 80.0),
    (60.0, 65.0),
    (40.0, 50.0),
)


def match_title(candidate_title: str | None, job_title: str | None) -> FieldMatch:
    """Score a candidate's desired title against a posted job title."""
    if not candidate_title or not candidate_title.strip() or not job_title or not job_title.strip():
        return FieldMatch(score=0.0, reason="No job title data")

    raw_user = candidate_title.strip().lower()
    raw_job = job_title.strip().lower()
    norm_user = normalize(candidate_title)
    norm_job = normalize(job_title)

    if raw_user == raw_job:
        return FieldMatch(score=100.0, reason="Exact match")
    if norm_user and norm_user == norm_job:
        return FieldMatch(score=98.0, reason="Exact match (normalized)")
    if contains_either(raw_user, raw_job):
        return FieldMatch(score=90.0, reason="Contains match")
    if contains_either(norm_user, norm_job):
        return FieldMatch(score=85.0, reason="Contains match (normalized)")

    overlap = word_overlap_percentage(norm_user, norm_job)
    for floor, score in _OVERLAP_BANDS:
        if overlap >= floor:
            return FieldMatch(score=score, reason=f"Word overlap ({overlap:.0f}%)")

    shared = _shared_seniority(norm_user, norm_job)
    if shared:
        return FieldMatch(score=40.0, reason="Seniority match", matched=[shared])

    logger.debug("No title match: '%s' vs '%s'", candidate_title, job_title)
    return FieldMatch(score=0.0, reason="No match")


def word_overlap_percentage(user_title: str, job_title: str) -> float:
    """Percentage of words (len > 2) shared exactly or partially between two titles.

    ``(exact + partial) / max(len(user_words), len(job_words)) * 100``
    """
    user_words = title_words(user_title)
    job_words = title_words(job_title)
    if not user_words or not job_words:
        return 0.0

    job_set = set(job_words)
    exact = 0
    partial = 0
    for word in user_words:
        if word in job_set:
            exact += 1
        elif any(contains_either(word, jw) for jw in job_words):
            partial += 1
    return (exact + partial) / max(len(user_words), len(job_words)) * 100.0


def _shared_seniority(user_title: str, job_title: str) -> str | None:
    user_tokens = set(user_title.split())
    job_tokens = set(job_title.split())
    for kw in SENIORITY_KEYWORDS:
        if kw in user_tokens and kw in job_tokens:
            return kw
    return None
