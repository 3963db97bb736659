"""Skills matcher: bag-of-strings overlap between candidate and job skills."""

import logging
from collections.abc import Iterable

from src.core.schemas import FieldMatch
from src.matching.text import contains_either, normalize

logger = logging.getLogger(__name__)


def _job_skill_list(job_skills: Iterable[str], job_keywords: Iterable[str] | None) -> list[str]:
    merged = list(job_skills or [])
    if job_keywords:
        merged.extend(job_keywords)
    return [s for s in merged if normalize(s)]


def match_skills(
    candidate_skills: Iterable[str],
    job_skills: Iterable[str],
    job_keywords: Iterable[str] | None = None,
) -> FieldMatch:
    """Score the share of job skills covered by the candidate.

    A job skill matches when, after normalization, it contains or is contained
    by any candidate skill ("react" matches "react.js"). Score is
    ``100 * matched / total`` and 0 when the job lists no skills.

    Names that differ only in symbols collapse together: "C++" and "C#" both
    normalize to "c", which is contained in most other skill names.
    """
    wanted = _job_skill_list(job_skills, job_keywords)
    if not wanted:
        return FieldMatch(score=0.0, reason="No job skills listed")

    have = [n for n in (normalize(s) for s in candidate_skills or []) if n]
    matched = [
        skill for skill in wanted
        if any(contains_either(normalize(skill), h) for h in have)
    ]
    score = 100.0 * len(matched) / len(wanted)
    logger.debug("Skills: %d/%d matched", len(matched), len(wanted))
    return FieldMatch(
        score=score,
        reason=f"{len(matched)}/{len(wanted)} skills matched",
        matched=matched,
    )


def match_skills_weighted(
    candidate_skills: Iterable[str],
    job_skills: Iterable[str],
    job_keywords: Iterable[str] | None = None,
) -> FieldMatch:
    """Score candidate skills against job skills + keywords, exact hits counting double.

    Iterates the candidate side: an exact normalized hit counts 2, a containment
    hit counts 1. Score is ``100 * (2*exact + fuzzy) / len(candidate_skills)``,
    capped at 100.
    """
    have = [s for s in candidate_skills or [] if normalize(s)]
    wanted = [normalize(s) for s in _job_skill_list(job_skills, job_keywords)]
    if not have or not wanted:
        return FieldMatch(score=0.0, reason="No skills to compare")

    exact = 0
    fuzzy = 0
    matched: list[str] = []
    for skill in have:
        n = normalize(skill)
        if n in wanted:
            exact += 1
            matched.append(skill)
        elif any(contains_either(n, w) for w in wanted):
            fuzzy += 1
            matched.append(skill)

    score = min(100.0, 100.0 * (exact * 2 + fuzzy) / len(have))
    return FieldMatch(
        score=score,
        reason=f"{exact} exact, {fuzzy} partial skill matches",
        matched=matched,
    )


def describe_skill_matches(matched: list[str]) -> str:
    """Render matched skills as e.g. ``"3 skills match: python, sql +1 more"``."""
    if len(matched) == 1:
        return f"1 skill match: {matched[0]}"
    text = f"{len(matched)} skills match: {', '.join(matched[:2])}"
    if len(matched) > 2:
        text += f" +{len(matched) - 2} more"
    return text
