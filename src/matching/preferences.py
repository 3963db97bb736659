"""Preference matchers: simple membership and heuristic tests, each 0 or 100-ish."""

from collections.abc import Iterable, Sequence

from src.core.schemas import FieldMatch, WorkHistoryEntry
from src.matching.text import contains_either, normalize

# Preference keyword -> normalized workspace option it stands for.
_ENV_ALIASES: tuple[tuple[str, str], ...] = (
    ("remote", "remote"),
    ("office", "onsite"),
    ("hybrid", "hybrid"),
)

# Seniority level -> predicate over number of past roles.
_SENIORITY_BY_ROLES = {
    "junior": lambda n: n <= 2,
    "mid": lambda n: 2 <= n <= 5,
    "senior": lambda n: n >= 5,
    "lead": lambda n: n >= 7,
    "principal": lambda n: n >= 10,
}


def match_work_type(preferred_job_types: Iterable[str], work_type: str | None) -> FieldMatch:
    wanted = normalize(work_type)
    if not wanted:
        return FieldMatch(score=0.0, reason="No work type data")
    if any(normalize(t) == wanted for t in preferred_job_types or ()):
        return FieldMatch(score=100.0, reason=f"Preferred employment: {work_type}", matched=[work_type or ""])
    return FieldMatch(score=0.0, reason="Work type not preferred")


def match_work_env(work_env_preferences: Iterable[str], workspace_option: str | None) -> FieldMatch:
    """Match environment preferences against the job's workspace option.

    "remote", "office" and "hybrid" inside a preference map onto the Remote,
    On-site and Hybrid options; anything else needs a case-insensitive equality.
    """
    option = normalize(workspace_option)
    if not option:
        return FieldMatch(score=0.0, reason="No work environment data")
    for pref in work_env_preferences or ():
        p = normalize(pref)
        if not p:
            continue
        if p == option or any(kw in p and option == target for kw, target in _ENV_ALIASES):
            return FieldMatch(score=100.0, reason=f"Work environment: {workspace_option}", matched=[pref])
    return FieldMatch(score=0.0, reason="Work environment not preferred")


def match_category(
    work_history: Sequence[WorkHistoryEntry],
    dream_job_title: str | None,
    category: str | None,
) -> FieldMatch:
    """Relevance of a job category to past titles (60) and the dream title (40)."""
    cat = normalize(category)
    if not cat:
        return FieldMatch(score=0.0, reason="No category data")

    score = 0.0
    matched: list[str] = []
    for entry in work_history or ():
        past = normalize(entry.title)
        if contains_either(past, cat):
            score += 60.0
            matched.append(entry.title)
            break
    if contains_either(normalize(dream_job_title), cat):
        score += 40.0
        matched.append(dream_job_title or "")
    return FieldMatch(score=min(score, 100.0), reason=f"Category: {category}" if score else "", matched=matched)


def has_relevant_experience(
    work_history: Sequence[WorkHistoryEntry],
    job_title: str | None,
    category: str | None,
) -> bool:
    """True if any past title overlaps the job title or category."""
    title = normalize(job_title)
    cat = normalize(category)
    for entry in work_history or ():
        past = normalize(entry.title)
        if contains_either(past, title) or contains_either(past, cat):
            return True
    return False


def match_experience(work_history: Sequence[WorkHistoryEntry], job_title: str | None) -> FieldMatch:
    """Whether the job's seniority keyword fits the candidate's number of past roles."""
    roles = len(work_history or ())
    tokens = set(normalize(job_title).split())
    if not roles or not tokens:
        return FieldMatch(score=0.0, reason="No experience data")
    levels = [level for level, fits in _SENIORITY_BY_ROLES.items() if level in tokens and fits(roles)]
    if levels:
        return FieldMatch(score=100.0, reason=f"Seniority fits {roles} past roles", matched=levels)
    return FieldMatch(score=0.0, reason="No seniority alignment")


def match_salary(salary_from: float | None, salary_to: float | None, threshold: float) -> FieldMatch:
    """Flat 100 when the advertised average salary reaches ``threshold``."""
    if not salary_from or not salary_to:
        return FieldMatch(score=0.0, reason="No salary data")
    average = (salary_from + salary_to) / 2
    if average >= threshold:
        return FieldMatch(score=100.0, reason=f"Average salary {average:,.0f}")
    return FieldMatch(score=0.0, reason="Salary below threshold")
