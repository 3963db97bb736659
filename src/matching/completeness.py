"""Profile completeness analyzer.

Informational only: completeness is reported alongside recommendations and
never feeds into any match score.
"""

from collections.abc import Callable

from src.core.schemas import CandidateProfile, CompletenessReport


def _filled(value: str | None) -> bool:
    return bool(value and value.strip())


def _has_emergency_contact(c: CandidateProfile) -> bool:
    ec = c.emergency_contact
    return ec is not None and (_filled(ec.name) or _filled(ec.number))


# (display name, predicate), in report order.
PROFILE_CHECKLIST: tuple[tuple[str, Callable[[CandidateProfile], bool]], ...] = (
    ("Skills & Capabilities", lambda c: bool(c.skills)),
    ("Dream Job Title", lambda c: _filled(c.dream_job_title)),
    ("Preferred Job Types", lambda c: bool(c.preferred_job_types)),
    ("Work Environment Preferences", lambda c: bool(c.work_env_preferences)),
    ("Resident Country", lambda c: _filled(c.resident_country)),
    ("Highest Qualification", lambda c: _filled(c.highest_qualification)),
    ("Personal Branding Statement", lambda c: _filled(c.personal_branding_statement)),
    ("Resume", lambda c: _filled(c.resume)),
    ("Work History", lambda c: len(c.work_history) >= 1),
    ("Education", lambda c: len(c.education) >= 1),
    ("Achievements", lambda c: len(c.achievements) >= 1),
    ("Licenses", lambda c: len(c.licenses) >= 1),
    ("Hobbies", lambda c: len(c.hobbies) >= 1),
    ("Social Links", lambda c: any(_filled(v) for v in c.social_links.values())),
    ("Emergency Contact", _has_emergency_contact),
)

# Fields whose absence degrades recommendation quality the most.
CRITICAL_FIELDS: tuple[tuple[str, Callable[[CandidateProfile], bool]], ...] = (
    ("Skills & Capabilities", lambda c: bool(c.skills)),
    ("Personal Summary", lambda c: _filled(c.personal_summary)),
    ("Dream Job Title", lambda c: _filled(c.dream_job_title)),
    ("Preferred Job Types", lambda c: bool(c.preferred_job_types)),
)

INCOMPLETE_THRESHOLD = 3


def analyze_completeness(candidate: CandidateProfile) -> CompletenessReport:
    """Report which checklist fields are missing and the completion percentage."""
    missing = [name for name, check in PROFILE_CHECKLIST if not check(candidate)]
    total = len(PROFILE_CHECKLIST)
    completed = total - len(missing)
    return CompletenessReport(
        missing_fields=missing,
        completion_percentage=int(100 * completed / total + 0.5),
        completed_fields=completed,
        total_fields=total,
    )


def missing_critical_fields(candidate: CandidateProfile) -> list[str]:
    return [name for name, check in CRITICAL_FIELDS if not check(candidate)]


def is_profile_incomplete(candidate: CandidateProfile) -> bool:
    """True when enough critical fields are missing to make recommendations unreliable."""
    return len(missing_critical_fields(candidate)) >= INCOMPLETE_THRESHOLD
