"""Hard filters applied to candidate and job pools before scoring.

Candidate pool (job -> candidates):
  1. HasSkillsFilter       - candidates with no skills are never matched
  2. NotInterestedFilter   - candidates who excluded the job's subcategory

Job pool (candidate -> jobs):
  1. ExcludedJobsFilter    - subcategories the candidate is not interested in
  2. AlreadyEngagedFilter  - jobs the candidate already applied to or saved
"""

import logging
from collections.abc import Callable

from src.core.schemas import CandidateProfile, JobPosting
from src.matching.text import normalize

logger = logging.getLogger(__name__)

# A filter is a callable that takes a pool and returns a subset, order preserved.
CandidateFilter = Callable[[list[CandidateProfile]], list[CandidateProfile]]
JobFilter = Callable[[list[JobPosting]], list[JobPosting]]


def is_not_interested(candidate: CandidateProfile, job: JobPosting) -> bool:
    """True if the candidate has opted out of this job's subcategory."""
    sub = normalize(job.subcategory)
    if not sub:
        return False
    cat = normalize(job.category)
    for entry in candidate.not_interested:
        if normalize(entry.subcategory) != sub:
            continue
        if entry.category is None or normalize(entry.category) == cat:
            return True
    return False


class HasSkillsFilter:
    """Keep only candidates with at least one skill on record."""

    def __call__(self, candidates: list[CandidateProfile]) -> list[CandidateProfile]:
        result = [c for c in candidates if c.skills]
        removed = len(candidates) - len(result)
        if removed:
            logger.debug("HasSkillsFilter: removed %d candidates", removed)
        return result


class NotInterestedFilter:
    """Remove candidates who marked the job's subcategory as not interesting."""

    def __init__(self, job: JobPosting) -> None:
        self._job = job

    def __call__(self, candidates: list[CandidateProfile]) -> list[CandidateProfile]:
        result = [c for c in candidates if not is_not_interested(c, self._job)]
        removed = len(candidates) - len(result)
        if removed:
            logger.debug("NotInterestedFilter: removed %d candidates", removed)
        return result


class ExcludedJobsFilter:
    """Remove jobs in subcategories the candidate is not interested in."""

    def __init__(self, candidate: CandidateProfile) -> None:
        self._candidate = candidate

    def __call__(self, jobs: list[JobPosting]) -> list[JobPosting]:
        result = [j for j in jobs if not is_not_interested(self._candidate, j)]
        removed = len(jobs) - len(result)
        if removed:
            logger.debug("ExcludedJobsFilter: removed %d jobs", removed)
        return result


class AlreadyEngagedFilter:
    """Remove jobs the candidate has already applied to or saved."""

    def __init__(self, candidate: CandidateProfile) -> None:
        self._ids = set(candidate.applied_job_ids) | set(candidate.saved_job_ids)

    def __call__(self, jobs: list[JobPosting]) -> list[JobPosting]:
        if not self._ids:
            return jobs
        result = [j for j in jobs if j.id not in self._ids]
        removed = len(jobs) - len(result)
        if removed:
            logger.debug("AlreadyEngagedFilter: removed %d jobs", removed)
        return result


def run_filter_chain(items: list, filters: list[Callable[[list], list]]) -> list:
    """Apply filters in order, returning the surviving items."""
    result = items
    for f in filters:
        result = f(result)
    return result
