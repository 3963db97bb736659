"""Core data models for the matching engine."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Direction(str, Enum):
    """Which side of the match is being ranked."""

    JOB_TO_CANDIDATES = "job_to_candidates"
    CANDIDATE_TO_JOBS = "candidate_to_jobs"


class WorkHistoryEntry(BaseModel):
    """A past role held by a candidate."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    company: str = ""


class NotInterestedEntry(BaseModel):
    """A job subcategory the candidate never wants to be matched against.

    When ``category`` is set, both the category and the subcategory must match.
    """

    model_config = ConfigDict(frozen=True)

    subcategory: str
    category: str | None = None


class EmergencyContact(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    number: str = ""
    relationship: str = ""


class CandidateProfile(BaseModel):
    """A job-seeking user profile, read-only input to scoring."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    email: str = ""
    skills: list[str] = Field(default_factory=list)
    dream_job_title: str | None = None
    preferred_job_types: list[str] = Field(default_factory=list)
    work_env_preferences: list[str] = Field(default_factory=list)
    resident_country: str | None = None
    preferred_locations: list[str] = Field(default_factory=list)
    willing_to_relocate: bool = False
    work_history: list[WorkHistoryEntry] = Field(default_factory=list)
    not_interested: list[NotInterestedEntry] = Field(default_factory=list)
    applied_job_ids: list[str] = Field(default_factory=list)
    saved_job_ids: list[str] = Field(default_factory=list)

    # Completeness checklist only
    personal_summary: str | None = None
    highest_qualification: str | None = None
    personal_branding_statement: str | None = None
    resume: str | None = None
    education: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    licenses: list[str] = Field(default_factory=list)
    hobbies: list[str] = Field(default_factory=list)
    social_links: dict[str, str] = Field(default_factory=dict)
    emergency_contact: EmergencyContact | None = None

    @field_validator("skills")
    @classmethod
    def drop_blank_skills(cls, v: list[str]) -> list[str]:
        return [s.strip() for s in v if s and s.strip()]


class JobPosting(BaseModel):
    """An employer-authored listing, read-only input to scoring."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    company_name: str = ""
    location: str | None = None
    category: str | None = None
    subcategory: str | None = None
    work_type: str | None = None
    workspace_option: str | None = None
    skills: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    salary_from: float | None = None
    salary_to: float | None = None
    currency: str = "AUD"
    posted_at: datetime | None = None
    is_premium: bool = False
    has_immediate_start: bool = False
    notification_option: str = "both"
    status: str = "Open"

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        if not v.strip():
            msg = "job title must not be empty"
            raise ValueError(msg)
        return v.strip()

    @field_validator("notification_option")
    @classmethod
    def notification_option_known(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in {"both", "email", "app", "none"}:
            msg = f"notification_option must be one of both, email, app, none, got '{v}'"
            raise ValueError(msg)
        return v


class FieldMatch(BaseModel):
    """Outcome of one field matcher: a 0-100 score plus its rationale."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(default=0.0, ge=0.0, le=100.0)
    reason: str = ""
    matched: list[str] = Field(default_factory=list)


class MatchResult(BaseModel):
    """Scored outcome of comparing one candidate against one job.

    Frozen, created fresh on every scoring pass.
    """

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    job_id: str
    direction: Direction
    aggregate_score: float = Field(default=0.0, ge=0.0, le=100.0)
    per_field_scores: dict[str, float] = Field(default_factory=dict)
    match_reasons: list[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    """A recommended job with its score and explanation."""

    model_config = ConfigDict(frozen=True)

    job: JobPosting
    score: float
    match_reasons: list[str] = Field(default_factory=list)
    match_percentage: int = 0


class RecommendationResult(BaseModel):
    """Top-N recommendations for one candidate."""

    candidate_id: str
    recommendations: list[Recommendation] = Field(default_factory=list)
    low_confidence: bool = False
    profile_incomplete: bool = False
    missing_critical_fields: list[str] = Field(default_factory=list)

    @property
    def average_score(self) -> int:
        if not self.recommendations:
            return 0
        total = sum(r.score for r in self.recommendations)
        return int(total / len(self.recommendations) + 0.5)


class CompletenessReport(BaseModel):
    """How much of the profile checklist a candidate has filled in."""

    model_config = ConfigDict(frozen=True)

    missing_fields: list[str] = Field(default_factory=list)
    completion_percentage: int = 0
    completed_fields: int = 0
    total_fields: int = 0


class DispatchResult(BaseModel):
    """Email and in-app batches selected from a ranked list."""

    model_config = ConfigDict(frozen=True)

    email_batch: list[MatchResult] = Field(default_factory=list)
    message_batch: list[MatchResult] = Field(default_factory=list)
    email_suppressed: bool = False
    message_suppressed: bool = False
