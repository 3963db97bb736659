"""Configuration models and YAML loader for the matching engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator


class JobToCandidatesWeights(BaseModel):
    """Weights used when ranking candidates for a newly posted job."""

    skills: float = Field(default=40.0, ge=0.0)
    title: float = Field(default=25.0, ge=0.0)
    location: float = Field(default=20.0, ge=0.0)
    work_type: float = Field(default=10.0, ge=0.0)
    work_env: float = Field(default=5.0, ge=0.0)

    @model_validator(mode="after")
    def weights_sum_to_100(self) -> "JobToCandidatesWeights":
        total = self.skills + self.title + self.location + self.work_type + self.work_env
        if abs(total - 100.0) > 1e-6:
            msg = f"job_to_candidates weights must sum to 100, got {total:g}"
            raise ValueError(msg)
        return self


class CandidateToJobsWeights(BaseModel):
    """Weights used when recommending jobs to a single candidate."""

    skills: float = Field(default=35.0, ge=0.0)
    title: float = Field(default=20.0, ge=0.0)
    category: float = Field(default=15.0, ge=0.0)
    work_type: float = Field(default=10.0, ge=0.0)
    work_env: float = Field(default=8.0, ge=0.0)
    location: float = Field(default=5.0, ge=0.0)
    experience: float = Field(default=4.0, ge=0.0)
    salary: float = Field(default=3.0, ge=0.0)

    @model_validator(mode="after")
    def weights_sum_to_100(self) -> "CandidateToJobsWeights":
        total = (
            self.skills + self.title + self.category + self.work_type
            + self.work_env + self.location + self.experience + self.salary
        )
        if abs(total - 100.0) > 1e-6:
            msg = f"candidate_to_jobs weights must sum to 100, got {total:g}"
            raise ValueError(msg)
        return self


class RecommendationConfig(BaseModel):
    """Thresholds and flat bonuses for the candidate -> jobs direction."""

    min_score: float = Field(default=10.0, ge=0.0, le=100.0)
    top_n: int = Field(default=8, ge=1)
    max_reasons: int = Field(default=3, ge=1)
    salary_threshold: float = Field(default=50000.0, ge=0.0)
    premium_bonus: float = 3.0
    immediate_start_bonus: float = 2.0
    recent_week_bonus: float = 2.0
    recent_month_bonus: float = 1.0
    posted_within_days: int | None = Field(default=90, ge=1)


class ScoringConfig(BaseModel):
    """Weight tables plus execution knobs for the composite scorer."""

    job_to_candidates: JobToCandidatesWeights = Field(default_factory=JobToCandidatesWeights)
    candidate_to_jobs: CandidateToJobsWeights = Field(default_factory=CandidateToJobsWeights)
    workers: int = Field(default=1, ge=1)
    parallel_min_pool: int = Field(default=2000, ge=1)


class DispatchConfig(BaseModel):
    """Channel thresholds and caps for match notifications."""

    email_min_score: float = Field(default=0.0, ge=0.0, le=100.0)
    email_max_recipients: int = Field(default=1000, ge=0)
    email_batch_size: int = Field(default=500, ge=1)
    message_min_score: float = Field(default=40.0, ge=0.0, le=100.0)
    message_max_recipients: int = Field(default=15, ge=0)
    promotion_min_score: float = Field(default=10.0, ge=0.0, le=100.0)
    dedupe: bool = False
    message_template: str | None = None

    @model_validator(mode="after")
    def message_floor_not_below_email(self) -> "DispatchConfig":
        if self.message_min_score < self.email_min_score:
            msg = "message_min_score must be >= email_min_score"
            raise ValueError(msg)
        return self


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/jobboard.db"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    recommendations: RecommendationConfig = Field(default_factory=RecommendationConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
