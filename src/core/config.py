"""Configuration models and YAML loader for the matching engine."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.schemas import EducationLevel, check_tag_list

CandidateSort = Literal["relevance", "experience", "salary_high", "salary_low", "recent"]
JobSort = Literal["relevance", "recent", "salary_high", "salary_low"]
ProfileFreshness = Literal["7d", "30d", "90d"]
PostedWithin = Literal["24h", "7d", "30d", "90d"]


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    if isinstance(v, str):
        return v.strip()
    return v


def _check_range(low: float | None, high: float | None, name: str) -> None:
    if low is not None and high is not None and low > high:
        msg = f"{name}_min must not exceed {name}_max"
        raise ValueError(msg)


class CandidateSearchFilters(BaseModel):
    """Recruiter-specified candidate search filters."""

    keywords: str | None = None
    location: str | None = None
    experience_min: float | None = Field(default=None, ge=0)
    experience_max: float | None = Field(default=None, ge=0)
    salary_min: float | None = Field(default=None, ge=0)
    salary_max: float | None = Field(default=None, ge=0)
    education_levels: list[EducationLevel] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    work_preferences: list[str] = Field(default_factory=list)
    profile_freshness: ProfileFreshness | None = None
    sort_by: CandidateSort | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=100)

    @field_validator("keywords", "location", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("skills", "work_preferences", mode="before")
    @classmethod
    def drop_blank_tags(cls, v: Any) -> list[str]:
        return [s.strip() for s in check_tag_list(v) if s.strip()]

    @model_validator(mode="after")
    def ranges_ordered(self) -> "CandidateSearchFilters":
        _check_range(self.experience_min, self.experience_max, "experience")
        _check_range(self.salary_min, self.salary_max, "salary")
        return self


class JobSearchFilters(BaseModel):
    """Candidate-facing job board filters."""

    keywords: str | None = None
    location: str | None = None
    employment_types: list[str] = Field(default_factory=list)
    work_modes: list[str] = Field(default_factory=list)
    experience_min: float | None = Field(default=None, ge=0)
    experience_max: float | None = Field(default=None, ge=0)
    salary_min: float | None = Field(default=None, ge=0)
    salary_max: float | None = Field(default=None, ge=0)
    education_levels: list[EducationLevel] = Field(default_factory=list)
    posted_within: PostedWithin | None = None
    sort_by: JobSort | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=100)

    @field_validator("keywords", "location", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @model_validator(mode="after")
    def ranges_ordered(self) -> "JobSearchFilters":
        _check_range(self.experience_min, self.experience_max, "experience")
        _check_range(self.salary_min, self.salary_max, "salary")
        return self


class RecommenderConfig(BaseModel):
    """Weights for recommending jobs to a candidate."""

    skill_match_bonus: int = Field(default=20, ge=0)
    location_match_bonus: int = Field(default=15, ge=0)
    experience_match_bonus: int = Field(default=10, ge=0)
    experience_near_bonus: int = Field(default=5, ge=0)
    # Widened experience band is [min - below, max + above].
    experience_near_below: float = Field(default=1.0, ge=0)
    experience_near_above: float = Field(default=2.0, ge=0)
    default_experience_max: float = Field(default=99.0, ge=0)
    salary_upper_bonus: int = Field(default=10, ge=0)
    salary_lower_bonus: int = Field(default=5, ge=0)
    education_bonus: int = Field(default=5, ge=0)
    result_limit: int = Field(default=20, ge=1)
    fallback_limit: int = Field(default=10, ge=1)


class MatcherConfig(BaseModel):
    """Weights for scoring candidates against recruiter filters."""

    skills_weight: float = Field(default=50.0, ge=0.0)
    location_bonus: float = Field(default=20.0, ge=0.0)
    experience_bonus: float = Field(default=15.0, ge=0.0)
    resume_bonus: float = Field(default=5.0, ge=0.0)
    summary_bonus: float = Field(default=5.0, ge=0.0)
    photo_bonus: float = Field(default=5.0, ge=0.0)
    max_score: int = Field(default=100, ge=1, le=100)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/talentmatch.db"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    recommender: RecommenderConfig = Field(default_factory=RecommenderConfig)
    matcher: MatcherConfig = Field(default_factory=MatcherConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
