"""Core data models for the matching engine.

Records are frozen: scorers wrap them in ScoredJob / ScoredCandidate
instead of writing a score onto the input.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EducationLevel(str, Enum):
    HIGH_SCHOOL = "high_school"
    ASSOCIATE = "associate"
    BACHELOR = "bachelor"
    MASTER = "master"
    DOCTORATE = "doctorate"
    OTHER = "other"


# OTHER is deliberately absent: it is not comparable with the ordered levels.
EDUCATION_ORDINAL: dict[EducationLevel, int] = {
    EducationLevel.HIGH_SCHOOL: 0,
    EducationLevel.ASSOCIATE: 1,
    EducationLevel.BACHELOR: 2,
    EducationLevel.MASTER: 3,
    EducationLevel.DOCTORATE: 4,
}


def education_ordinal(level: EducationLevel | None) -> int | None:
    """Return the ordinal of an education level, or None if it has none."""
    if level is None:
        return None
    return EDUCATION_ORDINAL.get(level)


def meets_education(
    candidate: EducationLevel | None,
    required: EducationLevel | None,
) -> bool | None:
    """Compare a candidate's level against a requirement.

    Returns None when the two are incomparable (either side missing or OTHER).
    """
    have = education_ordinal(candidate)
    need = education_ordinal(required)
    if have is None or need is None:
        return None
    return have >= need


class Role(str, Enum):
    CANDIDATE = "candidate"
    RECRUITER = "recruiter"
    ADMIN = "admin"


class IdentityContext(BaseModel):
    """Caller identity resolved by the auth provider before the core is invoked."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    role: Role


def check_tag_list(values: Any) -> list[str]:
    """Reject anything but a list of strings; None becomes an empty list."""
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        msg = f"expected a list of strings, got {type(values).__name__}"
        raise ValueError(msg)
    for v in values:
        if not isinstance(v, str):
            msg = f"tags must be strings, got {type(v).__name__}: {v!r}"
            raise ValueError(msg)
    return list(values)


def _clean_tags(values: Any) -> list[str]:
    """Strip tags, drop blanks and dedupe case-insensitively (first spelling wins)."""
    seen: set[str] = set()
    result: list[str] = []
    for v in check_tag_list(values):
        tag = v.strip()
        key = tag.casefold()
        if not tag or key in seen:
            continue
        seen.add(key)
        result.append(tag)
    return result


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _present(value: str | None) -> bool:
    return value is not None and value.strip() != ""


class CandidateProfile(BaseModel):
    """The part of a candidate profile that scoring looks at."""

    model_config = ConfigDict(frozen=True)

    skills: list[str] = Field(default_factory=list)
    location: str | None = None
    experience_years: float | None = Field(default=None, ge=0)
    expected_salary_min: float | None = Field(default=None, ge=0)
    expected_salary_max: float | None = Field(default=None, ge=0)
    education_level: EducationLevel | None = None
    resume_url: str | None = None
    profile_summary: str | None = None
    profile_photo_url: str | None = None

    @field_validator("skills", mode="before")
    @classmethod
    def normalize_skills(cls, v: Any) -> list[str]:
        return _clean_tags(v)

    @property
    def has_resume(self) -> bool:
        return _present(self.resume_url)

    @property
    def has_summary(self) -> bool:
        return _present(self.profile_summary)

    @property
    def has_photo(self) -> bool:
        return _present(self.profile_photo_url)


class CandidateRecord(CandidateProfile):
    """A candidate row as returned by the storage collaborator."""

    id: str
    user_id: str = ""
    full_name: str | None = None
    headline: str | None = None
    about: str | None = None
    preferred_job_type: list[str] = Field(default_factory=list)
    onboarding_completed: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("preferred_job_type", mode="before")
    @classmethod
    def normalize_preferences(cls, v: Any) -> list[str]:
        return _clean_tags(v)

    @field_validator("created_at", "updated_at")
    @classmethod
    def timestamps_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class JobRecord(BaseModel):
    """A job posting as returned by the storage collaborator."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    company_name: str = ""
    location: str | None = None
    employment_type: str | None = None
    work_mode: str | None = None
    skills_required: list[str] = Field(default_factory=list)
    experience_min: float | None = Field(default=None, ge=0)
    experience_max: float | None = Field(default=None, ge=0)
    salary_min: float | None = Field(default=None, ge=0)
    salary_max: float | None = Field(default=None, ge=0)
    education_required: EducationLevel | None = None
    description: str = ""
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("skills_required", mode="before")
    @classmethod
    def normalize_skills(cls, v: Any) -> list[str]:
        return _clean_tags(v)

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class ScoredJob(BaseModel):
    """A job paired with its match score.

    match_score is None when no candidate profile was available to score against.
    """

    model_config = ConfigDict(frozen=True)

    job: JobRecord
    match_score: int | None = Field(default=None, ge=0)


class ScoredCandidate(BaseModel):
    """A candidate paired with a 0-100 match score."""

    model_config = ConfigDict(frozen=True)

    candidate: CandidateRecord
    match_score: int = Field(default=0, ge=0, le=100)


class CandidatePage(BaseModel):
    """One page of candidates plus the total count across all pages."""

    records: list[CandidateRecord] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)


class JobPage(BaseModel):
    """One page of jobs plus the total count across all pages."""

    records: list[JobRecord] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)
