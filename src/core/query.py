"""Translate search filters into parameterized SQL predicates.

Pure functions: no connection is touched here. The storage layer runs the
resulting Query twice, once for COUNT(*) and once for the requested page.

Range filters are overlap tests, not containment:
  salary:     record.max >= filter.min AND record.min <= filter.max
  experience: job.min <= filter.max AND (job.max IS NULL OR job.max >= filter.min)
A side of the filter that is absent leaves that half of the test out.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from src.core.config import CandidateSearchFilters, JobSearchFilters

FRESHNESS_WINDOWS: dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}

_CANDIDATE_ORDER: dict[str, list[str]] = {
    "experience": ["experience_years DESC NULLS LAST"],
    "salary_high": ["expected_salary_max DESC NULLS LAST"],
    "salary_low": ["expected_salary_min ASC NULLS LAST"],
}
_CANDIDATE_DEFAULT_ORDER = ["updated_at DESC"]

_JOB_ORDER: dict[str, list[str]] = {
    "salary_high": ["salary_max DESC NULLS LAST"],
    "salary_low": ["salary_min ASC NULLS LAST"],
}
_JOB_DEFAULT_ORDER = ["created_at DESC"]


@dataclass
class Query:
    """WHERE predicates (AND-ed) with their parameters, plus an ORDER BY."""

    where: list[str] = field(default_factory=list)
    params: list[Any] = field(default_factory=list)
    order_by: list[str] = field(default_factory=list)

    def add(self, predicate: str, *params: Any) -> None:
        self.where.append(predicate)
        self.params.extend(params)

    def where_sql(self) -> str:
        if not self.where:
            return ""
        return "WHERE " + " AND ".join(f"({p})" for p in self.where)

    def order_sql(self) -> str:
        # id keeps pages deterministic when the sort column ties.
        return "ORDER BY " + ", ".join([*self.order_by, "id ASC"])


def format_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO string, so stored timestamps compare lexicographically."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def freshness_cutoff(window: str, now: datetime | None = None) -> datetime:
    """Return the oldest timestamp still inside a freshness window."""
    if window not in FRESHNESS_WINDOWS:
        msg = f"Unknown freshness window: {window!r}"
        raise ValueError(msg)
    now = now or datetime.now(timezone.utc)
    return now - FRESHNESS_WINDOWS[window]


def page_bounds(page: int, page_size: int) -> tuple[int, int]:
    """Return (offset, limit) for a 1-indexed page."""
    return (page - 1) * page_size, page_size


def total_pages(total_count: int, page_size: int) -> int:
    return math.ceil(total_count / page_size)


def fold_case(value: Any) -> Any:
    """Unicode case folding, registered on connections as the SQL function `casefold`."""
    return value.casefold() if isinstance(value, str) else value


def _contains(column: str) -> str:
    # Built-in LIKE only folds ASCII; both sides are casefolded instead.
    return f"casefold({column}) LIKE ? ESCAPE '\\'"


def _like_pattern(text: str) -> str:
    escaped = fold_case(text).replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _placeholders(values: list[Any]) -> str:
    return ", ".join("?" for _ in values)


def _tags_overlap(column: str, tags: list[str]) -> str:
    """Predicate: the JSON array in `column` shares at least one tag (case-insensitive)."""
    return (
        f"EXISTS (SELECT 1 FROM json_each({column}) "
        f"WHERE casefold(json_each.value) IN ({_placeholders(tags)}))"
    )


def build_candidate_query(
    filters: CandidateSearchFilters,
    now: datetime | None = None,
) -> Query:
    """Hard filters for recruiter candidate search over `candidate_profiles`."""
    q = Query()
    q.add("onboarding_completed = 1")

    if filters.keywords:
        pattern = _like_pattern(filters.keywords)
        q.add(
            " OR ".join(_contains(c) for c in ("headline", "about", "profile_summary")),
            pattern, pattern, pattern,
        )
    if filters.location:
        q.add(_contains("location"), _like_pattern(filters.location))

    if filters.experience_min is not None:
        q.add("experience_years >= ?", filters.experience_min)
    if filters.experience_max is not None:
        q.add("experience_years <= ?", filters.experience_max)

    if filters.salary_min is not None:
        q.add("expected_salary_max >= ?", filters.salary_min)
    if filters.salary_max is not None:
        q.add("expected_salary_min <= ?", filters.salary_max)

    if filters.education_levels:
        levels = [e.value for e in filters.education_levels]
        q.add(f"education_level IN ({_placeholders(levels)})", *levels)

    if filters.skills:
        tags = [fold_case(s) for s in filters.skills]
        q.add(_tags_overlap("skills", tags), *tags)
    if filters.work_preferences:
        tags = [fold_case(w) for w in filters.work_preferences]
        q.add(_tags_overlap("preferred_job_type", tags), *tags)

    if filters.profile_freshness:
        cutoff = freshness_cutoff(filters.profile_freshness, now)
        q.add("updated_at >= ?", format_timestamp(cutoff))

    q.order_by = list(_CANDIDATE_ORDER.get(filters.sort_by or "", _CANDIDATE_DEFAULT_ORDER))
    return q


def build_job_query(filters: JobSearchFilters, now: datetime | None = None) -> Query:
    """Hard filters for the job board over `jobs`."""
    q = Query()
    q.add("is_active = 1")

    if filters.keywords:
        pattern = _like_pattern(filters.keywords)
        q.add(
            f"{_contains('title')} OR {_contains('company_name')} OR "
            "EXISTS (SELECT 1 FROM json_each(skills_required) "
            "WHERE casefold(json_each.value) LIKE ? ESCAPE '\\')",
            pattern, pattern, pattern,
        )
    if filters.location:
        q.add(_contains("location"), _like_pattern(filters.location))

    if filters.employment_types:
        q.add(
            f"employment_type IN ({_placeholders(filters.employment_types)})",
            *filters.employment_types,
        )
    if filters.work_modes:
        q.add(f"work_mode IN ({_placeholders(filters.work_modes)})", *filters.work_modes)
    if filters.education_levels:
        levels = [e.value for e in filters.education_levels]
        q.add(f"education_required IN ({_placeholders(levels)})", *levels)

    if filters.experience_max is not None:
        q.add("COALESCE(experience_min, 0) <= ?", filters.experience_max)
    if filters.experience_min is not None:
        q.add("experience_max IS NULL OR experience_max >= ?", filters.experience_min)

    if filters.salary_min is not None:
        q.add("salary_max >= ?", filters.salary_min)
    if filters.salary_max is not None:
        q.add("salary_min <= ?", filters.salary_max)

    if filters.posted_within:
        cutoff = freshness_cutoff(filters.posted_within, now)
        q.add("created_at >= ?", format_timestamp(cutoff))

    q.order_by = list(_JOB_ORDER.get(filters.sort_by or "", _JOB_DEFAULT_ORDER))
    return q
