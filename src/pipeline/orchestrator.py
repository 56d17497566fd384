"""Orchestrator: the request handlers around the scoring core.

Storage and identity are passed in rather than imported, so handlers can
run against SQLite, a remote store, or plain lists in tests.

Data flow:
  recommend:          identity -> profile + active jobs -> recommend_jobs
  candidate search:   identity (recruiter/admin) -> fetch page -> match_candidates
  job search:         fetch page (public, unscored)
"""

import json
import logging
from collections.abc import Callable

from src.core.config import (
    CandidateSearchFilters,
    JobSearchFilters,
    MatcherConfig,
    RecommenderConfig,
)
from src.core.errors import AuthorizationError
from src.core.query import total_pages
from src.core.schemas import (
    CandidatePage,
    CandidateProfile,
    IdentityContext,
    JobPage,
    JobRecord,
    Role,
    ScoredCandidate,
    ScoredJob,
)
from src.pipeline.matcher import match_candidates
from src.pipeline.scorer import recommend_jobs

logger = logging.getLogger(__name__)

ProfileLoader = Callable[[str], CandidateProfile | None]
JobsLoader = Callable[[], list[JobRecord]]
CandidatePageFetcher = Callable[[CandidateSearchFilters], CandidatePage]
JobPageFetcher = Callable[[JobSearchFilters], JobPage]

NO_JOBS_MESSAGE = "No jobs available"

_SEARCH_ROLES = (Role.RECRUITER, Role.ADMIN)


class RecommendationResult:
    """Response body of the recommended-jobs handler."""

    def __init__(self, jobs: list[ScoredJob], message: str | None = None) -> None:
        self.jobs = jobs
        self.message = message


class CandidateSearchResult:
    """One page of scored candidates plus pagination metadata."""

    def __init__(
        self,
        candidates: list[ScoredCandidate],
        total_count: int,
        page: int,
        page_size: int,
    ) -> None:
        self.candidates = candidates
        self.total_count = total_count
        self.page = page
        self.page_size = page_size
        self.total_pages = total_pages(total_count, page_size)


class JobSearchResult:
    """One page of job board results plus pagination metadata."""

    def __init__(self, jobs: list[JobRecord], total_count: int, page: int, page_size: int) -> None:
        self.jobs = jobs
        self.total_count = total_count
        self.page = page
        self.page_size = page_size
        self.total_pages = total_pages(total_count, page_size)


def recommend_for_user(
    identity: IdentityContext | None,
    load_profile: ProfileLoader,
    load_active_jobs: JobsLoader,
    config: RecommenderConfig,
) -> RecommendationResult:
    """Recommend jobs for the signed-in user.

    Raises:
        AuthorizationError: no identity was resolved for the caller.
    """
    if identity is None:
        msg = "No authenticated user"
        raise AuthorizationError(msg)

    logger.info("Fetching recommendations for user %s", identity.user_id)
    profile = load_profile(identity.user_id)
    jobs = load_active_jobs()

    if not jobs:
        return RecommendationResult(jobs=[], message=NO_JOBS_MESSAGE)

    ranked = recommend_jobs(profile, jobs, config)
    logger.info("Returning %d recommendations", len(ranked))
    return RecommendationResult(jobs=ranked)


def search_candidates(
    identity: IdentityContext | None,
    filters: CandidateSearchFilters,
    fetch_page: CandidatePageFetcher,
    config: MatcherConfig,
) -> CandidateSearchResult:
    """Recruiter candidate search: storage narrows, the matcher scores and reorders.

    Raises:
        AuthorizationError: caller is anonymous or not a recruiter/admin.
    """
    _require_role(identity, _SEARCH_ROLES)

    page = fetch_page(filters)
    scored = match_candidates(filters, page.records, config)
    logger.info(
        "Candidate search: %d total, page %d/%d",
        page.total_count, filters.page, total_pages(page.total_count, filters.page_size),
    )
    return CandidateSearchResult(
        candidates=scored,
        total_count=page.total_count,
        page=filters.page,
        page_size=filters.page_size,
    )


def search_jobs(filters: JobSearchFilters, fetch_page: JobPageFetcher) -> JobSearchResult:
    """Public job board search. Results keep the storage order."""
    page = fetch_page(filters)
    logger.info("Job search: %d total, page %d", page.total_count, filters.page)
    return JobSearchResult(
        jobs=list(page.records),
        total_count=page.total_count,
        page=filters.page,
        page_size=filters.page_size,
    )


def export_json(result: RecommendationResult | CandidateSearchResult | JobSearchResult) -> str:
    """Serialize a handler result into the JSON body the HTTP surface returns."""
    if isinstance(result, RecommendationResult):
        data: dict[str, object] = {"jobs": [_scored_job_dict(s) for s in result.jobs]}
        if result.message:
            data["message"] = result.message
    elif isinstance(result, CandidateSearchResult):
        data = {
            "candidates": [_scored_candidate_dict(s) for s in result.candidates],
            **_pagination_dict(result),
        }
    else:
        data = {
            "jobs": [j.model_dump(mode="json") for j in result.jobs],
            **_pagination_dict(result),
        }
    return json.dumps(data, indent=2)


def _require_role(identity: IdentityContext | None, roles: tuple[Role, ...]) -> None:
    if identity is None:
        msg = "No authenticated user"
        raise AuthorizationError(msg)
    if identity.role not in roles:
        msg = f"Role '{identity.role.value}' may not perform this action"
        raise AuthorizationError(msg)


def _scored_job_dict(scored: ScoredJob) -> dict[str, object]:
    data = scored.job.model_dump(mode="json")
    if scored.match_score is not None:
        data["matchScore"] = scored.match_score
    return data


def _scored_candidate_dict(scored: ScoredCandidate) -> dict[str, object]:
    data = scored.candidate.model_dump(mode="json")
    data["matchScore"] = scored.match_score
    return data


def _pagination_dict(result: CandidateSearchResult | JobSearchResult) -> dict[str, int]:
    return {
        "totalCount": result.total_count,
        "page": result.page,
        "pageSize": result.page_size,
        "totalPages": result.total_pages,
    }
