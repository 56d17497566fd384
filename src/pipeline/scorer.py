"""Job recommendations: rank active jobs against one candidate profile.

Scores are unbounded non-negative integers (a plain sum of bonuses from
RecommenderConfig). Ties are broken by created_at, newest first; full ties
keep their input order.

Without a profile the jobs are not scored at all: they come back newest
first, capped at RecommenderConfig.fallback_limit.
"""

import logging

from src.core.config import RecommenderConfig
from src.core.schemas import CandidateProfile, JobRecord, ScoredJob, meets_education

logger = logging.getLogger(__name__)


def score_job(profile: CandidateProfile, job: JobRecord, config: RecommenderConfig) -> int:
    """Score a single job for a candidate. Missing fields contribute nothing."""
    score = 0
    score += _skill_score(profile.skills, job.skills_required, config)

    if _location_matches(profile.location, job.location):
        score += config.location_match_bonus

    score += _experience_score(profile.experience_years, job, config)

    if (
        profile.expected_salary_min is not None
        and job.salary_max is not None
        and job.salary_max >= profile.expected_salary_min
    ):
        score += config.salary_upper_bonus
    if (
        profile.expected_salary_max is not None
        and job.salary_min is not None
        and job.salary_min <= profile.expected_salary_max
    ):
        score += config.salary_lower_bonus

    if meets_education(profile.education_level, job.education_required):
        score += config.education_bonus

    return score


def recommend_jobs(
    profile: CandidateProfile | None,
    jobs: list[JobRecord],
    config: RecommenderConfig,
    limit: int | None = None,
) -> list[ScoredJob]:
    """Return jobs ranked for a candidate, best match first.

    Args:
        profile: The candidate's profile, or None if they have not created one.
        jobs: Active jobs, in any order. Not modified.
        config: Scoring weights and result limits.
        limit: Maximum results; defaults to config.result_limit.

    Returns:
        New list of ScoredJob. match_score is None when profile is None.

    Raises:
        ValueError: limit is less than 1.
    """
    limit = config.result_limit if limit is None else limit
    if limit < 1:
        msg = f"limit must be at least 1, got {limit}"
        raise ValueError(msg)
    newest_first = sorted(jobs, key=lambda j: j.created_at, reverse=True)

    if profile is None:
        logger.info("No candidate profile - returning newest jobs unscored")
        return [ScoredJob(job=j) for j in newest_first[: min(limit, config.fallback_limit)]]

    scored = [ScoredJob(job=j, match_score=score_job(profile, j, config)) for j in newest_first]
    # Stable: equal scores keep the newest-first order from above.
    scored.sort(key=lambda s: s.match_score or 0, reverse=True)
    logger.debug("Scored %d jobs, returning top %d", len(scored), min(limit, len(scored)))
    return scored[:limit]


def _skill_score(
    candidate_skills: list[str],
    job_skills: list[str],
    config: RecommenderConfig,
) -> int:
    """Bonus per candidate skill that overlaps (substring either way) any job skill."""
    if not candidate_skills or not job_skills:
        return 0
    required = [s.casefold() for s in job_skills]
    matching = [
        s for s in (c.casefold() for c in candidate_skills)
        if any(r in s or s in r for r in required)
    ]
    return len(matching) * config.skill_match_bonus


def _location_matches(candidate_location: str | None, job_location: str | None) -> bool:
    if not candidate_location or not job_location:
        return False
    cand = candidate_location.casefold()
    job = job_location.casefold()
    return job == "remote" or cand in job or job in cand


def _experience_score(
    years: float | None,
    job: JobRecord,
    config: RecommenderConfig,
) -> int:
    if years is None:
        return 0
    low = job.experience_min if job.experience_min is not None else 0.0
    high = job.experience_max if job.experience_max is not None else config.default_experience_max
    if low <= years <= high:
        return config.experience_match_bonus
    if low - config.experience_near_below <= years <= high + config.experience_near_above:
        return config.experience_near_bonus
    return 0
