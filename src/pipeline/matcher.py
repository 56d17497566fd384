"""Candidate matching: score a page of candidates against recruiter filters.

The page has already been narrowed by the hard filters in storage; nothing
here excludes a candidate. Score range: 0-100, rounded half up.

Contributions (MatcherConfig defaults):
  skills        matching / len(filter skills) * 50
  location      +20 when the candidate location contains the filter location
  experience    +15 when experience_years >= filter experience_min
  completeness  +5 each for resume, profile summary, profile photo
"""

import logging
import math

from src.core.config import CandidateSearchFilters, MatcherConfig
from src.core.schemas import CandidateRecord, ScoredCandidate

logger = logging.getLogger(__name__)


def score_candidate(
    filters: CandidateSearchFilters,
    candidate: CandidateRecord,
    config: MatcherConfig,
) -> ScoredCandidate:
    """Score a single candidate against the recruiter's filters."""
    score = 0.0

    if filters.skills and candidate.skills:
        wanted = [s.casefold() for s in filters.skills]
        matching = sum(
            1 for skill in (s.casefold() for s in candidate.skills)
            if any(w in skill or skill in w for w in wanted)
        )
        score += matching / len(filters.skills) * config.skills_weight

    if filters.location and candidate.location:
        if filters.location.casefold() in candidate.location.casefold():
            score += config.location_bonus

    if filters.experience_min is not None and candidate.experience_years is not None:
        if candidate.experience_years >= filters.experience_min:
            score += config.experience_bonus

    if candidate.has_resume:
        score += config.resume_bonus
    if candidate.has_summary:
        score += config.summary_bonus
    if candidate.has_photo:
        score += config.photo_bonus

    return ScoredCandidate(candidate=candidate, match_score=_round_half_up(score, config.max_score))


def match_candidates(
    filters: CandidateSearchFilters,
    candidates: list[CandidateRecord],
    config: MatcherConfig,
) -> list[ScoredCandidate]:
    """Score a page of candidates.

    Re-sorts by score (stable) when sorting by relevance or when no sort is
    given; any other sort keeps the storage order.
    """
    scored = [score_candidate(filters, c, config) for c in candidates]
    if filters.sort_by in (None, "relevance"):
        scored.sort(key=lambda s: s.match_score, reverse=True)
    logger.debug("Matched %d candidates (sort=%s)", len(scored), filters.sort_by or "relevance")
    return scored


def _round_half_up(score: float, ceiling: int) -> int:
    # Python's round() is banker's rounding; 12.5 must become 13.
    return max(0, math.floor(min(float(ceiling), score) + 0.5))
