"""Recommendation ranking for a viewing user.

Two candidate lists are built and merged:
  1. Jobs for the viewer's own talent profile (if it is available)
  2. Talent for each of the viewer's active jobs
Each list keeps only pairs at or above the threshold. The merged list is
sorted by score (stable, so ties keep construction order) and truncated.
"""

import logging
from collections.abc import Iterable

from src.core.config import MatchingConfig
from src.core.errors import ComputationError
from src.core.schemas import (
    JobPost,
    JobStatus,
    Recommendation,
    RecommendationType,
    TalentProfile,
    TalentStatus,
)
from src.matching.scorer import calculate_match_score

logger = logging.getLogger(__name__)


def rank_recommendations(
    jobs: list[JobPost],
    talents: list[TalentProfile],
    viewer_user_id: str,
    config: MatchingConfig | None = None,
) -> list[Recommendation]:
    """Return at most ``config.total_limit`` recommendations, best first."""
    config = config or MatchingConfig()
    results: list[Recommendation] = []

    own_talent = next((t for t in talents if t.user_id == viewer_user_id), None)
    if own_talent is not None and own_talent.status == TalentStatus.AVAILABLE:
        open_jobs = [
            j for j in jobs
            if j.status == JobStatus.ACTIVE and j.user_id != viewer_user_id
        ]
        pairs = ((job, own_talent) for job in open_jobs)
        results.extend(
            _top(pairs, RecommendationType.JOB_FOR_TALENT, config, config.per_talent_limit)
        )

    own_jobs = [j for j in jobs if j.user_id == viewer_user_id and j.status == JobStatus.ACTIVE]
    candidates = [
        t for t in talents
        if t.status == TalentStatus.AVAILABLE and t.user_id != viewer_user_id
    ]
    for job in own_jobs:
        pairs = ((job, talent) for talent in candidates)
        results.extend(
            _top(pairs, RecommendationType.TALENT_FOR_JOB, config, config.per_job_limit)
        )

    results.sort(key=lambda r: r.score, reverse=True)
    logger.debug(
        "Recommendations for %s: %d candidates, keeping %d",
        viewer_user_id, len(results), min(len(results), config.total_limit),
    )
    return results[: config.total_limit]


def _top(
    pairs: Iterable[tuple[JobPost, TalentProfile]],
    rec_type: RecommendationType,
    config: MatchingConfig,
    limit: int,
) -> list[Recommendation]:
    """Score pairs, drop those under the threshold, keep the best ``limit``."""
    scored: list[Recommendation] = []
    for job, talent in pairs:
        try:
            score = calculate_match_score(job, talent, config.weights)
        except ComputationError as e:
            logger.warning("Skipping %s x %s: %s", job.id, talent.id, e)
            continue
        if score >= config.threshold:
            scored.append(Recommendation(type=rec_type, score=score, job=job, talent=talent))
    scored.sort(key=lambda r: r.score, reverse=True)
    return scored[:limit]
