"""Rule-based compatibility scoring between a job and a talent profile.

Score range: 0-100. Four weighted sub-scores (defaults from ScoreWeights):
  - skills     40  share of the job's skill tags the talent has
  - carriers   20  share of the job's preferred carriers the talent shares
  - work_type  20  binary; "any" on either side is compatible
  - budget     20  daily budget / talent rate, capped at 1
"""

import logging
import math

from src.core.config import ScoreWeights
from src.core.errors import ComputationError
from src.core.schemas import JobPost, ScoreBreakdown, TalentProfile, WorkType

logger = logging.getLogger(__name__)

_DEFAULT_WEIGHTS = ScoreWeights()

# Lower bounds of each label band, highest first.
_LABEL_BANDS: list[tuple[int, str]] = [
    (80, "excellent"),
    (60, "good"),
    (40, "fair"),
]


def calculate_match_score(
    job: JobPost,
    talent: TalentProfile,
    weights: ScoreWeights | None = None,
) -> int:
    """Return the compatibility score of ``job`` and ``talent`` in [0, 100].

    Raises:
        ComputationError: if the talent rate is zero, or the job has no
            daily rate and zero work days.
    """
    return score_breakdown(job, talent, weights).total


def score_breakdown(
    job: JobPost,
    talent: TalentProfile,
    weights: ScoreWeights | None = None,
) -> ScoreBreakdown:
    """Compute each weighted sub-score and the rounded total."""
    w = weights or _DEFAULT_WEIGHTS

    skills = _overlap_score(job.skill_tags, talent.skills, w.skills)
    carriers = _overlap_score(job.preferred_carriers, talent.preferred_carriers, w.carriers)
    work_type = w.work_type if is_work_type_match(job.work_type, talent.work_type) else 0.0
    budget = w.budget * _rate_ratio(job, talent)

    total = round_half_up(skills + carriers + work_type + budget)
    total = max(0, min(100, total))

    logger.debug(
        "Score %s x %s: skills=%.1f carriers=%.1f work_type=%.1f budget=%.1f -> %d",
        job.id, talent.id, skills, carriers, work_type, budget, total,
    )
    return ScoreBreakdown(
        skills=skills,
        carriers=carriers,
        work_type=work_type,
        budget=budget,
        total=total,
    )


def is_work_type_match(job_work_type: WorkType, talent_work_type: WorkType) -> bool:
    if WorkType.ANY in (job_work_type, talent_work_type):
        return True
    return job_work_type == talent_work_type


def daily_budget(job: JobPost) -> float:
    """The job's daily rate, or its budget spread over its work days."""
    if job.daily_rate:
        return float(job.daily_rate)
    if job.work_days <= 0:
        msg = f"job {job.id} has no daily rate and {job.work_days} work days"
        raise ComputationError(msg)
    return job.budget / job.work_days


def match_score_label(score: int) -> str:
    """Human label for a score band: excellent / good / fair / review."""
    for lower, label in _LABEL_BANDS:
        if score >= lower:
            return label
    return "review"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def _overlap_score(wanted: list[str], offered: list[str], weight: float) -> float:
    """Weighted share of ``wanted`` tags found in ``offered``. 0 when nothing is wanted."""
    offered_set = set(offered)
    matches = sum(1 for tag in wanted if tag in offered_set)
    if matches == 0:
        return 0.0
    return weight * matches / max(len(wanted), 1)


def _rate_ratio(job: JobPost, talent: TalentProfile) -> float:
    if talent.rate <= 0:
        msg = f"talent {talent.id} has non-positive rate {talent.rate}"
        raise ComputationError(msg)
    return min(daily_budget(job) / talent.rate, 1.0)
