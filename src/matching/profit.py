"""Profit arithmetic applied when a match becomes a contract."""

from src.core.schemas import JobPost, TalentProfile
from src.matching.scorer import round_half_up

DEFAULT_SPLIT = 0.5


def calculate_profit(job_budget: int, talent_rate: int, work_days: int) -> int:
    """Budget left after paying the talent for every work day. Never negative."""
    return max(0, job_budget - talent_rate * work_days)


def calculate_each_profit(total_profit: int, split: float = DEFAULT_SPLIT) -> int:
    """Share of ``total_profit`` credited to each introducing side."""
    return round_half_up(total_profit * split)


def estimate_profit(
    job: JobPost,
    talent: TalentProfile,
    split: float = DEFAULT_SPLIT,
) -> tuple[int, int]:
    """Return ``(profit, each_profit)`` for a prospective contract."""
    profit = calculate_profit(job.budget, talent.rate, job.work_days)
    return profit, calculate_each_profit(profit, split)
