"""Tests for recommendation ranking."""

from src.core.config import MatchingConfig
from src.core.schemas import (
    JobPost,
    JobStatus,
    RecommendationType,
    TalentProfile,
    TalentStatus,
)
from src.matching.recommender import rank_recommendations

VIEWER = "viewer"


def _job(
    job_id: str,
    user_id: str,
    *,
    status: JobStatus = JobStatus.ACTIVE,
    carriers: list[str] | None = None,
) -> JobPost:
    # Scores 80 against a default talent; 100 when carriers are shared.
    return JobPost(
        id=job_id,
        user_id=user_id,
        budget=300000,
        work_days=20,
        skill_tags=["React"],
        preferred_carriers=carriers or [],
        status=status,
    )


def _talent(
    talent_id: str,
    user_id: str,
    *,
    status: TalentStatus = TalentStatus.AVAILABLE,
    skills: list[str] | None = None,
    carriers: list[str] | None = None,
    rate: int = 10000,
) -> TalentProfile:
    return TalentProfile(
        id=talent_id,
        user_id=user_id,
        rate=rate,
        skills=["React"] if skills is None else skills,
        preferred_carriers=carriers or [],
        status=status,
    )


# ---------------------------------------------------------------------------
# Talent for the viewer's jobs
# ---------------------------------------------------------------------------


class TestTalentForJob:
    def test_top_two_per_job_in_stable_order(self) -> None:
        jobs = [_job("j1", VIEWER)]
        talents = [_talent("ta", "u2"), _talent("tb", "u3"), _talent("tc", "u4")]
        recs = rank_recommendations(jobs, talents, VIEWER)
        assert [r.talent.id for r in recs] == ["ta", "tb"]
        assert all(r.type == RecommendationType.TALENT_FOR_JOB for r in recs)

    def test_higher_score_first(self) -> None:
        jobs = [_job("j1", VIEWER, carriers=["docomo"])]
        talents = [_talent("ta", "u2"), _talent("tb", "u3", carriers=["docomo"])]
        recs = rank_recommendations(jobs, talents, VIEWER)
        assert [(r.talent.id, r.score) for r in recs] == [("tb", 100), ("ta", 80)]

    def test_below_threshold_dropped(self) -> None:
        jobs = [_job("j1", VIEWER)]
        talents = [_talent("ta", "u2", skills=[])]  # 40 points
        assert rank_recommendations(jobs, talents, VIEWER) == []

    def test_unavailable_talent_ignored(self) -> None:
        jobs = [_job("j1", VIEWER)]
        talents = [_talent("ta", "u2", status=TalentStatus.BUSY)]
        assert rank_recommendations(jobs, talents, VIEWER) == []

    def test_inactive_job_ignored(self) -> None:
        jobs = [_job("j1", VIEWER, status=JobStatus.DRAFT)]
        talents = [_talent("ta", "u2")]
        assert rank_recommendations(jobs, talents, VIEWER) == []

    def test_other_users_jobs_not_used(self) -> None:
        jobs = [_job("j1", "someone-else")]
        talents = [_talent("ta", "u2")]
        assert rank_recommendations(jobs, talents, VIEWER) == []

    def test_degenerate_talent_skipped(self) -> None:
        jobs = [_job("j1", VIEWER)]
        talents = [_talent("broken", "u2", rate=0), _talent("ok", "u3")]
        recs = rank_recommendations(jobs, talents, VIEWER)
        assert [r.talent.id for r in recs] == ["ok"]


# ---------------------------------------------------------------------------
# Jobs for the viewer's talent profile
# ---------------------------------------------------------------------------


class TestJobForTalent:
    def test_top_three_jobs(self) -> None:
        jobs = [_job(f"j{i}", f"u{i}") for i in range(5)]
        talents = [_talent("mine", VIEWER)]
        recs = rank_recommendations(jobs, talents, VIEWER)
        assert [r.job.id for r in recs] == ["j0", "j1", "j2"]
        assert all(r.type == RecommendationType.JOB_FOR_TALENT for r in recs)

    def test_own_jobs_excluded(self) -> None:
        jobs = [_job("j-own", VIEWER), _job("j-other", "u2")]
        talents = [_talent("mine", VIEWER)]
        recs = rank_recommendations(jobs, talents, VIEWER)
        assert [r.job.id for r in recs if r.type == RecommendationType.JOB_FOR_TALENT] == ["j-other"]

    def test_unavailable_profile_gets_nothing(self) -> None:
        jobs = [_job("j1", "u2")]
        talents = [_talent("mine", VIEWER, status=TalentStatus.UNAVAILABLE)]
        assert rank_recommendations(jobs, talents, VIEWER) == []


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


class TestMerge:
    def test_total_capped_at_six(self) -> None:
        jobs = [_job(f"mine{i}", VIEWER) for i in range(3)]
        jobs += [_job(f"other{i}", f"o{i}") for i in range(3)]
        talents = [_talent("mine", VIEWER)] + [_talent(f"t{i}", f"u{i}") for i in range(4)]
        recs = rank_recommendations(jobs, talents, VIEWER)
        assert len(recs) == 6
        assert all(r.score >= 60 for r in recs)
        assert [r.score for r in recs] == sorted((r.score for r in recs), reverse=True)

    def test_ties_keep_job_for_talent_first(self) -> None:
        jobs = [_job("mine", VIEWER), _job("other", "u2")]
        talents = [_talent("my-profile", VIEWER), _talent("t1", "u3")]
        recs = rank_recommendations(jobs, talents, VIEWER)
        assert [r.type for r in recs] == [
            RecommendationType.JOB_FOR_TALENT,
            RecommendationType.TALENT_FOR_JOB,
        ]

    def test_better_score_beats_construction_order(self) -> None:
        jobs = [_job("mine", VIEWER, carriers=["au"]), _job("other", "u2")]
        talents = [_talent("my-profile", VIEWER), _talent("t1", "u3", carriers=["au"])]
        recs = rank_recommendations(jobs, talents, VIEWER)
        assert recs[0].type == RecommendationType.TALENT_FOR_JOB
        assert recs[0].score == 100

    def test_custom_config(self) -> None:
        config = MatchingConfig(threshold=90, total_limit=1)
        jobs = [_job("j1", VIEWER, carriers=["au"])]
        talents = [_talent("ta", "u2"), _talent("tb", "u3", carriers=["au"])]
        recs = rank_recommendations(jobs, talents, VIEWER, config)
        assert [r.talent.id for r in recs] == ["tb"]

    def test_no_data(self) -> None:
        assert rank_recommendations([], [], VIEWER) == []
