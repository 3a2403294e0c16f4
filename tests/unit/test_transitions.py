"""Tests for the pure transition guards."""

import pytest

from src.core.schemas import (
    Actor,
    Assignment,
    AssignmentStatus,
    JobPost,
    JobStatus,
    Match,
    MatchStatus,
    RejectionReason,
    TalentProfile,
    TalentStatus,
)
from src.lifecycle.transitions import (
    ASSIGNMENT_TRANSITIONS,
    check_assignment_transition,
    check_create_contract,
    check_propose,
    check_respond,
    check_set_hot,
)

CLIENT = Actor(id="client", role="client")
SUPPLIER = Actor(id="supplier", role="supplier")
BROKER = Actor(id="broker")
STRANGER = Actor(id="stranger")


def _job(status: JobStatus = JobStatus.ACTIVE) -> JobPost:
    return JobPost(id="j1", user_id="client", budget=300000, work_days=20, status=status)


def _talent(status: TalentStatus = TalentStatus.AVAILABLE) -> TalentProfile:
    return TalentProfile(id="t1", user_id="supplier", rate=10000, status=status)


def _match(status: MatchStatus = MatchStatus.PENDING, proposer: str = "broker") -> Match:
    return Match(
        id="j1-t1", job_post_id="j1", talent_profile_id="t1",
        proposer_id=proposer, status=status,
    )


def _assignment(status: AssignmentStatus = AssignmentStatus.ACTIVE) -> Assignment:
    return Assignment(
        id="a1", match_id="j1-t1", job_post_id="j1", talent_profile_id="t1",
        client_user_id="client", talent_user_id="supplier", status=status,
    )


# ---------------------------------------------------------------------------
# Propose
# ---------------------------------------------------------------------------


class TestCheckPropose:
    def test_third_party_allowed(self) -> None:
        assert check_propose(BROKER, _job(), _talent()) is None

    @pytest.mark.parametrize("actor", [CLIENT, SUPPLIER])
    def test_owners_refused(self, actor: Actor) -> None:
        rejection = check_propose(actor, _job(), _talent())
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_ACTOR

    def test_inactive_job_refused(self) -> None:
        rejection = check_propose(BROKER, _job(JobStatus.ASSIGNED), _talent())
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_STATUS

    def test_unavailable_talent_refused(self) -> None:
        rejection = check_propose(BROKER, _job(), _talent(TalentStatus.UNAVAILABLE))
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_STATUS


# ---------------------------------------------------------------------------
# Accept / reject
# ---------------------------------------------------------------------------


class TestCheckRespond:
    def test_other_party_may_respond(self) -> None:
        assert check_respond(_match(), CLIENT) is None

    def test_proposer_cannot_respond(self) -> None:
        rejection = check_respond(_match(proposer="client"), CLIENT)
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_ACTOR

    @pytest.mark.parametrize(
        "status", [MatchStatus.ACCEPTED, MatchStatus.REJECTED, MatchStatus.CONTRACTED],
    )
    def test_only_pending(self, status: MatchStatus) -> None:
        rejection = check_respond(_match(status), CLIENT)
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_STATUS

    def test_status_checked_before_actor(self) -> None:
        rejection = check_respond(_match(MatchStatus.REJECTED, proposer="client"), CLIENT)
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_STATUS


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class TestCheckCreateContract:
    @pytest.mark.parametrize("actor", [BROKER, CLIENT, SUPPLIER])
    def test_interested_parties_allowed(self, actor: Actor) -> None:
        assert check_create_contract(_match(MatchStatus.ACCEPTED), actor, _job(), _talent()) is None

    def test_stranger_refused(self) -> None:
        rejection = check_create_contract(_match(MatchStatus.ACCEPTED), STRANGER, _job(), _talent())
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_ACTOR

    @pytest.mark.parametrize(
        "status", [MatchStatus.PENDING, MatchStatus.REJECTED, MatchStatus.CONTRACTED],
    )
    def test_only_accepted(self, status: MatchStatus) -> None:
        rejection = check_create_contract(_match(status), BROKER, _job(), _talent())
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_STATUS


# ---------------------------------------------------------------------------
# Assignment moves
# ---------------------------------------------------------------------------


class TestCheckAssignmentTransition:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (AssignmentStatus.ACTIVE, AssignmentStatus.PAUSED),
            (AssignmentStatus.PAUSED, AssignmentStatus.ACTIVE),
            (AssignmentStatus.ACTIVE, AssignmentStatus.COMPLETED),
            (AssignmentStatus.PAUSED, AssignmentStatus.COMPLETED),
        ],
    )
    def test_allowed_edges(self, current: AssignmentStatus, target: AssignmentStatus) -> None:
        assert check_assignment_transition(_assignment(current), CLIENT, target) is None

    @pytest.mark.parametrize("target", list(AssignmentStatus))
    def test_completed_is_terminal(self, target: AssignmentStatus) -> None:
        rejection = check_assignment_transition(_assignment(AssignmentStatus.COMPLETED), CLIENT, target)
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_STATUS

    def test_resume_active_refused(self) -> None:
        rejection = check_assignment_transition(_assignment(), CLIENT, AssignmentStatus.ACTIVE)
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_STATUS

    def test_talent_side_read_only(self) -> None:
        rejection = check_assignment_transition(_assignment(), SUPPLIER, AssignmentStatus.PAUSED)
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_ACTOR

    def test_table_has_no_exit_from_completed(self) -> None:
        assert ASSIGNMENT_TRANSITIONS[AssignmentStatus.COMPLETED] == frozenset()


class TestCheckSetHot:
    def test_admin_allowed(self) -> None:
        assert check_set_hot(Actor(id="root", role="admin")) is None

    def test_non_admin_refused(self) -> None:
        rejection = check_set_hot(CLIENT)
        assert rejection is not None
        assert rejection.reason == RejectionReason.WRONG_ACTOR
