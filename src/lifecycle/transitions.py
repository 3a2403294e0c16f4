"""Transition guards for matches and assignments.

Match:       pending -> accepted | rejected,  accepted -> contracted
Assignment:  active <-> paused,  active | paused -> completed

Every check is synchronous and side-effect free. It returns None when the
transition is allowed, or a Rejection naming the guard that failed.
"""

from src.core.schemas import (
    Actor,
    Assignment,
    AssignmentStatus,
    JobPost,
    JobStatus,
    Match,
    MatchStatus,
    Rejection,
    RejectionReason,
    TalentProfile,
    TalentStatus,
)

ASSIGNMENT_TRANSITIONS: dict[AssignmentStatus, frozenset[AssignmentStatus]] = {
    AssignmentStatus.ACTIVE: frozenset({AssignmentStatus.PAUSED, AssignmentStatus.COMPLETED}),
    AssignmentStatus.PAUSED: frozenset({AssignmentStatus.ACTIVE, AssignmentStatus.COMPLETED}),
    AssignmentStatus.COMPLETED: frozenset(),
}


def _wrong_status(message: str) -> Rejection:
    return Rejection(reason=RejectionReason.WRONG_STATUS, message=message)


def _wrong_actor(message: str) -> Rejection:
    return Rejection(reason=RejectionReason.WRONG_ACTOR, message=message)


def check_propose(actor: Actor, job: JobPost, talent: TalentProfile) -> Rejection | None:
    """A proposal comes from a third party: neither the job owner nor the talent owner."""
    if actor.id in (job.user_id, talent.user_id):
        return _wrong_actor("owners of the job or the talent profile cannot propose a match")
    if job.status != JobStatus.ACTIVE:
        return _wrong_status(f"job {job.id} is {job.status.value}, not active")
    if talent.status == TalentStatus.UNAVAILABLE:
        return _wrong_status(f"talent {talent.id} is unavailable")
    return None


def check_respond(match: Match, actor: Actor) -> Rejection | None:
    """Accept/reject: the match is pending and the actor is not the proposer."""
    if match.status != MatchStatus.PENDING:
        return _wrong_status(f"match {match.id} is {match.status.value}, not pending")
    if actor.id == match.proposer_id:
        return _wrong_actor("the proposer cannot accept or reject their own proposal")
    return None


def check_create_contract(
    match: Match,
    actor: Actor,
    job: JobPost,
    talent: TalentProfile,
) -> Rejection | None:
    """Contract: the match is accepted and the actor is one of the interested parties."""
    if match.status != MatchStatus.ACCEPTED:
        return _wrong_status(f"match {match.id} is {match.status.value}, not accepted")
    if actor.id not in (match.proposer_id, job.user_id, talent.user_id):
        return _wrong_actor("only the proposer, the job owner or the talent owner can contract")
    return None


def check_assignment_transition(
    assignment: Assignment,
    actor: Actor,
    target: AssignmentStatus,
) -> Rejection | None:
    """Pause/resume/complete: only the client side, only along allowed edges."""
    if target not in ASSIGNMENT_TRANSITIONS[assignment.status]:
        return _wrong_status(
            f"assignment {assignment.id} cannot go from "
            f"{assignment.status.value} to {target.value}"
        )
    if actor.id != assignment.client_user_id:
        return _wrong_actor("only the client side can change an assignment's status")
    return None


def check_set_hot(actor: Actor) -> Rejection | None:
    if not actor.is_admin:
        return _wrong_actor("only administrators can change the hot flag")
    return None
