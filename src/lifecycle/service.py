"""Engagement lifecycle: proposals, responses, contracts and assignments.

Each operation loads the latest persisted records, runs the matching guard
from ``transitions`` and commits with a compare-and-set on the status it
validated against. A concurrent writer that got there first turns the
request into a ``conflict`` rejection instead of a lost update.

Guard failures and store failures come back inside a TransitionResult;
only the read-only query helpers let ``StoreError`` propagate.
"""

import logging
import uuid
from datetime import datetime

from src.core.config import ContractPolicy, MatchingConfig
from src.core.errors import StoreError
from src.core.schemas import (
    Actor,
    Assignment,
    AssignmentStatus,
    AssignmentType,
    JobPost,
    JobStatus,
    Match,
    MatchStatus,
    ProfitSummary,
    ProposerType,
    Recommendation,
    Rejection,
    RejectionReason,
    TalentProfile,
    TransitionResult,
)
from src.lifecycle.transitions import (
    check_assignment_transition,
    check_create_contract,
    check_propose,
    check_respond,
    check_set_hot,
)
from src.matching.profit import estimate_profit
from src.matching.recommender import rank_recommendations
from src.store.base import RecordStore

logger = logging.getLogger(__name__)

HOT_ENTITIES = ("job_posts", "talent_profiles")

_ROLE_PROPOSER_TYPES: dict[str, ProposerType] = {
    "client": ProposerType.CLIENT,
    "supplier": ProposerType.TALENT,
}


def match_id_for(job_id: str, talent_id: str) -> str:
    """Deterministic match id: one proposal per job/talent pair."""
    return f"{job_id}-{talent_id}"


class EngagementService:
    """Drives matches and assignments through their lifecycles.

    Usage::

        service = EngagementService(store, settings.contract)
        result = await service.accept(Actor(id="u2"), "job-1-talent-1")
        if not result.ok:
            print(result.rejection or result.error)
    """

    def __init__(self, store: RecordStore, policy: ContractPolicy | None = None) -> None:
        self._store = store
        self._policy = policy or ContractPolicy()

    # ------------------------------------------------------------------
    # Match lifecycle
    # ------------------------------------------------------------------

    async def propose(
        self,
        actor: Actor,
        job_id: str,
        talent_id: str,
        message: str | None = None,
    ) -> TransitionResult:
        """Create a pending match between a job and a talent profile."""
        try:
            job = await self.get_job(job_id)
            talent = await self.get_talent(talent_id)
            if job is None or talent is None:
                missing = f"job {job_id}" if job is None else f"talent {talent_id}"
                return self._rejected("propose", RejectionReason.NOT_FOUND, f"{missing} not found")

            rejection = check_propose(actor, job, talent)
            if rejection is not None:
                return self._refuse("propose", rejection)

            match_id = match_id_for(job.id, talent.id)
            if await self._store.get("matches", match_id) is not None:
                return self._rejected(
                    "propose", RejectionReason.DUPLICATE, f"match {match_id} already proposed",
                )

            match = Match(
                id=match_id,
                job_post_id=job.id,
                talent_profile_id=talent.id,
                proposer_id=actor.id,
                proposer_type=_ROLE_PROPOSER_TYPES.get(actor.role, ProposerType.BROKER),
                message=(message or "").strip() or None,
            )
            try:
                stored = await self._store.insert("matches", match.to_record())
            except StoreError:
                if await self._store.get("matches", match_id) is None:
                    raise
                return self._rejected(
                    "propose", RejectionReason.DUPLICATE, f"match {match_id} already proposed",
                )
        except StoreError as e:
            return self._failed("propose", e)

        logger.info("Match %s proposed by %s", match_id, actor.id)
        return TransitionResult(match=Match.model_validate(stored))

    async def accept(self, actor: Actor, match_id: str) -> TransitionResult:
        return await self._respond(actor, match_id, MatchStatus.ACCEPTED)

    async def reject(self, actor: Actor, match_id: str) -> TransitionResult:
        return await self._respond(actor, match_id, MatchStatus.REJECTED)

    async def create_contract(
        self,
        actor: Actor,
        match_id: str,
        notes: str = "",
        assignment_type: AssignmentType | None = None,
    ) -> TransitionResult:
        """Convert an accepted match into an active assignment.

        Steps: match -> contracted, insert assignment, job -> assigned.
        If the assignment insert fails the match is put back to accepted,
        unless a concurrent call already stored the assignment; then that
        one is reused. A retry after a half-finished run completes the
        missing assignment rather than creating a second one.
        """
        assignment_type = assignment_type or self._policy.default_assignment_type
        try:
            match = await self.get_match(match_id)
            if match is None:
                return self._rejected("contract", RejectionReason.NOT_FOUND, f"match {match_id} not found")
            job = await self.get_job(match.job_post_id)
            talent = await self.get_talent(match.talent_profile_id)
            if job is None or talent is None:
                return self._rejected(
                    "contract", RejectionReason.NOT_FOUND, f"match {match_id} references a missing record",
                )
            existing = await self._assignment_for_match(match.id)
        except StoreError as e:
            return self._failed("contract", e)

        repairing = match.status == MatchStatus.CONTRACTED and existing is None
        if repairing:
            rejection = check_create_contract(
                match.model_copy(update={"status": MatchStatus.ACCEPTED}), actor, job, talent,
            )
        else:
            rejection = check_create_contract(match, actor, job, talent)
        if rejection is not None:
            return self._refuse("contract", rejection)

        now = datetime.now()
        contracted = match if repairing else match.model_copy(update={
            "status": MatchStatus.CONTRACTED,
            "assignment_type": assignment_type,
            "updated_at": now,
        })

        if not repairing:
            try:
                written = await self._store.update(
                    "matches",
                    match.id,
                    {
                        "status": MatchStatus.CONTRACTED.value,
                        "assignment_type": assignment_type.value,
                        "updated_at": now.isoformat(),
                    },
                    expected={"status": MatchStatus.ACCEPTED.value},
                )
            except StoreError as e:
                return self._failed("contract", e, match=match)
            if not written:
                return self._conflict("contract", "match", match.id)
        else:
            logger.warning("Match %s is contracted without an assignment; completing it", match.id)

        if existing is not None:
            assignment = existing
        else:
            profit, each_profit = estimate_profit(job, talent, self._policy.profit_split)
            assignment = Assignment(
                id=uuid.uuid4().hex,
                match_id=match.id,
                job_post_id=job.id,
                talent_profile_id=talent.id,
                client_user_id=job.user_id,
                talent_user_id=talent.user_id,
                monthly_profit=each_profit,
                total_profit=each_profit,
                notes=notes,
                start_date=now,
            )
            try:
                await self._store.insert("assignments", assignment.to_record())
            except StoreError as e:
                try:
                    landed, reported = await self._settle_failed_insert(match, contracted, repairing)
                except StoreError:
                    logger.exception(
                        "Match %s: assignment state unknown after a failed insert; needs reconciliation",
                        match.id,
                    )
                    return self._failed("contract", e, match=contracted)
                if landed is None:
                    return self._failed("contract", e, match=reported)
                logger.warning(
                    "Match %s already has assignment %s from a concurrent contract", match.id, landed.id,
                )
                assignment = landed
            else:
                logger.debug("Contract %s: profit=%d each=%d", match.id, profit, each_profit)
                if repairing:
                    try:
                        await self._hold_contracted(match.id, match.assignment_type or assignment_type)
                    except StoreError as e:
                        return self._failed("contract", e, match=contracted, assignment=assignment)

        try:
            await self._store.update(
                "job_posts", job.id,
                {"status": JobStatus.ASSIGNED.value, "updated_at": now.isoformat()},
            )
        except StoreError as e:
            return self._failed("contract", e, match=contracted, assignment=assignment)

        logger.info("Match %s contracted as assignment %s by %s", match.id, assignment.id, actor.id)
        return TransitionResult(match=contracted, assignment=assignment)

    # ------------------------------------------------------------------
    # Assignment lifecycle
    # ------------------------------------------------------------------

    async def pause(self, actor: Actor, assignment_id: str) -> TransitionResult:
        return await self._move_assignment(actor, assignment_id, AssignmentStatus.PAUSED)

    async def resume(self, actor: Actor, assignment_id: str) -> TransitionResult:
        return await self._move_assignment(actor, assignment_id, AssignmentStatus.ACTIVE)

    async def complete(self, actor: Actor, assignment_id: str) -> TransitionResult:
        return await self._move_assignment(actor, assignment_id, AssignmentStatus.COMPLETED)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def set_hot(
        self,
        actor: Actor,
        entity: str,
        record_id: str,
        is_hot: bool,
    ) -> TransitionResult:
        """Set or clear the promotional hot flag on a job or talent profile."""
        if entity not in HOT_ENTITIES:
            msg = f"hot flag only applies to {HOT_ENTITIES}, got {entity!r}"
            raise ValueError(msg)
        rejection = check_set_hot(actor)
        if rejection is not None:
            return self._refuse("set_hot", rejection)
        try:
            written = await self._store.update(
                entity, record_id, {"is_hot": is_hot, "updated_at": datetime.now().isoformat()},
            )
        except StoreError as e:
            return self._failed("set_hot", e)
        if not written:
            return self._rejected("set_hot", RejectionReason.NOT_FOUND, f"{entity} {record_id} not found")
        logger.info("%s %s hot=%s", entity, record_id, is_hot)
        return TransitionResult()

    # ------------------------------------------------------------------
    # Queries (StoreError propagates)
    # ------------------------------------------------------------------

    async def get_job(self, job_id: str) -> JobPost | None:
        row = await self._store.get("job_posts", job_id)
        return JobPost.model_validate(row) if row else None

    async def get_talent(self, talent_id: str) -> TalentProfile | None:
        row = await self._store.get("talent_profiles", talent_id)
        return TalentProfile.model_validate(row) if row else None

    async def get_match(self, match_id: str) -> Match | None:
        row = await self._store.get("matches", match_id)
        return Match.model_validate(row) if row else None

    async def get_assignment(self, assignment_id: str) -> Assignment | None:
        row = await self._store.get("assignments", assignment_id)
        return Assignment.model_validate(row) if row else None

    async def matches_for_user(self, user_id: str) -> list[Match]:
        """Matches the user proposed, or that involve their job or talent profile."""
        matches = [Match.model_validate(r) for r in await self._store.select("matches")]
        job_ids = {r["id"] for r in await self._store.select("job_posts", {"user_id": user_id})}
        talent_ids = {
            r["id"] for r in await self._store.select("talent_profiles", {"user_id": user_id})
        }
        return [
            m for m in matches
            if m.proposer_id == user_id
            or m.job_post_id in job_ids
            or m.talent_profile_id in talent_ids
        ]

    async def assignments_for_user(
        self,
        user_id: str,
        status: AssignmentStatus | None = None,
    ) -> list[Assignment]:
        """Assignments where the user is the client side or the talent side."""
        rows = await self._store.select("assignments")
        result = [
            a for a in (Assignment.model_validate(r) for r in rows)
            if user_id in (a.client_user_id, a.talent_user_id)
        ]
        if status is not None:
            result = [a for a in result if a.status == status]
        return result

    async def profit_summary(self, user_id: str) -> ProfitSummary:
        assignments = await self.assignments_for_user(user_id)
        counts = {s: sum(1 for a in assignments if a.status == s) for s in AssignmentStatus}
        return ProfitSummary(
            user_id=user_id,
            active=counts[AssignmentStatus.ACTIVE],
            paused=counts[AssignmentStatus.PAUSED],
            completed=counts[AssignmentStatus.COMPLETED],
            total_profit=sum(a.total_profit for a in assignments),
        )

    async def recommendations(
        self,
        viewer_user_id: str,
        config: MatchingConfig | None = None,
    ) -> list[Recommendation]:
        jobs = [JobPost.model_validate(r) for r in await self._store.select("job_posts")]
        talents = [
            TalentProfile.model_validate(r) for r in await self._store.select("talent_profiles")
        ]
        return rank_recommendations(jobs, talents, viewer_user_id, config)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _respond(self, actor: Actor, match_id: str, target: MatchStatus) -> TransitionResult:
        op = target.value
        try:
            match = await self.get_match(match_id)
            if match is None:
                return self._rejected(op, RejectionReason.NOT_FOUND, f"match {match_id} not found")
            rejection = check_respond(match, actor)
            if rejection is not None:
                return self._refuse(op, rejection)

            now = datetime.now()
            written = await self._store.update(
                "matches",
                match.id,
                {"status": target.value, "updated_at": now.isoformat()},
                expected={"status": match.status.value},
            )
        except StoreError as e:
            return self._failed(op, e)
        if not written:
            return self._conflict(op, "match", match.id)

        logger.info("Match %s %s by %s", match.id, target.value, actor.id)
        return TransitionResult(match=match.model_copy(update={"status": target, "updated_at": now}))

    async def _move_assignment(
        self,
        actor: Actor,
        assignment_id: str,
        target: AssignmentStatus,
    ) -> TransitionResult:
        op = f"assignment->{target.value}"
        try:
            assignment = await self.get_assignment(assignment_id)
            if assignment is None:
                return self._rejected(
                    op, RejectionReason.NOT_FOUND, f"assignment {assignment_id} not found",
                )
            rejection = check_assignment_transition(assignment, actor, target)
            if rejection is not None:
                return self._refuse(op, rejection)

            now = datetime.now()
            changes: dict[str, object] = {"status": target.value, "updated_at": now.isoformat()}
            fields: dict[str, object] = {"status": target, "updated_at": now}
            if target == AssignmentStatus.COMPLETED:
                changes["end_date"] = now.isoformat()
                fields["end_date"] = now
            written = await self._store.update(
                "assignments", assignment.id, changes,
                expected={"status": assignment.status.value},
            )
        except StoreError as e:
            return self._failed(op, e)
        if not written:
            return self._conflict(op, "assignment", assignment.id)

        logger.info("Assignment %s %s -> %s by %s", assignment.id,
                    assignment.status.value, target.value, actor.id)
        return TransitionResult(assignment=assignment.model_copy(update=fields))

    async def _assignment_for_match(self, match_id: str) -> Assignment | None:
        rows = await self._store.select("assignments", {"match_id": match_id})
        return Assignment.model_validate(rows[0]) if rows else None

    async def _settle_failed_insert(
        self,
        match: Match,
        contracted: Match,
        repairing: bool,
    ) -> tuple[Assignment | None, Match]:
        """Decide what a failed assignment insert left behind.

        A concurrent contract may have written the assignment first. In
        that case the match must stay contracted, so the landed assignment
        is returned and no rollback happens. Otherwise the match is put
        back to accepted, then checked once more for an assignment that
        arrived during the rollback.

        Returns the landed assignment (or None) and the match to report.
        """
        landed = await self._assignment_for_match(match.id)
        if landed is None:
            if repairing:
                return None, contracted
            restored = await self._compensate(match, contracted)
            if restored.status != MatchStatus.ACCEPTED:
                return None, restored
            try:
                landed = await self._assignment_for_match(match.id)
            except StoreError:
                logger.exception("Match %s rolled back but not re-checked; needs reconciliation", match.id)
                return None, restored
            if landed is None:
                return None, restored
        await self._hold_contracted(
            match.id, contracted.assignment_type or self._policy.default_assignment_type,
        )
        return landed, contracted

    async def _hold_contracted(self, match_id: str, assignment_type: AssignmentType) -> None:
        """Move a match that owns an assignment back to contracted if a rollback reached it."""
        written = await self._store.update(
            "matches",
            match_id,
            {
                "status": MatchStatus.CONTRACTED.value,
                "assignment_type": assignment_type.value,
                "updated_at": datetime.now().isoformat(),
            },
            expected={"status": MatchStatus.ACCEPTED.value},
        )
        if written:
            logger.warning("Match %s was rolled back under a live assignment; contracted again", match_id)

    async def _compensate(self, original: Match, contracted: Match) -> Match:
        """Put a match back to accepted after a failed assignment insert."""
        try:
            restored = await self._store.update(
                "matches",
                original.id,
                {
                    "status": original.status.value,
                    "assignment_type": None,
                    "updated_at": datetime.now().isoformat(),
                },
                expected={"status": MatchStatus.CONTRACTED.value},
            )
        except StoreError:
            logger.exception(
                "Match %s left contracted without an assignment; needs reconciliation",
                original.id,
            )
            return contracted
        if not restored:
            logger.error("Match %s changed during compensation; needs reconciliation", original.id)
            return contracted
        return original

    @staticmethod
    def _refuse(op: str, rejection: Rejection) -> TransitionResult:
        logger.warning("%s rejected (%s): %s", op, rejection.reason.value, rejection.message)
        return TransitionResult(rejection=rejection)

    def _rejected(self, op: str, reason: RejectionReason, message: str) -> TransitionResult:
        return self._refuse(op, Rejection(reason=reason, message=message))

    def _conflict(self, op: str, kind: str, record_id: str) -> TransitionResult:
        return self._rejected(
            op, RejectionReason.CONFLICT, f"{kind} {record_id} changed concurrently; reload and retry",
        )

    @staticmethod
    def _failed(op: str, error: StoreError, **records: object) -> TransitionResult:
        logger.error("%s failed in the store: %s", op, error)
        return TransitionResult.failed(error, **records)
