"""Core data models for the matching engine.

Records are frozen; lifecycle transitions produce updated copies via
``model_copy(update=...)`` and persist them through a RecordStore.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.core.errors import StoreError


class WorkType(str, Enum):
    FULLTIME = "fulltime"
    EVENT = "event"
    RETAIL = "retail"
    REMOTE = "remote"
    ONSITE = "onsite"
    HYBRID = "hybrid"
    ANY = "any"


class JobStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"
    ASSIGNED = "assigned"
    COMPLETED = "completed"


class TalentStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"
    PENDING = "pending"
    ASSIGNED = "assigned"


class MatchStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONTRACTED = "contracted"


class AssignmentStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class AssignmentType(str, Enum):
    ONGOING = "ongoing"
    SINGLE = "single"


class ProposerType(str, Enum):
    CLIENT = "client"
    TALENT = "talent"
    BROKER = "broker"


class RecommendationType(str, Enum):
    JOB_FOR_TALENT = "job_for_talent"
    TALENT_FOR_JOB = "talent_for_job"


class Actor(BaseModel):
    """The acting user as reported by the identity provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class Record(BaseModel):
    """Base for anything persisted through a RecordStore."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def to_record(self) -> dict[str, Any]:
        """Plain JSON-compatible dict for the store."""
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, row: dict[str, Any]) -> "Record":
        return cls.model_validate(row)


class JobPost(Record):
    """A work opportunity posted by a client."""

    user_id: str
    title: str = ""
    budget: int = Field(default=0, ge=0)
    daily_rate: int | None = Field(default=None, gt=0)
    work_days: int = Field(default=1, ge=0)
    skill_tags: list[str] = Field(default_factory=list)
    preferred_carriers: list[str] = Field(default_factory=list)
    work_type: WorkType = WorkType.ANY
    status: JobStatus = JobStatus.DRAFT
    is_hot: bool = False


class TalentProfile(Record):
    """A person's offering. At most one per user."""

    user_id: str
    name: str = ""
    rate: int = Field(default=0, ge=0)
    experience_years: int = Field(default=0, ge=0)
    skills: list[str] = Field(default_factory=list)
    preferred_carriers: list[str] = Field(default_factory=list)
    work_type: WorkType = WorkType.ANY
    status: TalentStatus = TalentStatus.AVAILABLE
    is_hot: bool = False


class Match(Record):
    """A proposed pairing of one job and one talent profile."""

    job_post_id: str
    talent_profile_id: str
    proposer_id: str
    proposer_type: ProposerType = ProposerType.BROKER
    message: str | None = None
    status: MatchStatus = MatchStatus.PENDING
    assignment_type: AssignmentType | None = None


class Assignment(Record):
    """A contract realised from an accepted match."""

    match_id: str
    job_post_id: str
    talent_profile_id: str
    client_user_id: str
    talent_user_id: str
    status: AssignmentStatus = AssignmentStatus.ACTIVE
    monthly_profit: int = Field(default=0, ge=0)
    total_profit: int = Field(default=0, ge=0)
    notes: str = ""
    start_date: datetime = Field(default_factory=datetime.now)
    end_date: datetime | None = None


# ---------------------------------------------------------------------------
# Scoring output
# ---------------------------------------------------------------------------


class ScoreBreakdown(BaseModel):
    """The four weighted sub-scores behind a match score."""

    model_config = ConfigDict(frozen=True)

    skills: float = 0.0
    carriers: float = 0.0
    work_type: float = 0.0
    budget: float = 0.0
    total: int = Field(default=0, ge=0, le=100)


class Recommendation(BaseModel):
    """A scored job/talent pair suggested to a viewing user."""

    model_config = ConfigDict(frozen=True)

    type: RecommendationType
    score: int = Field(ge=0, le=100)
    job: JobPost
    talent: TalentProfile


# ---------------------------------------------------------------------------
# Lifecycle results
# ---------------------------------------------------------------------------


class RejectionReason(str, Enum):
    WRONG_STATUS = "wrong_status"
    WRONG_ACTOR = "wrong_actor"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"


class Rejection(BaseModel):
    """A guard failure: the transition did not happen."""

    model_config = ConfigDict(frozen=True)

    reason: RejectionReason
    message: str


class TransitionResult(BaseModel):
    """Outcome of a lifecycle request.

    Exactly one of the following holds: ``rejection`` is set (guard failed),
    ``error`` is set (the store failed), or the request succeeded and the
    affected records are attached. On a store failure any attached records
    reflect what is actually persisted, so the caller can reconcile.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    match: Match | None = None
    assignment: Assignment | None = None
    rejection: Rejection | None = None
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.rejection is None and self.error is None

    @classmethod
    def rejected(cls, reason: RejectionReason, message: str) -> "TransitionResult":
        return cls(rejection=Rejection(reason=reason, message=message))

    @classmethod
    def failed(cls, error: StoreError, **records: Any) -> "TransitionResult":
        return cls(error=error, **records)


class ProfitSummary(BaseModel):
    """Assignment counts and accumulated profit for one user."""

    user_id: str
    active: int = 0
    paused: int = 0
    completed: int = 0
    total_profit: int = 0
