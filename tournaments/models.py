"""Tournament system data models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class TournamentStatus(Enum):
    """Tournament lifecycle status."""

    ACTIVE = "Active"
    CLOSED = "Closed"


class UserRole(Enum):
    """Role a user plays inside a tournament."""

    ADMIN = "Admin"
    JUDGE = "Judge"
    DEBATER = "Debater"


class DebaterStatus(Enum):
    """Elimination status of a debater."""

    ACTIVE = "Active"
    ELIMINATED = "Eliminated"


class RoundType(Enum):
    """Round type; elimination rounds knock out the loser."""

    PRELIM = "Prelim"
    ELIMINATION = "Elimination"


class DebateStatus(Enum):
    """Round status. Open -> Closed is one-way."""

    OPEN = "Open"
    CLOSED = "Closed"


class Decision(Enum):
    """Side a judge votes for on a ballot."""

    AFF = "Aff"
    NEG = "Neg"


class Winner(Enum):
    """Outcome of a ballot tally."""

    AFF = "Aff"
    NEG = "Neg"
    PENDING = "Pending"


# Store collection holding the profiles of each role
ROLE_COLLECTIONS = {
    UserRole.ADMIN: "admins",
    UserRole.JUDGE: "judges",
    UserRole.DEBATER: "debaters",
}


class TournamentMeta(BaseModel):
    """A tournament, keyed by its short join code."""

    id: str
    name: str
    topic: str
    owner_id: str
    status: TournamentStatus = TournamentStatus.ACTIVE
    created_at: datetime = Field(default_factory=datetime.now)


class UserProfile(BaseModel):
    """A registered participant and their tournament membership."""

    id: str
    name: str
    role: UserRole
    tournament_id: str | None = None
    status: DebaterStatus | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    photo_url: str | None = None
    is_online: bool = True


class Debate(BaseModel):
    """A single round between an affirmative and a negative debater."""

    id: str
    tournament_id: str
    topic: str
    type: RoundType
    stage: str
    aff_id: str
    aff_name: str
    neg_id: str
    neg_name: str
    judge_ids: list[str] = Field(default_factory=list)
    status: DebateStatus = DebateStatus.OPEN
    created_at: datetime = Field(default_factory=datetime.now)


class FlowArgument(BaseModel):
    """One cell of a judge's flow sheet, stored opaquely with the ballot."""

    id: str
    text: str
    col_idx: int
    status: str = "open"
    parent_id: str | None = None
    is_voter: bool = False
    comments: str | None = None


class FrameworkData(BaseModel):
    """Value and criterion a side argued under."""

    value: str = ""
    criterion: str = ""


class RoundResult(BaseModel):
    """A judge's ballot. One per (debate, judge) pair."""

    id: str
    tournament_id: str
    debate_id: str
    judge_id: str
    judge_name: str
    aff_score: float
    neg_score: float
    decision: Decision
    rfd: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    flow: list[FlowArgument] | None = None
    frameworks: dict[str, FrameworkData] | None = None

    @staticmethod
    def ballot_id(debate_id: str, judge_id: str) -> str:
        """Natural key of a ballot."""
        return f"{debate_id}_{judge_id}"


class DebaterStats(BaseModel):
    """Derived win/loss record. Never persisted."""

    id: str
    name: str
    wins: int = 0
    losses: int = 0
    status: DebaterStatus = DebaterStatus.ACTIVE


class AppNotification(BaseModel):
    """A nudge delivered to a single participant."""

    id: str
    tournament_id: str
    recipient_id: str
    message: str
    debate_id: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)


class SessionContext(BaseModel):
    """Who is calling, and for which tournament."""

    user_id: str
    name: str
    role: UserRole
    tournament_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


# =============================================================================
# Requests
# =============================================================================


class TournamentCreateRequest(BaseModel):
    """Request to create a new tournament."""

    name: str = Field(..., min_length=1, description="Tournament name")
    topic: str = Field(default="", description="Resolution debated this tournament")


class DebateCreateRequest(BaseModel):
    """Request to pair two debaters in a new round."""

    topic: str = Field(..., min_length=1, description="Resolution for the round")
    type: RoundType = Field(default=RoundType.PRELIM, description="Round type")
    stage: str = Field(default="Round 1", description="Free-form stage label")
    aff_id: str
    aff_name: str
    neg_id: str
    neg_name: str

    @field_validator("neg_id")
    @classmethod
    def validate_distinct_sides(cls, neg_id: str, info: ValidationInfo) -> str:
        """A debater cannot face themselves."""
        if neg_id == info.data.get("aff_id"):
            raise ValueError("Affirmative and negative must be different debaters")
        return neg_id


class BallotSubmission(BaseModel):
    """Ballot fields a judge supplies. Identity comes from the session."""

    aff_score: float = Field(..., ge=0)
    neg_score: float = Field(..., ge=0)
    decision: Decision
    rfd: str = ""
    flow: list[FlowArgument] | None = None
    frameworks: dict[str, FrameworkData] | None = None


class JudgeAssignmentRequest(BaseModel):
    """Request to seat or unseat a judge."""

    judge_id: str


class ProfileUpdateRequest(BaseModel):
    """Contact fields a participant may edit on their own profile."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    photo_url: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class TournamentSnapshot(BaseModel):
    """Everything a client needs to render one tournament."""

    tournament: TournamentMeta | None
    judges: list[UserProfile]
    debaters: list[UserProfile]
    debates: list[Debate]
    results: list[RoundResult]
    standings: list[DebaterStats]
