"""Pytest configuration and shared fixtures.

Most tests run against a seeded tournament held in a fresh in-memory store:
one admin, two debaters (``a1`` and ``b1``) and four judges (``j1``..``j4``).
"""

import asyncio
from collections.abc import Callable

import pytest

from config.settings import TournamentConfig
from tournaments import MemoryObjectStore, TournamentManager
from tournaments.models import (
    BallotSubmission,
    Debate,
    DebateCreateRequest,
    Decision,
    RoundType,
    SessionContext,
    TournamentCreateRequest,
    UserRole,
)

DEBATERS = {"a1": "Alex Rivera", "b1": "Blair Chen"}
JUDGES = {"j1": "Jordan Lee", "j2": "Jamie Park", "j3": "Jesse Ortiz", "j4": "Jules Moreau"}


# =============================================================================
# SHARED FIXTURES - Available to all test modules
# =============================================================================


@pytest.fixture
def store() -> MemoryObjectStore:
    return MemoryObjectStore()


@pytest.fixture
def manager(store: MemoryObjectStore) -> TournamentManager:
    return TournamentManager(store, TournamentConfig())


@pytest.fixture
def tournament_code(manager: TournamentManager) -> str:
    """Create a tournament and seat the standard cast in it."""
    owner = SessionContext(user_id="admin1", name="Avery Admin", role=UserRole.ADMIN)

    async def seed() -> str:
        await manager.set_profile(owner.user_id, owner.name, UserRole.ADMIN)
        tournament = await manager.create_tournament(
            owner, TournamentCreateRequest(name="Spring Invitational", topic="Resolved: ...")
        )
        for user_id, name in DEBATERS.items():
            await manager.set_profile(user_id, name, UserRole.DEBATER, tournament.id)
        for user_id, name in JUDGES.items():
            await manager.set_profile(user_id, name, UserRole.JUDGE, tournament.id)
        return tournament.id

    return asyncio.run(seed())


@pytest.fixture
def admin(tournament_code: str) -> SessionContext:
    """The tournament owner, scoped to the seeded tournament."""
    return SessionContext(
        user_id="admin1",
        name="Avery Admin",
        role=UserRole.ADMIN,
        tournament_id=tournament_code,
    )


@pytest.fixture
def judge(tournament_code: str) -> Callable[[str], SessionContext]:
    """Build the session context of one of the seeded judges."""

    def make(user_id: str) -> SessionContext:
        return SessionContext(
            user_id=user_id,
            name=JUDGES[user_id],
            role=UserRole.JUDGE,
            tournament_id=tournament_code,
        )

    return make


@pytest.fixture
def debater(tournament_code: str) -> Callable[[str], SessionContext]:
    """Build the session context of one of the seeded debaters."""

    def make(user_id: str) -> SessionContext:
        return SessionContext(
            user_id=user_id,
            name=DEBATERS[user_id],
            role=UserRole.DEBATER,
            tournament_id=tournament_code,
        )

    return make


@pytest.fixture
def make_round(
    manager: TournamentManager, admin: SessionContext
) -> Callable[..., Debate]:
    """Open a round between a1 (Aff) and b1 (Neg)."""

    def make(
        round_type: RoundType = RoundType.PRELIM, aff: str = "a1", neg: str = "b1"
    ) -> Debate:
        request = DebateCreateRequest(
            topic="Resolved: civil disobedience is justified in a democracy.",
            type=round_type,
            stage="Quarterfinal" if round_type == RoundType.ELIMINATION else "Round 1",
            aff_id=aff,
            aff_name=DEBATERS.get(aff, aff),
            neg_id=neg,
            neg_name=DEBATERS.get(neg, neg),
        )
        return asyncio.run(manager.create_debate(admin, request))

    return make


def ballot(
    decision: Decision, aff_score: float = 28.0, neg_score: float = 27.5
) -> BallotSubmission:
    """A ballot for the given side with ordinary speaker points."""
    return BallotSubmission(
        aff_score=aff_score,
        neg_score=neg_score,
        decision=decision,
        rfd="Clearer weighing on the value criterion.",
    )


# =============================================================================
# PYTEST CONFIGURATION HOOKS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
