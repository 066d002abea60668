"""Callers can only act inside the tournament they own or belong to."""

import asyncio

import pytest

from conftest import ballot
from tournaments.exceptions import (
    PermissionDeniedError,
    TournamentClosedError,
    TournamentNotFoundError,
)
from tournaments.models import (
    DebateCreateRequest,
    DebateStatus,
    DebaterStatus,
    Decision,
    RoundType,
    SessionContext,
    TournamentCreateRequest,
    UserRole,
)

COLLECTIONS = ["tournaments", "judges", "debaters", "debates", "results", "notifications"]


def dump_state(store) -> dict[str, list[dict]]:
    return {name: store.query(name) for name in COLLECTIONS}


def pairing(aff: str, neg: str, round_type: RoundType = RoundType.PRELIM) -> DebateCreateRequest:
    return DebateCreateRequest(
        topic="Resolved: ...",
        type=round_type,
        aff_id=aff,
        aff_name=aff,
        neg_id=neg,
        neg_name=neg,
    )


@pytest.fixture
def rival(manager) -> SessionContext:
    """A second admin's tournament with debaters x1 and y1 and judge k1."""
    owner = SessionContext(user_id="admin2", name="Riley Admin", role=UserRole.ADMIN)

    async def seed() -> SessionContext:
        await manager.set_profile(owner.user_id, owner.name, UserRole.ADMIN)
        tournament = await manager.create_tournament(
            owner, TournamentCreateRequest(name="Fall Classic")
        )
        await manager.set_profile("x1", "Xavier Ito", UserRole.DEBATER, tournament.id)
        await manager.set_profile("y1", "Yara Diaz", UserRole.DEBATER, tournament.id)
        await manager.set_profile("k1", "Kai Novak", UserRole.JUDGE, tournament.id)
        return owner.model_copy(update={"tournament_id": tournament.id})

    return asyncio.run(seed())


@pytest.fixture
def rival_round(manager, rival):
    return asyncio.run(manager.create_debate(rival, pairing("x1", "y1", RoundType.ELIMINATION)))


class TestForeignTournament:
    def test_admin_cannot_create_rounds_elsewhere(self, manager, store, admin, rival) -> None:
        intruder = admin.model_copy(update={"tournament_id": rival.tournament_id})
        before = dump_state(store)

        with pytest.raises(PermissionDeniedError, match="owner"):
            asyncio.run(manager.create_debate(intruder, pairing("x1", "y1")))

        assert dump_state(store) == before

    def test_admin_cannot_finalize_elsewhere(
        self, manager, store, admin, rival, rival_round
    ) -> None:
        judge = SessionContext(
            user_id="k1", name="Kai Novak", role=UserRole.JUDGE,
            tournament_id=rival.tournament_id,
        )
        asyncio.run(manager.submit_ballot(judge, rival_round.id, ballot(Decision.AFF)))
        intruder = admin.model_copy(update={"tournament_id": rival.tournament_id})
        before = dump_state(store)

        with pytest.raises(PermissionDeniedError):
            asyncio.run(manager.finalize_round(intruder, rival_round.id))

        assert dump_state(store) == before
        assert manager.get_profile("y1").status == DebaterStatus.ACTIVE

    def test_judge_cannot_vote_elsewhere(
        self, manager, store, judge, rival, rival_round
    ) -> None:
        intruder = judge("j1").model_copy(update={"tournament_id": rival.tournament_id})
        before = dump_state(store)

        with pytest.raises(PermissionDeniedError, match="not part"):
            asyncio.run(manager.submit_ballot(intruder, rival_round.id, ballot(Decision.NEG)))

        assert dump_state(store) == before

    def test_unknown_tournament_is_not_found(self, manager, store, admin) -> None:
        lost = admin.model_copy(update={"tournament_id": "ZZZZZZ"})
        before = dump_state(store)

        with pytest.raises(TournamentNotFoundError):
            asyncio.run(manager.create_debate(lost, pairing("a1", "b1")))

        assert dump_state(store) == before

    def test_owner_and_members_still_act(self, manager, rival, rival_round) -> None:
        judge = SessionContext(
            user_id="k1", name="Kai Novak", role=UserRole.JUDGE,
            tournament_id=rival.tournament_id,
        )

        asyncio.run(manager.submit_ballot(judge, rival_round.id, ballot(Decision.AFF)))
        asyncio.run(manager.finalize_round(rival, rival_round.id))

        assert manager.get_debate(rival_round.id).status == DebateStatus.CLOSED
        assert manager.get_profile("y1").status == DebaterStatus.ELIMINATED


class TestForeignProfiles:
    """Profiles from another tournament are out of reach of this one's admin."""

    @pytest.fixture
    def closed_rival(self, manager, rival) -> SessionContext:
        asyncio.run(manager.close_tournament(rival, rival.tournament_id))
        return rival

    def test_toggle_ignores_foreign_debater(self, manager, store, admin, closed_rival) -> None:
        before = dump_state(store)

        assert asyncio.run(manager.toggle_debater_status(admin, "x1")) is None

        assert dump_state(store) == before
        assert manager.get_profile("x1").status == DebaterStatus.ACTIVE

    def test_kick_ignores_foreign_profiles(self, manager, store, admin, closed_rival) -> None:
        before = dump_state(store)

        assert asyncio.run(manager.kick_user(admin, "x1", UserRole.DEBATER)) is False
        assert asyncio.run(manager.kick_user(admin, "k1", UserRole.JUDGE)) is False

        assert dump_state(store) == before

    def test_finalize_does_not_eliminate_foreign_loser(
        self, manager, admin, judge, closed_rival
    ) -> None:
        debate = asyncio.run(
            manager.create_debate(admin, pairing("a1", "x1", RoundType.ELIMINATION))
        )
        asyncio.run(manager.submit_ballot(judge("j1"), debate.id, ballot(Decision.AFF)))

        asyncio.run(manager.finalize_round(admin, debate.id))

        assert manager.get_debate(debate.id).status == DebateStatus.CLOSED
        assert manager.get_profile("x1").status == DebaterStatus.ACTIVE

    def test_closed_rival_rejects_its_own_owner(
        self, manager, store, closed_rival
    ) -> None:
        before = dump_state(store)

        with pytest.raises(TournamentClosedError):
            asyncio.run(manager.toggle_debater_status(closed_rival, "x1"))

        assert dump_state(store) == before
