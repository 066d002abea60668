"""Round lifecycle, ballots and membership for Lincoln-Douglas tournaments."""

import logging
import secrets
import string
from typing import Any

from config.settings import TournamentConfig
from .exceptions import (
    DuplicateNameError,
    PermissionDeniedError,
    RoundClosedError,
    StoreError,
    TournamentClosedError,
    TournamentNotFoundError,
    TournamentValidationError,
)
from .models import (
    ROLE_COLLECTIONS,
    AppNotification,
    BallotSubmission,
    Debate,
    DebateCreateRequest,
    DebateStatus,
    DebaterStats,
    DebaterStatus,
    RoundResult,
    RoundType,
    SessionContext,
    TournamentCreateRequest,
    TournamentMeta,
    TournamentStatus,
    UserProfile,
    UserRole,
    Winner,
)
from .standings import compute_standings, debater_record, get_winner, my_assignments
from .store import ObjectStore

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def normalize_code(code: str) -> str:
    """Tournament codes are case-insensitive and stored uppercase."""
    return code.strip().upper()


class TournamentManager:
    """Applies tournament operations against an object store.

    Every mutation takes an explicit ``SessionContext`` and re-validates the
    tournament and round state itself before writing.
    """

    def __init__(self, store: ObjectStore, config: TournamentConfig | None = None):
        self.store = store
        self.config = config or TournamentConfig()

    # =========================================================================
    # Tournaments
    # =========================================================================

    async def create_tournament(
        self, ctx: SessionContext, request: TournamentCreateRequest
    ) -> TournamentMeta:
        """Create a tournament owned by the calling admin."""
        self._require_admin(ctx)

        code = self._generate_code()
        tournament = TournamentMeta(
            id=code,
            name=request.name,
            topic=request.topic,
            owner_id=ctx.user_id,
            status=TournamentStatus.ACTIVE,
        )
        self.store.upsert("tournaments", code, tournament.model_dump(mode="json"))

        logger.info(f"Created tournament {code}: {request.name}")
        return tournament

    async def close_tournament(self, ctx: SessionContext, code: str) -> TournamentMeta:
        """Close a tournament. Only its owner may do this."""
        tournament = self.get_tournament(code)
        if not tournament:
            raise TournamentNotFoundError(normalize_code(code))

        if tournament.owner_id != ctx.user_id:
            raise PermissionDeniedError("Only the tournament owner can close it.")

        if tournament.status == TournamentStatus.CLOSED:
            return tournament

        self.store.update(
            "tournaments", tournament.id, {"status": TournamentStatus.CLOSED.value}
        )
        logger.info(f"Closed tournament {tournament.id}")
        return tournament.model_copy(update={"status": TournamentStatus.CLOSED})

    def get_tournament(self, code: str) -> TournamentMeta | None:
        record = self.store.get("tournaments", normalize_code(code))
        return TournamentMeta.model_validate(record) if record else None

    def list_my_tournaments(self, owner_id: str) -> list[TournamentMeta]:
        """Tournaments created by an admin, newest first."""
        tournaments = [
            TournamentMeta.model_validate(record)
            for record in self.store.query("tournaments", owner_id=owner_id)
        ]
        return sorted(tournaments, key=lambda t: t.created_at, reverse=True)

    def is_tournament_closed(self, code: str) -> bool:
        tournament = self.get_tournament(code)
        return tournament is not None and tournament.status == TournamentStatus.CLOSED

    # =========================================================================
    # Profiles & membership
    # =========================================================================

    async def set_profile(
        self,
        user_id: str,
        name: str,
        role: UserRole,
        tournament_id: str | None = None,
        **contact: Any,
    ) -> UserProfile:
        """Create or refresh a profile in its role's collection."""
        collection = ROLE_COLLECTIONS[role]
        existing = self.store.get(collection, user_id) or {}

        status = existing.get("status")
        if role == UserRole.DEBATER and status is None:
            status = DebaterStatus.ACTIVE.value

        profile = UserProfile.model_validate(
            {
                **existing,
                **contact,
                "id": user_id,
                "name": name,
                "role": role.value,
                "tournament_id": normalize_code(tournament_id) if tournament_id else None,
                "status": status,
                "is_online": True,
            }
        )
        self.store.upsert(collection, user_id, profile.model_dump(mode="json"), merge=True)
        logger.info(f"Saved {role.value} profile {user_id} ({name})")
        return profile

    def get_profile(self, user_id: str, role: UserRole | None = None) -> UserProfile | None:
        """Find a profile, searching every role collection when none is given."""
        roles = [role] if role else [UserRole.JUDGE, UserRole.DEBATER, UserRole.ADMIN]
        for candidate in roles:
            record = self.store.get(ROLE_COLLECTIONS[candidate], user_id)
            if record:
                return UserProfile.model_validate(record)
        return None

    async def join_tournament(self, ctx: SessionContext, code: str) -> UserProfile:
        """Attach the caller's profile to a tournament by its join code."""
        code = normalize_code(code)
        tournament = self.get_tournament(code)
        if not tournament:
            raise TournamentNotFoundError(code)

        self._ensure_open(tournament)

        if self._is_name_taken(ctx.name, code, exclude_id=ctx.user_id):
            raise DuplicateNameError(ctx.name, code)

        profile = await self.set_profile(ctx.user_id, ctx.name, ctx.role, code)
        logger.info(f"{ctx.name} joined tournament {code} as {ctx.role.value}")
        return profile

    async def update_personal_info(
        self, ctx: SessionContext, changes: dict[str, Any]
    ) -> UserProfile | None:
        """Update contact fields on the caller's own profile."""
        collection = ROLE_COLLECTIONS[ctx.role]
        allowed = {"name", "email", "phone", "address", "photo_url"}
        fields = {k: v for k, v in changes.items() if k in allowed}
        if not self.store.update(collection, ctx.user_id, fields):
            return None
        return self.get_profile(ctx.user_id, ctx.role)

    def eligible_debaters(self, tournament_id: str) -> list[UserProfile]:
        """Debaters who can still be paired."""
        return [
            profile
            for profile in self.list_participants(tournament_id, UserRole.DEBATER)
            if profile.status != DebaterStatus.ELIMINATED
        ]

    def list_participants(self, tournament_id: str, role: UserRole) -> list[UserProfile]:
        return [
            UserProfile.model_validate(record)
            for record in self.store.query(
                ROLE_COLLECTIONS[role], tournament_id=normalize_code(tournament_id)
            )
        ]

    async def toggle_debater_status(
        self, ctx: SessionContext, debater_id: str
    ) -> DebaterStatus | None:
        """Flip a debater between Active and Eliminated."""
        tid = self._require_tournament_context(ctx)
        self._require_admin(ctx)
        self._require_member(ctx, tid)

        record = self._get_member_record("debaters", debater_id, tid)
        if not record:
            return None

        current = record.get("status")
        new_status = (
            DebaterStatus.ACTIVE
            if current == DebaterStatus.ELIMINATED.value
            else DebaterStatus.ELIMINATED
        )
        self.store.update("debaters", debater_id, {"status": new_status.value})
        logger.info(f"Debater {debater_id} is now {new_status.value}")
        return new_status

    async def kick_user(self, ctx: SessionContext, user_id: str, role: UserRole) -> bool:
        """Remove a judge's or debater's profile."""
        tid = self._require_tournament_context(ctx)
        self._require_admin(ctx)
        self._require_member(ctx, tid)

        if role not in (UserRole.JUDGE, UserRole.DEBATER):
            raise TournamentValidationError("Only judges and debaters can be removed.")

        if not self._get_member_record(ROLE_COLLECTIONS[role], user_id, tid):
            return False

        deleted = self.store.delete(ROLE_COLLECTIONS[role], user_id)
        if deleted:
            logger.info(f"Removed {role.value} {user_id} from tournament {tid}")
        return deleted

    # =========================================================================
    # Round lifecycle
    # =========================================================================

    async def create_debate(
        self, ctx: SessionContext, request: DebateCreateRequest
    ) -> Debate:
        """Pair two debaters in a new open round and tell them their sides."""
        tid = self._require_tournament_context(ctx)
        self._require_admin(ctx)
        self._require_member(ctx, tid)

        for debater_id in (request.aff_id, request.neg_id):
            profile = self.store.get("debaters", debater_id)
            if profile and profile.get("status") == DebaterStatus.ELIMINATED.value:
                raise TournamentValidationError(
                    f"Debater {profile.get('name', debater_id)} has been eliminated.",
                    details={"debater_id": debater_id},
                )

        data = {
            "tournament_id": tid,
            "topic": request.topic,
            "type": request.type.value,
            "stage": request.stage,
            "aff_id": request.aff_id,
            "aff_name": request.aff_name,
            "neg_id": request.neg_id,
            "neg_name": request.neg_name,
            "judge_ids": [],
            "status": DebateStatus.OPEN.value,
        }
        draft = Debate.model_validate({**data, "id": "pending"})
        debate_id = self.store.create(
            "debates", draft.model_dump(mode="json", exclude={"id"})
        )
        debate = draft.model_copy(update={"id": debate_id})

        await self._send_notification(
            tid, request.aff_id, f"You are assigned Affirmative: {request.topic}", debate_id
        )
        await self._send_notification(
            tid, request.neg_id, f"You are assigned Negative: {request.topic}", debate_id
        )

        logger.info(
            f"Created {request.type.value} round {debate_id} ({request.stage}): "
            f"{request.aff_name} vs {request.neg_name}"
        )
        return debate

    async def assign_judge(
        self, ctx: SessionContext, debate_id: str, judge_id: str
    ) -> Debate | None:
        """Seat a judge. Assignments past the cap are dropped."""
        tid = self._require_tournament_context(ctx)
        self._require_admin(ctx)
        self._require_member(ctx, tid)

        debate = self.get_debate(debate_id, tid)
        if not debate:
            return None

        if debate.status == DebateStatus.CLOSED:
            raise RoundClosedError(debate_id)

        merged = list(dict.fromkeys([*debate.judge_ids, judge_id]))
        judge_ids = merged[: self.config.max_judges_per_round]
        if judge_ids == debate.judge_ids:
            if judge_id not in judge_ids:
                logger.warning(
                    f"Round {debate_id} already has "
                    f"{self.config.max_judges_per_round} judges, {judge_id} not seated"
                )
            return debate

        self.store.update("debates", debate_id, {"judge_ids": judge_ids})
        await self._send_notification(
            tid, judge_id, f"You have been assigned to judge: {debate.topic}", debate_id
        )

        logger.info(f"Assigned judge {judge_id} to round {debate_id}")
        return debate.model_copy(update={"judge_ids": judge_ids})

    async def remove_judge(
        self, ctx: SessionContext, debate_id: str, judge_id: str
    ) -> Debate | None:
        """Unseat a judge, whatever the round's status."""
        tid = self._require_tournament_context(ctx)
        self._require_admin(ctx)
        self._require_member(ctx, tid)

        debate = self.get_debate(debate_id, tid)
        if not debate:
            return None

        judge_ids = [j for j in debate.judge_ids if j != judge_id]
        self.store.update("debates", debate_id, {"judge_ids": judge_ids})

        logger.info(f"Removed judge {judge_id} from round {debate_id}")
        return debate.model_copy(update={"judge_ids": judge_ids})

    async def finalize_round(self, ctx: SessionContext, debate_id: str) -> Winner | None:
        """Close a round, eliminating the loser of a decided elimination round.

        The elimination and the status change are separate writes, elimination
        first; a failure between them leaves an eliminated loser in a round
        that is still open. A round is finalized once; finalizing a closed
        round raises ``RoundClosedError`` and writes nothing.
        """
        tid = self._require_tournament_context(ctx)
        self._require_admin(ctx)
        self._require_member(ctx, tid)

        debate = self.get_debate(debate_id, tid)
        if not debate:
            return None
        if debate.status == DebateStatus.CLOSED:
            raise RoundClosedError(debate_id, "Round is already finalized.")

        winner = self.get_winner(debate_id)

        if debate.type == RoundType.ELIMINATION and winner != Winner.PENDING:
            loser_id = debate.neg_id if winner == Winner.AFF else debate.aff_id
            if self._get_member_record("debaters", loser_id, tid):
                self.store.update(
                    "debaters", loser_id, {"status": DebaterStatus.ELIMINATED.value}
                )
                logger.info(f"Debater {loser_id} eliminated in round {debate_id}")
            else:
                logger.warning(f"Eliminated debater {loser_id} has no profile in {tid}")

        self.store.update("debates", debate_id, {"status": DebateStatus.CLOSED.value})

        logger.info(f"Finalized round {debate_id}, winner: {winner.value}")
        return winner

    async def delete_debate(self, ctx: SessionContext, debate_id: str) -> bool:
        """Delete a round. Its ballots are left in place."""
        tid = self._require_tournament_context(ctx)
        self._require_admin(ctx)
        self._require_member(ctx, tid)

        if not self.get_debate(debate_id, tid):
            return False

        deleted = self.store.delete("debates", debate_id)
        if deleted:
            logger.info(f"Deleted round {debate_id}")
        return deleted

    def get_debate(self, debate_id: str, tournament_id: str | None = None) -> Debate | None:
        """Look up a round, optionally requiring it to belong to a tournament."""
        record = self.store.get("debates", debate_id)
        if not record:
            return None
        debate = Debate.model_validate(record)
        if tournament_id and debate.tournament_id != normalize_code(tournament_id):
            return None
        return debate

    def list_debates(self, tournament_id: str) -> list[Debate]:
        return [
            Debate.model_validate(record)
            for record in self.store.query(
                "debates", tournament_id=normalize_code(tournament_id)
            )
        ]

    # =========================================================================
    # Ballots & results
    # =========================================================================

    async def submit_ballot(
        self, ctx: SessionContext, debate_id: str, submission: BallotSubmission
    ) -> RoundResult:
        """Record the caller's ballot, replacing any earlier one for the round."""
        tid = self._require_tournament_context(ctx)
        self._require_member(ctx, tid)

        if ctx.role not in (UserRole.JUDGE, UserRole.ADMIN):
            raise PermissionDeniedError("Only judges can submit ballots.")

        debate = self.get_debate(debate_id, tid)
        if not debate:
            raise TournamentValidationError(
                "Round not found.", details={"debate_id": debate_id}
            )
        if debate.status == DebateStatus.CLOSED:
            raise RoundClosedError(debate_id)

        ballot = RoundResult(
            id=RoundResult.ballot_id(debate_id, ctx.user_id),
            tournament_id=tid,
            debate_id=debate_id,
            judge_id=ctx.user_id,
            judge_name=ctx.name,
            aff_score=submission.aff_score,
            neg_score=submission.neg_score,
            decision=submission.decision,
            rfd=submission.rfd,
            flow=submission.flow,
            frameworks=submission.frameworks,
        )
        self.store.upsert("results", ballot.id, ballot.model_dump(mode="json"))

        logger.info(
            f"Ballot from {ctx.name} on round {debate_id}: {submission.decision.value}"
        )
        return ballot

    def list_results(
        self, tournament_id: str, debate_id: str | None = None
    ) -> list[RoundResult]:
        filters: dict[str, Any] = {"tournament_id": normalize_code(tournament_id)}
        if debate_id:
            filters["debate_id"] = debate_id
        return [
            RoundResult.model_validate(record)
            for record in self.store.query("results", **filters)
        ]

    def get_winner(self, debate_id: str) -> Winner:
        """Leading side of a round, open or closed."""
        results = [
            RoundResult.model_validate(record)
            for record in self.store.query("results", debate_id=debate_id)
        ]
        return get_winner(results, debate_id)

    def standings(self, tournament_id: str) -> list[DebaterStats]:
        """Official standings over the tournament's closed rounds."""
        return compute_standings(
            self.list_participants(tournament_id, UserRole.DEBATER),
            self.list_debates(tournament_id),
            self.list_results(tournament_id),
        )

    def my_assignments(self, ctx: SessionContext) -> list[Debate]:
        if not ctx.tournament_id:
            return []
        return my_assignments(self.list_debates(ctx.tournament_id), ctx.user_id, ctx.role)

    def my_debater_record(self, ctx: SessionContext) -> DebaterStats:
        if not ctx.tournament_id:
            return DebaterStats(id=ctx.user_id, name=ctx.name)
        return debater_record(self.standings(ctx.tournament_id), ctx.user_id, ctx.name)

    # =========================================================================
    # Notifications
    # =========================================================================

    async def send_nudge(
        self, ctx: SessionContext, judge_id: str, debate_id: str
    ) -> AppNotification | None:
        """Remind a judge to turn in their ballot."""
        tid = self._require_tournament_context(ctx)
        self._require_admin(ctx)
        self._require_member(ctx, tid)
        return await self._send_notification(
            tid, judge_id, "Please submit your ballot!", debate_id
        )

    async def dismiss_notification(self, ctx: SessionContext, notification_id: str) -> bool:
        record = self.store.get("notifications", notification_id)
        if not record:
            return False
        if record.get("recipient_id") != ctx.user_id:
            raise PermissionDeniedError("You can only dismiss your own notifications.")
        return self.store.delete("notifications", notification_id)

    def list_notifications(self, user_id: str) -> list[AppNotification]:
        return [
            AppNotification.model_validate(record)
            for record in self.store.query("notifications", recipient_id=user_id)
        ]

    async def _send_notification(
        self,
        tournament_id: str,
        recipient_id: str,
        message: str,
        debate_id: str | None = None,
    ) -> AppNotification:
        data = {
            "tournament_id": tournament_id,
            "recipient_id": recipient_id,
            "message": message,
            "debate_id": debate_id,
        }
        draft = AppNotification.model_validate({**data, "id": "pending"})
        notification_id = self.store.create(
            "notifications", draft.model_dump(mode="json", exclude={"id"})
        )
        logger.debug(f"Notified {recipient_id}: {message}")
        return draft.model_copy(update={"id": notification_id})

    # =========================================================================
    # Guards
    # =========================================================================

    def _require_tournament_context(self, ctx: SessionContext) -> str:
        if not ctx.tournament_id:
            raise TournamentValidationError("No tournament context found.")
        return normalize_code(ctx.tournament_id)

    def _require_admin(self, ctx: SessionContext) -> None:
        if not ctx.is_admin:
            raise PermissionDeniedError(
                f"{ctx.role.value} accounts cannot perform admin actions."
            )

    def _require_member(self, ctx: SessionContext, tournament_id: str) -> TournamentMeta:
        """Resolve the tournament and check the caller may act in it.

        Admins must own the tournament; judges and debaters must have a
        profile attached to it.
        """
        tournament = self.get_tournament(tournament_id)
        if not tournament:
            raise TournamentNotFoundError(tournament_id)

        self._ensure_open(tournament)

        if ctx.is_admin:
            if tournament.owner_id != ctx.user_id:
                logger.warning(
                    f"Admin {ctx.user_id} does not own tournament {tournament.id}"
                )
                raise PermissionDeniedError("Only the tournament owner can manage it.")
        else:
            profile = self.get_profile(ctx.user_id, ctx.role)
            if not profile or profile.tournament_id != tournament.id:
                logger.warning(
                    f"{ctx.role.value} {ctx.user_id} is not part of tournament {tournament.id}"
                )
                raise PermissionDeniedError("You are not part of this tournament.")

        return tournament

    def _ensure_open(self, tournament: TournamentMeta) -> None:
        if tournament.status == TournamentStatus.CLOSED:
            logger.warning(f"Rejected mutation on closed tournament {tournament.id}")
            raise TournamentClosedError(tournament.id)

    def _get_member_record(
        self, collection: str, record_id: str, tournament_id: str
    ) -> dict[str, Any] | None:
        """A profile record, only if it belongs to the given tournament."""
        record = self.store.get(collection, record_id)
        if not record or record.get("tournament_id") != tournament_id:
            return None
        return record

    def _is_name_taken(self, name: str, tournament_id: str, exclude_id: str) -> bool:
        for role in (UserRole.JUDGE, UserRole.DEBATER):
            for record in self.store.query(
                ROLE_COLLECTIONS[role], tournament_id=tournament_id, name=name
            ):
                if record.get("id") != exclude_id:
                    return True
        return False

    def _generate_code(self) -> str:
        """Draw a random join code not used by any existing tournament."""
        for _ in range(self.config.code_attempts):
            code = "".join(
                secrets.choice(CODE_ALPHABET) for _ in range(self.config.code_length)
            )
            if self.store.get("tournaments", code) is None:
                return code
            logger.debug(f"Tournament code {code} already in use, retrying")
        raise StoreError("Could not allocate an unused tournament code.")
