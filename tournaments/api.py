"""Tournament API endpoint handlers."""

import logging
from typing import Any, NoReturn

from fastapi import HTTPException

from .exceptions import (
    ClosedStateError,
    PermissionDeniedError,
    TournamentError,
    TournamentNotFoundError,
    TournamentValidationError,
)
from .manager import TournamentManager
from .models import (
    BallotSubmission,
    DebateCreateRequest,
    ProfileUpdateRequest,
    SessionContext,
    TournamentCreateRequest,
    UserRole,
)

logger = logging.getLogger(__name__)


def raise_http_error(e: Exception, action: str) -> NoReturn:
    """Translate an engine error into an HTTP error.

    Closed-state rejections are 409 and say so, validation problems are 400,
    and anything unexpected is logged and reported as a bare 500.
    """
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, ClosedStateError):
        raise HTTPException(status_code=409, detail=f"{e.message} No changes were made.")
    if isinstance(e, TournamentNotFoundError):
        raise HTTPException(status_code=404, detail=e.message)
    if isinstance(e, TournamentValidationError):
        raise HTTPException(status_code=400, detail=e.message)
    if isinstance(e, PermissionDeniedError):
        raise HTTPException(status_code=403, detail=e.message)
    if isinstance(e, TournamentError):
        logger.error(f"Failed to {action}: {e.message}")
    else:
        logger.error(f"Failed to {action}: {e}")
    raise HTTPException(status_code=500, detail="Internal server error")


class TournamentAPI:
    """FastAPI endpoint handlers for tournament operations."""

    def __init__(self, tournament_manager: TournamentManager):
        self.manager = tournament_manager

    # =========================================================================
    # Tournaments
    # =========================================================================

    async def create_tournament(
        self, ctx: SessionContext, request: TournamentCreateRequest
    ) -> dict[str, Any]:
        """Create a new tournament."""
        try:
            tournament = await self.manager.create_tournament(ctx, request)
            return {
                "tournament": tournament.model_dump(mode="json"),
                "message": f"Tournament '{request.name}' created successfully",
            }
        except Exception as e:
            raise_http_error(e, "create tournament")

    async def close_tournament(self, ctx: SessionContext, code: str) -> dict[str, Any]:
        """Close a tournament for good."""
        try:
            tournament = await self.manager.close_tournament(ctx, code)
            return {
                "tournament": tournament.model_dump(mode="json"),
                "message": "Tournament closed",
            }
        except Exception as e:
            raise_http_error(e, f"close tournament {code}")

    async def list_tournaments(self, ctx: SessionContext) -> dict[str, Any]:
        """List tournaments owned by the caller."""
        try:
            tournaments = self.manager.list_my_tournaments(ctx.user_id)
            return {
                "tournaments": [t.model_dump(mode="json") for t in tournaments],
                "count": len(tournaments),
            }
        except Exception as e:
            raise_http_error(e, "list tournaments")

    async def get_tournament(self, code: str) -> dict[str, Any]:
        """Get tournament details."""
        try:
            tournament = self.manager.get_tournament(code)
            if not tournament:
                raise HTTPException(status_code=404, detail="Tournament not found")
            return tournament.model_dump(mode="json")
        except Exception as e:
            raise_http_error(e, f"get tournament {code}")

    async def join_tournament(self, ctx: SessionContext, code: str) -> dict[str, Any]:
        """Join a tournament with its code."""
        try:
            profile = await self.manager.join_tournament(ctx, code)
            return {
                "profile": profile.model_dump(mode="json"),
                "message": f"Joined tournament {profile.tournament_id}",
            }
        except Exception as e:
            raise_http_error(e, f"join tournament {code}")

    # =========================================================================
    # Participants
    # =========================================================================

    async def get_profile(self, ctx: SessionContext) -> dict[str, Any]:
        """Get the caller's profile."""
        try:
            profile = self.manager.get_profile(ctx.user_id, ctx.role)
            if not profile:
                raise HTTPException(status_code=404, detail="Profile not found")
            return profile.model_dump(mode="json")
        except Exception as e:
            raise_http_error(e, f"get profile {ctx.user_id}")

    async def update_profile(
        self, ctx: SessionContext, request: ProfileUpdateRequest
    ) -> dict[str, Any]:
        """Edit the caller's contact details."""
        try:
            profile = await self.manager.update_personal_info(ctx, request.changes())
            if not profile:
                raise HTTPException(status_code=404, detail="Profile not found")
            return profile.model_dump(mode="json")
        except Exception as e:
            raise_http_error(e, f"update profile {ctx.user_id}")

    async def get_participants(self, code: str) -> dict[str, Any]:
        """Get judges and debaters in a tournament."""
        try:
            judges = self.manager.list_participants(code, UserRole.JUDGE)
            debaters = self.manager.list_participants(code, UserRole.DEBATER)
            eligible = self.manager.eligible_debaters(code)
            return {
                "tournament_id": code,
                "judges": [j.model_dump(mode="json") for j in judges],
                "debaters": [d.model_dump(mode="json") for d in debaters],
                "eligible_debater_ids": [d.id for d in eligible],
            }
        except Exception as e:
            raise_http_error(e, f"get participants for {code}")

    async def toggle_debater_status(
        self, ctx: SessionContext, debater_id: str
    ) -> dict[str, Any]:
        """Flip a debater between Active and Eliminated."""
        try:
            status = await self.manager.toggle_debater_status(ctx, debater_id)
            if status is None:
                raise HTTPException(status_code=404, detail="Debater not found")
            return {"debater_id": debater_id, "status": status.value}
        except Exception as e:
            raise_http_error(e, f"toggle status of debater {debater_id}")

    async def kick_user(
        self, ctx: SessionContext, user_id: str, role: UserRole
    ) -> dict[str, Any]:
        """Remove a judge or debater from a tournament."""
        try:
            removed = await self.manager.kick_user(ctx, user_id, role)
            return {"user_id": user_id, "removed": removed}
        except Exception as e:
            raise_http_error(e, f"remove user {user_id}")

    # =========================================================================
    # Rounds
    # =========================================================================

    async def create_debate(
        self, ctx: SessionContext, request: DebateCreateRequest
    ) -> dict[str, Any]:
        """Pair two debaters in a new round."""
        try:
            debate = await self.manager.create_debate(ctx, request)
            return debate.model_dump(mode="json")
        except Exception as e:
            raise_http_error(e, "create round")

    async def list_debates(self, code: str) -> dict[str, Any]:
        """List a tournament's rounds with their current leaders."""
        try:
            debates = self.manager.list_debates(code)
            return {
                "tournament_id": code,
                "debates": [
                    {
                        **d.model_dump(mode="json"),
                        "winner": self.manager.get_winner(d.id).value,
                    }
                    for d in debates
                ],
                "count": len(debates),
            }
        except Exception as e:
            raise_http_error(e, f"list rounds for {code}")

    async def get_debate(self, code: str, debate_id: str) -> dict[str, Any]:
        """Get one round with its ballots and current leader."""
        try:
            debate = self.manager.get_debate(debate_id, code)
            if not debate:
                raise HTTPException(status_code=404, detail="Round not found")
            results = self.manager.list_results(code, debate_id)
            return {
                **debate.model_dump(mode="json"),
                "winner": self.manager.get_winner(debate_id).value,
                "results": [r.model_dump(mode="json") for r in results],
            }
        except Exception as e:
            raise_http_error(e, f"get round {debate_id}")

    async def assign_judge(
        self, ctx: SessionContext, debate_id: str, judge_id: str
    ) -> dict[str, Any]:
        """Seat a judge on a round."""
        try:
            debate = await self.manager.assign_judge(ctx, debate_id, judge_id)
            if not debate:
                return {"debate_id": debate_id, "judge_ids": None, "seated": False}
            return {
                "debate_id": debate_id,
                "judge_ids": debate.judge_ids,
                "seated": judge_id in debate.judge_ids,
            }
        except Exception as e:
            raise_http_error(e, f"assign judge {judge_id} to round {debate_id}")

    async def remove_judge(
        self, ctx: SessionContext, debate_id: str, judge_id: str
    ) -> dict[str, Any]:
        """Unseat a judge from a round."""
        try:
            debate = await self.manager.remove_judge(ctx, debate_id, judge_id)
            return {
                "debate_id": debate_id,
                "judge_ids": debate.judge_ids if debate else None,
            }
        except Exception as e:
            raise_http_error(e, f"remove judge {judge_id} from round {debate_id}")

    async def finalize_round(self, ctx: SessionContext, debate_id: str) -> dict[str, Any]:
        """Close a round and apply elimination."""
        try:
            winner = await self.manager.finalize_round(ctx, debate_id)
            return {
                "debate_id": debate_id,
                "winner": winner.value if winner else None,
                "status": "Closed" if winner else None,
            }
        except Exception as e:
            raise_http_error(e, f"finalize round {debate_id}")

    async def delete_debate(self, ctx: SessionContext, debate_id: str) -> dict[str, Any]:
        """Delete a round."""
        try:
            deleted = await self.manager.delete_debate(ctx, debate_id)
            return {"debate_id": debate_id, "deleted": deleted}
        except Exception as e:
            raise_http_error(e, f"delete round {debate_id}")

    # =========================================================================
    # Ballots & standings
    # =========================================================================

    async def submit_ballot(
        self, ctx: SessionContext, debate_id: str, submission: BallotSubmission
    ) -> dict[str, Any]:
        """Submit or revise the caller's ballot."""
        try:
            ballot = await self.manager.submit_ballot(ctx, debate_id, submission)
            return {
                "ballot": ballot.model_dump(mode="json"),
                "message": "Ballot submitted",
            }
        except Exception as e:
            raise_http_error(e, f"submit ballot for round {debate_id}")

    async def get_standings(self, code: str) -> dict[str, Any]:
        """Official standings over closed rounds."""
        try:
            standings = self.manager.standings(code)
            return {
                "tournament_id": code,
                "standings": [s.model_dump(mode="json") for s in standings],
            }
        except Exception as e:
            raise_http_error(e, f"get standings for {code}")

    async def get_my_assignments(self, ctx: SessionContext) -> dict[str, Any]:
        """Rounds the caller judges or debates in."""
        try:
            debates = self.manager.my_assignments(ctx)
            return {
                "assignments": [d.model_dump(mode="json") for d in debates],
                "count": len(debates),
            }
        except Exception as e:
            raise_http_error(e, f"get assignments for {ctx.user_id}")

    async def get_my_record(self, ctx: SessionContext) -> dict[str, Any]:
        """The caller's own win/loss record."""
        try:
            return self.manager.my_debater_record(ctx).model_dump(mode="json")
        except Exception as e:
            raise_http_error(e, f"get record for {ctx.user_id}")

    # =========================================================================
    # Notifications
    # =========================================================================

    async def get_notifications(self, ctx: SessionContext) -> dict[str, Any]:
        try:
            notifications = self.manager.list_notifications(ctx.user_id)
            return {
                "notifications": [n.model_dump(mode="json") for n in notifications],
                "count": len(notifications),
            }
        except Exception as e:
            raise_http_error(e, f"get notifications for {ctx.user_id}")

    async def send_nudge(
        self, ctx: SessionContext, debate_id: str, judge_id: str
    ) -> dict[str, Any]:
        """Remind a judge to submit their ballot."""
        try:
            notification = await self.manager.send_nudge(ctx, judge_id, debate_id)
            return {
                "notification": notification.model_dump(mode="json") if notification else None
            }
        except Exception as e:
            raise_http_error(e, f"nudge judge {judge_id}")

    async def dismiss_notification(
        self, ctx: SessionContext, notification_id: str
    ) -> dict[str, Any]:
        try:
            dismissed = await self.manager.dismiss_notification(ctx, notification_id)
            return {"notification_id": notification_id, "dismissed": dismissed}
        except Exception as e:
            raise_http_error(e, f"dismiss notification {notification_id}")
