"""Tournament, participant and round endpoints."""

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from tournaments import TournamentAPI
from tournaments.manager import normalize_code
from tournaments.models import (
    BallotSubmission,
    DebateCreateRequest,
    JudgeAssignmentRequest,
    ProfileUpdateRequest,
    SessionContext,
    TournamentCreateRequest,
    UserRole,
)
from web.auth_utils import ACCESS_TOKEN_COOKIE_NAME, AuthenticationError
from web.services import get_services, get_session_context, get_tournament_api

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
ws_router = APIRouter()


def scoped(ctx: SessionContext, code: str) -> SessionContext:
    """Act within the tournament named in the path.

    The manager checks that the caller owns or belongs to it.
    """
    return ctx.model_copy(update={"tournament_id": normalize_code(code)})


# Tournaments


@router.post("/tournaments")
async def create_tournament(
    request: TournamentCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Create a new tournament."""
    return await api.create_tournament(ctx, request)


@router.get("/tournaments")
async def list_tournaments(
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """List the caller's tournaments."""
    return await api.list_tournaments(ctx)


@router.get("/tournaments/{code}")
async def get_tournament(code: str, api: TournamentAPI = Depends(get_tournament_api)):
    """Get tournament details."""
    return await api.get_tournament(code)


@router.post("/tournaments/{code}/close")
async def close_tournament(
    code: str,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Close a tournament."""
    return await api.close_tournament(ctx, code)


@router.get("/tournaments/{code}/participants")
async def get_participants(code: str, api: TournamentAPI = Depends(get_tournament_api)):
    """Get all judges and debaters in a tournament."""
    return await api.get_participants(code)


@router.post("/tournaments/{code}/debaters/{debater_id}/toggle-status")
async def toggle_debater_status(
    code: str,
    debater_id: str,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Flip a debater between Active and Eliminated."""
    return await api.toggle_debater_status(scoped(ctx, code), debater_id)


@router.delete("/tournaments/{code}/participants/{role}/{user_id}")
async def kick_user(
    code: str,
    role: UserRole,
    user_id: str,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Remove a judge or debater."""
    return await api.kick_user(scoped(ctx, code), user_id, role)


@router.get("/tournaments/{code}/standings")
async def get_standings(code: str, api: TournamentAPI = Depends(get_tournament_api)):
    """Official standings over closed rounds."""
    return await api.get_standings(code)


# Rounds


@router.post("/tournaments/{code}/debates")
async def create_debate(
    code: str,
    request: DebateCreateRequest,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Pair two debaters in a new round."""
    return await api.create_debate(scoped(ctx, code), request)


@router.get("/tournaments/{code}/debates")
async def list_debates(code: str, api: TournamentAPI = Depends(get_tournament_api)):
    """List rounds with their current leaders."""
    return await api.list_debates(code)


@router.get("/tournaments/{code}/debates/{debate_id}")
async def get_debate(
    code: str, debate_id: str, api: TournamentAPI = Depends(get_tournament_api)
):
    """Get one round with its ballots."""
    return await api.get_debate(code, debate_id)


@router.delete("/tournaments/{code}/debates/{debate_id}")
async def delete_debate(
    code: str,
    debate_id: str,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Delete a round."""
    return await api.delete_debate(scoped(ctx, code), debate_id)


@router.post("/tournaments/{code}/debates/{debate_id}/judges")
async def assign_judge(
    code: str,
    debate_id: str,
    body: JudgeAssignmentRequest,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Seat a judge."""
    return await api.assign_judge(scoped(ctx, code), debate_id, body.judge_id)


@router.delete("/tournaments/{code}/debates/{debate_id}/judges/{judge_id}")
async def remove_judge(
    code: str,
    debate_id: str,
    judge_id: str,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Unseat a judge."""
    return await api.remove_judge(scoped(ctx, code), debate_id, judge_id)


@router.post("/tournaments/{code}/debates/{debate_id}/finalize")
async def finalize_round(
    code: str,
    debate_id: str,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Close a round."""
    return await api.finalize_round(scoped(ctx, code), debate_id)


@router.put("/tournaments/{code}/debates/{debate_id}/ballot")
async def submit_ballot(
    code: str,
    debate_id: str,
    submission: BallotSubmission,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Submit or revise the caller's ballot."""
    return await api.submit_ballot(scoped(ctx, code), debate_id, submission)


@router.post("/tournaments/{code}/debates/{debate_id}/nudge/{judge_id}")
async def send_nudge(
    code: str,
    debate_id: str,
    judge_id: str,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    """Remind a judge to submit their ballot."""
    return await api.send_nudge(scoped(ctx, code), debate_id, judge_id)


# The caller


@router.get("/me/assignments")
async def get_my_assignments(
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    return await api.get_my_assignments(ctx)


@router.get("/me/record")
async def get_my_record(
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    return await api.get_my_record(ctx)


@router.patch("/me/profile")
async def update_profile(
    request: ProfileUpdateRequest,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    return await api.update_profile(ctx, request)


@router.get("/me/notifications")
async def get_notifications(
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    return await api.get_notifications(ctx)


@router.delete("/me/notifications/{notification_id}")
async def dismiss_notification(
    notification_id: str,
    ctx: SessionContext = Depends(get_session_context),
    api: TournamentAPI = Depends(get_tournament_api),
):
    return await api.dismiss_notification(ctx, notification_id)


@ws_router.websocket("/ws/tournaments/{code}")
async def tournament_updates(websocket: WebSocket, code: str):
    """WebSocket endpoint pushing tournament snapshots on every change."""
    services = get_services()
    token = websocket.query_params.get("token") or websocket.cookies.get(
        ACCESS_TOKEN_COOKIE_NAME
    )

    try:
        if not token:
            raise AuthenticationError("No authentication token found")
        payload = services.jwt.decode_access_token(token)
        profile = services.manager.get_profile(payload["sub"], UserRole(payload["role"]))
        if not profile:
            raise AuthenticationError("Profile no longer exists")
    except (AuthenticationError, ValueError) as e:
        logger.warning(f"Rejected live update connection for {code}: {e}")
        await websocket.close(code=4401)
        return

    ctx = SessionContext(
        user_id=profile.id,
        name=profile.name,
        role=profile.role,
        tournament_id=normalize_code(code),
    )

    await websocket.accept()
    try:
        await services.live_updates.serve(websocket, ctx)
    except WebSocketDisconnect:
        pass
