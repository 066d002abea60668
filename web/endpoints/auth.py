"""Authentication endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from starlette.status import HTTP_409_CONFLICT

from tournaments.api import raise_http_error
from tournaments.models import ROLE_COLLECTIONS, SessionContext
from web.auth_schemas import (
    AuthResponse,
    JoinTournamentSchema,
    LoginSchema,
    MessageResponse,
    UserRegistrationSchema,
)
from web.auth_utils import (
    ACCESS_TOKEN_COOKIE_NAME,
    AuthenticationError,
    PasswordUtils,
    log_security_event,
)
from web.services import Services, get_services, get_session_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


@router.post("/register", response_model=AuthResponse)
async def register(
    request: Request,
    response: Response,
    user_data: UserRegistrationSchema,
    services: Services = Depends(get_services),
):
    """Register an account and its tournament profile."""
    if services.accounts.email_exists(user_data.email):
        log_security_event(
            "registration_failed",
            {"email": user_data.email, "reason": "email_exists"},
            request,
        )
        raise HTTPException(status_code=HTTP_409_CONFLICT, detail="Email already registered")

    rounds = 4 if services.config.auth.development_mode else 12
    password_hash = PasswordUtils.hash_password(user_data.password, rounds=rounds)
    user_id = services.accounts.create_account(
        user_data.email, password_hash, user_data.name, user_data.role.value
    )

    try:
        profile = await services.manager.set_profile(user_id, user_data.name, user_data.role)
        if user_data.tournament_code:
            ctx = SessionContext(user_id=user_id, name=user_data.name, role=user_data.role)
            profile = await services.manager.join_tournament(ctx, user_data.tournament_code)
    except Exception as e:
        # Roll back so the email can be registered again
        services.accounts.delete_account(user_id)
        services.store.delete(ROLE_COLLECTIONS[user_data.role], user_id)
        log_security_event("registration_failed", {"email": user_data.email}, request)
        raise_http_error(e, "register account")

    token = services.jwt.create_access_token(
        user_id, user_data.email, user_data.name, user_data.role
    )
    response.set_cookie(ACCESS_TOKEN_COOKIE_NAME, token, **services.jwt.cookie_settings())

    log_security_event("registration_success", {"user_id": user_id}, request)
    return AuthResponse(message="Account created", access_token=token, profile=profile)


@router.post("/login", response_model=AuthResponse)
async def login(
    request: Request,
    response: Response,
    credentials: LoginSchema,
    services: Services = Depends(get_services),
):
    """Log in with email and password."""
    account = services.accounts.get_by_email(credentials.email)
    if not account or not PasswordUtils.verify_password(
        credentials.password, account["password_hash"]
    ):
        log_security_event("login_failed", {"email": credentials.email}, request)
        raise AuthenticationError("Invalid email or password")

    profile = services.manager.get_profile(account["id"])
    if not profile:
        log_security_event("login_failed", {"user_id": account["id"]}, request)
        raise AuthenticationError("Profile no longer exists")

    token = services.jwt.create_access_token(
        account["id"], account["email"], profile.name, profile.role
    )
    response.set_cookie(ACCESS_TOKEN_COOKIE_NAME, token, **services.jwt.cookie_settings())

    log_security_event("login_success", {"user_id": account["id"]}, request)
    return AuthResponse(message="Login successful", access_token=token, profile=profile)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Drop the session cookie."""
    response.delete_cookie(ACCESS_TOKEN_COOKIE_NAME)
    return MessageResponse(message="Logged out")


@router.get("/me")
async def current_user(
    ctx: SessionContext = Depends(get_session_context),
    services: Services = Depends(get_services),
):
    """Get the caller's profile."""
    return await services.tournament_api.get_profile(ctx)


@router.post("/join")
async def join_tournament(
    body: JoinTournamentSchema,
    ctx: SessionContext = Depends(get_session_context),
    services: Services = Depends(get_services),
):
    """Join a tournament with its code."""
    return await services.tournament_api.join_tournament(ctx, body.code)
