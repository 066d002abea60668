"""Process-wide services shared by the endpoint routers."""

import logging

from fastapi import Depends, Request

from config.settings import AppConfig, get_default_config
from tournaments import TournamentAPI, TournamentManager, create_store
from tournaments.models import SessionContext, UserRole
from tournaments.store import ObjectStore
from web.auth_database import AccountStore
from web.auth_utils import AuthenticationError, JWTUtils, get_token_from_request
from web.live_updates import LiveUpdateManager

logger = logging.getLogger(__name__)


class Services:
    """Everything built from one configuration."""

    def __init__(self, config: AppConfig):
        self.config = config
        self.store: ObjectStore = create_store(config.store)
        self.manager = TournamentManager(self.store, config.tournament)
        self.tournament_api = TournamentAPI(self.manager)
        self.accounts = AccountStore(self.store)
        self.jwt = JWTUtils(config.auth)
        self.live_updates = LiveUpdateManager(self.manager)


_services: Services | None = None


def configure_services(config: AppConfig | None = None) -> Services:
    """(Re)build the shared services. Called once at start-up."""
    global _services
    _services = Services(config or get_default_config())
    logger.info(f"Services configured with {_services.config.store.backend} store")
    return _services


def get_services() -> Services:
    """Get or create the shared services."""
    if _services is None:
        return configure_services()
    return _services


def get_tournament_api() -> TournamentAPI:
    return get_services().tournament_api


async def get_session_context(
    request: Request, services: Services = Depends(get_services)
) -> SessionContext:
    """FastAPI dependency resolving the bearer token into a session context."""
    token = get_token_from_request(request)
    payload = services.jwt.decode_access_token(token)

    try:
        role = UserRole(payload["role"])
    except ValueError:
        raise AuthenticationError("Invalid token payload")

    profile = services.manager.get_profile(payload["sub"], role)
    if not profile:
        raise AuthenticationError("Profile no longer exists")

    return SessionContext(
        user_id=profile.id,
        name=profile.name,
        role=profile.role,
        tournament_id=profile.tournament_id,
    )
