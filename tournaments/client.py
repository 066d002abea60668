"""Local client that remembers the user between runs."""

import logging
import uuid

from .manager import TournamentManager
from .models import SessionContext, UserProfile, UserRole
from .preferences import (
    TOURNAMENT_ID_KEY,
    USER_ID_KEY,
    USER_NAME_KEY,
    USER_ROLE_KEY,
    LocalPreferences,
)
from .session import TournamentSession

logger = logging.getLogger(__name__)


class LocalClient:
    """Ties a session to locally remembered name, role and tournament.

    Without an identity provider the client makes up a ``demo-`` user id;
    with one, pass the provider's stable id.
    """

    def __init__(self, manager: TournamentManager, preferences: LocalPreferences):
        self.manager = manager
        self.preferences = preferences
        self.session: TournamentSession | None = None

    @property
    def context(self) -> SessionContext | None:
        return self.session.context if self.session else None

    def restore_session(self, user_id: str | None = None) -> SessionContext | None:
        """Rebuild the session from saved preferences, if any."""
        user_id = user_id or self.preferences.get(USER_ID_KEY)
        name = self.preferences.get(USER_NAME_KEY)
        role = self.preferences.get(USER_ROLE_KEY)
        if not user_id or not name or not role:
            return None

        try:
            parsed_role = UserRole(role)
        except ValueError:
            logger.warning(f"Ignoring saved role {role!r}")
            return None

        ctx = SessionContext(
            user_id=user_id,
            name=name,
            role=parsed_role,
            tournament_id=self.preferences.get(TOURNAMENT_ID_KEY),
        )
        self._open_session(ctx)
        logger.info(f"Restored session for {name} ({role})")
        return ctx

    async def set_profile(
        self,
        name: str,
        role: UserRole,
        tournament_id: str | None = None,
        user_id: str | None = None,
    ) -> UserProfile:
        """Save the profile remotely and remember it locally."""
        user_id = user_id or f"demo-{uuid.uuid4().hex[:7]}"
        profile = await self.manager.set_profile(user_id, name, role, tournament_id)

        self.preferences.set(USER_ID_KEY, user_id)
        self.preferences.set(USER_NAME_KEY, name)
        self.preferences.set(USER_ROLE_KEY, role.value)
        if profile.tournament_id:
            self.preferences.set(TOURNAMENT_ID_KEY, profile.tournament_id)
        else:
            self.preferences.remove(TOURNAMENT_ID_KEY)

        self._open_session(
            SessionContext(
                user_id=user_id,
                name=name,
                role=role,
                tournament_id=profile.tournament_id,
            )
        )
        return profile

    def select_tournament(self, code: str, name: str = "") -> None:
        if not self.session:
            raise RuntimeError("No active session; set a profile first")
        self.session.select_tournament(code, name)

    def logout(self) -> None:
        """Forget the local user and stop following their tournament."""
        if self.session:
            self.session.close()
            self.session = None
        self.preferences.clear()

    def _open_session(self, ctx: SessionContext) -> None:
        if self.session:
            self.session.close()
        self.session = TournamentSession(self.manager, ctx, self.preferences)
