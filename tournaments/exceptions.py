"""Exceptions raised by the tournament engine."""

from typing import Any


class TournamentError(Exception):
    """Base exception for all tournament engine errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# Validation Errors
# =============================================================================


class TournamentValidationError(TournamentError):
    """Raised when a request is missing context or carries invalid data."""

    pass


class DuplicateNameError(TournamentValidationError):
    """Raised when joining a tournament with a name that is already taken."""

    def __init__(self, name: str, tournament_id: str):
        super().__init__(
            f'Name "{name}" is already used in this tournament.',
            details={"name": name, "tournament_id": tournament_id},
        )
        self.name = name
        self.tournament_id = tournament_id


class TournamentNotFoundError(TournamentValidationError):
    """Raised when a tournament code does not resolve to a tournament."""

    def __init__(self, tournament_id: str):
        super().__init__(
            "Tournament code not found.", details={"tournament_id": tournament_id}
        )
        self.tournament_id = tournament_id


# =============================================================================
# Closed State Errors
# =============================================================================


class ClosedStateError(TournamentError):
    """Base exception for mutations rejected because something is closed."""

    pass


class TournamentClosedError(ClosedStateError):
    """Raised when mutating a tournament whose status is Closed."""

    def __init__(self, tournament_id: str):
        super().__init__(
            f"Tournament {tournament_id} is closed.",
            details={"tournament_id": tournament_id},
        )
        self.tournament_id = tournament_id


class RoundClosedError(ClosedStateError):
    """Raised when changing the judges or ballots of a closed round, or finalizing it again."""

    def __init__(self, debate_id: str, message: str = "Round is closed."):
        super().__init__(message, details={"debate_id": debate_id})
        self.debate_id = debate_id


# =============================================================================
# Access & Storage Errors
# =============================================================================


class PermissionDeniedError(TournamentError):
    """Raised when the caller's role or ownership does not allow an action."""

    pass


class StoreError(TournamentError):
    """Raised when the backing object store fails."""

    pass
