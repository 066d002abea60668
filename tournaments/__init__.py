"""Round lifecycle and standings engine for Lincoln-Douglas tournaments."""

from .manager import TournamentManager
from .database import SQLiteObjectStore
from .store import MemoryObjectStore, ObjectStore, create_store
from .api import TournamentAPI
from .session import TournamentSession
from .client import LocalClient
from .preferences import LocalPreferences
from .standings import compute_standings, get_winner, my_assignments
from .exceptions import (
    ClosedStateError,
    DuplicateNameError,
    PermissionDeniedError,
    RoundClosedError,
    StoreError,
    TournamentClosedError,
    TournamentError,
    TournamentNotFoundError,
    TournamentValidationError,
)
from .models import (
    AppNotification,
    BallotSubmission,
    Debate,
    DebateCreateRequest,
    DebateStatus,
    DebaterStats,
    DebaterStatus,
    Decision,
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

__all__ = [
    "TournamentManager",
    "SQLiteObjectStore",
    "MemoryObjectStore",
    "ObjectStore",
    "create_store",
    "TournamentAPI",
    "TournamentSession",
    "LocalClient",
    "LocalPreferences",
    "compute_standings",
    "get_winner",
    "my_assignments",
    "ClosedStateError",
    "DuplicateNameError",
    "PermissionDeniedError",
    "RoundClosedError",
    "StoreError",
    "TournamentClosedError",
    "TournamentError",
    "TournamentNotFoundError",
    "TournamentValidationError",
    "AppNotification",
    "BallotSubmission",
    "Debate",
    "DebateCreateRequest",
    "DebateStatus",
    "DebaterStats",
    "DebaterStatus",
    "Decision",
    "RoundResult",
    "RoundType",
    "SessionContext",
    "TournamentCreateRequest",
    "TournamentMeta",
    "TournamentStatus",
    "UserProfile",
    "UserRole",
    "Winner",
]
