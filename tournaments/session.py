"""Client-side view of one tournament, kept current by store subscriptions."""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel

from .manager import TournamentManager, normalize_code
from .models import (
    AppNotification,
    Debate,
    DebaterStats,
    RoundResult,
    SessionContext,
    TournamentMeta,
    TournamentSnapshot,
    TournamentStatus,
    UserProfile,
    Winner,
)
from .preferences import TOURNAMENT_ID_KEY, TOURNAMENT_NAME_KEY, LocalPreferences
from .standings import compute_standings, debater_record, get_winner, my_assignments
from .store import Record, Unsubscribe

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class TournamentSession:
    """Holds snapshots of a tournament's collections and derives views from them.

    Each store notification replaces one snapshot wholesale and bumps a
    version counter; derived views are memoized against that counter.
    """

    def __init__(
        self,
        manager: TournamentManager,
        context: SessionContext,
        preferences: LocalPreferences | None = None,
    ):
        self.manager = manager
        self.context = context
        self.preferences = preferences

        self.judges: list[UserProfile] = []
        self.debaters: list[UserProfile] = []
        self.debates: list[Debate] = []
        self.results: list[RoundResult] = []
        self.notifications: list[AppNotification] = []
        self.tournament: TournamentMeta | None = None

        self.version = 0
        self._memo: dict[str, tuple[int, Any]] = {}
        self._unsubscribes: list[Unsubscribe] = []
        self._change_listeners: list[Callable[["TournamentSession"], None]] = []

        if context.tournament_id:
            self._start_listeners(normalize_code(context.tournament_id))

    @property
    def tournament_id(self) -> str | None:
        return self.context.tournament_id

    def select_tournament(self, code: str, name: str = "") -> None:
        """Switch the active tournament, dropping the previous subscriptions."""
        code = normalize_code(code)
        self.context = self.context.model_copy(update={"tournament_id": code})

        if self.preferences:
            self.preferences.set(TOURNAMENT_ID_KEY, code)
            self.preferences.set(TOURNAMENT_NAME_KEY, name)

        self._start_listeners(code)
        logger.info(f"Session for {self.context.user_id} now following {code}")

    def close(self) -> None:
        self._stop_listeners()

    def on_change(self, callback: Callable[["TournamentSession"], None]) -> None:
        """Register a callback run after every snapshot refresh."""
        self._change_listeners.append(callback)

    # =========================================================================
    # Derived views
    # =========================================================================

    def standings(self) -> list[DebaterStats]:
        return self._memoized(
            "standings",
            lambda: compute_standings(self.debaters, self.debates, self.results),
        )

    def assignments(self) -> list[Debate]:
        return self._memoized(
            "assignments",
            lambda: my_assignments(
                self.debates, self.context.user_id, self.context.role
            ),
        )

    def winner(self, debate_id: str) -> Winner:
        return get_winner(self.results, debate_id)

    def my_record(self) -> DebaterStats:
        return debater_record(self.standings(), self.context.user_id, self.context.name)

    def is_tournament_closed(self) -> bool:
        return (
            self.tournament is not None
            and self.tournament.status == TournamentStatus.CLOSED
        )

    def snapshot(self) -> TournamentSnapshot:
        return TournamentSnapshot(
            tournament=self.tournament,
            judges=self.judges,
            debaters=self.debaters,
            debates=self.debates,
            results=self.results,
            standings=self.standings(),
        )

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def _start_listeners(self, tournament_id: str) -> None:
        self._stop_listeners()
        store = self.manager.store

        self._unsubscribes.append(
            store.subscribe("tournaments", self._refresh_tournament, id=tournament_id)
        )
        self._unsubscribes.append(
            store.subscribe(
                "judges",
                self._refresh("judges", UserProfile),
                tournament_id=tournament_id,
            )
        )
        self._unsubscribes.append(
            store.subscribe(
                "debaters",
                self._refresh("debaters", UserProfile),
                tournament_id=tournament_id,
            )
        )
        self._unsubscribes.append(
            store.subscribe(
                "debates", self._refresh("debates", Debate), tournament_id=tournament_id
            )
        )
        self._unsubscribes.append(
            store.subscribe(
                "results",
                self._refresh("results", RoundResult),
                tournament_id=tournament_id,
            )
        )
        self._unsubscribes.append(
            store.subscribe(
                "notifications",
                self._refresh("notifications", AppNotification),
                recipient_id=self.context.user_id,
            )
        )

    def _stop_listeners(self) -> None:
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes = []

        self.judges = []
        self.debaters = []
        self.debates = []
        self.results = []
        self.notifications = []
        self.tournament = None
        self.version += 1

    def _refresh(
        self, attribute: str, model: type[T]
    ) -> Callable[[list[Record]], None]:
        def callback(records: list[Record]) -> None:
            setattr(self, attribute, [model.model_validate(r) for r in records])
            self.version += 1
            for listener in list(self._change_listeners):
                listener(self)

        return callback

    def _refresh_tournament(self, records: list[Record]) -> None:
        self.tournament = TournamentMeta.model_validate(records[0]) if records else None
        self.version += 1
        for listener in list(self._change_listeners):
            listener(self)

    def _memoized(self, key: str, compute: Callable[[], Any]) -> Any:
        cached = self._memo.get(key)
        if cached and cached[0] == self.version:
            return cached[1]
        value = compute()
        self._memo[key] = (self.version, value)
        return value
