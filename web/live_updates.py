"""Pushes tournament snapshots to WebSocket clients as collections change."""

import asyncio
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from tournaments import TournamentManager, TournamentSession
from tournaments.models import SessionContext

logger = logging.getLogger(__name__)


class LiveUpdateManager:
    """Manages WebSocket connections, one tournament session per connection."""

    def __init__(self, manager: TournamentManager):
        self.manager = manager
        self.connections: dict[str, list[WebSocket]] = {}

    def add_connection(self, tournament_id: str, websocket: WebSocket) -> None:
        self.connections.setdefault(tournament_id, []).append(websocket)

    def remove_connection(self, tournament_id: str, websocket: WebSocket) -> None:
        connections = self.connections.get(tournament_id, [])
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            self.connections.pop(tournament_id, None)

    async def serve(self, websocket: WebSocket, ctx: SessionContext) -> None:
        """Stream snapshots until the client disconnects."""
        tournament_id = ctx.tournament_id or ""
        session = TournamentSession(self.manager, ctx)
        dirty: asyncio.Queue[bool] = asyncio.Queue(maxsize=1)
        session.on_change(lambda _: self._mark_dirty(dirty))

        self.add_connection(tournament_id, websocket)
        await websocket.send_json(self.build_payload(session, "connected"))
        sender = asyncio.create_task(self._pump(websocket, session, dirty))

        try:
            # Keep connection alive
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info(f"Live updates for {ctx.user_id} on {tournament_id} closed")
        finally:
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            session.close()
            self.remove_connection(tournament_id, websocket)

    def build_payload(self, session: TournamentSession, event: str) -> dict[str, Any]:
        return {
            "type": event,
            "tournament_id": session.tournament_id,
            "version": session.version,
            "closed": session.is_tournament_closed(),
            "snapshot": session.snapshot().model_dump(mode="json"),
            "assignments": [d.model_dump(mode="json") for d in session.assignments()],
            "notifications": [
                n.model_dump(mode="json") for n in session.notifications
            ],
        }

    @staticmethod
    def _mark_dirty(dirty: asyncio.Queue[bool]) -> None:
        # One pending refresh is enough; the next payload reads the latest state
        if not dirty.full():
            dirty.put_nowait(True)

    async def _pump(
        self,
        websocket: WebSocket,
        session: TournamentSession,
        dirty: asyncio.Queue[bool],
    ) -> None:
        while True:
            await dirty.get()
            try:
                await websocket.send_json(self.build_payload(session, "snapshot"))
            except Exception as e:
                logger.error(f"Failed to push snapshot: {e}")
                return
