"""FastAPI web application for the DebateMate tournament engine."""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web.endpoints.auth import router as auth_router
from web.endpoints.system import router as system_router
from web.endpoints.tournaments import router as tournaments_router, ws_router
from web.services import get_services

logger: logging.Logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncGenerator[None, None]:
    """Open the tournament store once at start-up."""
    services = get_services()
    logger.info(
        f"Tournament engine ready ({type(services.store).__name__}, "
        f"{services.config.tournament.max_judges_per_round} judges per round)"
    )

    yield

    for tournament_id, sockets in list(services.live_updates.connections.items()):
        logger.info(f"Shutting down with {len(sockets)} live clients on {tournament_id}")


def get_allowed_origins() -> list[str] | None:
    """Get CORS origins from environment or use development defaults."""
    env_origins: str | None = os.environ.get("ALLOWED_ORIGINS")
    if env_origins:
        origins = [origin.strip() for origin in env_origins.split(",")]
        return origins
    return None


# FastAPI app
app: FastAPI = FastAPI(
    title="DebateMate Tournament Engine",
    description="Rounds, ballots and standings for Lincoln-Douglas tournaments",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware setup
allowed_origins: list[str] | None = get_allowed_origins()

if allowed_origins:

    logging.info(f"Setting CORS allowed origins: {allowed_origins}")

    # Production: Use specific origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:

    logging.info("No ALLOWED_ORIGINS set, using development CORS settings")

    # Development: Allow any localhost/127.0.0.1
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(system_router, prefix="/v1")
app.include_router(auth_router, prefix="/v1")
app.include_router(tournaments_router, prefix="/v1")
app.include_router(ws_router, prefix="/v1")
