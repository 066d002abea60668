#!/usr/bin/env python3
"""Main entry point for the DebateMate tournament engine."""

import logging
import os
import sys

from config.settings import get_default_config
from tournaments import (
    LocalClient,
    LocalPreferences,
    TournamentManager,
    UserRole,
    create_store,
)


def setup_logging(level: str = "INFO"):
    """Configure logging for the web server."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def print_usage():
    """Print usage information for local development."""

    print("DebateMate Tournament Engine")
    print("=" * 40)
    print("Available entry points:")
    print()
    print("Web Server (API + WebSocket):")
    print("   python main.py --web")
    print()
    print("Remembered user (assignments, record, standings):")
    print("   python main.py --status")
    print()
    print("Configuration:")
    print("   debatemate_config.json (created on first run)")
    print("   DEBATEMATE_CONFIG, JWT_SECRET_KEY, ALLOWED_ORIGINS, PORT")
    print()


def show_local_status():
    """Print what the locally remembered user would see."""
    config = get_default_config()
    setup_logging("WARNING")

    manager = TournamentManager(create_store(config.store), config.tournament)
    client = LocalClient(manager, LocalPreferences(config.system.preferences_path))

    ctx = client.restore_session()
    if not ctx or not client.session:
        print("No remembered user. Set a profile from a client first.")
        return

    session = client.session
    print(f"{ctx.name} ({ctx.role.value})")
    if not session.tournament:
        print("Not following a tournament.")
        return

    closed = " [closed]" if session.is_tournament_closed() else ""
    print(f"Tournament: {session.tournament.name} ({session.tournament.id}){closed}")

    print()
    print("Assignments:")
    for debate in session.assignments():
        print(
            f"   {debate.stage}: {debate.aff_name} (Aff) vs {debate.neg_name} (Neg)"
            f" - {debate.status.value}, leader: {session.winner(debate.id).value}"
        )

    if ctx.role == UserRole.DEBATER:
        record = session.my_record()
        print(f"Record: {record.wins}-{record.losses} ({record.status.value})")

    print()
    print("Standings:")
    for rank, stats in enumerate(session.standings(), start=1):
        print(f"   {rank}. {stats.name}  {stats.wins}-{stats.losses}  {stats.status.value}")

    session.close()


def start_web_server():
    """Start the FastAPI web server."""
    config = get_default_config()
    setup_logging(config.system.log_level)

    import uvicorn

    from web.api import app

    port = int(os.environ.get("PORT", 8000))

    print("Starting DebateMate Tournament Engine...")
    print(f"API Documentation: http://localhost:{port}/docs")
    print(f"WebSocket: ws://localhost:{port}/v1/ws/tournaments/{{code}}")

    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info", access_log=True)


def main():
    """Main entry point."""
    # Check for production environment (Railway, Docker, Heroku, etc.)
    is_production = any([
        "RAILWAY_ENVIRONMENT" in os.environ,
        "PORT" in os.environ,
        "DYNO" in os.environ,  # Heroku
        os.environ.get("ENVIRONMENT") == "production"
    ])

    if is_production or "--web" in sys.argv:
        start_web_server()
    elif "--status" in sys.argv:
        show_local_status()
    else:
        print_usage()


if __name__ == "__main__":
    main()
