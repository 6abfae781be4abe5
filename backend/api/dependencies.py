"""
Dependency injection for the API service.
Provides the league service and database manager to route handlers.
"""
from __future__ import annotations

from league.service import LeagueService
from shared.utils.database import DatabaseManager

# Module-level singletons, initialized at startup
_league: LeagueService | None = None
_db: DatabaseManager | None = None


def init_dependencies(league: LeagueService, db: DatabaseManager | None = None) -> None:
    """Initialize module-level singletons. Called once at startup."""
    global _league, _db
    _league = league
    _db = db


def get_league() -> LeagueService:
    """FastAPI dependency: returns the shared LeagueService."""
    if _league is None:
        raise RuntimeError("LeagueService not initialized — call init_dependencies first")
    return _league


def get_db() -> DatabaseManager:
    """FastAPI dependency: returns the shared DatabaseManager."""
    if _db is None:
        raise RuntimeError("DatabaseManager not initialized — call init_dependencies first")
    return _db
