"""
FastAPI application factory for the KickOff API service.

Creates the app with:
- League routes (fixtures, standings, scorers, match detail)
- Middleware stack
- Health and status endpoints
- Lifespan management: fatal storage check, league service start,
  one-time cache bootstrap, graceful shutdown
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import Depends, FastAPI
from sqlalchemy import text

from league.bootstrap import bootstrap
from league.service import LeagueService
from shared.config import get_settings
from shared.utils.database import DatabaseManager, connect_or_exit
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from api.dependencies import get_db, get_league, init_dependencies
from api.middleware import setup_middleware
from api.routes.league import router as league_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup order: logging, metrics, storage check (exits the process on
    failure), league service, bootstrap. Bootstrap failures are logged and
    never stop the service.
    """
    settings = get_settings()
    setup_logging("api", settings)
    start_metrics_server()

    db = DatabaseManager(settings)
    await connect_or_exit(db)

    league = LeagueService(settings)
    await league.start()
    init_dependencies(league, db)

    await bootstrap(league)

    logger.info(
        "api_service_started",
        host=settings.api_host,
        port=settings.api_port,
        competition=settings.competition_code,
        matchday=league.matchday.current,
    )

    yield

    await league.close()
    await db.disconnect()
    logger.info("api_service_stopped")


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """No-op lifespan for testing without storage or upstream."""
    yield


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application. Set use_lifespan=False for testing."""
    app = FastAPI(
        title="KickOff API",
        description="League standings, scorers and fixtures",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else _noop_lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    setup_middleware(app)
    app.include_router(league_router)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "api"}

    @app.get("/ready", tags=["system"])
    async def readiness(db: DatabaseManager = Depends(get_db)) -> dict[str, Any]:
        """Readiness check against the storage connection."""
        db_ok = False
        try:
            async with db.read_session() as session:
                await session.execute(text("SELECT 1"))
                db_ok = True
        except Exception as exc:
            logger.warning("readiness_db_check_failed", error=str(exc))
        return {"status": "ok" if db_ok else "degraded", "database": db_ok}

    @app.get("/v1/status", tags=["system"])
    async def system_status(league: LeagueService = Depends(get_league)) -> dict[str, Any]:
        """Matchday resolution and cache freshness."""
        return {"status": "ok", **league.status()}

    return app


# For running with uvicorn directly
app = create_app()
