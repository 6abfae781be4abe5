"""
Process-start warm-up for the league caches.

Runs once from the API lifespan: resolve the matchday, then load the team
directory, then warm the scorer board. A failing step is logged and the
sequence continues; each component's own retry-on-next-call policy covers
whatever did not load.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable

from shared.utils.logging import get_logger

from league.service import LeagueService

logger = get_logger(__name__)


async def _step(name: str, run: Callable[[], Awaitable[Any]]) -> bool:
    try:
        await run()
    except Exception as exc:
        logger.error("bootstrap_step_failed", step=name, error=str(exc))
        return False
    logger.info("bootstrap_step_done", step=name)
    return True


async def bootstrap(service: LeagueService) -> dict[str, bool]:
    """
    Warm the service in order: matchday, teams, scorers.

    Returns:
        Step name -> whether it completed. The matchday step always
        completes because the resolver substitutes its fallback.
    """
    report: dict[str, bool] = {}
    report["matchday"] = await _step("matchday", service.matchday.resolve_once)
    report["teams"] = await _step("teams", service.teams)
    report["scorers"] = await _step("scorers", service.scorers)
    logger.info(
        "bootstrap_complete",
        current_matchday=service.matchday.current,
        used_fallback=service.matchday.used_fallback,
        steps=report,
    )
    return report
