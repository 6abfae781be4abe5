"""
League REST endpoints.

GET /v1/home                — Fixtures for a matchday plus the standings table.
GET /v1/goal-chart          — Scorer leaderboard sorted by a chosen stat.
GET /v1/matches/{match_id}  — One match from the most recent fixture listing.
GET /v1/context             — Teams and league info for the page shell.
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from league.service import LeagueService
from shared.models.domain import MatchProjection, PageContext
from shared.models.enums import LeaderStat
from shared.utils.logging import get_logger

from api.dependencies import get_league

logger = get_logger(__name__)
router = APIRouter(prefix="/v1", tags=["league"])


@router.get("/home")
async def home(
    matchday: Optional[int] = Query(default=None, ge=1),
    league: LeagueService = Depends(get_league),
) -> dict[str, Any]:
    """
    Fixtures for ``matchday`` (default: the current matchday) and the table.

    Computing the listing replaces the match lookup index, so match detail
    requests answer for this matchday afterwards. The table is loaded first
    so a failed page leaves the index untouched.
    """
    table = await league.standings_table()
    listing = await league.fixtures(matchday)
    return {
        "matchday": listing.matchday,
        "current_matchday": league.matchday.current,
        "league": listing.competition.model_dump(),
        "matches": [m.model_dump(mode="json") for m in listing.matches],
        "standings": [row.model_dump() for row in table],
    }


@router.get("/goal-chart")
async def goal_chart(
    stat: LeaderStat = Query(default=LeaderStat.GOALS, alias="type"),
    league: LeagueService = Depends(get_league),
) -> dict[str, Any]:
    """Scorer leaderboard ordered by ``type`` (goals, assists, penalties, matches_played)."""
    board = await league.scorers()
    leaders = await league.leaders(stat)
    return {
        "stats_type": stat.value,
        "league": board.competition.model_dump(),
        "leaders": [row.model_dump() for row in leaders],
    }


@router.get("/matches/{match_id}", response_model=MatchProjection)
async def match_detail(
    match_id: int,
    league: LeagueService = Depends(get_league),
) -> MatchProjection:
    """Only matches from the most recently computed listing are known."""
    match = league.match(match_id)
    if match is None:
        logger.info("match_not_in_index", match_id=match_id, index_matchday=league.match_index.matchday)
        raise HTTPException(status_code=404, detail="Match not found")
    return match


@router.get("/context", response_model=PageContext)
async def page_context(
    league: LeagueService = Depends(get_league),
) -> PageContext:
    return await league.page_context()
