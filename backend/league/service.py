"""
League data service.

Owns one transport, one cache per upstream resource, the matchday resolver
and the match projection index for the life of the process. Route handlers
receive it through the API dependencies; nothing here is module-level state.
"""
from __future__ import annotations

import asyncio
from typing import Mapping, Optional

from ingest.providers.football_data import FootballDataProvider
from shared.config import Settings, get_settings
from shared.models.domain import (
    FixtureListing,
    MatchProjection,
    PageContext,
    ScorerBoard,
    ScorerRow,
    StandingRow,
    Standings,
    TeamListEntry,
    TeamRecord,
)
from shared.models.enums import LeaderStat
from shared.utils.cache import LoadOnceCache, TTLCache
from shared.utils.http_client import RetryingTransport, UpstreamError
from shared.utils.logging import get_logger

from league.match_index import MatchProjectionIndex
from league.matchday import MatchdayResolver

logger = get_logger(__name__)


class LeagueService:
    """Entry point for everything the page layer reads about the league."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: RetryingTransport | None = None,
        provider: FootballDataProvider | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport or RetryingTransport(
            base_url=self._settings.football_data_base_url,
            api_key=self._settings.football_data_api_key,
            timeout_s=self._settings.request_timeout_s,
            max_retries=self._settings.max_retries,
            backoff_step_s=self._settings.retry_backoff_step_s,
        )
        self._provider = provider or FootballDataProvider(
            self._transport,
            competition_code=self._settings.competition_code,
            scorers_timeout_s=self._settings.scorers_timeout_s,
        )

        # Rosters are season-stable, so the directory is loaded once and never refreshed.
        self.team_directory: LoadOnceCache[dict[int, TeamRecord]] = LoadOnceCache(
            "teams", self._provider.fetch_teams
        )
        self.standings_cache: TTLCache[Standings] = TTLCache(
            "standings", self._provider.fetch_standings, self._settings.standings_ttl_s
        )
        self.scorer_cache: TTLCache[ScorerBoard] = TTLCache(
            "scorers", self._provider.fetch_scorers, self._settings.scorers_ttl_s
        )
        self.matchday = MatchdayResolver(
            self._provider.fetch_current_matchday,
            fallback=self._settings.fallback_matchday,
        )
        self.match_index = MatchProjectionIndex()

    async def start(self) -> None:
        await self._transport.start()

    async def close(self) -> None:
        await self._transport.close()

    # ── Cached reads ────────────────────────────────────────────────────
    async def teams(self) -> Mapping[int, TeamRecord]:
        return await self.team_directory.get()

    async def standings(self) -> Standings:
        return await self.standings_cache.get()

    async def scorers(self) -> ScorerBoard:
        return await self.scorer_cache.get()

    # ── Projections ─────────────────────────────────────────────────────
    async def fixtures(self, matchday: Optional[int] = None) -> FixtureListing:
        """
        Compute the fixture listing for a matchday and make it the lookup index.

        ``matchday`` overrides the resolved matchday for this call only.
        """
        number = self.matchday.for_request(matchday)
        teams = await self.teams()
        listing = await self._provider.fetch_matchday(number, teams)
        self.match_index.replace_all(listing.matches, matchday=number)
        logger.debug("fixtures_computed", matchday=number, matches=len(listing.matches))
        return listing

    def match(self, match_id: int) -> Optional[MatchProjection]:
        return self.match_index.lookup(match_id)

    async def standings_table(self) -> list[StandingRow]:
        """Standings rows with the crest taken from the team directory when known."""
        teams, standings = await asyncio.gather(self.teams(), self.standings())
        return [
            row.model_copy(update={
                "crest_url": teams[row.team_id].crest_url if row.team_id in teams else row.crest_url,
            })
            for row in standings.table
        ]

    async def leaders(self, stat: LeaderStat = LeaderStat.GOALS) -> list[ScorerRow]:
        """Scorer rows ordered by ``stat``, highest first; ties keep upstream order."""
        board = await self.scorers()
        field = stat.value
        return sorted(board.scorers, key=lambda row: getattr(row, field), reverse=True)

    async def page_context(self) -> PageContext:
        """
        Teams and standings for the page shell.

        An upstream failure degrades to an empty context instead of failing
        the page.
        """
        try:
            teams, standings = await asyncio.gather(self.teams(), self.standings())
        except UpstreamError as exc:
            logger.error("page_context_degraded", error=str(exc), kind=exc.kind.value)
            return PageContext(degraded=True)

        default_crest = self._settings.default_crest_url
        entries = [
            TeamListEntry(
                id=row.team_id,
                name=row.team_name,
                crest=(teams[row.team_id].crest_url if row.team_id in teams else None)
                or default_crest,
            )
            for row in standings.table
        ]
        return PageContext(teams=entries, league=standings.competition, standings=standings)

    def status(self) -> dict[str, object]:
        """Cache and matchday state for the status endpoint."""
        def _age(cache: TTLCache) -> Optional[float]:
            age = cache.age()
            return None if age is None else round(age, 1)

        return {
            "matchday": {
                "current": self.matchday.current,
                "resolved": self.matchday.resolved,
                "used_fallback": self.matchday.used_fallback,
            },
            "teams": {"loaded": self.team_directory.loaded},
            "standings": {"fresh": self.standings_cache.is_fresh(), "age_s": _age(self.standings_cache)},
            "scorers": {"fresh": self.scorer_cache.is_fresh(), "age_s": _age(self.scorer_cache)},
            "match_index": {
                "matchday": self.match_index.matchday,
                "size": len(self.match_index),
                "generation": self.match_index.generation,
            },
        }
