"""
Football-Data.org (football-data.org) v4 connector.
Competition metadata, team roster, standings, scorers and matchday fixtures.
Uses X-Auth-Token through the shared RetryingTransport. Free tier: 10 requests/min.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Mapping, Optional, TypeVar

from pydantic import ValidationError

from shared.models.domain import (
    CompetitionInfo,
    FixtureListing,
    MatchProjection,
    ScorerBoard,
    ScorerRow,
    StandingRow,
    Standings,
    TeamRecord,
)
from shared.models.enums import MatchStatus, UpstreamErrorKind
from shared.utils.http_client import RetryingTransport, UpstreamError
from shared.utils.logging import get_logger

logger = get_logger(__name__)

R = TypeVar("R")

TeamDirectory = Mapping[int, TeamRecord]


def _parse_kickoff(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_competition(data: Mapping[str, Any]) -> CompetitionInfo:
    comp = data.get("competition", data) or {}
    return CompetitionInfo(
        id=comp.get("id"),
        code=comp.get("code") or "",
        name=comp.get("name") or "",
        emblem=comp.get("emblem"),
    )


def parse_current_matchday(data: Mapping[str, Any]) -> int:
    """Read currentSeason.currentMatchday from /competitions/{code}."""
    matchday = data["currentSeason"]["currentMatchday"]
    if matchday is None:
        raise KeyError("currentMatchday")
    return int(matchday)


def parse_teams(data: Mapping[str, Any]) -> dict[int, TeamRecord]:
    """Build the id -> TeamRecord directory from /competitions/{code}/teams."""
    directory: dict[int, TeamRecord] = {}
    for team in data["teams"]:
        record = TeamRecord(
            id=team["id"],
            name=team.get("name") or "",
            short_name=team.get("shortName") or "",
            crest_url=team.get("crest"),
            venue=team.get("venue"),
        )
        directory[record.id] = record
    return directory


def parse_standings(data: Mapping[str, Any]) -> Standings:
    """Use the TOTAL table; the first table when none is labelled."""
    tables = data["standings"]
    chosen = next((t for t in tables if t.get("type") == "TOTAL"), None)
    if chosen is None:
        chosen = tables[0]
    rows = [
        StandingRow(
            team_id=row["team"]["id"],
            team_name=row["team"].get("name") or "",
            position=row.get("position") or idx,
            played=row.get("playedGames") or 0,
            won=row.get("won") or 0,
            draw=row.get("draw") or 0,
            lost=row.get("lost") or 0,
            goals_for=row.get("goalsFor") or 0,
            goals_against=row.get("goalsAgainst") or 0,
            points=row.get("points") or 0,
            crest_url=row["team"].get("crest"),
        )
        for idx, row in enumerate(chosen["table"], start=1)
    ]
    return Standings(competition=parse_competition(data), table=rows)


def parse_scorers(data: Mapping[str, Any]) -> ScorerBoard:
    """Rank is the upstream order, 1-based."""
    rows: list[ScorerRow] = []
    for rank, entry in enumerate(data["scorers"], start=1):
        player = entry["player"]
        team = entry.get("team") or {}
        rows.append(ScorerRow(
            player_id=player["id"],
            rank=rank,
            player_name=player.get("name") or "",
            team_id=team.get("id"),
            team_name=team.get("name") or "",
            team_crest=team.get("crest"),
            matches_played=entry.get("playedMatches") or 0,
            goals=entry.get("goals") or 0,
            assists=entry.get("assists") or 0,
            penalties=entry.get("penalties") or 0,
        ))
    return ScorerBoard(competition=parse_competition(data), scorers=rows)


def project_match(m: Mapping[str, Any], teams: TeamDirectory) -> MatchProjection:
    """Project one upstream match, decorating it from the team directory."""
    home = m["homeTeam"]
    away = m["awayTeam"]
    home_rec = teams.get(home.get("id"))
    away_rec = teams.get(away.get("id"))
    full_time = (m.get("score") or {}).get("fullTime") or {}
    kickoff = _parse_kickoff(m.get("utcDate"))
    return MatchProjection(
        id=m["id"],
        home_team_id=home.get("id"),
        away_team_id=away.get("id"),
        home_name=home.get("name") or (home_rec.name if home_rec else ""),
        away_name=away.get("name") or (away_rec.name if away_rec else ""),
        home_crest=home_rec.crest_url if home_rec else None,
        away_crest=away_rec.crest_url if away_rec else None,
        venue=(home_rec.venue if home_rec and home_rec.venue else "Unknown"),
        score_home=full_time.get("home"),
        score_away=full_time.get("away"),
        status=MatchStatus.parse(m.get("status")),
        kickoff=kickoff,
        date=kickoff.date() if kickoff else None,
    )


def parse_matches(
    data: Mapping[str, Any], matchday: int, teams: TeamDirectory
) -> FixtureListing:
    return FixtureListing(
        matchday=matchday,
        competition=parse_competition(data),
        matches=[project_match(m, teams) for m in data["matches"]],
    )


class FootballDataProvider:
    """Football-Data.org v4 endpoints for one competition (soccer only)."""

    def __init__(
        self,
        transport: RetryingTransport,
        competition_code: str = "PL",
        scorers_timeout_s: float | None = None,
    ) -> None:
        self._http = transport
        self._code = competition_code
        self._scorers_timeout = scorers_timeout_s

    async def _get(
        self,
        path: str,
        parse: Callable[[Mapping[str, Any]], R],
        params: dict[str, Any] | None = None,
        timeout_s: float | None = None,
    ) -> R:
        data = await self._http.fetch(path, params=params, timeout_s=timeout_s)
        try:
            return parse(data)
        except (KeyError, IndexError, TypeError, ValueError, ValidationError) as exc:
            logger.warning("football_data_parse_error", path=path, error=repr(exc))
            raise UpstreamError(
                UpstreamErrorKind.OTHER, path, f"unexpected payload: {exc!r}"
            ) from exc

    async def fetch_current_matchday(self) -> int:
        """GET /competitions/{code} -> currentSeason.currentMatchday."""
        return await self._get(f"/competitions/{self._code}", parse_current_matchday)

    async def fetch_teams(self) -> dict[int, TeamRecord]:
        """GET /competitions/{code}/teams."""
        return await self._get(f"/competitions/{self._code}/teams", parse_teams)

    async def fetch_standings(self) -> Standings:
        """GET /competitions/{code}/standings."""
        return await self._get(f"/competitions/{self._code}/standings", parse_standings)

    async def fetch_scorers(self) -> ScorerBoard:
        """GET /competitions/{code}/scorers with the longer scorer deadline."""
        return await self._get(
            f"/competitions/{self._code}/scorers",
            parse_scorers,
            timeout_s=self._scorers_timeout,
        )

    async def fetch_matchday(self, matchday: int, teams: TeamDirectory) -> FixtureListing:
        """GET /competitions/{code}/matches?matchday=N, projected against the directory."""
        return await self._get(
            f"/competitions/{self._code}/matches",
            lambda data: parse_matches(data, matchday, teams),
            params={"matchday": matchday},
        )
