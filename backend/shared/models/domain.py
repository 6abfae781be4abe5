"""
Pydantic v2 domain models for league data.
These are the projections the caches hold and the API layer returns.
"""
from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models.enums import MatchStatus


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ── Reference entities ──────────────────────────────────────────────────
class CompetitionInfo(FrozenModel):
    id: Optional[int] = None
    code: str = ""
    name: str = ""
    emblem: Optional[str] = None


class TeamRecord(FrozenModel):
    """One club from the competition roster. Loaded once per process."""
    id: int
    name: str
    short_name: str = ""
    crest_url: Optional[str] = None
    venue: Optional[str] = None


# ── Standings ───────────────────────────────────────────────────────────
class StandingRow(DomainModel):
    team_id: int
    team_name: str
    position: int
    played: int = 0
    won: int = 0
    draw: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0
    crest_url: Optional[str] = None

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against


class Standings(DomainModel):
    competition: CompetitionInfo = Field(default_factory=CompetitionInfo)
    table: list[StandingRow] = Field(default_factory=list)


# ── Scorers ─────────────────────────────────────────────────────────────
class ScorerRow(DomainModel):
    """Leaderboard entry; rank is the 1-based upstream order."""
    player_id: int
    rank: int
    player_name: str
    team_id: Optional[int] = None
    team_name: str = ""
    team_crest: Optional[str] = None
    matches_played: int = 0
    goals: int = 0
    assists: int = 0
    penalties: int = 0


class ScorerBoard(DomainModel):
    competition: CompetitionInfo = Field(default_factory=CompetitionInfo)
    scorers: list[ScorerRow] = Field(default_factory=list)


# ── Fixtures ────────────────────────────────────────────────────────────
class MatchProjection(FrozenModel):
    """A fixture as rendered in a matchday listing."""
    id: int
    # null while the participant is undecided
    home_team_id: Optional[int]
    away_team_id: Optional[int]
    home_name: str = ""
    away_name: str = ""
    home_crest: Optional[str] = None
    away_crest: Optional[str] = None
    venue: str = "Unknown"
    score_home: Optional[int] = None
    score_away: Optional[int] = None
    status: MatchStatus = MatchStatus.SCHEDULED
    kickoff: Optional[dt.datetime] = None
    date: Optional[dt.date] = None


class FixtureListing(DomainModel):
    matchday: int
    competition: CompetitionInfo = Field(default_factory=CompetitionInfo)
    matches: list[MatchProjection] = Field(default_factory=list)


# ── Page context ────────────────────────────────────────────────────────
class TeamListEntry(DomainModel):
    id: int
    name: str
    crest: str


class PageContext(DomainModel):
    """Per-request data every page needs; empty when the upstream is down."""
    teams: list[TeamListEntry] = Field(default_factory=list)
    league: Optional[CompetitionInfo] = None
    standings: Optional[Standings] = None
    degraded: bool = False
