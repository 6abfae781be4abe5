"""Domain enumerations for the KickOff league data service."""
from __future__ import annotations

from enum import Enum


class UpstreamErrorKind(str, Enum):
    """Failure classes for one logical upstream fetch."""
    TIMEOUT = "timeout"
    OTHER = "other"


class MatchStatus(str, Enum):
    """football-data.org v4 match statuses."""
    SCHEDULED = "SCHEDULED"
    TIMED = "TIMED"
    IN_PLAY = "IN_PLAY"
    PAUSED = "PAUSED"
    EXTRA_TIME = "EXTRA_TIME"
    PENALTY_SHOOTOUT = "PENALTY_SHOOTOUT"
    FINISHED = "FINISHED"
    SUSPENDED = "SUSPENDED"
    POSTPONED = "POSTPONED"
    CANCELLED = "CANCELLED"
    AWARDED = "AWARDED"
    LIVE = "LIVE"

    @classmethod
    def parse(cls, raw: str | None) -> "MatchStatus":
        try:
            return cls((raw or "").strip().upper())
        except ValueError:
            return cls.SCHEDULED

    @property
    def is_live(self) -> bool:
        return self in (
            MatchStatus.IN_PLAY,
            MatchStatus.PAUSED,
            MatchStatus.EXTRA_TIME,
            MatchStatus.PENALTY_SHOOTOUT,
            MatchStatus.LIVE,
        )


class LeaderStat(str, Enum):
    """Scorer board columns a leaderboard can be sorted by."""
    GOALS = "goals"
    ASSISTS = "assists"
    PENALTIES = "penalties"
    MATCHES_PLAYED = "matches_played"
