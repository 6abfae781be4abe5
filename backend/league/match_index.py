"""Lookup of the matches in the most recently computed fixture listing."""
from __future__ import annotations

from typing import Iterable, Optional

from shared.models.domain import MatchProjection
from shared.utils.metrics import MATCH_INDEX_SIZE


class MatchProjectionIndex:
    """
    Match id -> projection for the listing currently on screen.

    Every replace_all() discards the previous generation entirely. There is
    no TTL and no merging, so an id from an earlier listing is not found once
    a newer listing has replaced it.
    """

    def __init__(self) -> None:
        self._matches: dict[int, MatchProjection] = {}
        self._matchday: Optional[int] = None
        self._generation = 0

    def replace_all(
        self, matches: Iterable[MatchProjection], matchday: Optional[int] = None
    ) -> None:
        fresh = {m.id: m for m in matches}
        self._matches = fresh
        self._matchday = matchday
        self._generation += 1
        MATCH_INDEX_SIZE.set(len(fresh))

    def lookup(self, match_id: int) -> Optional[MatchProjection]:
        return self._matches.get(match_id)

    @property
    def matchday(self) -> Optional[int]:
        return self._matchday

    @property
    def generation(self) -> int:
        return self._generation

    def __len__(self) -> int:
        return len(self._matches)

    def __contains__(self, match_id: object) -> bool:
        return match_id in self._matches
