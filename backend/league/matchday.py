"""
Current-matchday resolution.

The matchday is read from the upstream once, at process start. If that
fails the configured fallback is used for the rest of the process
lifetime; resolution is never retried.
"""
from __future__ import annotations

from typing import Awaitable, Callable, Optional

from shared.utils.logging import get_logger
from shared.utils.metrics import MATCHDAY_FALLBACK

logger = get_logger(__name__)

DEFAULT_FALLBACK_MATCHDAY = 25


class MatchdayResolver:
    """Holds the process-wide current matchday."""

    def __init__(
        self,
        fetch_current: Callable[[], Awaitable[int]],
        fallback: int = DEFAULT_FALLBACK_MATCHDAY,
    ) -> None:
        self._fetch_current = fetch_current
        self._fallback = fallback
        self._resolved: Optional[int] = None
        self._used_fallback = False

    @property
    def fallback(self) -> int:
        return self._fallback

    @property
    def resolved(self) -> bool:
        return self._resolved is not None

    @property
    def used_fallback(self) -> bool:
        """True when resolution failed and the fallback is in effect."""
        return self._used_fallback

    @property
    def current(self) -> int:
        """The process-wide matchday; the fallback until resolution has run."""
        return self._resolved if self._resolved is not None else self._fallback

    def for_request(self, override: Optional[int] = None) -> int:
        """An explicit per-request matchday shadows the process value without changing it."""
        return override if override is not None else self.current

    async def resolve_once(self) -> int:
        """
        Resolve the current matchday from the upstream.

        Never raises. Any failure, including retry exhaustion in the
        transport, yields the fallback. Later calls return the first
        outcome without touching the upstream.
        """
        if self._resolved is not None:
            return self._resolved
        try:
            value = await self._fetch_current()
        except Exception as exc:
            logger.warning(
                "matchday_resolution_failed",
                fallback=self._fallback,
                error=str(exc),
            )
            self._resolved = self._fallback
            self._used_fallback = True
            MATCHDAY_FALLBACK.set(1)
            return self._resolved

        self._resolved = value
        MATCHDAY_FALLBACK.set(0)
        logger.info("matchday_resolved", matchday=value)
        return value
