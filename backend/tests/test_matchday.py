"""Unit tests for current-matchday resolution."""
from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from ingest.providers.football_data import FootballDataProvider
from league.matchday import MatchdayResolver
from shared.models.enums import UpstreamErrorKind
from shared.utils.http_client import UpstreamError

from fakes import competition_payload, route


@pytest.mark.asyncio
async def test_resolves_from_upstream() -> None:
    resolver = MatchdayResolver(AsyncMock(return_value=27), fallback=25)
    assert resolver.current == 25  # before resolution

    assert await resolver.resolve_once() == 27
    assert resolver.current == 27
    assert resolver.resolved
    assert not resolver.used_fallback


@pytest.mark.asyncio
async def test_failure_falls_back_without_raising() -> None:
    fetch = AsyncMock(side_effect=UpstreamError(UpstreamErrorKind.OTHER, "/competitions/PL", "HTTP 503"))
    resolver = MatchdayResolver(fetch, fallback=25)

    assert await resolver.resolve_once() == 25
    assert resolver.used_fallback
    assert resolver.current == 25


@pytest.mark.asyncio
async def test_resolution_is_never_retried() -> None:
    fetch = AsyncMock(side_effect=[UpstreamError(UpstreamErrorKind.TIMEOUT, "/c", "t"), 30])
    resolver = MatchdayResolver(fetch, fallback=25)

    await resolver.resolve_once()
    assert await resolver.resolve_once() == 25
    assert fetch.await_count == 1


@pytest.mark.asyncio
async def test_request_override_does_not_mutate_current() -> None:
    resolver = MatchdayResolver(AsyncMock(return_value=27))
    await resolver.resolve_once()

    assert resolver.for_request(3) == 3
    assert resolver.for_request(None) == 27
    assert resolver.current == 27


@pytest.mark.asyncio
async def test_retry_exhaustion_through_transport_yields_fallback(make_transport, sleep) -> None:
    attempts: list[str] = []
    handler = route(
        {"/competitions/PL": [httpx.ReadTimeout("slow"), httpx.ReadTimeout("slow"), httpx.ReadTimeout("slow")]},
        calls=attempts,
    )
    transport = make_transport(handler)
    await transport.start()
    provider = FootballDataProvider(transport, competition_code="PL")
    resolver = MatchdayResolver(provider.fetch_current_matchday, fallback=25)

    assert await resolver.resolve_once() == 25
    await transport.close()

    assert len(attempts) == 3
    assert sleep.await_count == 2


@pytest.mark.asyncio
async def test_missing_matchday_field_yields_fallback(make_transport) -> None:
    transport = make_transport(route({"/competitions/PL": competition_payload(matchday=None)}))
    await transport.start()
    provider = FootballDataProvider(transport, competition_code="PL")
    resolver = MatchdayResolver(provider.fetch_current_matchday, fallback=25)

    assert await resolver.resolve_once() == 25
    assert resolver.used_fallback
    await transport.close()
