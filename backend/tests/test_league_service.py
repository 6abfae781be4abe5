"""
Tests for the league service and its process-start bootstrap, driven
through a mocked football-data.org upstream.
"""
from __future__ import annotations

from typing import Any

import httpx
import pytest

from league.bootstrap import bootstrap
from league.service import LeagueService
from shared.models.enums import LeaderStat

from fakes import (
    competition_payload,
    matches_payload,
    scorers_payload,
    standings_payload,
    teams_payload,
    route,
)


def _healthy_upstream() -> dict[str, Any]:
    return {
        "/competitions/PL": competition_payload(27),
        "/competitions/PL/teams": teams_payload(),
        "/competitions/PL/standings": standings_payload(),
        "/competitions/PL/scorers": scorers_payload(),
        "/competitions/PL/matches": matches_payload(27),
    }


@pytest.fixture
def calls() -> list[str]:
    return []


async def _service(settings, make_transport, table: dict[str, Any], calls: list[str]) -> LeagueService:
    service = LeagueService(settings, transport=make_transport(route(table, calls=calls)))
    await service.start()
    return service


# ── Bootstrap ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_bootstrap_runs_steps_in_order(settings, make_transport, calls) -> None:
    service = await _service(settings, make_transport, _healthy_upstream(), calls)
    report = await bootstrap(service)
    await service.close()

    assert report == {"matchday": True, "teams": True, "scorers": True}
    assert calls == ["/competitions/PL", "/competitions/PL/teams", "/competitions/PL/scorers"]
    assert service.matchday.current == 27
    assert service.team_directory.loaded
    assert service.scorer_cache.is_fresh()


@pytest.mark.asyncio
async def test_bootstrap_continues_past_failures(settings, make_transport, calls) -> None:
    table = _healthy_upstream()
    table["/competitions/PL"] = httpx.Response(503, json={"message": "down"})
    table["/competitions/PL/teams"] = httpx.Response(429, json={"message": "slow down"})
    service = await _service(settings, make_transport, table, calls)

    report = await bootstrap(service)
    await service.close()

    assert report == {"matchday": True, "teams": False, "scorers": True}
    assert service.matchday.current == 25
    assert service.matchday.used_fallback
    assert not service.team_directory.loaded


@pytest.mark.asyncio
async def test_team_directory_single_upstream_call(settings, make_transport, calls) -> None:
    service = await _service(settings, make_transport, _healthy_upstream(), calls)
    first = await service.teams()
    second = await service.teams()
    await service.close()

    assert first is second
    assert calls.count("/competitions/PL/teams") == 1


# ── Fixtures and the match index ────────────────────────────────────────

@pytest.mark.asyncio
async def test_fixtures_replace_match_index(settings, make_transport, calls) -> None:
    table = _healthy_upstream()
    table["/competitions/PL/matches"] = [
        matches_payload(27, ids=(1, 2)),
        matches_payload(3, ids=(3,)),
    ]
    service = await _service(settings, make_transport, table, calls)
    await service.matchday.resolve_once()

    listing = await service.fixtures()
    assert listing.matchday == 27
    assert service.match(1) is not None

    override = await service.fixtures(3)
    await service.close()

    assert override.matchday == 3
    assert service.match(1) is None
    assert service.match(3) is not None
    assert service.match_index.matchday == 3
    # the override shadows the process value for one call only
    assert service.matchday.current == 27


# ── Standings, leaders, page context ────────────────────────────────────

@pytest.mark.asyncio
async def test_standings_table_takes_directory_crest(settings, make_transport, calls) -> None:
    service = await _service(settings, make_transport, _healthy_upstream(), calls)
    rows = await service.standings_table()
    await service.close()

    by_team = {r.team_id: r for r in rows}
    assert by_team[57].crest_url == "https://crests/57.png"
    # team 64 has no crest in the directory; 99 is not in it at all
    assert by_team[64].crest_url is None
    assert by_team[99].crest_url == "https://table/99.png"


@pytest.mark.asyncio
async def test_standings_cached_across_calls(settings, make_transport, calls) -> None:
    service = await _service(settings, make_transport, _healthy_upstream(), calls)
    await service.standings()
    await service.standings_table()
    await service.close()

    assert calls.count("/competitions/PL/standings") == 1


@pytest.mark.asyncio
async def test_leaders_sorted_by_stat(settings, make_transport, calls) -> None:
    service = await _service(settings, make_transport, _healthy_upstream(), calls)
    by_goals = await service.leaders(LeaderStat.GOALS)
    by_assists = await service.leaders(LeaderStat.ASSISTS)
    await service.close()

    # players 2 and 3 tie on goals and keep upstream order
    assert [s.player_id for s in by_goals] == [1, 2, 3]
    assert [s.player_id for s in by_assists] == [2, 1, 3]
    assert calls.count("/competitions/PL/scorers") == 1


@pytest.mark.asyncio
async def test_page_context_uses_default_crest(settings, make_transport, calls) -> None:
    service = await _service(settings, make_transport, _healthy_upstream(), calls)
    context = await service.page_context()
    await service.close()

    assert not context.degraded
    assert context.league is not None and context.league.code == "PL"
    crests = {t.id: t.crest for t in context.teams}
    assert crests[57] == "https://crests/57.png"
    assert crests[64] == "/img/default-crest.png"
    assert crests[99] == "/img/default-crest.png"


@pytest.mark.asyncio
async def test_page_context_degrades_when_upstream_fails(settings, make_transport, calls) -> None:
    table = _healthy_upstream()
    table["/competitions/PL/standings"] = httpx.Response(500, json={})
    service = await _service(settings, make_transport, table, calls)
    context = await service.page_context()
    await service.close()

    assert context.degraded
    assert context.teams == []
    assert context.league is None


@pytest.mark.asyncio
async def test_status_reports_cache_state(settings, make_transport, calls) -> None:
    service = await _service(settings, make_transport, _healthy_upstream(), calls)
    await bootstrap(service)
    status = service.status()
    await service.close()

    assert status["matchday"] == {"current": 27, "resolved": True, "used_fallback": False}
    assert status["teams"] == {"loaded": True}
    assert status["scorers"]["fresh"] is True
    assert status["standings"] == {"fresh": False, "age_s": None}
