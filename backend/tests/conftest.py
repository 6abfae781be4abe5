"""Shared fixtures: settings, an injected sleep and a mock-upstream transport factory."""
from __future__ import annotations

from typing import Any, Callable
from unittest.mock import AsyncMock

import httpx
import pytest

from shared.config import Settings
from shared.utils.http_client import RetryingTransport

from fakes import BASE_URL, FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        football_data_base_url=BASE_URL,
        football_data_api_key="test-key",
        competition_code="PL",
        request_timeout_s=10.0,
        scorers_timeout_s=30.0,
        max_retries=3,
        retry_backoff_step_s=2.0,
        fallback_matchday=25,
        metrics_enabled=False,
    )


@pytest.fixture
def sleep() -> AsyncMock:
    """Stands in for asyncio.sleep so backoff waits are recorded, not slept."""
    return AsyncMock()


@pytest.fixture
def make_transport(settings: Settings, sleep: AsyncMock) -> Callable[..., RetryingTransport]:
    def _make(handler: Callable[[httpx.Request], Any], **overrides: Any) -> RetryingTransport:
        return RetryingTransport(
            base_url=settings.football_data_base_url,
            api_key=settings.football_data_api_key,
            timeout_s=overrides.pop("timeout_s", settings.request_timeout_s),
            max_retries=overrides.pop("max_retries", settings.max_retries),
            backoff_step_s=overrides.pop("backoff_step_s", settings.retry_backoff_step_s),
            transport=httpx.MockTransport(handler),
            sleep=sleep,
        )

    return _make
