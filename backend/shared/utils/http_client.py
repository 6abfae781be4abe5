"""
Async HTTP transport for upstream league-data requests.
Applies a per-attempt deadline and retries timeouts with linear backoff.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional

import httpx

from shared.config import get_settings
from shared.models.enums import UpstreamErrorKind
from shared.utils.logging import get_logger
from shared.utils.metrics import UPSTREAM_LATENCY, UPSTREAM_REQUESTS, endpoint_label

logger = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class UpstreamError(Exception):
    """Raised when one logical upstream fetch fails."""

    def __init__(
        self,
        kind: UpstreamErrorKind,
        path: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.kind = kind
        self.path = path
        self.status_code = status_code
        super().__init__(f"{kind.value} on {path}: {message}")

    @property
    def is_timeout(self) -> bool:
        return self.kind == UpstreamErrorKind.TIMEOUT


class RetryingTransport:
    """
    Async HTTP client for the football-data.org API.

    Each call to fetch() is one logical request: up to max_retries attempts,
    each with its own deadline measured from the attempt's start. Only
    timeouts are retried, after attempt * backoff_step_s seconds. Every
    other failure is raised on the first occurrence.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_s: float | None = None,
        max_retries: int | None = None,
        backoff_step_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.football_data_base_url).rstrip("/")
        self._api_key = settings.football_data_api_key if api_key is None else api_key
        self._timeout = timeout_s or settings.request_timeout_s
        self._max_retries = max_retries or settings.max_retries
        self._backoff_step = (
            settings.retry_backoff_step_s if backoff_step_s is None else backoff_step_s
        )
        self._transport = transport
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        headers: dict[str, str] = {}
        if self._api_key:
            headers["X-Auth-Token"] = self._api_key
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        timeout_s: float | None = None,
    ) -> dict[str, Any]:
        """
        Perform a GET and return the decoded JSON body.

        Args:
            path: API path relative to the base URL.
            params: Query parameters.
            timeout_s: Per-attempt deadline; defaults to the configured request timeout.

        Returns:
            The JSON object returned by the upstream.

        Raises:
            UpstreamError: kind TIMEOUT once every attempt timed out, kind OTHER
                on the first non-timeout failure.
        """
        if not self._client:
            raise RuntimeError("RetryingTransport not started. Call start() first.")

        deadline = timeout_s or self._timeout
        endpoint = endpoint_label(path)

        for attempt in range(1, self._max_retries + 1):
            start_time = time.perf_counter()
            logger.debug(
                "upstream_attempt",
                path=path,
                attempt=attempt,
                max_attempts=self._max_retries,
            )
            try:
                resp = await asyncio.wait_for(
                    self._client.get(
                        path,
                        params=params,
                        timeout=httpx.Timeout(deadline, connect=min(5.0, deadline)),
                    ),
                    timeout=deadline,
                )
                resp.raise_for_status()
                payload = resp.json()

            except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
                UPSTREAM_REQUESTS.labels(endpoint=endpoint, outcome="timeout").inc()
                UPSTREAM_LATENCY.labels(endpoint=endpoint).observe(time.perf_counter() - start_time)
                if attempt < self._max_retries:
                    delay = attempt * self._backoff_step
                    logger.warning(
                        "upstream_timeout",
                        path=path,
                        attempt=attempt,
                        retry_in_s=delay,
                    )
                    await self._sleep(delay)
                    continue
                logger.error("upstream_error", path=path, kind="timeout", attempts=attempt)
                raise UpstreamError(
                    UpstreamErrorKind.TIMEOUT,
                    path,
                    f"timed out after {attempt} attempts",
                ) from exc

            except httpx.HTTPStatusError as exc:
                UPSTREAM_REQUESTS.labels(endpoint=endpoint, outcome="http_error").inc()
                logger.error(
                    "upstream_error",
                    path=path,
                    kind="http_status",
                    status=exc.response.status_code,
                    attempt=attempt,
                )
                raise UpstreamError(
                    UpstreamErrorKind.OTHER,
                    path,
                    f"HTTP {exc.response.status_code}",
                    status_code=exc.response.status_code,
                ) from exc

            except (httpx.HTTPError, ValueError) as exc:
                # ValueError covers a body that is not valid JSON
                UPSTREAM_REQUESTS.labels(endpoint=endpoint, outcome="error").inc()
                logger.error(
                    "upstream_error",
                    path=path,
                    kind="request",
                    error=str(exc),
                    attempt=attempt,
                )
                raise UpstreamError(UpstreamErrorKind.OTHER, path, str(exc) or type(exc).__name__) from exc

            elapsed_s = time.perf_counter() - start_time
            UPSTREAM_REQUESTS.labels(endpoint=endpoint, outcome="success").inc()
            UPSTREAM_LATENCY.labels(endpoint=endpoint).observe(elapsed_s)

            if not isinstance(payload, dict):
                raise UpstreamError(UpstreamErrorKind.OTHER, path, "expected a JSON object")

            logger.debug(
                "upstream_request_success",
                path=path,
                status=resp.status_code,
                latency_ms=round(elapsed_s * 1000, 2),
                attempt=attempt,
            )
            return payload

        # max_retries >= 1 so the loop always returns or raises
        raise RuntimeError(f"Upstream request failed after {self._max_retries} attempts")
