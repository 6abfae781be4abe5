"""
Lightweight metrics collection for the KickOff service.
Wraps prometheus_client counters for upstream calls and cache behaviour.
"""
from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
UPSTREAM_REQUESTS = Counter(
    "ko_upstream_requests_total",
    "Total upstream HTTP attempts",
    ["endpoint", "outcome"],
)
CACHE_LOOKUPS = Counter(
    "ko_cache_lookups_total",
    "Cache lookups by result",
    ["cache", "result"],
)
CACHE_REFRESH_FAILURES = Counter(
    "ko_cache_refresh_failures_total",
    "Failed cache refresh attempts",
    ["cache"],
)

# ── Histograms ──────────────────────────────────────────────────────────
UPSTREAM_LATENCY = Histogram(
    "ko_upstream_latency_seconds",
    "Upstream attempt latency in seconds",
    ["endpoint"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# ── Gauges ──────────────────────────────────────────────────────────────
MATCHDAY_FALLBACK = Gauge(
    "ko_matchday_fallback_active",
    "1 when the current matchday is the configured fallback",
)
MATCH_INDEX_SIZE = Gauge(
    "ko_match_index_size",
    "Number of match projections in the current index generation",
)


def endpoint_label(path: str) -> str:
    """Collapse an upstream path to a low-cardinality label (drops the competition code)."""
    parts = [p for p in path.split("?")[0].split("/") if p]
    if len(parts) >= 3 and parts[0] == "competitions":
        return parts[2]
    if parts and parts[0] == "competitions":
        return "competition"
    return parts[0] if parts else "root"


def start_metrics_server(port: int | None = None) -> None:
    """Start the Prometheus metrics HTTP server."""
    settings = get_settings()
    if not settings.metrics_enabled:
        return
    metrics_port = port or settings.metrics_port
    try:
        start_http_server(metrics_port)
        logger.info("metrics_server_started", port=metrics_port)
    except OSError as exc:
        logger.warning("metrics_server_failed", error=str(exc), port=metrics_port)
