"""
Structured logging for the KickOff service.

Every entry carries the service name, the deployment environment and the
competition being served. Request handlers add a request id for the
duration of one request via ``request_context``.
"""
from __future__ import annotations

import logging
import sys
from typing import Any, ContextManager

import structlog

from shared.config import Environment, Settings, get_settings

# Loggers that would otherwise report every upstream call or access line.
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _renderer(settings: Settings) -> structlog.types.Processor:
    if settings.environment == Environment.DEV:
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def setup_logging(
    service_name: str,
    settings: Settings | None = None,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """
    Route structlog and stdlib logging through one formatter on stdout.

    Args:
        service_name: Bound to every entry as ``service``.
        settings: Source of level, environment and competition code.
        extra_context: Further static fields bound to every entry.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(settings),
        ],
        foreign_pre_chain=pre_chain,
    ))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=settings.environment.value,
        competition=settings.competition_code,
        **(extra_context or {}),
    )


def request_context(request_id: str, **fields: Any) -> ContextManager[Any]:
    """Bind ``request_id`` (and ``fields``) to every entry logged inside the block."""
    return structlog.contextvars.bound_contextvars(request_id=request_id, **fields)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
