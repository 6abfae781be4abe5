"""
HTTP middleware and exception handlers for the league API.

``RequestContextMiddleware`` assigns the request id, binds it to the log
context for the whole request and writes one ``http_request`` entry per
response. Upstream failures surface as 502 with the failure kind so the
page can tell a slow upstream from a broken one.
"""
from __future__ import annotations

import time
import uuid

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from shared.config import get_settings
from shared.utils.http_client import UpstreamError
from shared.utils.logging import get_logger, request_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
UNLOGGED_PATHS = frozenset({"/health", "/ready"})


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        request.state.request_id = request_id
        path = request.url.path

        with request_context(request_id, method=request.method, path=path):
            start = time.monotonic()
            response = await call_next(request)
            if path not in UNLOGGED_PATHS:
                logger.info(
                    "http_request",
                    status=response.status_code,
                    duration_ms=round((time.monotonic() - start) * 1000, 2),
                )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.warning(
        "upstream_unavailable",
        upstream_path=exc.path,
        kind=exc.kind.value,
        upstream_status=exc.status_code,
    )
    return JSONResponse(
        status_code=502,
        content={
            "error": "upstream_unavailable",
            "kind": exc.kind.value,
            "message": "League data is temporarily unavailable",
            "request_id": _request_id(request),
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # runs outside the request context, so the id is logged explicitly
    logger.error(
        "unhandled_exception", request_id=_request_id(request), error=repr(exc), exc_info=exc
    )
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "request_id": _request_id(request)},
    )


def setup_middleware(app: FastAPI) -> None:
    """Install the request context, CORS and the exception handlers."""
    settings = get_settings()
    app.add_middleware(RequestContextMiddleware)
    # league pages only read
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
