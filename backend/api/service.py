"""
Entry point for ``kickoff-api``.

Serves the league API from a single process: the caches, the resolved
matchday and the match index live in process memory, so extra workers
would each warm and hold their own copy.
"""
from __future__ import annotations

import os

import uvicorn

from shared.config import get_settings

from api.app import app


def main() -> None:
    settings = get_settings()
    # hosting platforms inject PORT
    port = int(os.environ.get("PORT") or settings.api_port)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=port,
        log_level=settings.log_level.lower(),
        # logging is configured by the app lifespan; request lines come from middleware
        log_config=None,
        access_log=False,
    )


if __name__ == "__main__":
    main()
