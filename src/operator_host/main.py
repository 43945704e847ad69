"""CLI entry point for the operator host."""

from __future__ import annotations

import asyncio

import uvicorn

from .config import get_settings
from .logging import configure_logging
from .server import build_app


async def _run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = build_app(settings)
    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
