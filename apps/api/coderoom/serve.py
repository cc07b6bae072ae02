"""Run the collaboration server under uvicorn."""
from __future__ import annotations

import logging

import uvicorn

from .core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def main() -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    logging.getLogger(__name__).info("Starting server on %s:%s", settings.host, settings.port)
    uvicorn.run(
        "coderoom.main:app",
        host=settings.host,
        port=settings.port,
        ws_ping_interval=settings.ws_ping_interval,
        ws_ping_timeout=settings.ws_ping_timeout,
    )


if __name__ == "__main__":
    main()
