"""Run the relay with uvicorn: ``python -m roomrelay``."""

from __future__ import annotations

import logging

import uvicorn

from roomrelay.config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting room relay on ws://%s:%s/ws", settings.host, settings.port)
    uvicorn.run(
        "roomrelay.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
