"""Run the board server: ``python -m mission_control``."""

from __future__ import annotations

import logging

import uvicorn

from mission_control.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger(__name__).info(
        "server event=start backend=%s host=%s port=%s",
        settings.backend,
        settings.host,
        settings.port,
    )
    uvicorn.run(
        "mission_control.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
