"""Entry point for running TicTacTouch via ``python -m tictactouch``."""

from __future__ import annotations

import logging

import uvicorn

from .config import Settings
from .ui import app, build_session, install_session


def main() -> None:
    """Start the FastAPI-powered TicTacTouch server."""

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    install_session(build_session(settings))
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
