"""Entry point for running the game server via ``python -m tictacmatch``."""

from __future__ import annotations

import logging
import os

import uvicorn

from . import ui
from .settings import JsonFileStore


def main() -> None:
    """Start the FastAPI-powered tic-tac-toe web server."""

    logging.basicConfig(
        level=os.environ.get("TICTACMATCH_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings_path = os.environ.get("TICTACMATCH_SETTINGS_PATH")
    if settings_path:
        ui.configure_store(JsonFileStore(settings_path))

    host = os.environ.get("TICTACMATCH_HOST", "0.0.0.0")
    port = int(os.environ.get("TICTACMATCH_PORT", "8000"))
    uvicorn.run(ui.app, host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
