"""Helpers to launch the local web dashboard."""

from __future__ import annotations

import logging
import threading
import time
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .config import AppSettings
from .paths import get_db_path
from .webapp import create_app

logger = logging.getLogger(__name__)


def dashboard_url(host: str, port: int) -> str:
    # Wildcard binds are not browsable; point the browser at loopback instead.
    browse_host = "127.0.0.1" if host in ("0.0.0.0", "::") else host
    return f"http://{browse_host}:{port}"


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8765,
    db_path: Optional[Path] = None,
    settings: Optional[AppSettings] = None,
    open_browser: bool = True,
    log_level: str = "info",
) -> None:
    """Serve the dashboard with uvicorn until interrupted."""
    resolved_db_path = db_path or get_db_path()
    app = create_app(db_path=resolved_db_path, settings=settings or AppSettings())

    url = dashboard_url(host, port)
    logger.info("Dashboard for %s available at %s", resolved_db_path, url)
    if open_browser:
        threading.Thread(
            target=_launch_browser_after_delay, args=(url,), daemon=True
        ).start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)


def _launch_browser_after_delay(url: str) -> None:
    time.sleep(1.0)
    try:
        webbrowser.open(url)
    except webbrowser.Error:
        logger.exception("Failed to launch browser for %s", url)
