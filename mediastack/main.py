#!/usr/bin/env python3
"""
MediaStack companion entry point.
Prepares the settings database, syncs the display timezone, starts the
notification poller and serves the JSON API until interrupted.
"""

import signal
import sqlite3
import sys

from mediastack import __version__
from mediastack.settings_manager import initialize_database
from mediastack.toast_manager import get_toast_manager
from mediastack.utils.logger import logger
from mediastack.utils.timezone_utils import load_timezone_from_backend


def main():
    logger.info(f"--- Starting MediaStack companion v{__version__} ---")

    try:
        initialize_database()
    except sqlite3.Error as e:
        logger.error(f"Settings database could not be initialized: {e}")
        return 1

    # Imported late so the database exists before the app reads settings
    from mediastack.web_server import create_app, start_web_server

    app = create_app(start_pollers=True)
    state = app.extensions["mediastack"]
    load_timezone_from_backend(state["client"])

    if state["notifications"].start():
        logger.info("Notification polling started")

    def shutdown_handler(signum, frame):
        signal_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM" if signum == signal.SIGTERM else f"Signal {signum}"
        logger.info(f"Received {signal_name}. Shutting down...")
        state["notifications"].stop()
        get_toast_manager().close()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)

    try:
        start_web_server(app)
    finally:
        state["notifications"].stop()
        get_toast_manager().close()
        logger.info("--- MediaStack companion stopped ---")
    return 0


if __name__ == "__main__":
    sys.exit(main())
