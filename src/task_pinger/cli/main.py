# src/task_pinger/cli/main.py

"""
CLI entrypoint.

Initializes logging, validates settings and builds AppState, then starts:
- the background services (tasks cache, pinger, optional Matrix connector),
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import sys
import threading

from ..cli.bootstrap import create_initial_state
from ..cli.services import start_services_in_background
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..errors import ConfigError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    try:
        settings = get_settings()
    except ConfigError as e:
        # Logging is configured from settings, so fall back to stderr here.
        logging.basicConfig(level=logging.ERROR)
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    if settings.debug:
        console_level = min(console_level, logging.DEBUG)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(2)

    runner = start_services_in_background(state)
    if runner is None:
        sys.exit(1)

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        if settings.console_enabled:
            # The REPL handles Ctrl+C itself (KeyboardInterrupt from input()).
            run_console_loop(state, runner.submit)
        else:
            try:
                signal.signal(signal.SIGINT, _handle_signal)
                signal.signal(signal.SIGTERM, _handle_signal)
            except (ValueError, OSError):
                logger.debug("Could not install signal handlers.", exc_info=True)

            logger.info("Console disabled. Running background services only. Press Ctrl+C to stop.")
            while not stop_main.wait(timeout=1.0):
                if not runner.is_alive():
                    logger.error("Service thread exited unexpectedly.")
                    break
    finally:
        runner.stop()
        runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
