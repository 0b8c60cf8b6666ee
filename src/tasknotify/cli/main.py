# src/tasknotify/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, reschedules stored tasks and runs the
console until /exit. Pending notifications only live as long as the process.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state, start
from ..config import get_settings
from ..connectors.console_connector import print_notification, run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(settings) -> None:
    state = create_initial_state(settings=settings, on_deliver=print_notification)
    await start(state)
    try:
        await run_console_loop(state)
    finally:
        pending = await state.scheduler.list_pending()
        if pending:
            logger.info("Exiting with %d pending notifications (not persisted).", len(pending))
        await state.scheduler.cancel_all_notifications()


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)
    logger.info("Starting %s...", settings.app_name)

    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
