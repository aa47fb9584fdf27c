# src/lumina/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, restores the stored session, then runs:
- the due-task watcher in a background thread,
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from .. import api
from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleConfirm, register_console_effects, run_console_loop
from ..logging_setup import setup_logging
from ..tasks.due_watcher import start_due_watcher_in_background

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        n = state.saver.flush()
        state.saver.close()
        logger.debug("Flushed %d pending write(s).", n)
    except Exception:
        logger.exception("Failed to flush pending writes.")

    try:
        storage = getattr(state, "storage", None)
        if storage is not None and hasattr(storage, "close"):
            storage.close()
    except Exception:
        logger.debug("Storage close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/lumina")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "lumina"))

    state = create_initial_state(settings=settings, confirm=ConsoleConfirm())
    register_console_effects(state)

    try:
        api.restore_session(state)
    except Exception:
        logger.exception("Failed to restore session.")

    def _snapshot_tasks():
        with state.lock:
            return state.engine.tasks

    watcher = start_due_watcher_in_background(
        _snapshot_tasks,
        state.dispatcher,
        clock=state.clock,
        interval_seconds=settings.due_poll_interval_seconds,
        window_seconds=settings.due_window_seconds,
    )

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except Exception:
        # Some platforms may not support SIGTERM.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            signal.signal(signal.SIGINT, _handle_signal)
            logger.info("Console disabled. Running the due watcher only. Press Ctrl+C to stop.")
            stop_main.wait()

    finally:
        if watcher is not None:
            watcher.stop()
            watcher.join(timeout=5.0)

        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
