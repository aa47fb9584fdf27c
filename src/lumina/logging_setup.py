# src/lumina/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Minimum console level per logger prefix; first match wins.
# The due watcher polls from a background thread and would interleave with the prompt.
_CONSOLE_FLOORS: tuple[tuple[str, int], ...] = (
    ("lumina.tasks.due_watcher", logging.WARNING),
    ("lumina.", logging.NOTSET),
)
_THIRD_PARTY_FLOOR = logging.ERROR


class _ConsoleNoiseFilter(logging.Filter):
    """Keep the interactive console readable: app logs pass, everything else only on errors."""

    def filter(self, record: logging.LogRecord) -> bool:
        for prefix, floor in _CONSOLE_FLOORS:
            if record.name.startswith(prefix):
                return record.levelno >= floor
        # Includes captured warnings ('py.warnings').
        return record.levelno >= _THIRD_PARTY_FLOOR


def setup_logging(
    *,
    log_dir: str | Path = ".local/lumina",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Send filtered logs to stderr and everything to <log_dir>/lumina.log.

    Call once at startup, before the first log line. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "lumina.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
