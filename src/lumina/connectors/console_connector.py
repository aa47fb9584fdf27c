# src/lumina/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.effects import LevelUp, SetCompleted, TaskDue
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except Exception:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleConfirm:
    """Asks y/N on stdin. EOF or Ctrl+C counts as 'no'."""

    def confirm(self, prompt: str) -> bool:
        try:
            answer = input(f"{prompt} [y/N] ")
        except (EOFError, KeyboardInterrupt):
            print()
            return False
        return answer.strip().lower() in ("y", "yes")


# ---- effect handlers (toasts) ----


def _on_task_due(effect: TaskDue) -> None:
    # Printed from the watcher thread; may interleave with the prompt.
    _print_ts(f"[DUE] {effect.title} ({effect.priority} priority)")


def _on_level_up(effect: LevelUp) -> None:
    _print_ts(f"[LEVEL UP] You reached level {effect.level}!")


def _on_set_completed(effect: SetCompleted) -> None:
    _print_ts(f"[SET] {effect.exercise_name} set {effect.set_index + 1} done")


def register_console_effects(state: AppState) -> None:
    state.dispatcher.register(TaskDue, _on_task_due)
    state.dispatcher.register(LevelUp, _on_level_up)
    state.dispatcher.register(SetCompleted, _on_set_completed)


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (user=%s).", state.user.id if state.user else None)
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "lumina"))
    _print_ts(f"[CONSOLE] {app_name}: use /help for commands, /exit to quit.")
    if state.user is not None:
        _print_ts(f"Welcome back, {state.user.name}.")
    else:
        _print_ts("Not logged in. Try /login demo@lumina.local demo")

    lock = getattr(state, "lock", None)

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            user_input = "/" + user_input

        try:
            if lock:
                with lock:
                    response = command_registry.handle(state, user_input, emit=emit)
            else:
                response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            print(f"[{_ts_local()}] {response}")

    logger.info("Console connector finished.")
