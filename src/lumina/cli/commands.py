# src/lumina/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import cast

from .. import api
from ..admin import collect_stats
from ..agenda import agenda, month_grid
from ..backup import backup_filename
from ..core.state import AppState
from ..errors import BackupFormatError, DuplicateUserError, LuminaError, PlanRequiredError, StorageFailure
from ..gamification import level_progress, next_level_xp
from ..notes import board
from ..search import search
from ..tasks.task_models import Task, TaskDraft, TaskPatch, TaskStatus, strict_enum
from ..tasks.views import TaskFilter, filter_tasks, group_by_status, sort_for_display, tasks_due_on
from ..users.user_models import PlanTier, Theme
from ..workouts import routines as routine_ops
from ..workouts.routines import RECOMMENDED_ROUTINES, total_volume
from ..workouts.workout_models import ExerciseTemplate

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, /done, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()

NOT_LOGGED_IN = "You are not logged in. Use /login <email> <password> or /register."


# ---- formatting ----


def _fmt_task(t: Task) -> str:
    box = "[x]" if t.is_completed else ("[~]" if t.status == TaskStatus.IN_PROGRESS else "[ ]")
    due = t.due_at.astimezone().strftime("%Y-%m-%d %H:%M")
    repeat = f" repeat={t.repeat_type.value}" if t.repeat_type.value != "None" else ""
    subs = ""
    if t.subtasks:
        done = sum(1 for s in t.subtasks if s.is_completed)
        subs = f" subtasks={done}/{len(t.subtasks)}"
    return f"{box} {t.id}  {t.title}  ({t.priority.value}, {t.category.value}) due {due}{repeat}{subs}"


def _split_fields(args: list[str]) -> tuple[list[str], dict[str, str]]:
    words: list[str] = []
    fields: dict[str, str] = {}
    for a in args:
        if "=" in a and not a.startswith("="):
            k, v = a.split("=", 1)
            fields[k] = v
        else:
            words.append(a)
    return words, fields


# ---- general ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_register(state: AppState, args: list[str]) -> str:
    """/register <email> <password> [name...]"""
    if len(args) < 2:
        return "Usage: /register <email> <password> [name]"
    email, password, *name = args
    try:
        user = api.register(state, " ".join(name), email, password)
    except DuplicateUserError as e:
        return str(e)
    except (ValueError, StorageFailure) as e:
        return f"Registration failed: {e}"
    return f"Welcome, {user.name}! You are on the {user.plan.value} plan."


def cmd_login(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /login <email> <password>"
    user = api.login(state, args[0], args[1])
    if user is None:
        return "Invalid email or password."
    hint = "" if user.has_seen_onboarding else " New here? Try /add, /list and /help."
    if not user.has_seen_onboarding:
        api.complete_onboarding(state)
    return f"Logged in as {user.name} ({user.plan.value}).{hint}"


def cmd_logout(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    api.logout(state)
    return "Logged out."


def cmd_whoami(state: AppState, args: list[str]) -> str:
    user = state.user
    if user is None:
        return NOT_LOGGED_IN
    target = next_level_xp(user.level)
    pct = int(level_progress(user.xp, user.level) * 100)
    return (
        f"{user.name} <{user.email}>\n"
        f"  Plan: {user.plan.value}\n"
        f"  Level {user.level}: {user.xp} / {target} XP ({pct}%)\n"
        f"  Theme: {user.theme.value}"
    )


def cmd_upgrade(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    if len(args) != 1:
        return "Usage: /upgrade <free|standard|pro>"
    try:
        plan = strict_enum(PlanTier, args[0])
    except ValueError as e:
        return str(e)
    api.upgrade_plan(state, plan)
    return f"Successfully switched to {plan.value}!"


def cmd_theme(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    if len(args) != 1:
        return "Usage: /theme <blue|purple|emerald|rose>"
    try:
        theme = strict_enum(Theme, args[0])
    except ValueError as e:
        return str(e)
    api.set_theme(state, theme)
    return f"Theme set to {theme.value}."


# ---- tasks ----


def cmd_add(state: AppState, args: list[str]) -> str:
    """/add Buy milk !high tomorrow"""
    if state.user is None:
        return NOT_LOGGED_IN
    try:
        task = api.add_smart_task(state, " ".join(args))
    except PlanRequiredError as e:
        return f"{e}. Use /upgrade standard to unlock it, or /new for a plain task."
    if task is None:
        return "Usage: /add <text>  (understands !high, !low, tomorrow, tonight, next week)"
    return f"Added: {_fmt_task(task)}"


def cmd_new(state: AppState, args: list[str]) -> str:
    """/new <title...> [due=ISO] [priority=High] [category=Work] [repeat=Daily] [desc=...]"""
    if state.user is None:
        return NOT_LOGGED_IN
    words, fields = _split_fields(args)
    try:
        p = TaskPatch.from_mapping(fields)
    except ValueError as e:
        return f"Invalid field: {e}"
    draft = TaskDraft(
        title=" ".join(words) or p.title,
        description=p.description,
        due_at=p.due_at,
        repeat_type=p.repeat_type,
        priority=p.priority,
        category=p.category,
    )
    task = state.engine.create(draft)
    return f"Created: {_fmt_task(task)}"


def cmd_list(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    mode = args[0].lower() if args else TaskFilter.ALL.value
    try:
        tasks = filter_tasks(sort_for_display(state.engine.tasks), mode)
    except ValueError:
        return "Usage: /list [all|active|completed]"
    if not tasks:
        return "No tasks."
    return "\n".join(_fmt_task(t) for t in tasks)


def cmd_board(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    lines: list[str] = []
    for status, tasks in group_by_status(sort_for_display(state.engine.tasks)).items():
        lines.append(f"== {status.value} ({len(tasks)})")
        lines.extend(f"  {_fmt_task(t)}" for t in tasks)
    return "\n".join(lines)


def cmd_done(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    if len(args) != 1:
        return "Usage: /done <task_id>"
    result = api.toggle_task(state, args[0])
    if result is None:
        return f"No task {args[0]}."
    if not result.task.is_completed:
        return f"Reopened: {_fmt_task(result.task)}"
    msg = f"Completed: {_fmt_task(result.task)}"
    if result.spawned is not None:
        msg += f"\nNext occurrence: {_fmt_task(result.spawned)}"
    return msg


def cmd_status(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    if len(args) != 2:
        return "Usage: /status <task_id> <todo|in_progress|done>"
    try:
        status = strict_enum(TaskStatus, args[1])
    except ValueError as e:
        return str(e)
    result = api.set_task_status(state, args[0], status)
    if result is None:
        return f"No task {args[0]}."
    return f"Moved: {_fmt_task(result.task)}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    if len(args) < 2:
        return "Usage: /edit <task_id> field=value ...  (title, desc, due, priority, category, repeat)"
    _, fields = _split_fields(args[1:])
    try:
        patch = TaskPatch.from_mapping(fields)
    except ValueError as e:
        return f"Invalid field: {e}"
    if patch.is_empty():
        return "Nothing to change."
    task = state.engine.edit(args[0], patch)
    if task is None:
        return f"No task {args[0]}."
    return f"Updated: {_fmt_task(task)}"


def cmd_del(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    if len(args) != 1:
        return "Usage: /del <task_id>"
    if api.delete_task(state, args[0]):
        return "Deleted."
    return "Nothing deleted."


def cmd_sub(state: AppState, args: list[str]) -> str:
    """/sub add <task> <title> | /sub toggle <task> <sub> | /sub rm <task> <sub>"""
    if state.user is None:
        return NOT_LOGGED_IN
    if len(args) < 3:
        return "Usage: /sub add <task_id> <title> | /sub toggle <task_id> <sub_id> | /sub rm <task_id> <sub_id>"
    action, task_id, rest = args[0].lower(), args[1], args[2:]
    if action == "add":
        sub = state.engine.add_subtask(task_id, " ".join(rest))
        return f"Subtask {sub.id} added." if sub else f"No task {task_id}."
    if action == "toggle":
        sub = state.engine.toggle_subtask(task_id, rest[0])
        if sub is None:
            return "No such subtask."
        return f"Subtask {sub.id} {'done' if sub.is_completed else 'open'}."
    if action in ("rm", "remove"):
        return "Subtask removed." if state.engine.remove_subtask(task_id, rest[0]) else "No such subtask."
    return "Unknown /sub action."


# ---- calendar / search ----


def cmd_cal(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    today = state.clock.now().date()
    year, month = today.year, today.month
    if args:
        try:
            y, m = args[0].split("-", 1)
            year, month = int(y), int(m)
            date(year, month, 1)
        except ValueError:
            return "Usage: /cal [YYYY-MM]"
    tasks = state.engine.tasks
    lines = [f"{year}-{month:02d}", "  Su   Mo   Tu   We   Th   Fr   Sa"]
    row: list[str] = []
    for cell in month_grid(year, month):
        if cell is None:
            row.append("    ")
        else:
            n = len(tasks_due_on(tasks, cell))
            mark = "*" if n else " "
            row.append(f"{cell.day:>3}{mark}")
        if len(row) == 7:
            lines.append(" ".join(row))
            row = []
    if row:
        lines.append(" ".join(row))
    return "\n".join(lines)


def cmd_agenda(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    lines: list[str] = []
    for day in agenda(state.engine.tasks, state.clock.now().date()):
        lines.append(day.day.strftime("%a %Y-%m-%d"))
        if not day.tasks:
            lines.append("  (nothing planned)")
        lines.extend(f"  {_fmt_task(t)}" for t in day.tasks)
    return "\n".join(lines)


def cmd_search(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    results = search(state.engine.tasks, state.notes, " ".join(args))
    if results.is_empty():
        return "No results."
    lines = [f"Task: {_fmt_task(t)}" for t in results.tasks]
    lines.extend(f"Note: {n.id}  {n.content[:60]}" for n in results.notes)
    return "\n".join(lines)


# ---- notes ----


def cmd_notes(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    if not state.notes:
        return "No sticky notes."
    out = []
    for n in reversed(board.stacking_order(state.notes)):
        flag = " (minimized)" if n.is_minimized else ""
        out.append(f"{n.id} [{n.color}] z={n.z_index}{flag}: {n.content}")
    return "\n".join(out)


def cmd_note(state: AppState, args: list[str]) -> str:
    """/note add|edit|rm|min|front|clear ..."""
    if state.user is None:
        return NOT_LOGGED_IN
    if not args:
        return "Usage: /note add <text> | edit <id> <text> | rm <id> | min <id> | front <id> | clear"
    action, rest = args[0].lower(), args[1:]
    if action == "add":
        note_id = state.id_factory()
        api.set_notes(state, board.add_note(state.notes, note_id, content=" ".join(rest)))
        return f"Note {note_id} added."
    if action == "clear":
        return "Board cleared." if api.clear_notes(state) else "Cancelled."
    if not rest:
        return "Note id required."
    note_id = rest[0]
    if not any(n.id == note_id for n in state.notes):
        return f"No note {note_id}."
    if action == "edit":
        api.set_notes(state, board.update_content(state.notes, note_id, " ".join(rest[1:])))
    elif action in ("rm", "remove"):
        api.set_notes(state, board.remove_note(state.notes, note_id))
    elif action == "min":
        api.set_notes(state, board.toggle_minimize(state.notes, note_id))
    elif action == "front":
        api.set_notes(state, board.bring_to_front(state.notes, note_id))
    else:
        return "Unknown /note action."
    return "OK."


# ---- workouts ----


def cmd_routine(state: AppState, args: list[str]) -> str:
    """/routine list | add <name> | ex <rid> <name> <sets> <reps> | rm <rid> | import <key>"""
    if state.user is None:
        return NOT_LOGGED_IN
    action = args[0].lower() if args else "list"
    rest = args[1:]
    if action == "list":
        if not state.routines:
            return f"No routines. Try /routine import <{'|'.join(RECOMMENDED_ROUTINES)}>."
        lines = []
        for r in state.routines:
            lines.append(f"{r.id}  {r.name}")
            lines.extend(f"    {ex.name}: {ex.target_sets} x {ex.target_reps}" for ex in r.exercises)
        return "\n".join(lines)
    try:
        if action == "add":
            rid = state.id_factory()
            api.set_routines(state, routine_ops.create_routine(state.routines, rid, " ".join(rest)))
            return f"Routine {rid} created."
        if action == "ex":
            if len(rest) != 4:
                return "Usage: /routine ex <routine_id> <name> <sets> <reps>"
            rid, name, sets, reps = rest
            if not any(r.id == rid for r in state.routines):
                return f"No routine {rid}."
            ex = ExerciseTemplate(id=state.id_factory(), name=name, target_sets=int(sets), target_reps=reps)
            api.set_routines(state, routine_ops.add_exercise(state.routines, rid, ex))
            return f"Added {name} to routine {rid}."
        if action in ("rm", "remove"):
            return "Routine deleted." if rest and api.remove_routine(state, rest[0]) else "Nothing deleted."
        if action == "import":
            key = rest[0] if rest else ""
            api.set_routines(
                state, routine_ops.import_recommended(state.routines, key, state.id_factory)
            )
            return f"Imported {RECOMMENDED_ROUTINES[key][0]}."
    except ValueError as e:
        return str(e)
    return "Unknown /routine action."


def _fmt_session(state: AppState) -> str:
    session = state.workout
    if session is None:
        return "No workout in progress."
    elapsed = session.elapsed_seconds(state.clock.now())
    lines = [f"{session.routine_name}  {elapsed // 60}:{elapsed % 60:02d}"]
    for i, ex in enumerate(session.exercises, start=1):
        lines.append(f"  {i}. {ex.exercise_name}")
        for j, s in enumerate(ex.sets, start=1):
            mark = "x" if s.completed else " "
            lines.append(f"     [{mark}] set {j}: {s.weight:g} x {s.reps}")
    return "\n".join(lines)


def cmd_workout(state: AppState, args: list[str]) -> str:
    """/workout start <rid> | show | set <ex> <set> <weight> <reps> | toggle <ex> <set> | addset <ex> | finish | cancel"""
    if state.user is None:
        return NOT_LOGGED_IN
    action = args[0].lower() if args else "show"
    rest = args[1:]
    if action == "start":
        if not rest:
            return "Usage: /workout start <routine_id>"
        if api.start_workout(state, rest[0]) is None:
            return f"No routine {rest[0]}."
        return _fmt_session(state)
    if action == "show":
        return _fmt_session(state)
    if state.workout is None:
        return "No workout in progress."
    try:
        if action == "set":
            ex_i, set_i, weight, reps = rest
            state.workout.update_set(int(ex_i) - 1, int(set_i) - 1, weight=float(weight), reps=int(reps))
            return _fmt_session(state)
        if action == "toggle":
            ex_i, set_i = rest
            api.toggle_workout_set(state, int(ex_i) - 1, int(set_i) - 1)
            return _fmt_session(state)
        if action == "addset":
            state.workout.add_set(int(rest[0]) - 1)
            return _fmt_session(state)
    except (ValueError, IndexError):
        return "Bad exercise/set numbers. See /workout show."
    if action == "finish":
        log = api.finish_workout(state)
        if log is None:
            return "No workout in progress."
        return f"Workout saved: {log.routine_name}, {log.duration_seconds}s, volume {total_volume(log):g}"
    if action == "cancel":
        return "Workout discarded." if api.cancel_workout(state) else "Still going."
    return "Unknown /workout action."


def cmd_logs(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    if not state.workout_logs:
        return "No workouts logged yet."
    lines = []
    for log in state.workout_logs:
        mins, secs = divmod(log.duration_seconds, 60)
        when = log.date.astimezone().strftime("%Y-%m-%d %H:%M")
        lines.append(f"{when}  {log.routine_name}  {mins}:{secs:02d}  volume {total_volume(log):g}")
    return "\n".join(lines)


# ---- data ----


def cmd_export(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    now = state.clock.now()
    target = Path(args[0]) if args else Path(state.settings.data_dir) / backup_filename(now)
    try:
        path = api.export_user_backup(state, target)
    except OSError as e:
        return f"Export failed: {e}"
    return f"Exported to {path}"


def cmd_import(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    if len(args) != 1:
        return "Usage: /import <path>"
    try:
        n_tasks, n_notes = api.import_user_backup(state, args[0])
    except BackupFormatError as e:
        return f"Failed to parse backup file: {e}"
    parts = []
    if n_tasks is not None:
        parts.append(f"{n_tasks} tasks")
    if n_notes is not None:
        parts.append(f"{n_notes} notes")
    return f"Imported {', '.join(parts)}." if parts else "Backup had nothing to import."


def cmd_admin(state: AppState, args: list[str]) -> str:
    if state.user is None:
        return NOT_LOGGED_IN
    stats = collect_stats(
        state.storage,
        state.users.list_users(),
        state.engine.tasks,
        state.notes,
        quota_bytes=int(getattr(state.settings, "storage_quota_bytes", 5 * 1024 * 1024)),
        today=state.clock.now().date(),
    )
    lines = [
        f"Users: {stats.users}",
        f"Tasks: {stats.tasks_total} ({stats.tasks_completed} completed)",
        f"Notes: {stats.notes}",
        f"Storage: {stats.storage_bytes} bytes ({stats.storage_percent}% of quota)",
        "Last 7 days (created / completed):",
    ]
    lines.extend(f"  {d.day.isoformat()}  {d.created} / {d.completed}" for d in stats.activity)
    return "\n".join(lines)


def cmd_reset(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        emit("[RESET] This removes every account and all data on this machine.")
    try:
        if not api.factory_reset(state):
            return "Cancelled."
    except LuminaError:
        logger.exception("Factory reset failed")
        return "Factory reset failed; see log."
    return "All local data removed. Restart to get a fresh demo account."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("register", cmd_register, help_text="Create an account: /register <email> <password> [name].")
registry.register("login", cmd_login, help_text="Log in: /login <email> <password>.")
registry.register("logout", cmd_logout, help_text="Log out.")
registry.register("whoami", cmd_whoami, help_text="Show profile, plan and XP.", aliases=["me"])
registry.register("upgrade", cmd_upgrade, help_text="Change plan: /upgrade free|standard|pro.")
registry.register("theme", cmd_theme, help_text="Change theme: /theme blue|purple|emerald|rose.")
registry.register("add", cmd_add, help_text="Smart add: /add Call mom !high tomorrow (paid plans).")
registry.register("new", cmd_new, help_text="New task: /new <title> [due=..] [priority=..] [category=..] [repeat=..].")
registry.register("list", cmd_list, help_text="List tasks: /list [all|active|completed].", aliases=["ls"])
registry.register("board", cmd_board, help_text="Kanban view by status.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <task_id>.")
registry.register("status", cmd_status, help_text="Move task: /status <task_id> todo|in_progress|done.")
registry.register("edit", cmd_edit, help_text="Edit task: /edit <task_id> title=.. due=.. priority=..")
registry.register("del", cmd_del, help_text="Delete task: /del <task_id>.", aliases=["rm"])
registry.register("sub", cmd_sub, help_text="Subtasks: /sub add|toggle|rm ...")
registry.register("cal", cmd_cal, help_text="Month calendar: /cal [YYYY-MM].")
registry.register("agenda", cmd_agenda, help_text="Next two weeks.")
registry.register("search", cmd_search, help_text="Search tasks and notes: /search <text>.", aliases=["find"])
registry.register("notes", cmd_notes, help_text="List sticky notes.")
registry.register("note", cmd_note, help_text="Sticky notes: /note add|edit|rm|min|front|clear ...")
registry.register("routine", cmd_routine, help_text="Routines: /routine list|add|ex|rm|import ...")
registry.register("workout", cmd_workout, help_text="Workout session: /workout start|show|set|toggle|addset|finish|cancel.")
registry.register("logs", cmd_logs, help_text="Workout history.")
registry.register("export", cmd_export, help_text="Export tasks and notes: /export [path].")
registry.register("import", cmd_import, help_text="Import a backup: /import <path>.")
registry.register("admin", cmd_admin, help_text="Usage statistics.")
registry.register("reset", cmd_reset, help_text="Factory reset (asks for confirmation).")
