# src/dailyflow/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..backup.codec import apply_import, parse_backup, write_backup_file
from ..core.errors import BackupImportError, DeviceValidationError, SuggestionError, TaskValidationError
from ..core.state import AppState
from ..llm.client import friendly_suggestion_error_message
from ..tasks.reorder import VIEW_ALL, VIEW_PENDING
from ..tasks.task_api import apply_suggestion, build_draft, filter_tasks, status_counts
from ..tasks.task_models import Task, TaskDraft, TaskStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CommandIO:
    """
    How a handler talks back to the user while it runs.

    - emit: immediate feedback line (e.g. "asking the AI...")
    - confirm: yes/no question; None means non-interactive -> every confirmation is refused
    """

    emit: Callable[[str], None] | None = None
    confirm: Callable[[str], bool] | None = None

    def say(self, text: str) -> None:
        if self.emit is not None:
            self.emit(text)

    def ask(self, question: str) -> bool:
        if self.confirm is None:
            return False
        return bool(self.confirm(question))


CommandHandler = Callable[[AppState, list[str], CommandIO], str]


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

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
        emit: Callable[[str], None] | None = None,
        confirm: Callable[[str], bool] | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args, CommandIO(emit=emit, confirm=confirm))

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()

_STATUS_MARK = {
    TaskStatus.PENDING: "[ ]",
    TaskStatus.COMPLETED: "[x]",
    TaskStatus.SKIPPED: "[-]",
}

_EDIT_FIELDS = {
    "name": "name",
    "desc": "description",
    "description": "description",
    "time": "check_in_time",
    "device": "device",
    "app": "app_or_url",
    "url": "app_or_url",
}


def _visible(state: AppState) -> list[Task]:
    return filter_tasks(state.tasks.list_tasks(), state.view)


def _resolve(state: AppState, token: str) -> Task | None:
    """Map a 1-based position in the current view to a task."""
    try:
        pos = int(token)
    except ValueError:
        return None
    tasks = _visible(state)
    if 1 <= pos <= len(tasks):
        return tasks[pos - 1]
    return None


def _format_task(pos: int, t: Task) -> str:
    extra = " · ".join(x for x in (t.device, t.app_or_url) if x)
    line = f"{pos:>3}. {_STATUS_MARK[t.status]} {t.check_in_time} {t.name}"
    if extra:
        line += f" ({extra})"
    if t.description:
        line += f"\n        {t.description}"
    return line


def _format_draft(d: TaskDraft) -> str:
    return (
        f"  name:   {d.name}\n"
        f"  desc:   {d.description}\n"
        f"  time:   {d.check_in_time}\n"
        f"  device: {d.device}\n"
        f"  app:    {d.app_or_url}"
    )


def cmd_help(state: AppState, args: list[str], io: CommandIO) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], io: CommandIO) -> str:
    models = ", ".join(list(getattr(state.settings, "llm_models", []) or []))
    return (
        "Status:\n"
        f"  Tasks: {state.tasks.count()}\n"
        f"  Devices: {len(state.devices)}\n"
        f"  View: {state.view}\n"
        f"  AI autofill: {type(state.suggestions).__name__}\n"
        f"  Models (priority -> fallback): {models}"
    )


def cmd_list(state: AppState, args: list[str], io: CommandIO) -> str:
    """
    /list          -> current view
    /list all      -> all tasks (reordering enabled)
    /list pending  -> pending tasks only
    """
    if args:
        view = args[0].lower()
        if view not in (VIEW_ALL, VIEW_PENDING):
            return "Usage: /list [all|pending]"
        state.view = view

    tasks = _visible(state)
    if not tasks:
        if state.view == VIEW_PENDING and state.tasks.count() > 0:
            return "All tasks are done!"
        return "No tasks yet. Add one with /add <name>."

    lines = [f"Tasks ({state.view}):"]
    lines.extend(_format_task(i, t) for i, t in enumerate(tasks, start=1))
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str], io: CommandIO) -> str:
    """
    /add name | description | HH:mm | device | app-or-url
    Only the name is required.
    """
    fields = [p.strip() for p in " ".join(args).split("|")]
    if not fields[0]:
        return "Usage: /add <name> [| description | HH:mm | device | app-or-url]"
    fields += [""] * (5 - len(fields))
    name, description, time_s, device, app = fields[:5]

    try:
        draft = build_draft(
            name=name,
            description=description,
            check_in_time=time_s or "09:00",
            device=device,
            app_or_url=app,
            devices=state.devices.labels(),
        )
    except TaskValidationError as e:
        return f"Cannot add task: {e}"

    task = state.tasks.create(draft)
    return f"Added: {task.check_in_time} {task.name}"


def cmd_edit(state: AppState, args: list[str], io: CommandIO) -> str:
    """/edit <n> <name|desc|time|device|app> <value...>"""
    if len(args) < 2:
        return "Usage: /edit <n> <name|desc|time|device|app> <value>"
    task = _resolve(state, args[0])
    if task is None:
        return f"No task #{args[0]} in this view."
    attr = _EDIT_FIELDS.get(args[1].lower())
    if attr is None:
        return f"Unknown field: {args[1]}. Use name, desc, time, device or app."

    values = {
        "name": task.name,
        "description": task.description,
        "check_in_time": task.check_in_time,
        "device": task.device,
        "app_or_url": task.app_or_url,
    }
    values[attr] = " ".join(args[2:])

    try:
        draft = build_draft(**values, devices=state.devices.labels(), status=task.status)
    except TaskValidationError as e:
        return f"Cannot save task: {e}"

    state.tasks.update(task.id, draft)
    return f"Updated: {draft.check_in_time} {draft.name}"


def _set_status(state: AppState, args: list[str], status: TaskStatus, verb: str) -> str:
    if not args:
        return f"Usage: /{verb} <n>"
    task = _resolve(state, args[0])
    if task is None:
        return f"No task #{args[0]} in this view."
    state.tasks.set_status(task.id, status)
    return f"{task.name}: {status.value.lower()}"


def cmd_done(state: AppState, args: list[str], io: CommandIO) -> str:
    return _set_status(state, args, TaskStatus.COMPLETED, "done")


def cmd_skip(state: AppState, args: list[str], io: CommandIO) -> str:
    return _set_status(state, args, TaskStatus.SKIPPED, "skip")


def cmd_undo(state: AppState, args: list[str], io: CommandIO) -> str:
    return _set_status(state, args, TaskStatus.PENDING, "undo")


def cmd_rm(state: AppState, args: list[str], io: CommandIO) -> str:
    if not args:
        return "Usage: /rm <n>"
    task = _resolve(state, args[0])
    if task is None:
        return f"No task #{args[0]} in this view."
    if not io.ask(f'Delete task "{task.name}"? This cannot be undone.'):
        return "Cancelled."
    state.tasks.delete(task.id)
    return f"Deleted: {task.name}"


def cmd_move(state: AppState, args: list[str], io: CommandIO) -> str:
    """/move <n> <m>: drag task n onto task m (pending tasks, 'all' view only)."""
    if len(args) != 2:
        return "Usage: /move <n> <m>"
    if state.view != VIEW_ALL:
        return "Reordering is only available in the 'all' view (/list all)."
    source = _resolve(state, args[0])
    target = _resolve(state, args[1])
    if source is None or target is None:
        return "Unknown task number."

    ctl = state.reorder
    if not ctl.start(source.id):
        return "Only pending tasks can be moved."
    if not ctl.hover(target.id):
        ctl.cancel()
        return "Tasks can only be dropped onto another pending task."
    if not ctl.commit():
        return "Order unchanged."
    return f"Moved: {source.name}"


def cmd_devices(state: AppState, args: list[str], io: CommandIO) -> str:
    """
    /devices                    -> list
    /devices add <name>         -> add
    /devices rename <i> <name>  -> rename
    /devices rm <i>             -> remove
    """
    if not args:
        labels = state.devices.labels()
        if not labels:
            return "No devices. Add one with /devices add <name>."
        return "Devices:\n" + "\n".join(f"{i:>3}. {d}" for i, d in enumerate(labels, start=1))

    sub = args[0].lower()
    rest = " ".join(args[1:])

    try:
        if sub == "add":
            label = state.devices.add(rest)
            return f"Device added: {label}"

        if sub in ("rename", "rm"):
            if len(args) < 2 or not args[1].isdigit():
                return f"Usage: /devices {sub} <i>" + (" <name>" if sub == "rename" else "")
            index = int(args[1]) - 1
            labels = state.devices.labels()
            if not 0 <= index < len(labels):
                return f"No device #{args[1]}."

            if sub == "rename":
                state.devices.rename(index, " ".join(args[2:]))
                return f"Device renamed: {labels[index]} -> {state.devices.labels()[index]}"

            if not io.ask(f'Delete device "{labels[index]}"?'):
                return "Cancelled."
            state.devices.remove(index)
            return f"Device removed: {labels[index]}"
    except DeviceValidationError as e:
        return f"Cannot save device: {e}"

    return "Usage: /devices [add <name> | rename <i> <name> | rm <i>]"


def cmd_suggest(state: AppState, args: list[str], io: CommandIO) -> str:
    """/suggest <rough task name>: ask the AI to fill in a new task."""
    text = " ".join(args).strip()
    if not text:
        return "Usage: /suggest <rough task name>"

    io.say("[AI] Generating suggestion...")
    try:
        suggestion = state.suggestions.suggest(text)
    except SuggestionError as e:
        logger.info("Suggestion failed: %s", e)
        return friendly_suggestion_error_message(e)

    try:
        draft = apply_suggestion(
            TaskDraft(name=text, device=state.devices.default_label()),
            suggestion,
            state.devices.labels(),
        )
    except TaskValidationError as e:
        return f"AI autofill failed: unusable suggestion ({e})"
    preview = "Suggested task:\n" + _format_draft(draft)
    if not io.ask("Add this task?"):
        return preview + "\nNot added."
    task = state.tasks.create(draft)
    return preview + f"\nAdded: {task.check_in_time} {task.name}"


def cmd_fill(state: AppState, args: list[str], io: CommandIO) -> str:
    """/fill <n>: let the AI rewrite an existing task from its name."""
    if not args:
        return "Usage: /fill <n>"
    task = _resolve(state, args[0])
    if task is None:
        return f"No task #{args[0]} in this view."

    io.say("[AI] Generating suggestion...")
    try:
        suggestion = state.suggestions.suggest(task.name)
    except SuggestionError as e:
        logger.info("Suggestion failed: %s", e)
        return friendly_suggestion_error_message(e)

    try:
        draft = apply_suggestion(TaskDraft.from_task(task), suggestion, state.devices.labels())
    except TaskValidationError as e:
        return f"AI autofill failed: unusable suggestion ({e})"
    preview = "Suggested changes:\n" + _format_draft(draft)
    if not io.ask("Save these changes?"):
        return preview + "\nNot saved."
    state.tasks.update(task.id, draft)
    return preview + "\nSaved."


def cmd_export(state: AppState, args: list[str], io: CommandIO) -> str:
    directory = Path(args[0]).expanduser() if args else Path(state.settings.backup_dir)
    try:
        path = write_backup_file(directory, state.tasks.list_tasks(), state.devices.labels())
    except OSError as e:
        logger.exception("Export failed dir=%s", directory)
        return f"Export failed: {e}"
    return f"Exported {state.tasks.count()} tasks to {path}"


def cmd_import(state: AppState, args: list[str], io: CommandIO) -> str:
    if not args:
        return "Usage: /import <backup.json>"
    path = Path(" ".join(args)).expanduser()
    try:
        raw = path.read_text("utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        return f"Import failed: cannot read {path} ({e})"
    if not raw.strip():
        return "Import failed: file is empty."

    try:
        plan = parse_backup(raw)
    except BackupImportError as e:
        logger.info("Import rejected (%s): %s", type(e).__name__, e)
        return f"Import failed: {e}"

    what = f"{len(plan.tasks)} tasks" + ("" if plan.devices is None else f" and {len(plan.devices)} devices")
    if not io.ask(f"Restore {what}? This overwrites current data and cannot be undone."):
        return "Cancelled."
    apply_import(plan, state.tasks, state.devices)
    return f"Imported {what}."


def cmd_stats(state: AppState, args: list[str], io: CommandIO) -> str:
    counts = status_counts(state.tasks.list_tasks())
    total = sum(counts.values())
    lines = [f"Today: {total} tasks"]
    for status, n in counts.items():
        pct = (100.0 * n / total) if total else 0.0
        lines.append(f"  {status.value.lower():<10} {n:>3} ({pct:.0f}%)")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current settings.")
registry.register("list", cmd_list, help_text="List tasks: /list [all|pending].", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add name | desc | HH:mm | device | app.")
registry.register("edit", cmd_edit, help_text="Edit a field: /edit <n> <name|desc|time|device|app> <value>.")
registry.register("done", cmd_done, help_text="Mark task completed: /done <n>.")
registry.register("skip", cmd_skip, help_text="Mark task skipped: /skip <n>.")
registry.register("undo", cmd_undo, help_text="Back to pending: /undo <n>.")
registry.register("rm", cmd_rm, help_text="Delete a task (asks first): /rm <n>.", aliases=["del"])
registry.register("move", cmd_move, help_text="Move task n to task m's slot: /move <n> <m>.", aliases=["mv"])
registry.register("devices", cmd_devices, help_text="Manage devices: /devices [add|rename|rm].")
registry.register("suggest", cmd_suggest, help_text="AI autofill a new task: /suggest <text>.")
registry.register("fill", cmd_fill, help_text="AI autofill an existing task: /fill <n>.")
registry.register("export", cmd_export, help_text="Write a JSON backup: /export [dir].")
registry.register("import", cmd_import, help_text="Restore a JSON backup (asks first): /import <file>.")
registry.register("stats", cmd_stats, help_text="Completed / skipped / pending totals.")
