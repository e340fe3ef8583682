# src/dailyflow/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _confirm(question: str) -> bool:
    """Blocking y/N prompt. EOF / Ctrl+C count as 'no'."""
    try:
        answer = input(f"{question} [y/N]: ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        print()
        return False
    return answer in ("y", "yes")


def run_console_loop(state: AppState) -> None:
    logger.info("Console started (tasks=%s).", state.tasks.count())
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "DailyFlow"))
    _print_ts(f"[{app_name}] {datetime.now().strftime('%A, %d %B')}. Use /help for commands, /exit to quit.\n")
    print(command_registry.handle(state, "/list"))

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
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
            # Plain text is a shortcut for /add.
            user_input = f"/add {user_input}"

        try:
            reply = command_registry.handle(state, user_input, emit=emit, confirm=_confirm)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            print(reply)

    logger.info("Console finished.")
