# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.commands import submit_text
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def run_console_loop(
    state: AppState,
    *,
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = _print_ts,
) -> None:
    """
    Console REPL: slash lines are commands, anything else is a new task
    described in free text.
    """
    logger.info("Console connector started.")
    write("Describe a task to add it (e.g. 'Buy groceries, high priority, tags: shopping, 10 points').")
    write("Use /help for commands. Use /exit to quit.")
    write(command_registry.handle(state, "/home") or "")

    while True:
        try:
            user_input = read_line(">>> ").strip()
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

        try:
            response = command_registry.handle(state, user_input, emit=write)
            if response is None:
                response = submit_text(state, user_input, emit=write)
        except Exception:
            logger.exception("Console handler crashed.")
            response = "Internal error while handling that input."

        write(response)

    logger.info("Console connector finished.")
