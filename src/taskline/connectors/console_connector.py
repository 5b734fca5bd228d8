# src/taskline/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..cli.commands import Dispatcher
from ..cli.commands import dispatcher as default_dispatcher
from ..core.state import AppState

logger = logging.getLogger(__name__)

LINE_SEPARATOR = "_" * 60


def greeting(app_name: str) -> str:
    return f"Hello! I'm {app_name}!\nWhat can I do for you?"


def _print_block(text: str) -> None:
    print(f"{text}\n{LINE_SEPARATOR}\n")


def run_console_loop(
    state: AppState,
    *,
    dispatcher: Dispatcher | None = None,
    read_line: Callable[[str], str] = input,
) -> None:
    """Read one command per line until the session ends (bye, ambiguity, EOF, Ctrl+C)."""
    dispatcher = dispatcher or default_dispatcher
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "taskline"))

    logger.info("Console connector started (persistent=%s).", state.tasks.persistent)
    print(f"{LINE_SEPARATOR}\n")
    _print_block(greeting(app_name))

    while state.alive:
        try:
            user_input = read_line("").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        try:
            response = dispatcher.handle(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "INTERNAL ERROR: Internal error while handling a command."

        _print_block(response)

    logger.info("Console connector finished.")
