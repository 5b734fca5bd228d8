# src/taskline/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.task_list import TaskCollection


@dataclass(slots=True)
class AppState:
    # Settings object (real Settings or a SimpleNamespace in tests).
    settings: object
    tasks: TaskCollection

    # Cleared by `bye` or by an ambiguous command; the console loop stops on it.
    alive: bool = True
