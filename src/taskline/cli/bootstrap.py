# src/taskline/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the codec registry, the task file store and the collection into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..tasks.codec import default_registry
from ..tasks.task_list import TaskCollection
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)


def create_task_store(settings) -> TaskStore:
    return TaskStore(
        settings.tasks_path,
        default_registry(),
        corrupt_records=getattr(settings, "corrupt_records", "skip"),
    )


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().

    Loading the task file happens here, so storage errors (unreadable file,
    corrupt record with the "fail" policy) surface to the caller.
    """
    if settings is None:
        settings = get_settings()

    if getattr(settings, "persistent", True):
        _ensure_local_dirs(settings)
        tasks = TaskCollection.mounted(create_task_store(settings))
    else:
        logger.info("Persistence disabled; tasks live in memory only.")
        tasks = TaskCollection.in_memory()

    return AppState(settings=settings, tasks=tasks)
