# src/taskline/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task collection depends on a Protocol instead of the concrete file store.
This keeps storage swappable (file, in-memory, failure-injecting fakes in tests).
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task


class TaskRepo(Protocol):
    """
    Storage capability behind a TaskCollection.

    Positions are 0-based and always mirror the collection order.
    """

    def load(self) -> list[Task]: ...
    def append(self, task: Task) -> None: ...
    def replace_at(self, position: int, task: Task) -> None: ...
    def remove_at(self, position: int) -> None: ...
