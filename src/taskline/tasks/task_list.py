# src/taskline/tasks/task_list.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

from ..core.ports import TaskRepo
from .errors import IndexOutOfRangeError
from .task_models import Tag, Task
from .task_store import NullTaskStore

logger = logging.getLogger(__name__)


class TaskCollection:
    """
    Ordered, 1-based view over tasks, written through to a TaskRepo.

    Every mutation follows the same order: validate -> write to the store ->
    change memory. A store failure therefore never leaves the in-memory list
    ahead of (or behind) the file.
    """

    def __init__(self, store: TaskRepo | None = None) -> None:
        self._store: TaskRepo = store if store is not None else NullTaskStore()
        self._tasks: list[Task] = []

    @classmethod
    def in_memory(cls) -> TaskCollection:
        return cls()

    @classmethod
    def mounted(cls, store: TaskRepo) -> TaskCollection:
        collection = cls()
        collection.mount(store)
        return collection

    @property
    def persistent(self) -> bool:
        return not isinstance(self._store, NullTaskStore)

    def mount(self, store: TaskRepo) -> None:
        tasks = list(store.load())
        self._store = store
        self._tasks = tasks
        logger.info("TaskCollection mounted store=%s size=%d", type(store).__name__, len(tasks))

    # ---- read API ----

    @property
    def size(self) -> int:
        return len(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks))

    def _position(self, index: int) -> int:
        if index < 1 or index > len(self._tasks):
            raise IndexOutOfRangeError(index, len(self._tasks))
        return index - 1

    def get(self, index: int) -> Task:
        return self._tasks[self._position(index)]

    def find(self, substring: str) -> list[tuple[int, Task]]:
        return [(i, t) for i, t in enumerate(self._tasks, start=1) if substring in t.name]

    def render(self) -> str:
        return "\n".join(f"{i}. {t}" for i, t in enumerate(self._tasks, start=1))

    # ---- mutations ----

    def add(self, task: Task) -> Task:
        self._store.append(task)
        self._tasks.append(task)
        return task

    def _update(self, index: int, change: Callable[[Task], None]) -> Task:
        """
        Two-phase update: stage ``change`` on a copy, persist the copy,
        then apply ``change`` to the live task.

        ``change`` raises before mutating anything when the transition is
        not allowed, so the staging step doubles as validation.
        """
        position = self._position(index)
        task = self._tasks[position]

        staged = task.copy()
        change(staged)
        self._store.replace_at(position, staged)
        change(task)
        return task

    def mark(self, index: int) -> Task:
        return self._update(index, lambda t: t.mark())

    def unmark(self, index: int) -> Task:
        return self._update(index, lambda t: t.unmark())

    def add_tags(self, index: int, *tags: Tag) -> Task:
        return self._update(index, lambda t: t.add_tags(*tags))

    def remove_tags(self, index: int, *tags: Tag) -> Task:
        return self._update(index, lambda t: t.remove_tags(*tags))

    def remove(self, index: int) -> Task:
        position = self._position(index)
        self._store.remove_at(position)
        return self._tasks.pop(position)
