# tests/fakes.py

from __future__ import annotations

from dataclasses import dataclass, field

from taskline.tasks.errors import StorageIOError
from taskline.tasks.task_models import Task


@dataclass(slots=True)
class FakeTaskStore:
    """
    In-memory TaskRepo used for collection unit tests.

    - Keeps a copy of what was "written" so tests can compare memory vs store
    - `fail_writes = True` makes every write raise StorageIOError
    """

    records: list[Task] = field(default_factory=list)
    fail_writes: bool = False
    calls: list[tuple[str, int | None]] = field(default_factory=list)

    def load(self) -> list[Task]:
        self.calls.append(("load", None))
        return [t.copy() for t in self.records]

    def _check(self) -> None:
        if self.fail_writes:
            raise StorageIOError("injected write failure")

    def append(self, task: Task) -> None:
        self.calls.append(("append", None))
        self._check()
        self.records.append(task.copy())

    def replace_at(self, position: int, task: Task) -> None:
        self.calls.append(("replace_at", position))
        self._check()
        self.records[position] = task.copy()

    def remove_at(self, position: int) -> None:
        self.calls.append(("remove_at", position))
        self._check()
        del self.records[position]
