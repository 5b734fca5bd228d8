# src/taskline/tasks/task_models.py

from __future__ import annotations

import copy
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar

from .errors import (
    TagAlreadyExistsError,
    TagNotFoundError,
    TaskAlreadyDoneError,
    TaskNotDoneError,
)

DATE_FORMAT = "%b %d %Y"
DATE_TIME_FORMAT = "%b %d %Y, %H:%M"


def format_when(value: datetime, has_time: bool) -> str:
    return value.strftime(DATE_TIME_FORMAT if has_time else DATE_FORMAT)


@dataclass(frozen=True, slots=True)
class Tag:
    name: str

    def __post_init__(self) -> None:
        name = (self.name or "").strip()
        if not name:
            raise ValueError("Tag name cannot be empty or whitespace only")
        object.__setattr__(self, "name", name)

    def __str__(self) -> str:
        return f"#{self.name}"


class Task:
    """
    Base task: a name, a done flag and an ordered set of tags.

    Concrete kinds set ``code``, the short discriminator shared by storage
    and display. The name never changes after construction.
    """

    code: ClassVar[str] = ""

    def __init__(self, name: str, *, done: bool = False, tags: Iterable[Tag] = ()) -> None:
        if not name or not name.strip():
            raise ValueError("Task name cannot be empty or whitespace only")
        self._name = name
        self.done = bool(done)
        self._tags: list[Tag] = []
        self.add_tags(*tags)

    @property
    def name(self) -> str:
        return self._name

    @property
    def tags(self) -> tuple[Tag, ...]:
        return tuple(self._tags)

    def copy(self) -> Task:
        clone = copy.copy(self)
        clone._tags = list(self._tags)
        return clone

    # ---- state transitions ----

    def mark(self) -> None:
        if self.done:
            raise TaskAlreadyDoneError(f"{self} has already been marked.")
        self.done = True

    def unmark(self) -> None:
        if not self.done:
            raise TaskNotDoneError(f"{self} has already been unmarked.")
        self.done = False

    def add_tags(self, *tags: Tag) -> None:
        """Add every tag or none of them."""
        seen = set(self._tags)
        for tag in tags:
            if tag in seen:
                raise TagAlreadyExistsError(f"Task already has tag: {tag}")
            seen.add(tag)
        self._tags.extend(tags)

    def remove_tags(self, *tags: Tag) -> None:
        """Remove every tag or none of them."""
        remaining = set(self._tags)
        for tag in tags:
            if tag not in remaining:
                raise TagNotFoundError(f"Task does not have tag: {tag}")
            remaining.discard(tag)
        self._tags = [t for t in self._tags if t in remaining]

    # ---- display ----

    def _details(self) -> str:
        return ""

    def __str__(self) -> str:
        out = f"[{self.code}] [{'X' if self.done else ' '}] {self._name}{self._details()}"
        if self._tags:
            out += " " + ", ".join(str(t) for t in self._tags)
        return out

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self}>"


class Todo(Task):
    code = "T"


class Deadline(Task):
    code = "D"

    def __init__(
        self,
        name: str,
        due_at: datetime,
        due_has_time: bool = True,
        *,
        done: bool = False,
        tags: Iterable[Tag] = (),
    ) -> None:
        super().__init__(name, done=done, tags=tags)
        self.due_at = due_at
        self.due_has_time = bool(due_has_time)

    def _details(self) -> str:
        return f" (by {format_when(self.due_at, self.due_has_time)})"


class Event(Task):
    code = "E"

    def __init__(
        self,
        name: str,
        start_at: datetime,
        end_at: datetime,
        *,
        start_has_time: bool = True,
        end_has_time: bool = True,
        done: bool = False,
        tags: Iterable[Tag] = (),
    ) -> None:
        if end_at < start_at:
            raise ValueError("Event end must not be before its start")
        super().__init__(name, done=done, tags=tags)
        self.start_at = start_at
        self.start_has_time = bool(start_has_time)
        self.end_at = end_at
        self.end_has_time = bool(end_has_time)

    def _details(self) -> str:
        start = format_when(self.start_at, self.start_has_time)
        end = format_when(self.end_at, self.end_has_time)
        return f" (start: {start} | end: {end})"
