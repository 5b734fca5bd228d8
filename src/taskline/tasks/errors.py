# src/taskline/tasks/errors.py

from __future__ import annotations


class TaskError(Exception):
    """Base class for task collection and storage failures."""


class IndexOutOfRangeError(TaskError, IndexError):
    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"Index {index} is out of bounds of Task List of size {size}.")
        self.index = index
        self.size = size


class TaskAlreadyDoneError(TaskError):
    pass


class TaskNotDoneError(TaskError):
    pass


class TagAlreadyExistsError(TaskError):
    pass


class TagNotFoundError(TaskError):
    pass


class TaskStoreError(TaskError):
    """Anything that went wrong in the storage file layer."""


class StorageIOError(TaskStoreError):
    """
    The storage file could not be created, read or swapped.

    When raised by a rewrite, the original file is left intact and the
    operation must be treated as not applied.
    """


class CorruptRecordError(TaskStoreError):
    def __init__(self, line_no: int, line: str, reason: str) -> None:
        super().__init__(f"Corrupt record at line {line_no}: {reason}")
        self.line_no = line_no
        self.line = line
        self.reason = reason
