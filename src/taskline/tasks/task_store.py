# src/taskline/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path

from .codec import RECORD_DELIM, CodecRegistry, MalformedRecordError, UnknownTagError
from .errors import CorruptRecordError, StorageIOError
from .task_models import Task

logger = logging.getLogger(__name__)


class CorruptRecordPolicy(StrEnum):
    SKIP = "skip"
    FAIL = "fail"

    @classmethod
    def from_config(cls, raw: str | None) -> CorruptRecordPolicy:
        if not raw:
            return cls.SKIP
        try:
            return cls(raw.strip().lower())
        except ValueError:
            logger.warning("Unknown corrupt record policy %r; using %s.", raw, cls.SKIP.value)
            return cls.SKIP


class TaskStore:
    """
    Line-oriented task file: one record per line.

    Record layout: ``<code><DELIMITER><payload>`` where the payload comes
    from the codec registry.

    - append() only ever grows the file
    - replace_at()/remove_at() stream the file into a temp file in the same
      directory and swap it in with os.replace, so the file on disk is
      always either the complete old version or the complete new one
    - lines are UTF-8 and split on LF only; a line that does not decode
      is a corrupt record like any other
    - the store keeps no task objects; it is read back only by load()
    """

    def __init__(
        self,
        path: str | Path,
        registry: CodecRegistry,
        *,
        corrupt_records: CorruptRecordPolicy | str = CorruptRecordPolicy.SKIP,
    ) -> None:
        self._path = Path(path)
        self._registry = registry
        self._policy = CorruptRecordPolicy.from_config(str(corrupt_records))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def quarantine_path(self) -> Path:
        return self._path.with_name(self._path.name + ".corrupt")

    # ---- low-level helpers ----

    def _ensure_file(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.touch(exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Could not create storage file {self._path}: {e}") from e

    def _format_record(self, task: Task) -> bytes:
        return (task.code + RECORD_DELIM + self._registry.encode(task)).encode("utf-8")

    def _parse_record(self, raw: bytes) -> Task:
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRecordError(f"invalid UTF-8 at byte {e.start}") from e
        parts = line.split(RECORD_DELIM, 1)
        if len(parts) != 2:
            raise MalformedRecordError("missing record delimiter")
        code, payload = parts
        return self._registry.decode(code, payload)

    def _ends_with_newline(self) -> bool:
        """True for an empty file or one whose last byte is a newline."""
        with self._path.open("rb") as reader:
            reader.seek(0, os.SEEK_END)
            if reader.tell() == 0:
                return True
            reader.seek(-1, os.SEEK_END)
            return reader.read(1) == b"\n"

    def _rewrite(self, edit: Callable[[int, bytes], bytes | None]) -> None:
        """
        Stream the file through ``edit(position, line)`` into a temp file,
        then swap it into place. ``edit`` returns the line to write, or None
        to drop it. Lines are handled as raw bytes, split on LF only.
        """
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}-", suffix=".tmp", dir=self._path.parent
            )
        except OSError as e:
            raise StorageIOError(f"Could not create temp file next to {self._path}: {e}") from e

        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as writer, self._path.open("rb") as reader:
                for position, raw in enumerate(reader):
                    new_line = edit(position, raw.rstrip(b"\r\n"))
                    if new_line is not None:
                        writer.write(new_line + b"\n")
            os.replace(tmp, self._path)
        except OSError as e:
            raise StorageIOError(f"Could not rewrite storage file {self._path}: {e}") from e
        finally:
            if tmp.exists():
                with contextlib.suppress(OSError):
                    tmp.unlink()

    def _rewrite_at(self, position: int, replacement: bytes | None) -> None:
        if position < 0:
            raise IndexError(f"position {position} is negative")
        size = self.count_records()
        if position >= size:
            raise IndexError(f"position {position} is out of range for {size} records")

        def edit(pos: int, line: bytes) -> bytes | None:
            return replacement if pos == position else line

        self._rewrite(edit)

    # ---- public API ----

    def count_records(self) -> int:
        try:
            with self._path.open("rb") as reader:
                return sum(1 for _ in reader)
        except FileNotFoundError:
            return 0
        except OSError as e:
            raise StorageIOError(f"Could not read storage file {self._path}: {e}") from e

    def load(self) -> list[Task]:
        self._ensure_file()

        tasks: list[Task] = []
        bad_positions: dict[int, bytes] = {}
        try:
            with self._path.open("rb") as reader:
                for position, raw in enumerate(reader):
                    line = raw.rstrip(b"\r\n")
                    try:
                        tasks.append(self._parse_record(line))
                    except (UnknownTagError, MalformedRecordError) as e:
                        if self._policy is CorruptRecordPolicy.FAIL:
                            raise CorruptRecordError(
                                position + 1, line.decode("utf-8", errors="replace"), str(e)
                            ) from e
                        logger.warning(
                            "Skipping corrupt record at %s:%d (%s)", self._path, position + 1, e
                        )
                        bad_positions[position] = line
        except OSError as e:
            raise StorageIOError(f"Could not read storage file {self._path}: {e}") from e

        if bad_positions:
            self._quarantine(bad_positions)

        logger.info("TaskStore loaded path=%s total=%d", self._path, len(tasks))
        return tasks

    def _quarantine(self, bad_positions: dict[int, bytes]) -> None:
        """Move skipped lines aside so file positions match the loaded tasks."""
        try:
            with self.quarantine_path.open("ab") as out:
                for line in bad_positions.values():
                    out.write(line + b"\n")
        except OSError as e:
            raise StorageIOError(f"Could not write quarantine file {self.quarantine_path}: {e}") from e

        self._rewrite(lambda pos, line: None if pos in bad_positions else line)
        logger.warning(
            "Moved %d corrupt record(s) from %s to %s",
            len(bad_positions),
            self._path,
            self.quarantine_path,
        )

    def append(self, task: Task) -> None:
        record = self._format_record(task)
        try:
            # a hand-edited file may lack the final newline
            prefix = b"" if not self._path.exists() or self._ends_with_newline() else b"\n"
            with self._path.open("ab") as writer:
                writer.write(prefix + record + b"\n")
        except OSError as e:
            raise StorageIOError(f"Could not append to storage file {self._path}: {e}") from e
        logger.debug("TaskStore append code=%s name=%s", task.code, task.name)

    def replace_at(self, position: int, task: Task) -> None:
        self._rewrite_at(position, self._format_record(task))
        logger.debug("TaskStore replace position=%d code=%s", position, task.code)

    def remove_at(self, position: int) -> None:
        self._rewrite_at(position, None)
        logger.debug("TaskStore remove position=%d", position)


class NullTaskStore:
    """Store used by in-memory collections: nothing is read or written."""

    def load(self) -> list[Task]:
        return []

    def append(self, task: Task) -> None:
        return

    def replace_at(self, position: int, task: Task) -> None:
        return

    def remove_at(self, position: int) -> None:
        return
