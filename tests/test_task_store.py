# tests/test_task_store.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

import taskline.tasks.task_store as task_store_module
from taskline.tasks.codec import (
    FIELD_DELIM,
    NO_TAGS,
    RECORD_DELIM,
    CodecRegistry,
    UnencodableFieldError,
)
from taskline.tasks.errors import CorruptRecordError, StorageIOError
from taskline.tasks.task_list import TaskCollection
from taskline.tasks.task_models import Deadline, Event, Tag, Todo
from taskline.tasks.task_store import TaskStore


def _todo_line(name: str, done: bool = False) -> str:
    return "T" + RECORD_DELIM + FIELD_DELIM.join([name, "true" if done else "false", NO_TAGS])


def test_load_creates_missing_file_and_parent(tmp_path: Path, registry: CodecRegistry) -> None:
    path = tmp_path / "nested" / "dir" / "tasks.txt"
    store = TaskStore(path, registry)

    assert store.load() == []
    assert path.exists()
    assert path.read_text("utf-8") == ""


def test_append_writes_one_line_per_task(store: TaskStore) -> None:
    store.load()
    store.append(Todo("Buy groceries"))
    store.append(Deadline("Submit assignment", datetime(2026, 3, 15, 23, 59)))

    lines = store.path.read_text("utf-8").splitlines()
    assert len(lines) == 2
    assert lines[0] == _todo_line("Buy groceries")
    assert lines[1].startswith("D" + RECORD_DELIM + "Submit assignment")

    tasks = store.load()
    assert [t.name for t in tasks] == ["Buy groceries", "Submit assignment"]


def test_replace_at_only_touches_target_line(store: TaskStore) -> None:
    store.load()
    for name in ("Task 1", "Task 2", "Task 3"):
        store.append(Todo(name))

    modified = Todo("Task 2")
    modified.mark()
    store.replace_at(1, modified)

    assert store.path.read_text("utf-8").splitlines() == [
        _todo_line("Task 1"),
        _todo_line("Task 2", done=True),
        _todo_line("Task 3"),
    ]


def test_remove_at_drops_target_line(store: TaskStore) -> None:
    store.load()
    for name in ("Task 1", "Task 2", "Task 3"):
        store.append(Todo(name))

    store.remove_at(1)

    assert [t.name for t in store.load()] == ["Task 1", "Task 3"]


def test_mixed_variants_survive_reload(store: TaskStore) -> None:
    store.load()
    store.append(Todo("todo"))
    store.append(Deadline("deadline", datetime(2026, 4, 1, 12, 0), True))
    store.append(Event("event", datetime(2026, 4, 2, 9, 0), datetime(2026, 4, 2, 17, 0)))

    tasks = store.load()
    assert [type(t) for t in tasks] == [Todo, Deadline, Event]


def test_out_of_range_position_is_a_contract_violation(store: TaskStore) -> None:
    store.load()
    store.append(Todo("only"))
    before = store.path.read_bytes()

    with pytest.raises(IndexError):
        store.replace_at(1, Todo("x"))
    with pytest.raises(IndexError):
        store.remove_at(-1)

    assert store.path.read_bytes() == before


def test_failed_swap_leaves_original_untouched(
    store: TaskStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    store.load()
    store.append(Todo("Task 1"))
    store.append(Todo("Task 2"))
    before = store.path.read_bytes()

    def broken_replace(src, dst):
        raise PermissionError("injected rename failure")

    monkeypatch.setattr(task_store_module.os, "replace", broken_replace)

    done = Todo("Task 1")
    done.mark()
    with pytest.raises(StorageIOError):
        store.replace_at(0, done)
    with pytest.raises(StorageIOError):
        store.remove_at(1)

    assert store.path.read_bytes() == before
    # no temp files left behind
    assert sorted(p.name for p in store.path.parent.iterdir()) == ["tasks.txt"]


def test_corrupt_lines_are_skipped_and_quarantined(store: TaskStore) -> None:
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text(
        "\n".join(
            [
                _todo_line("good 1"),
                "garbage without delimiter",
                "X" + RECORD_DELIM + "unknown variant",
                _todo_line("good 2"),
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    tasks = store.load()

    assert [t.name for t in tasks] == ["good 1", "good 2"]
    # file positions now match the loaded tasks
    assert store.path.read_text("utf-8").splitlines() == [_todo_line("good 1"), _todo_line("good 2")]
    assert store.quarantine_path.read_text("utf-8").splitlines() == [
        "garbage without delimiter",
        "X" + RECORD_DELIM + "unknown variant",
    ]

    done = Todo("good 2")
    done.mark()
    store.replace_at(1, done)
    assert store.load()[1].done is True


def test_fail_policy_raises_on_first_corrupt_line(tmp_path: Path, registry: CodecRegistry) -> None:
    path = tmp_path / "tasks.txt"
    path.write_text(_todo_line("good") + "\nbroken\n", encoding="utf-8")
    before = path.read_bytes()

    store = TaskStore(path, registry, corrupt_records="fail")
    with pytest.raises(CorruptRecordError) as exc:
        store.load()

    assert exc.value.line_no == 2
    assert path.read_bytes() == before


def test_append_after_unterminated_last_line(store: TaskStore, registry: CodecRegistry) -> None:
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text(_todo_line("old"), encoding="utf-8")

    TaskCollection.mounted(store).add(Todo("new"))

    reopened = TaskStore(store.path, registry)
    assert [t.name for t in reopened.load()] == ["old", "new"]
    assert not reopened.quarantine_path.exists()


def test_rewrite_terminates_unterminated_last_line(store: TaskStore) -> None:
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text(_todo_line("a") + "\n" + _todo_line("b"), encoding="utf-8")

    store.remove_at(0)

    assert store.path.read_text("utf-8") == _todo_line("b") + "\n"


def test_undecodable_line_is_skipped_and_quarantined(store: TaskStore) -> None:
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_bytes(
        _todo_line("good 1").encode("utf-8")
        + b"\n\xff\xfe garbage\n"
        + _todo_line("good 2").encode("utf-8")
        + b"\n"
    )

    tasks = store.load()

    assert [t.name for t in tasks] == ["good 1", "good 2"]
    assert store.quarantine_path.read_bytes() == b"\xff\xfe garbage\n"
    assert store.count_records() == 2


def test_undecodable_line_with_fail_policy(tmp_path: Path, registry: CodecRegistry) -> None:
    path = tmp_path / "tasks.txt"
    path.write_bytes(_todo_line("good").encode("utf-8") + b"\n\xff\xfe garbage\n")
    before = path.read_bytes()

    store = TaskStore(path, registry, corrupt_records="fail")
    with pytest.raises(CorruptRecordError) as exc:
        store.load()

    assert exc.value.line_no == 2
    assert "UTF-8" in exc.value.reason
    assert path.read_bytes() == before


@pytest.mark.parametrize("name", ["a\rb", "a\nb", "trailing\r"])
def test_line_breaks_in_names_are_never_written(store: TaskStore, name: str) -> None:
    store.load()
    store.append(Todo("first"))
    before = store.path.read_bytes()

    with pytest.raises(UnencodableFieldError):
        store.append(Todo(name))
    with pytest.raises(UnencodableFieldError):
        store.replace_at(0, Todo("first", tags=[Tag("x" + name + "y")]))

    assert store.path.read_bytes() == before
    assert store.count_records() == 1
