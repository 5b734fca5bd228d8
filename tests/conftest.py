# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskline.cli.commands import Dispatcher, register_default_commands
from taskline.core.state import AppState
from taskline.tasks.codec import CodecRegistry, default_registry
from taskline.tasks.task_list import TaskCollection
from taskline.tasks.task_store import TaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and AppState.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskline-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        tasks_path=tmp_path / "data" / "tasks.txt",
        persistent=True,
        corrupt_records="skip",
    )


@pytest.fixture()
def registry() -> CodecRegistry:
    return default_registry()


@pytest.fixture()
def store(settings: SimpleNamespace, registry: CodecRegistry) -> TaskStore:
    return TaskStore(settings.tasks_path, registry)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    """
    AppState over a real file store in tmp_path.

    NOTE: We keep the real TaskStore here because its write-through behaviour
    is part of what we want to test.
    """
    return AppState(settings=settings, tasks=TaskCollection.mounted(store))


@pytest.fixture()
def dispatcher() -> Dispatcher:
    return register_default_commands(Dispatcher())
