# tests/test_console.py

from __future__ import annotations

from types import SimpleNamespace

import pytest

from taskline.cli import main as main_module
from taskline.cli.bootstrap import create_initial_state
from taskline.connectors.console_connector import LINE_SEPARATOR, run_console_loop
from taskline.core.state import AppState


def _feeder(lines: list[str]):
    it = iter(lines)

    def read_line(prompt: str) -> str:
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None

    return read_line


def test_loop_greets_and_stops_on_bye(
    state: AppState, dispatcher, capsys: pytest.CaptureFixture[str]
) -> None:
    run_console_loop(
        state,
        dispatcher=dispatcher,
        read_line=_feeder(["todo buy milk", "", "bye", "todo never read"]),
    )

    out = capsys.readouterr().out
    assert "Hello! I'm taskline-test!\nWhat can I do for you?" in out
    assert "Todo added:\n[T] [ ] buy milk" in out
    assert "Bye. Hope to see you again soon!" in out
    assert LINE_SEPARATOR in out
    assert state.tasks.size == 1
    assert state.alive is False


def test_loop_ends_on_eof(state: AppState, dispatcher) -> None:
    run_console_loop(state, dispatcher=dispatcher, read_line=_feeder(["list"]))
    assert state.alive is True


def test_bootstrap_persistent_and_in_memory(settings: SimpleNamespace) -> None:
    state = create_initial_state(settings=settings)
    assert state.tasks.persistent is True
    assert settings.tasks_path.exists()

    settings.persistent = False
    settings.tasks_path = settings.data_dir / "other.txt"
    state = create_initial_state(settings=settings)
    assert state.tasks.persistent is False
    assert not settings.tasks_path.exists()


def test_main_reports_load_failure(
    settings: SimpleNamespace,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    settings.data_dir.mkdir(parents=True)
    settings.tasks_path.write_text("not a record\n", encoding="utf-8")
    settings.corrupt_records = "fail"
    monkeypatch.setattr(main_module, "get_settings", lambda: settings)
    monkeypatch.setattr(main_module, "setup_logging", lambda **_: settings.data_dir / "taskline.log")

    assert main_module.main() == 1
    out = capsys.readouterr().out
    assert out.startswith("EXCEPTION: Corrupt record at line 1")
    assert out.rstrip().endswith("Terminating app...")
