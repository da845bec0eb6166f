from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from tasktracker.observability import reset_metrics
from tasktracker.service import TaskService
from tasktracker.store import JsonTaskStore
from tests.helpers.clock import FakeClock


@pytest.fixture(autouse=True)
def _fresh_metrics() -> Generator[None, None, None]:
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer settings from leaking into test runs."""
    monkeypatch.delenv("TASK_TRACKER_FILE", raising=False)
    monkeypatch.delenv("LOG_MODULE_LEVELS", raising=False)


@pytest.fixture()
def tasks_path(tmp_path: Path) -> Path:
    return tmp_path / "tasks.json"


@pytest.fixture()
def store(tasks_path: Path) -> JsonTaskStore:
    return JsonTaskStore(tasks_path)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def service(store: JsonTaskStore, clock: FakeClock) -> TaskService:
    return TaskService(store, clock=clock)
