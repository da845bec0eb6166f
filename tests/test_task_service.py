from __future__ import annotations

import datetime as dt
import json
from pathlib import Path

import pytest

from tasktracker.errors import NotFoundError, ValidationError
from tasktracker.models import Task
from tasktracker.observability import get_metrics
from tasktracker.service import TaskService, next_id, normalize_filter
from tasktracker.store import JsonTaskStore
from tests.helpers.clock import FakeClock
from tests.helpers.store import InMemoryTaskStore


def _write_records(path: Path, ids: list[object]) -> None:
    records = [
        {
            "id": i,
            "description": f"Task {i}",
            "status": "todo",
            "createdAt": "2024-01-01T00:00:00+00:00",
            "updatedAt": "2024-01-01T00:00:00+00:00",
        }
        for i in ids
    ]
    path.write_text(json.dumps(records, indent=4) + "\n", encoding="utf-8")


def test_add_first_task(service: TaskService, store: JsonTaskStore) -> None:
    task = service.add("  Buy milk  ")

    assert task.id == 1
    assert task.description == "Buy milk"
    assert task.status == "todo"
    assert task.created_at == task.updated_at
    assert task.created_at.tzinfo is not None
    assert store.load() == [task]


@pytest.mark.parametrize("description", ["abc", "  abc  ", "x" * 200, "\t" + "y" * 200 + "\n"])
def test_add_accepts_boundary_lengths(service: TaskService, description: str) -> None:
    task = service.add(description)

    assert task.description == description.strip()
    assert task.status == "todo"
    assert task.created_at == task.updated_at


@pytest.mark.parametrize("description", ["", "   ", "ab", "  ab  ", "x" * 201])
def test_add_rejects_bad_length_without_touching_storage(
    service: TaskService, tasks_path: Path, description: str
) -> None:
    with pytest.raises(ValidationError) as ei:
        service.add(description)
    assert "between 3 and 200" in str(ei.value)
    assert not tasks_path.exists()


def test_next_id_follows_max_not_count(tasks_path: Path, clock: FakeClock) -> None:
    _write_records(tasks_path, [1, 3, 5])
    svc = TaskService(JsonTaskStore(tasks_path), clock=clock)

    assert svc.add("After gaps").id == 6


def test_next_id_coerces_numeric_string_ids(tasks_path: Path, clock: FakeClock) -> None:
    _write_records(tasks_path, ["2", 7, "4"])
    svc = TaskService(JsonTaskStore(tasks_path), clock=clock)

    assert svc.add("Mixed ids").id == 8
    assert [t.id for t in svc.list_tasks()] == [2, 7, 4, 8]


def test_next_id_of_empty_collection() -> None:
    assert next_id([]) == 1


def test_update_replaces_description_and_bumps_timestamp(
    service: TaskService, clock: FakeClock
) -> None:
    created = service.add("Buy milk")

    first = service.update(created.id, " Buy almond milk ")
    assert first.description == "Buy almond milk"
    assert first.created_at == created.created_at
    assert first.updated_at > created.updated_at

    clock.now += dt.timedelta(hours=1)
    second = service.update(created.id, "Buy oat milk")
    assert second.updated_at > first.updated_at
    assert second.updated_at >= second.created_at
    assert service.get(created.id) == second


def test_update_validates_before_lookup(service: TaskService) -> None:
    with pytest.raises(ValidationError):
        service.update(99, "no")


@pytest.mark.parametrize("op", ["update", "mark_status", "delete"])
def test_missing_id_raises_not_found_and_leaves_file_unchanged(
    service: TaskService, tasks_path: Path, op: str
) -> None:
    service.add("Only task")
    before = tasks_path.read_bytes()

    with pytest.raises(NotFoundError) as ei:
        if op == "update":
            service.update(42, "Something else")
        elif op == "mark_status":
            service.mark_status(42, "done")
        else:
            service.delete(42)
    assert ei.value.task_id == 42
    assert "42" in str(ei.value)
    assert tasks_path.read_bytes() == before


def test_delete_removes_one_and_keeps_order(service: TaskService) -> None:
    for desc in ("First task", "Second task", "Third task", "Fourth task"):
        service.add(desc)

    service.delete(2)

    remaining = service.list_tasks()
    assert [t.id for t in remaining] == [1, 3, 4]
    assert [t.description for t in remaining] == ["First task", "Third task", "Fourth task"]
    # Deleted ids are not reused while a higher id exists
    assert service.add("Fifth task").id == 5


def test_delete_last_task_frees_its_id(service: TaskService) -> None:
    service.add("First task")
    service.add("Second task")
    service.delete(2)

    assert service.add("Replacement").id == 2


def test_mark_status_sets_status_and_bumps_timestamp(service: TaskService) -> None:
    created = service.add("Write report")

    in_progress = service.mark_status(created.id, "in_progress")
    assert in_progress.status == "in_progress"
    assert in_progress.updated_at > created.updated_at
    assert in_progress.created_at == created.created_at
    assert in_progress.description == "Write report"


@pytest.mark.parametrize("status", ["finished", "in-progress", "DONE", ""])
def test_mark_status_rejects_unknown_status(service: TaskService, status: str) -> None:
    service.add("Write report")

    with pytest.raises(ValidationError):
        service.mark_status(1, status)
    assert service.get(1).status == "todo"


def test_list_filters_by_status_preserving_order(service: TaskService) -> None:
    for desc in ("One task", "Two task", "Three task", "Four task", "Five task"):
        service.add(desc)
    service.mark_status(2, "done")
    service.mark_status(4, "in_progress")
    service.mark_status(5, "done")

    assert [t.id for t in service.list_tasks()] == [1, 2, 3, 4, 5]
    assert [t.id for t in service.list_tasks("done")] == [2, 5]
    assert [t.id for t in service.list_tasks("todo")] == [1, 3]
    assert [t.id for t in service.list_tasks("in-progress")] == [4]
    assert service.list_tasks("in-progress") == service.list_tasks("in_progress")
    assert [t.id for t in service.list_tasks("  DONE ")] == [2, 5]


def test_list_rejects_unknown_filter(service: TaskService) -> None:
    with pytest.raises(ValidationError) as ei:
        service.list_tasks("later")
    assert "done, todo, in-progress" in str(ei.value)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("todo", "todo"),
        ("Done", "done"),
        (" in-progress ", "in_progress"),
        ("IN_PROGRESS", "in_progress"),
    ],
)
def test_normalize_filter(raw: str, expected: str) -> None:
    assert normalize_filter(raw) == expected


def test_buy_milk_walkthrough(service: TaskService) -> None:
    added = service.add("Buy milk")
    assert (added.id, added.description, added.status) == (1, "Buy milk", "todo")

    done = service.mark_status(1, "done")
    assert done.status == "done"
    assert done.updated_at != added.updated_at

    assert service.list_tasks("todo") == []
    assert [t.id for t in service.list_tasks("done")] == [1]


def test_get_missing_raises(service: TaskService) -> None:
    with pytest.raises(NotFoundError):
        service.get(1)


def test_rejected_operations_never_save(clock: FakeClock) -> None:
    now = clock()
    mem = InMemoryTaskStore([Task(id=1, description="Keep me", created_at=now, updated_at=now)])
    svc = TaskService(mem, clock=clock)

    with pytest.raises(ValidationError):
        svc.add("x")
    with pytest.raises(NotFoundError):
        svc.update(2, "Valid text")
    with pytest.raises(ValidationError):
        svc.mark_status(1, "blocked")
    with pytest.raises(NotFoundError):
        svc.delete(3)

    assert mem.saves == 0
    assert [t.description for t in mem.load()] == ["Keep me"]


def test_each_write_is_one_load_and_one_save(clock: FakeClock) -> None:
    mem = InMemoryTaskStore()
    svc = TaskService(mem, clock=clock)

    svc.add("Count calls")
    svc.mark_status(1, "done")
    svc.list_tasks()

    assert mem.loads == 3
    assert mem.saves == 2


def test_operations_are_counted(service: TaskService) -> None:
    service.add("Track metrics")
    service.mark_status(1, "done")
    with pytest.raises(NotFoundError):
        service.delete(7)

    snap = {
        (e["name"], tuple(sorted(e["labels"].items()))): e["value"]
        for e in get_metrics().snapshot()
    }
    assert snap[("task_ops", (("op", "add"),))] == 1
    assert snap[("task_ops", (("op", "mark_status"),))] == 1
    assert snap[("task_errors", (("kind", "NotFoundError"), ("op", "delete")))] == 1


def test_reads_and_failed_reads_are_counted(service: TaskService) -> None:
    service.add("Track reads")
    service.get(1)
    service.list_tasks()
    service.list_tasks("done")
    with pytest.raises(NotFoundError):
        service.get(9)
    with pytest.raises(ValidationError):
        service.list_tasks("later")

    metrics = get_metrics()
    assert metrics.value("task_ops", {"op": "get"}) == 1
    assert metrics.value("task_ops", {"op": "list"}) == 2
    assert metrics.value("task_errors", {"op": "get", "kind": "NotFoundError"}) == 1
    assert metrics.value("task_errors", {"op": "list", "kind": "ValidationError"}) == 1
