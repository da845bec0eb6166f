from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import NoReturn

from .config import TrackerConfig, load_config
from .errors import TaskTrackerError, UsageError
from .models import Task
from .observability import get_json_logger, get_metrics
from .service import TaskService
from .store import JsonTaskStore

_ID_RE = re.compile(r"\d+")

logger = get_json_logger("tasktracker.cli")

EXAMPLES = """\
examples:
  task-cli add "Buy milk"
  task-cli update 1 "Buy almond milk"
  task-cli mark-in-progress 1
  task-cli mark-done 1
  task-cli list
  task-cli list done

A description starting with "-" goes after "--":
  task-cli add -- "-v flag is ignored"
"""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors as exceptions.

    Every failure, including command-line mistakes, has to leave with exit
    code 1, so argparse's own exit(2) is replaced by a `UsageError`.
    """

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def _parse_id(raw: str) -> int:
    if not _ID_RE.fullmatch(raw):
        raise argparse.ArgumentTypeError(f"Invalid id: {raw}")
    return int(raw)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        "task-cli",
        description="Track tasks in a local JSON file.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--file",
        type=Path,
        help="Storage file (default: $TASK_TRACKER_FILE or ./tasks.json)",
    )
    sub = parser.add_subparsers(dest="cmd")

    p_add = sub.add_parser("add", help="Add a task")
    p_add.add_argument("description")

    p_update = sub.add_parser("update", help="Replace a task's description")
    p_update.add_argument("id", type=_parse_id)
    p_update.add_argument("description")

    p_delete = sub.add_parser("delete", help="Delete a task")
    p_delete.add_argument("id", type=_parse_id)

    p_progress = sub.add_parser("mark-in-progress", help="Mark a task as in progress")
    p_progress.add_argument("id", type=_parse_id)

    p_done = sub.add_parser("mark-done", help="Mark a task as done")
    p_done.add_argument("id", type=_parse_id)

    p_list = sub.add_parser("list", help="List tasks, optionally by status")
    p_list.add_argument("status", nargs="?", help="done, todo or in-progress")

    sub.add_parser("help", help="Show this help")
    return parser


def build_service(config: TrackerConfig) -> TaskService:
    """Composition root: one JSON store injected into one service."""
    return TaskService(JsonTaskStore(config.tasks_file))


def _format_task(task: Task) -> str:
    return f"[{task.status}] #{task.id} {task.description}"


def _dispatch(service: TaskService, args: argparse.Namespace) -> list[str]:
    cmd = args.cmd
    if cmd == "add":
        task = service.add(args.description)
        return [f"Task added successfully (ID: {task.id})."]
    if cmd == "update":
        task = service.update(args.id, args.description)
        return [f"Task updated successfully (ID: {task.id})."]
    if cmd == "delete":
        service.delete(args.id)
        return [f"Task deleted successfully (ID: {args.id})."]
    if cmd in ("mark-in-progress", "mark-done"):
        status = "done" if cmd == "mark-done" else "in_progress"
        task = service.mark_status(args.id, status)
        return [f"Task marked as {status} (ID: {task.id})."]
    if cmd == "list":
        tasks = service.list_tasks(args.status)
        if not tasks:
            return ["No tasks found."]
        return [_format_task(t) for t in tasks]
    raise UsageError(f"Unknown command: {cmd}")


def _fail(err: TaskTrackerError) -> int:
    logger.debug("command failed", extra={"event": "cli_error"}, exc_info=err)
    sys.stderr.write(f"Error: {err}\n")
    return 1


def run(argv: list[str] | None = None) -> int:
    """Execute one command and return the process exit code."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse exits on its own after printing -h/--help
        return e.code if isinstance(e.code, int) else 0
    except UsageError as e:
        return _fail(e)
    if args.cmd in (None, "help"):
        parser.print_help()
        return 0

    try:
        config = load_config()
        if args.file is not None:
            config.tasks_file = args.file
        lines = _dispatch(build_service(config), args)
    except TaskTrackerError as e:
        code = _fail(e)
    else:
        for line in lines:
            sys.stdout.write(line + "\n")
        code = 0
    logger.debug(
        "command completed",
        extra={
            "event": "cli_completed",
            "metadata": {
                "cmd": args.cmd,
                "exit_code": code,
                "metrics": get_metrics().summary(),
            },
        },
    )
    return code


def main(argv: list[str] | None = None) -> None:
    raise SystemExit(run(argv))


if __name__ == "__main__":
    main()
