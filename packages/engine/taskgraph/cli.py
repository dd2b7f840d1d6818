"""
Command-line entry point.

Loads settings, configures logging, and runs one task or dependency command
against the configured database.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from typing import Optional, Sequence

import structlog

from taskgraph.core.config import Settings, get_settings
from taskgraph.core.database import create_engine, create_session_factory, init_db
from taskgraph.core.errors import DependencyError, StorageFailure
from taskgraph.core.logging import configure_logging
from taskgraph.services.facade import DependencyFacade
from taskgraph.services.tasks import TaskStore
from taskgraph_shared.schemas.common import DependencyErrorCode
from taskgraph_shared.schemas.tasks import DependencyInfo, TaskCreate

EXIT_REJECTED = 2


def _uuid(raw: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a task id: {raw!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskgraph", description="Task dependency graph engine")
    parser.add_argument("--database-url", help="Override TASKGRAPH_DATABASE_URL")
    sub = parser.add_subparsers(dest="group", required=True)

    task = sub.add_parser("task", help="Manage tasks")
    task_sub = task.add_subparsers(dest="command", required=True)
    add = task_sub.add_parser("add", help="Create a task")
    add.add_argument("title")
    add.add_argument("--description")
    add.add_argument("--user", dest="created_by")
    task_sub.add_parser("list", help="List tasks")
    for name in ("complete", "reopen", "delete"):
        cmd = task_sub.add_parser(name, help=f"{name.capitalize()} a task")
        cmd.add_argument("task_id", type=_uuid)

    dep = sub.add_parser("dep", help="Manage dependencies")
    dep_sub = dep.add_subparsers(dest="command", required=True)
    for name in ("add", "check"):
        cmd = dep_sub.add_parser(name, help=f"{name.capitalize()} 'DEPENDENT depends on BLOCKER'")
        cmd.add_argument("dependent_task_id", type=_uuid)
        cmd.add_argument("blocking_task_id", type=_uuid)
        if name == "add":
            cmd.add_argument("--user", dest="created_by")
    remove = dep_sub.add_parser("remove", help="Remove a dependency by id")
    remove.add_argument("dependency_id", type=_uuid)
    info = dep_sub.add_parser("info", help="Show blocking state of a task")
    info.add_argument("task_id", type=_uuid)
    dep_sub.add_parser("list", help="List all dependencies")
    return parser


def _print_info(info: DependencyInfo) -> None:
    print(f"blocked: {'yes' if info.is_blocked else 'no'}")
    if info.dependency_status is not None:
        print(f"status: {info.dependency_status.value}")
    for t in info.blocked_by:
        print(f"  blocked by {t.id}  {t.title} [{t.status.value}]")
    for t in info.blocks:
        print(f"  blocks     {t.id}  {t.title} [{t.status.value}]")


async def _report_rejection(facade: DependencyFacade, error: DependencyError) -> int:
    message = error.message
    if error.code == DependencyErrorCode.CIRCULAR and error.path:
        message = f"{message}: {await facade.format_cycle_path(list(error.path))}"
    print(f"Rejected: {message}", file=sys.stderr)
    return EXIT_REJECTED


async def execute(args: argparse.Namespace, settings: Settings) -> int:
    engine = create_engine(settings)
    try:
        await init_db(engine)
        factory = create_session_factory(engine)
        tasks = TaskStore(factory)
        facade = DependencyFacade(factory, max_dependencies=settings.max_dependencies_per_task)
        facade.attach(tasks)

        if args.group == "task":
            if args.command == "add":
                task = await tasks.create_task(
                    TaskCreate(title=args.title, description=args.description, created_by=args.created_by)
                )
                print(task.id)
            elif args.command == "list":
                dep_map = await facade.get_dependency_map()
                for t in await tasks.get_all_tasks():
                    marker = "blocked" if dep_map[t.id].is_blocked else ""
                    print(f"{t.id}  {t.status:<11}  {marker:<7}  {t.title}")
            elif args.command in ("complete", "reopen"):
                action = tasks.complete_task if args.command == "complete" else tasks.reopen_task
                if await action(args.task_id) is None:
                    print(f"Task not found: {args.task_id}", file=sys.stderr)
                    return 1
            elif args.command == "delete":
                if not await tasks.delete_task(args.task_id):
                    print(f"Task not found: {args.task_id}", file=sys.stderr)
                    return 1
            return 0

        if args.command == "add":
            result = await facade.add_dependency(
                args.dependent_task_id, args.blocking_task_id, args.created_by
            )
            if isinstance(result, DependencyError):
                return await _report_rejection(facade, result)
            print(result.id)
        elif args.command == "check":
            check = await facade.can_add_dependency(args.dependent_task_id, args.blocking_task_id)
            if check.valid:
                print("ok")
            else:
                message = check.message
                if check.cycle_path:
                    titles = [t.title for t in check.cycle_path] + [check.cycle_path[0].title]
                    message = f"{message}: {' → '.join(titles)}"
                print(f"Rejected: {message}", file=sys.stderr)
                return EXIT_REJECTED
        elif args.command == "remove":
            await facade.remove_dependency(args.dependency_id)
        elif args.command == "info":
            _print_info(await facade.get_dependency_info(args.task_id))
        elif args.command == "list":
            for d in await facade.list_dependencies():
                print(f"{d.id}  {d.dependent_task_id} -> {d.blocking_task_id}")
        return 0
    finally:
        await engine.dispose()


def run(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.database_url:
        settings = settings.model_copy(update={"database_url": args.database_url})

    configure_logging(settings.log_level, settings.log_format)
    log = structlog.get_logger()
    log.debug("taskgraph.config_loaded", database_url=settings.database_url)

    try:
        code = asyncio.run(execute(args, settings))
    except StorageFailure as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    run()
