"""CLI entrypoint for refinery."""

from pathlib import Path

import rich_click as click

from refinery import __version__
from refinery.dispatch.controllers import (
    RefineCliController,
    RefineCommand,
    TaskListCommand,
    TaskLogCommand,
)
from refinery.dispatch.models import DispatchStatus

click.rich_click.USE_MARKDOWN = True
REFINE_CONTROLLER = RefineCliController()
_TASK_HELP_FLAG = "--help"


@click.group()
@click.version_option(version=__version__, prog_name="refinery")
def refinery() -> None:
    """Task runner CLI."""


@refinery.command(
    "refine",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--task-help",
    is_flag=True,
    default=False,
    help="Call the task's help command instead of the requested one.",
)
@click.argument("task", required=False, default="")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def refine(db_path: Path | None, task_help: bool, task: str, args: tuple[str, ...]) -> None:
    """Run TASK given as `[module::]task[:method]`; ARGS are passed to the method."""

    trailing_help = bool(args) and args[-1] == _TASK_HELP_FLAG
    result = REFINE_CONTROLLER.refine(
        RefineCommand(
            db_path=db_path,
            task=task,
            args=args[:-1] if trailing_help else args,
            task_help=task_help or trailing_help,
        ),
    )
    if result.status == DispatchStatus.UNRESOLVED:
        raise click.ClickException("\n".join(result.lines))
    _emit_lines(result.lines)


refinery.add_command(refine, name="r")


@refinery.command("tasks")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def tasks(db_path: Path | None) -> None:
    """List available tasks and their commands."""

    _emit_lines(REFINE_CONTROLLER.list_tasks(TaskListCommand(db_path=db_path)))


@refinery.command("log")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--task", default=None, help="Only show entries for this task.")
@click.option(
    "--status",
    type=click.Choice(["running", "ok", "error"], case_sensitive=False),
    default=None,
    help="Optional status filter.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=500),
    default=20,
    show_default=True,
    help="Max entries to print.",
)
def task_log(db_path: Path | None, task: str | None, status: str | None, limit: int) -> None:
    """Show recent task log entries, newest first."""

    _emit_lines(
        REFINE_CONTROLLER.task_log(
            TaskLogCommand(
                db_path=db_path,
                task=task,
                status=status.lower() if status is not None else None,
                limit=limit,
            ),
        ),
    )


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    refinery()
