"""Main CLI application."""

import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from logshift import __version__
from logshift.analysis.reports import ReportGenerator
from logshift.cli.config_commands import config
from logshift.cli.menu import parse_hours, run_menu
from logshift.core.config import ConfigManager
from logshift.core.models import Project, User
from logshift.core.storage import MemoryStorage, SQLiteStorage, StorageError
from logshift.core.tracker import AddResult, HourTracker, week_bounds
from logshift.export_import.csv_format import save_work_entries_to_csv

console = Console()
error_console = Console(stderr=True)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

FAILURE_REASONS = {
    AddResult.DUPLICATE_KEY: "already exists",
    AddResult.MISSING_REFERENCE: "references an unknown user or project",
    AddResult.INVALID: "has an empty or too long value",
    AddResult.STORAGE_ERROR: "could not be stored",
}

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


class HoursType(click.ParamType):
    """Hours worked: a non-negative, finite number."""

    name = "hours"

    def convert(
        self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]
    ) -> float:
        hours = parse_hours(str(value))
        if hours is None:
            self.fail(f"{value!r} is not a valid number of hours", param, ctx)
        return hours


HOURS_TYPE = HoursType()


def setup_logging(log_path: Path, level_name: str) -> None:
    """Send package logs to a file.

    Replaces handlers from earlier calls so repeated invocations in one
    process don't duplicate log lines.
    """
    package_logger = logging.getLogger("logshift")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    level = getattr(logging, level_name, logging.WARNING)
    package_logger.setLevel(level)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as e:
        error_console.print(f"[yellow]Warning:[/yellow] Cannot write log file {log_path}: {e}")
        return

    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(file_handler)


def get_tracker(ctx: click.Context) -> HourTracker:
    """Get the HourTracker for this invocation, creating it on first use."""
    tracker: Optional[HourTracker] = ctx.obj.get("tracker")
    if tracker is not None:
        return tracker

    if ctx.obj.get("memory"):
        logger.debug("Using in-memory storage")
        tracker = HourTracker(MemoryStorage())
    else:
        logger.debug(f"Using database {ctx.obj['database_path']}")
        try:
            tracker = HourTracker(SQLiteStorage(ctx.obj["database_path"]))
        except StorageError as e:
            error_console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)

    ctx.obj["tracker"] = tracker
    ctx.call_on_close(tracker.close)
    return tracker


def get_reporter(ctx: click.Context) -> ReportGenerator:
    """Get a ReportGenerator using the configured hour precision."""
    config_mgr: ConfigManager = ctx.obj["config"]
    return ReportGenerator(console, precision=config_mgr.get("display.hours_precision", 2))


def require_user(tracker: HourTracker, username: str) -> User:
    """Look up a user or exit with an error."""
    try:
        user = tracker.get_user(username)
    except StorageError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)
    if user is None:
        error_console.print(f"[red]Error:[/red] User not found: {escape(username)}")
        sys.exit(1)
    return user


def require_project(tracker: HourTracker, project_id: str) -> Project:
    """Look up a project or exit with an error."""
    try:
        project = tracker.get_project(project_id)
    except StorageError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)
    if project is None:
        error_console.print(f"[red]Error:[/red] Project not found: {escape(project_id)}")
        sys.exit(1)
    return project


def report_add_result(result: AddResult, success: str, subject: str) -> None:
    """Print the outcome of an add operation, exiting with 1 on failure."""
    if result:
        console.print(f"[green]✓[/green] {success}")
        return

    error_console.print(f"[red]Error:[/red] {subject} {FAILURE_REASONS[result]}")
    sys.exit(1)


def as_date(value: Optional[datetime]) -> Optional[date]:
    """Convert a click DateTime value to a date."""
    return value.date() if value is not None else None


@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", help="Custom data directory", type=click.Path())
@click.option(
    "--config-file",
    envvar="LOGSHIFT_CONFIG",
    help="Configuration file (default ~/.logshift/config.yml)",
    type=click.Path(),
)
@click.option("--memory", is_flag=True, help="Keep data in memory only (nothing is saved)")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(
    ctx: click.Context,
    data_dir: Optional[str],
    config_file: Optional[str],
    memory: bool,
    no_color: bool,
) -> None:
    """LogShift - Log work hours per user and project.

    Record hours, total them by user, project or week, and export to CSV.
    """
    ctx.ensure_object(dict)

    try:
        config_mgr = ConfigManager(Path(config_file) if config_file else None)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    resolved_data_dir = Path(data_dir).expanduser() if data_dir else config_mgr.data_dir
    log_path = config_mgr.log_path
    if data_dir and not Path(config_mgr.get("advanced.log_file")).expanduser().is_absolute():
        log_path = resolved_data_dir / config_mgr.get("advanced.log_file")

    ctx.obj["config"] = config_mgr
    ctx.obj["memory"] = memory
    ctx.obj["database_path"] = resolved_data_dir / config_mgr.get("general.database")

    setup_logging(log_path, config_mgr.get("advanced.log_level", "WARNING"))

    if no_color:
        console.no_color = True
        error_console.no_color = True


cli.add_command(config)


# Users


@cli.command("add-user")
@click.argument("username")
@click.pass_context
def add_user(ctx: click.Context, username: str) -> None:
    """Create a new user.

    Example:
        logshift add-user alice
    """
    tracker = get_tracker(ctx)
    result = tracker.add_user(username)
    report_add_result(result, f"User {escape(username)} created", f"User {escape(username)}")


@cli.command()
@click.pass_context
def users(ctx: click.Context) -> None:
    """List all users."""
    tracker = get_tracker(ctx)
    all_users = tracker.get_users()

    if not all_users:
        console.print("[yellow]No users yet[/yellow]")
        console.print("\nCreate one with: [cyan]logshift add-user NAME[/cyan]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Username", style="bold")
    for user in all_users:
        table.add_row(str(user.id), escape(user.username))
    console.print(table)


# Projects


@cli.command("add-project")
@click.argument("project_id")
@click.argument("name")
@click.pass_context
def add_project(ctx: click.Context, project_id: str, name: str) -> None:
    """Create a new project.

    Both the project id and the name must be unique.

    Example:
        logshift add-project P1 Website
    """
    tracker = get_tracker(ctx)
    result = tracker.add_project(project_id, name)
    report_add_result(
        result,
        f"Project {escape(name)} created",
        f"Project {escape(name)} with id {escape(project_id)}",
    )


@cli.command()
@click.pass_context
def projects(ctx: click.Context) -> None:
    """List all projects."""
    tracker = get_tracker(ctx)
    all_projects = tracker.get_projects()

    if not all_projects:
        console.print("[yellow]No projects yet[/yellow]")
        console.print("\nCreate one with: [cyan]logshift add-project ID NAME[/cyan]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    for project in all_projects:
        table.add_row(escape(project.id), escape(project.name))
    console.print(table)


# Work entries


@cli.command()
@click.argument("username")
@click.argument("project_id")
@click.argument("hours", type=HOURS_TYPE)
@click.argument("description")
@click.option("-d", "--date", "work_date", type=DATE_TYPE, help="Day of the work (YYYY-MM-DD, default today)")
@click.pass_context
def log(
    ctx: click.Context,
    username: str,
    project_id: str,
    hours: float,
    description: str,
    work_date: Optional[datetime],
) -> None:
    """Log hours worked by a user on a project.

    Example:
        logshift log alice P1 4 "Landing page design" -d 2024-01-10
    """
    tracker = get_tracker(ctx)
    user = require_user(tracker, username)
    project = require_project(tracker, project_id)
    day = as_date(work_date) or date.today()

    result = tracker.add_work_entry(user, day, project, hours, description)
    report_add_result(
        result,
        f"Logged {hours:g}h for {escape(user.username)} on {escape(project.name)} ({day.isoformat()})",
        "Work entry",
    )


@cli.command()
@click.option("-u", "--user", "username", help="Only entries of this user")
@click.option("-p", "--project", "project_id", help="Only entries of this project")
@click.option("--from", "from_date", type=DATE_TYPE, help="First day (YYYY-MM-DD)")
@click.option("--to", "to_date", type=DATE_TYPE, help="Last day (YYYY-MM-DD)")
@click.pass_context
def entries(
    ctx: click.Context,
    username: Optional[str],
    project_id: Optional[str],
    from_date: Optional[datetime],
    to_date: Optional[datetime],
) -> None:
    """List work entries.

    Examples:
        logshift entries --user alice
        logshift entries --project P1 --from 2024-01-01
    """
    tracker = get_tracker(ctx)
    start, end = as_date(from_date), as_date(to_date)
    title = "Work Entries"

    if username:
        user = require_user(tracker, username)
        found = tracker.get_work_entries_by_user(user)
        title = f"Work Entries of {user.username}"
        if project_id:
            found = [e for e in found if e.project_id == project_id]
    elif project_id:
        project = require_project(tracker, project_id)
        found = tracker.get_work_entries_by_project(project)
        title = f"Work Entries on {project.name}"
    else:
        found = tracker.get_work_entries(start, end)

    if start:
        found = [e for e in found if e.date >= start]
    if end:
        found = [e for e in found if e.date <= end]

    get_reporter(ctx).entries_report(found, escape(title))


# Hour totals


@cli.group()
def hours() -> None:
    """Show total hours by user, project or week."""
    pass


@hours.command("user")
@click.argument("username")
@click.pass_context
def hours_user(ctx: click.Context, username: str) -> None:
    """Total hours worked by a user.

    Example:
        logshift hours user alice
    """
    tracker = get_tracker(ctx)
    user = require_user(tracker, username)
    total = tracker.get_total_hours_by_user(user)
    console.print(
        f"Total hours worked by {escape(user.username)}: "
        f"[green]{get_reporter(ctx).format_hours(total)}[/green]"
    )


@hours.command("project")
@click.argument("project_id")
@click.pass_context
def hours_project(ctx: click.Context, project_id: str) -> None:
    """Total hours worked on a project.

    Example:
        logshift hours project P1
    """
    tracker = get_tracker(ctx)
    project = require_project(tracker, project_id)
    total = tracker.get_total_hours_by_project(project)
    console.print(
        f"Total hours worked on {escape(project.name)}: "
        f"[green]{get_reporter(ctx).format_hours(total)}[/green]"
    )


@hours.command("week")
@click.option("--from", "from_date", type=DATE_TYPE, help="First day (YYYY-MM-DD)")
@click.option("--to", "to_date", type=DATE_TYPE, help="Last day (YYYY-MM-DD)")
@click.pass_context
def hours_week(
    ctx: click.Context,
    from_date: Optional[datetime],
    to_date: Optional[datetime],
) -> None:
    """Total hours of all users in a date range (default: this week).

    Examples:
        logshift hours week
        logshift hours week --from 2024-01-08 --to 2024-01-14
    """
    tracker = get_tracker(ctx)
    config_mgr: ConfigManager = ctx.obj["config"]

    week_start, week_end = week_bounds(week_start=config_mgr.get("general.week_start", "monday"))
    start = as_date(from_date) or week_start
    end = as_date(to_date) or week_end

    if end < start:
        error_console.print("[red]Error:[/red] --to must not be before --from")
        sys.exit(1)

    total = tracker.get_total_hours_by_week(start, end)
    console.print(
        f"Total hours worked from {start.isoformat()} to {end.isoformat()}: "
        f"[green]{get_reporter(ctx).format_hours(total)}[/green]"
    )


@cli.command()
@click.option("--from", "from_date", type=DATE_TYPE, help="First day (YYYY-MM-DD)")
@click.option("--to", "to_date", type=DATE_TYPE, help="Last day (YYYY-MM-DD)")
@click.pass_context
def summary(ctx: click.Context, from_date: Optional[datetime], to_date: Optional[datetime]) -> None:
    """Summarize hours by project and user.

    Example:
        logshift summary --from 2024-01-01 --to 2024-01-31
    """
    tracker = get_tracker(ctx)
    start, end = as_date(from_date), as_date(to_date)

    if start and end:
        label = f"{start.isoformat()} to {end.isoformat()}"
    elif start:
        label = f"From {start.isoformat()}"
    elif end:
        label = f"Up to {end.isoformat()}"
    else:
        label = "All Time"

    get_reporter(ctx).summary_report(tracker.get_work_entries(start, end), label)


# Export


@cli.command()
@click.argument("username")
@click.option("-o", "--output", type=click.Path(), help="Output CSV file (default from config)")
@click.pass_context
def export(ctx: click.Context, username: str, output: Optional[str]) -> None:
    """Export a user's work entries to CSV.

    The file is overwritten if it exists.

    Example:
        logshift export alice -o ~/alice.csv
    """
    tracker = get_tracker(ctx)
    config_mgr: ConfigManager = ctx.obj["config"]
    user = require_user(tracker, username)
    output_path = Path(output).expanduser() if output else config_mgr.export_path

    if save_work_entries_to_csv(tracker, user, output_path):
        console.print(f"[green]✓[/green] Exported entries of {escape(user.username)} to {output_path}")
    else:
        error_console.print(f"[red]Error:[/red] Could not write {output_path}")
        sys.exit(1)


# Interactive menu


@cli.command()
@click.pass_context
def menu(ctx: click.Context) -> None:
    """Run the interactive numbered menu.

    Example:
        logshift menu
    """
    tracker = get_tracker(ctx)
    run_menu(tracker, ctx.obj["config"], console)


if __name__ == "__main__":
    cli(obj={})
