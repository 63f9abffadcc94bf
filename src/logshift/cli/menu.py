"""Interactive numbered menu."""

import math
from datetime import datetime
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from logshift.core.config import ConfigManager
from logshift.core.tracker import HourTracker, week_bounds
from logshift.export_import.csv_format import save_work_entries_to_csv

OPTIONS = """\
[1] Add new work entry
[2] Create new project
[3] Create new user
[4] Show working hours by user
[5] Show working hours by project
[6] Show working hours this week
[7] Help
[8] Export work entries to CSV
[0] Quit"""


def parse_hours(raw: str) -> Optional[float]:
    """Parse a non-negative, finite decimal hour value, or None if invalid."""
    try:
        hours = float(raw.strip())
    except ValueError:
        return None
    if hours < 0 or not math.isfinite(hours):
        return None
    return hours


def date_format_hint(date_format: str) -> str:
    """Describe a strptime format for prompts, e.g. %d.%m.%Y as DD.MM.YYYY."""
    for directive, placeholder in (("%Y", "YYYY"), ("%m", "MM"), ("%d", "DD")):
        date_format = date_format.replace(directive, placeholder)
    return date_format


def ask(message: str, allow_empty: bool = False) -> str:
    """Prompt for one line of text."""
    if allow_empty:
        return str(click.prompt(message, default="", show_default=False))
    return str(click.prompt(message))


class Menu:
    """Read numeric commands and run the matching tracker operation."""

    def __init__(self, tracker: HourTracker, config: ConfigManager, console: Console):
        self.tracker = tracker
        self.config = config
        self.console = console
        self.date_format: str = config.get("general.date_format", "%Y-%m-%d")
        precision = config.get("display.hours_precision", 2)
        self.hours_format = f"{{:.{precision}f}}"
        self.actions = {
            "1": self.create_work_entry,
            "2": self.create_project,
            "3": self.create_user,
            "4": self.show_hours_by_user,
            "5": self.show_hours_by_project,
            "6": self.show_hours_this_week,
            "7": self.show_help,
            "8": self.export_csv,
        }

    def error(self, message: str) -> None:
        self.console.print(f"[red]{message}[/red]")

    def success(self, message: str) -> None:
        self.console.print(f"[green]{message}[/green]")

    def run(self) -> None:
        """Loop until the user quits or input ends."""
        self.console.print(Panel("[bold yellow]LogShift[/bold yellow]", expand=False))
        self.show_help()

        while True:
            try:
                choice = ask("Input options ([7] help)", allow_empty=True).strip()
            except click.Abort:
                break

            if choice == "0":
                self.success("Goodbye!")
                return

            action = self.actions.get(choice)
            if action is None:
                self.error("Invalid input")
                continue

            try:
                action()
            except click.Abort:
                break

    def show_help(self) -> None:
        self.console.print(Panel(OPTIONS, expand=False))

    def create_work_entry(self) -> None:
        if not self.tracker.get_users() or not self.tracker.get_projects():
            self.error("Users or projects not found")
            return

        if self._add_work_entry():
            self.success("New entry successfully added")
        else:
            self.error("Failed to add new entry")

    def _add_work_entry(self) -> bool:
        username = ask("Enter username")
        user = self.tracker.get_user(username)
        if user is None:
            self.error("User not found")
            return False

        project_id = ask("Enter project id")
        project = self.tracker.get_project(project_id)
        if project is None:
            self.error("Project not found")
            return False

        raw_date = ask(f"Enter date ({date_format_hint(self.date_format)})")
        try:
            work_date = datetime.strptime(raw_date.strip(), self.date_format).date()
        except ValueError:
            self.error("Invalid date format")
            return False

        hours = parse_hours(ask("Enter hours worked"))
        if hours is None:
            self.error("Invalid hours worked")
            return False

        description = ask("Enter description of the work done", allow_empty=True)

        return bool(self.tracker.add_work_entry(user, work_date, project, hours, description))

    def create_project(self) -> None:
        project_id = ask("Give project id")
        name = ask("Give project name")

        if self.tracker.add_project(project_id, name):
            self.success(f"Project {escape(name)} created")
        else:
            self.error(f"Failed to create project {escape(name)} with id {escape(project_id)}")

    def create_user(self) -> None:
        username = ask("Give username")

        if self.tracker.add_user(username):
            self.success(f"User {escape(username)} created")
        else:
            self.error(f"Failed to create user {escape(username)}")

    def show_hours_by_user(self) -> None:
        username = ask("Enter username")
        user = self.tracker.get_user(username)
        if user is None:
            self.error("User not found")
            return

        total = self.tracker.get_total_hours_by_user(user)
        self.success(f"Total hours worked by {escape(username)}: {self.hours_format.format(total)}")

    def show_hours_by_project(self) -> None:
        project_id = ask("Enter project id")
        project = self.tracker.get_project(project_id)
        if project is None:
            self.error("Project not found")
            return

        total = self.tracker.get_total_hours_by_project(project)
        self.success(
            f"Total hours worked on {escape(project.name)}: {self.hours_format.format(total)}"
        )

    def show_hours_this_week(self) -> None:
        start, end = week_bounds(week_start=self.config.get("general.week_start", "monday"))
        total = self.tracker.get_total_hours_by_week(start, end)
        self.console.print(
            f"Total hours worked from {start.isoformat()} to {end.isoformat()}: "
            f"{self.hours_format.format(total)}"
        )

    def export_csv(self) -> None:
        username = ask("Enter username")
        user = self.tracker.get_user(username)
        if user is None:
            self.error("User not found")
            return

        output_path = self.config.export_path
        if save_work_entries_to_csv(self.tracker, user, output_path):
            self.success(f"Entries exported to {output_path}")
        else:
            self.error(f"Failed to export entries to {output_path}")


def run_menu(tracker: HourTracker, config: ConfigManager, console: Console) -> None:
    """Run the interactive menu until the user quits."""
    Menu(tracker, config, console).run()
