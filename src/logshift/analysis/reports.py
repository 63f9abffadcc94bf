"""Report generation for logged work hours."""

from collections import defaultdict
from typing import Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.markup import escape  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from logshift.core.models import WorkEntry


class ReportGenerator:
    """Render work entries and hour totals as rich tables."""

    def __init__(self, console: Optional[Console] = None, precision: int = 2):
        """Initialize report generator.

        Args:
            console: Rich console for output. Creates default if None.
            precision: Decimal places shown for hours
        """
        self.console = console or Console()
        self.precision = precision

    def format_hours(self, hours: float) -> str:
        """Format an hour total for display."""
        return f"{hours:.{self.precision}f}h"

    def entries_report(self, entries: list[WorkEntry], title: str = "Work Entries") -> None:
        """Display entries in a table with a total row.

        Args:
            entries: Entries with user and project resolved
            title: Table title
        """
        if not entries:
            self.console.print("[yellow]No work entries found[/yellow]")
            return

        table = Table(title=title)
        table.add_column("Date", style="cyan")
        table.add_column("User", style="bold")
        table.add_column("Project", style="blue")
        table.add_column("Hours", style="magenta", justify="right")
        table.add_column("Description")

        for entry in entries:
            description = entry.description
            table.add_row(
                entry.date.isoformat(),
                escape(entry.username),
                escape(entry.project_name),
                self.format_hours(entry.hours_worked),
                escape(description[:50] + "..." if len(description) > 50 else description),
            )

        total = sum((e.hours_worked for e in entries), 0.0)
        table.add_section()
        table.add_row("", "", "[bold]Total[/bold]", f"[bold]{self.format_hours(total)}[/bold]", "")

        self.console.print(table)

    def summary_report(self, entries: list[WorkEntry], period_label: str = "Summary") -> None:
        """Display hours broken down by project and by user.

        Args:
            entries: Entries with user and project resolved
            period_label: Label for the report period
        """
        if not entries:
            self.console.print("[yellow]No entries found for this period[/yellow]")
            return

        total_hours = sum((e.hours_worked for e in entries), 0.0)

        by_project: dict[str, float] = defaultdict(float)
        by_user: dict[str, float] = defaultdict(float)
        for entry in entries:
            by_project[entry.project_name or entry.project_id] += entry.hours_worked
            by_user[entry.username or str(entry.user_id)] += entry.hours_worked

        self.console.print(f"\n[bold cyan]LogShift - {escape(period_label)}[/bold cyan]\n")

        overview_table = Table(show_header=False, box=None, padding=(0, 2))
        overview_table.add_column(style="dim")
        overview_table.add_column(style="bold")
        overview_table.add_row("Total Hours:", self.format_hours(total_hours))
        overview_table.add_row("Entries:", str(len(entries)))
        overview_table.add_row("Users:", str(len(by_user)))
        overview_table.add_row("Projects:", str(len(by_project)))
        self.console.print(overview_table)
        self.console.print()

        for label, totals in (("Project", by_project), ("User", by_user)):
            table = Table(title=f"Hours by {label}")
            table.add_column(label, style="cyan")
            table.add_column("Hours", style="magenta", justify="right")
            table.add_column("% Total", style="green", justify="right")
            table.add_column("Bar", style="blue")

            for name, hours in sorted(totals.items(), key=lambda x: x[1], reverse=True):
                pct = (hours / total_hours) * 100 if total_hours > 0 else 0
                table.add_row(
                    escape(name),
                    self.format_hours(hours),
                    f"{pct:.1f}%",
                    self._create_bar(pct),
                )

            self.console.print(table)
            self.console.print()

    def _create_bar(self, percentage: float, width: int = 25) -> Text:
        """Create a visual bar for percentage display.

        Args:
            percentage: Percentage value (0-100)
            width: Width of the bar in characters

        Returns:
            Rich Text object with colored bar
        """
        filled = int((percentage / 100) * width)
        empty = width - filled

        bar = Text()
        bar.append("█" * filled, style="blue")
        bar.append("░" * empty, style="dim")

        return bar
