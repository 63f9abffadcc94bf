"""CSV export of work entries."""

import csv
import logging
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from logshift.core.models import User, WorkEntry
from logshift.core.storage import StorageError
from logshift.export_import.base import Exporter

if TYPE_CHECKING:
    from logshift.core.tracker import HourTracker

logger = logging.getLogger(__name__)

CSV_HEADER = ["User", "Date", "Project", "HoursWorked", "Description"]
DEFAULT_FILENAME = "workentries.csv"


def default_export_path() -> Path:
    """Get the default export file (~/Documents/workentries.csv)."""
    return Path.home() / "Documents" / DEFAULT_FILENAME


class CSVExporter(Exporter):
    """Export work entries to a CSV file.

    One header row followed by one row per entry. Dates are ISO formatted
    and hours use Python's float formatting, so the file reads the same
    under any locale.
    """

    def get_file_extension(self) -> str:
        """Get CSV file extension.

        Returns:
            '.csv'
        """
        return ".csv"

    @staticmethod
    def entry_to_row(entry: WorkEntry) -> list[Any]:
        """Build the CSV row for one entry."""
        return [
            entry.username or entry.user_id,
            entry.date.isoformat(),
            entry.project_name or entry.project_id,
            str(float(entry.hours_worked)),
            entry.description,
        ]

    def export_entries(
        self,
        entries: list[WorkEntry],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        **kwargs: Any,
    ) -> int:
        """Write entries to the CSV file, replacing any existing file.

        The file is written under a temporary name and renamed into place,
        so a failed export leaves any earlier file untouched.

        Args:
            entries: List of entries to export
            start_date: Optional start date filter
            end_date: Optional end date filter
            **kwargs: Additional options
                - delimiter (str): Field delimiter (default: ',')

        Returns:
            Number of entries written

        Raises:
            OSError: If the file cannot be written
            csv.Error: If a row cannot be serialized
            UnicodeError: If a value cannot be encoded as UTF-8
        """
        self.ensure_output_path()

        filtered_entries = self.filter_entries(entries, start_date, end_date)
        temp_file = self.output_path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f, delimiter=kwargs.get("delimiter", ","))
                writer.writerow(CSV_HEADER)
                for entry in filtered_entries:
                    writer.writerow(self.entry_to_row(entry))

            temp_file.replace(self.output_path)

        except Exception:
            # Clean up temp file on error
            if temp_file.exists():
                temp_file.unlink()
            raise

        return len(filtered_entries)


def save_work_entries_to_csv(
    tracker: "HourTracker",
    user: User,
    output_path: Optional[Path] = None,
) -> bool:
    """Export all of a user's work entries to CSV.

    Args:
        tracker: Tracker to read entries from
        user: Stored user whose entries are exported
        output_path: Target file. Defaults to ~/Documents/workentries.csv

    Returns:
        True if the file was written (even with no entries), False otherwise
    """
    exporter = CSVExporter(output_path or default_export_path())

    try:
        entries = tracker.get_work_entries_by_user(user)
        count = exporter.export_entries(entries)
    except (OSError, csv.Error, UnicodeError, StorageError) as e:
        logger.error(f"Failed to export entries of {user.username} to {exporter.output_path}: {e}")
        return False

    logger.info(f"Exported {count} entries of {user.username} to {exporter.output_path}")
    return True
