"""Base class for export functionality."""

from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Any, Optional

from logshift.core.models import WorkEntry


class Exporter(ABC):
    """Base class for all exporters."""

    def __init__(self, output_path: Path):
        """Initialize exporter.

        Args:
            output_path: Path where exported data will be written
        """
        self.output_path = Path(output_path)

    @abstractmethod
    def export_entries(
        self,
        entries: list[WorkEntry],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        **kwargs: Any,
    ) -> int:
        """Export entries to the output format.

        Args:
            entries: List of entries to export
            start_date: Optional start date filter
            end_date: Optional end date filter
            **kwargs: Format-specific options

        Returns:
            Number of entries written
        """
        pass

    @abstractmethod
    def get_file_extension(self) -> str:
        """Get the file extension for this format (e.g., '.csv').

        Returns:
            File extension including the dot
        """
        pass

    def ensure_output_path(self) -> None:
        """Ensure the output path's parent directory exists."""
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def filter_entries(
        self,
        entries: list[WorkEntry],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[WorkEntry]:
        """Filter entries by date range.

        Args:
            entries: List of entries to filter
            start_date: Start of date range (inclusive)
            end_date: End of date range (inclusive)

        Returns:
            Filtered list of entries
        """
        filtered = entries

        if start_date:
            filtered = [e for e in filtered if e.date >= start_date]

        if end_date:
            filtered = [e for e in filtered if e.date <= end_date]

        return filtered
