"""Export functionality for LogShift."""

from logshift.export_import.base import Exporter
from logshift.export_import.csv_format import CSVExporter, save_work_entries_to_csv

__all__ = [
    "Exporter",
    "CSVExporter",
    "save_work_entries_to_csv",
]
