"""Tests for CSV export."""

import csv
import tempfile
from collections.abc import Iterator
from datetime import date
from pathlib import Path

import pytest  # type: ignore[import-not-found]

from logshift.core.models import WorkEntry
from logshift.core.storage import MemoryStorage
from logshift.core.tracker import HourTracker
from logshift.export_import import CSVExporter, save_work_entries_to_csv
from logshift.export_import.csv_format import CSV_HEADER, default_export_path


@pytest.fixture  # type: ignore[misc]
def temp_dir() -> Iterator[Path]:
    """Create temporary directory for exports."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture  # type: ignore[misc]
def tracker() -> HourTracker:
    """Tracker with two users, one project and three entries."""
    tracker = HourTracker(MemoryStorage())
    tracker.add_user("alice")
    tracker.add_user("bob")
    tracker.add_project("P1", "Website")

    alice = tracker.get_user("alice")
    bob = tracker.get_user("bob")
    website = tracker.get_project("P1")
    assert alice is not None and bob is not None and website is not None

    tracker.add_work_entry(alice, date(2024, 1, 10), website, 4.0, "design")
    tracker.add_work_entry(alice, date(2024, 1, 11), website, 2.5, "build, test")
    tracker.add_work_entry(bob, date(2024, 1, 11), website, 1.0, "review")
    return tracker


def read_rows(path: Path) -> list[list[str]]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestSaveWorkEntriesToCsv:
    """Test exporting one user's entries."""

    def test_export_rows(self, tracker: HourTracker, temp_dir: Path) -> None:
        """Test that one row is written per entry after the header."""
        alice = tracker.get_user("alice")
        assert alice is not None
        output = temp_dir / "workentries.csv"

        assert save_work_entries_to_csv(tracker, alice, output) is True

        rows = read_rows(output)
        assert rows[0] == CSV_HEADER
        assert rows[1:] == [
            ["alice", "2024-01-10", "Website", "4.0", "design"],
            ["alice", "2024-01-11", "Website", "2.5", "build, test"],
        ]

    def test_row_count_matches_entries(self, tracker: HourTracker, temp_dir: Path) -> None:
        """Test that the file holds the user's entries plus a header."""
        bob = tracker.get_user("bob")
        assert bob is not None
        output = temp_dir / "bob.csv"

        save_work_entries_to_csv(tracker, bob, output)

        assert len(read_rows(output)) == len(tracker.get_work_entries_by_user(bob)) + 1

    def test_user_without_entries_writes_header(self, tracker: HourTracker, temp_dir: Path) -> None:
        """Test that an empty export still succeeds."""
        tracker.add_user("carol")
        carol = tracker.get_user("carol")
        assert carol is not None
        output = temp_dir / "carol.csv"

        assert save_work_entries_to_csv(tracker, carol, output) is True
        assert read_rows(output) == [CSV_HEADER]

    def test_overwrites_existing_file(self, tracker: HourTracker, temp_dir: Path) -> None:
        """Test that exporting replaces earlier content."""
        output = temp_dir / "workentries.csv"
        output.write_text("old content\nmore old content\nand more\nand more\n", encoding="utf-8")
        bob = tracker.get_user("bob")
        assert bob is not None

        save_work_entries_to_csv(tracker, bob, output)

        rows = read_rows(output)
        assert len(rows) == 2
        assert rows[1][0] == "bob"

    def test_creates_missing_directory(self, tracker: HourTracker, temp_dir: Path) -> None:
        """Test that the output directory is created."""
        alice = tracker.get_user("alice")
        assert alice is not None
        output = temp_dir / "exports" / "2024" / "alice.csv"

        assert save_work_entries_to_csv(tracker, alice, output) is True
        assert output.exists()

    def test_unwritable_path_returns_false(self, tracker: HourTracker, temp_dir: Path) -> None:
        """Test that a write failure is reported as False."""
        blocker = temp_dir / "not-a-directory"
        blocker.write_text("", encoding="utf-8")
        alice = tracker.get_user("alice")
        assert alice is not None

        assert save_work_entries_to_csv(tracker, alice, blocker / "alice.csv") is False

    def test_unencodable_description_returns_false(
        self, tracker: HourTracker, temp_dir: Path
    ) -> None:
        """Test that an encoding failure is reported as False and keeps the old file."""
        alice = tracker.get_user("alice")
        assert alice is not None and alice.id is not None
        tracker.storage.insert_work_entry(
            WorkEntry(alice.id, date(2024, 1, 12), "P1", 1.0, "bad\udcff")
        )
        output = temp_dir / "workentries.csv"
        output.write_text("previous export\n", encoding="utf-8")

        assert save_work_entries_to_csv(tracker, alice, output) is False
        assert output.read_text(encoding="utf-8") == "previous export\n"
        assert list(temp_dir.iterdir()) == [output]

    def test_default_path(self) -> None:
        """Test the default export location."""
        path = default_export_path()
        assert path.name == "workentries.csv"
        assert path.parent.name == "Documents"


class TestCSVExporter:
    """Test the exporter class directly."""

    def test_file_extension(self, temp_dir: Path) -> None:
        """Test CSV extension."""
        assert CSVExporter(temp_dir / "out.csv").get_file_extension() == ".csv"

    def test_date_filter(self, tracker: HourTracker, temp_dir: Path) -> None:
        """Test exporting a date range only."""
        output = temp_dir / "out.csv"
        exporter = CSVExporter(output)

        count = exporter.export_entries(
            tracker.get_work_entries(), start_date=date(2024, 1, 11), end_date=date(2024, 1, 11)
        )

        assert count == 2
        assert [row[1] for row in read_rows(output)[1:]] == ["2024-01-11", "2024-01-11"]

    def test_unresolved_entry_falls_back_to_keys(self, temp_dir: Path) -> None:
        """Test rows for entries without resolved relations."""
        entry = WorkEntry(
            user_id=1, date=date(2024, 1, 10), project_id="P1", hours_worked=1.0, description="x"
        )

        assert CSVExporter.entry_to_row(entry) == [1, "2024-01-10", "P1", "1.0", "x"]

