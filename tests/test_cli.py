"""Tests for CLI commands."""

import csv
import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest  # type: ignore[import-not-found]
from click.testing import CliRunner, Result  # type: ignore[import-not-found]

from logshift import __version__
from logshift.cli.main import cli

pytestmark = pytest.mark.integration


@pytest.fixture  # type: ignore[misc]
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture  # type: ignore[misc]
def temp_dir() -> Iterator[Path]:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def run(runner: CliRunner, temp_dir: Path, *args: str, input: str = "") -> Result:
    """Invoke the CLI against a throwaway data dir and config file."""
    return runner.invoke(
        cli,
        ["--data-dir", str(temp_dir), "--config-file", str(temp_dir / "config.yml"), *args],
        input=input,
    )


@pytest.fixture  # type: ignore[misc]
def seeded(runner: CliRunner, temp_dir: Path) -> Path:
    """Data dir holding alice, bob and project P1 with two entries."""
    assert run(runner, temp_dir, "add-user", "alice").exit_code == 0
    assert run(runner, temp_dir, "add-user", "bob").exit_code == 0
    assert run(runner, temp_dir, "add-project", "P1", "Website").exit_code == 0
    assert run(runner, temp_dir, "log", "alice", "P1", "2.5", "design", "-d", "2024-01-10").exit_code == 0
    assert run(runner, temp_dir, "log", "bob", "P1", "3.25", "review", "-d", "2024-01-14").exit_code == 0
    return temp_dir


class TestGeneral:
    """Test global options."""

    def test_version(self, runner: CliRunner) -> None:
        """Test --version flag."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner: CliRunner) -> None:
        """Test --help flag."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "LogShift" in result.output

    def test_creates_database_and_log(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that the data dir receives the database and log file."""
        run(runner, temp_dir, "users")

        assert (temp_dir / "logshift.db").exists()
        assert (temp_dir / "logshift.log").exists()
        assert (temp_dir / "config.yml").exists()

    def test_yaml_syntax_error_in_config(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that an unparsable config aborts with an error instead of a traceback."""
        (temp_dir / "config.yml").write_text("general: [unclosed\n")

        result = run(runner, temp_dir, "users")

        assert result.exit_code == 1
        assert "Config validation failed" in result.output

    def test_data_dir_is_a_file(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that an unusable data directory exits with an error."""
        blocker = temp_dir / "blocker"
        blocker.write_text("")

        result = runner.invoke(
            cli,
            ["--data-dir", str(blocker), "--config-file", str(temp_dir / "config.yml"), "users"],
        )

        assert result.exit_code == 1
        assert "Cannot create data directory" in result.output
        assert not isinstance(result.exception, OSError)

    def test_invalid_config_file(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that a broken config aborts with an error."""
        (temp_dir / "config.yml").write_text("version: '1.0'\ngeneral:\n  week_start: friday\n")

        result = run(runner, temp_dir, "users")

        assert result.exit_code == 1
        assert "Error" in result.output


class TestUserCommands:
    """Test user commands."""

    def test_add_user(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test creating a user."""
        result = run(runner, temp_dir, "add-user", "alice")

        assert result.exit_code == 0
        assert "User alice created" in result.output

    def test_add_duplicate_user(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that a duplicate username fails with a reason."""
        run(runner, temp_dir, "add-user", "alice")

        result = run(runner, temp_dir, "add-user", "alice")

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_add_too_long_username(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that validation failures are reported."""
        result = run(runner, temp_dir, "add-user", "x" * 51)

        assert result.exit_code == 1
        assert "too long" in result.output

    def test_list_users(self, runner: CliRunner, seeded: Path) -> None:
        """Test listing users."""
        result = run(runner, seeded, "users")

        assert result.exit_code == 0
        assert "alice" in result.output
        assert "bob" in result.output

    def test_list_users_empty(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test listing users when none exist."""
        result = run(runner, temp_dir, "users")

        assert result.exit_code == 0
        assert "No users yet" in result.output


class TestProjectCommands:
    """Test project commands."""

    def test_add_project(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test creating a project."""
        result = run(runner, temp_dir, "add-project", "P1", "Website")

        assert result.exit_code == 0
        assert "Project Website created" in result.output

    def test_duplicate_project_name(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that a duplicate name with a new id fails."""
        run(runner, temp_dir, "add-project", "P1", "Website")

        result = run(runner, temp_dir, "add-project", "P2", "Website")

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_list_projects(self, runner: CliRunner, seeded: Path) -> None:
        """Test listing projects."""
        result = run(runner, seeded, "projects")

        assert result.exit_code == 0
        assert "P1" in result.output
        assert "Website" in result.output


class TestLogCommand:
    """Test logging hours."""

    def test_log_hours(self, runner: CliRunner, seeded: Path) -> None:
        """Test logging an entry."""
        result = run(runner, seeded, "log", "alice", "P1", "4", "testing", "-d", "2024-01-11")

        assert result.exit_code == 0
        assert "Logged 4h for alice on Website (2024-01-11)" in result.output

    def test_log_unknown_user(self, runner: CliRunner, seeded: Path) -> None:
        """Test logging for a missing user."""
        result = run(runner, seeded, "log", "carol", "P1", "1", "x")

        assert result.exit_code == 1
        assert "User not found" in result.output

    def test_log_unknown_project(self, runner: CliRunner, seeded: Path) -> None:
        """Test logging on a missing project."""
        result = run(runner, seeded, "log", "alice", "P9", "1", "x")

        assert result.exit_code == 1
        assert "Project not found" in result.output

    def test_log_negative_hours(self, runner: CliRunner, seeded: Path) -> None:
        """Test that negative hours are rejected by the command line."""
        result = run(runner, seeded, "log", "alice", "P1", "--", "-1", "x")

        assert result.exit_code == 2

    @pytest.mark.parametrize("hours", ["nan", "inf", "-inf", "abc"])  # type: ignore[misc]
    def test_log_non_finite_hours(self, runner: CliRunner, seeded: Path, hours: str) -> None:
        """Test that hours must be a finite number."""
        result = run(runner, seeded, "log", "alice", "P1", "--", hours, "x")

        assert result.exit_code == 2
        assert "not a valid number of hours" in result.output
        assert "2.50h" in run(runner, seeded, "hours", "user", "alice").output

    def test_log_bad_date(self, runner: CliRunner, seeded: Path) -> None:
        """Test that malformed dates are rejected."""
        result = run(runner, seeded, "log", "alice", "P1", "1", "x", "-d", "10/01/2024")

        assert result.exit_code == 2


class TestHoursCommands:
    """Test hour totals."""

    def test_hours_by_user(self, runner: CliRunner, seeded: Path) -> None:
        """Test user total."""
        result = run(runner, seeded, "hours", "user", "alice")

        assert result.exit_code == 0
        assert "Total hours worked by alice: 2.50h" in result.output

    def test_hours_by_project(self, runner: CliRunner, seeded: Path) -> None:
        """Test project total."""
        result = run(runner, seeded, "hours", "project", "P1")

        assert result.exit_code == 0
        assert "Total hours worked on Website: 5.75h" in result.output

    def test_hours_by_week_range(self, runner: CliRunner, seeded: Path) -> None:
        """Test range total with inclusive bounds."""
        result = run(runner, seeded, "hours", "week", "--from", "2024-01-10", "--to", "2024-01-14")

        assert result.exit_code == 0
        assert "5.75h" in result.output

    def test_hours_by_week_excludes_outside(self, runner: CliRunner, seeded: Path) -> None:
        """Test range total that leaves out later entries."""
        result = run(runner, seeded, "hours", "week", "--from", "2024-01-08", "--to", "2024-01-13")

        assert result.exit_code == 0
        assert "2.50h" in result.output

    def test_hours_week_reversed_range(self, runner: CliRunner, seeded: Path) -> None:
        """Test that an end before the start is rejected."""
        result = run(runner, seeded, "hours", "week", "--from", "2024-01-14", "--to", "2024-01-08")

        assert result.exit_code == 1

    def test_hours_unknown_user(self, runner: CliRunner, seeded: Path) -> None:
        """Test totals for a missing user."""
        result = run(runner, seeded, "hours", "user", "nobody")

        assert result.exit_code == 1
        assert "User not found" in result.output


class TestEntriesAndSummary:
    """Test listing and summary reports."""

    def test_entries_by_user(self, runner: CliRunner, seeded: Path) -> None:
        """Test that entries show the resolved project name."""
        result = run(runner, seeded, "entries", "--user", "alice")

        assert result.exit_code == 0
        assert "Website" in result.output
        assert "design" in result.output
        assert "review" not in result.output

    def test_entries_by_project(self, runner: CliRunner, seeded: Path) -> None:
        """Test that project entries show usernames."""
        result = run(runner, seeded, "entries", "--project", "P1")

        assert result.exit_code == 0
        assert "alice" in result.output
        assert "bob" in result.output

    def test_entries_date_range(self, runner: CliRunner, seeded: Path) -> None:
        """Test listing a date range."""
        result = run(runner, seeded, "entries", "--from", "2024-01-12")

        assert result.exit_code == 0
        assert "review" in result.output
        assert "design" not in result.output

    def test_summary(self, runner: CliRunner, seeded: Path) -> None:
        """Test summary report."""
        result = run(runner, seeded, "summary")

        assert result.exit_code == 0
        assert "All Time" in result.output
        assert "5.75h" in result.output


class TestExportCommand:
    """Test CSV export."""

    def test_export_to_path(self, runner: CliRunner, seeded: Path) -> None:
        """Test exporting to an explicit file."""
        output = seeded / "alice.csv"

        result = run(runner, seeded, "export", "alice", "-o", str(output))

        assert result.exit_code == 0
        with open(output, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows == [
            ["User", "Date", "Project", "HoursWorked", "Description"],
            ["alice", "2024-01-10", "Website", "2.5", "design"],
        ]

    def test_export_to_configured_path(self, runner: CliRunner, seeded: Path) -> None:
        """Test exporting to the configured directory."""
        export_dir = seeded / "exports"
        assert run(runner, seeded, "config", "set", "export.directory", str(export_dir)).exit_code == 0

        result = run(runner, seeded, "export", "bob")

        assert result.exit_code == 0
        assert (export_dir / "workentries.csv").exists()

    def test_export_failure(self, runner: CliRunner, seeded: Path) -> None:
        """Test that an unwritable path exits with an error."""
        blocker = seeded / "blocker"
        blocker.write_text("")

        result = run(runner, seeded, "export", "alice", "-o", str(blocker / "alice.csv"))

        assert result.exit_code == 1
        assert "Could not write" in result.output


class TestMemoryMode:
    """Test the --memory flag."""

    def test_memory_mode_does_not_persist(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that data added in memory is gone next time."""
        args = ["--data-dir", str(temp_dir), "--config-file", str(temp_dir / "config.yml"), "--memory"]
        assert runner.invoke(cli, [*args, "add-user", "alice"]).exit_code == 0

        result = runner.invoke(cli, [*args, "users"])

        assert "No users yet" in result.output
        assert not (temp_dir / "logshift.db").exists()


class TestConfigCommands:
    """Test config sub-commands."""

    def test_config_get(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test reading a value."""
        result = run(runner, temp_dir, "config", "get", "general.week_start")

        assert result.exit_code == 0
        assert result.output.strip() == "monday"

    def test_config_get_missing(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test reading an unknown key."""
        result = run(runner, temp_dir, "config", "get", "no.such.key")

        assert result.exit_code == 1

    def test_config_set(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test writing an integer value."""
        result = run(runner, temp_dir, "config", "set", "display.hours_precision", "1")

        assert result.exit_code == 0
        assert run(runner, temp_dir, "config", "get", "display.hours_precision").output.strip() == "1"

    def test_config_set_invalid(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test that invalid values are refused."""
        result = run(runner, temp_dir, "config", "set", "general.week_start", "friday")

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_config_reset(self, runner: CliRunner, temp_dir: Path) -> None:
        """Test resetting configuration."""
        run(runner, temp_dir, "config", "set", "general.week_start", "sunday")

        result = run(runner, temp_dir, "config", "reset", "--yes")

        assert result.exit_code == 0
        assert run(runner, temp_dir, "config", "get", "general.week_start").output.strip() == "monday"

    def test_precision_applies_to_totals(self, runner: CliRunner, seeded: Path) -> None:
        """Test that display precision changes hour formatting."""
        run(runner, seeded, "config", "set", "display.hours_precision", "1")

        result = run(runner, seeded, "hours", "user", "alice")

        assert "2.5h" in result.output
