"""Pytest configuration and shared fixtures."""

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest  # type: ignore[import-not-found]

from logshift.core.storage import MemoryStorage, SQLiteStorage, Storage
from logshift.core.tracker import HourTracker


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")


@pytest.fixture(params=["memory", "sqlite"])  # type: ignore[misc]
def storage(request: pytest.FixtureRequest) -> Iterator[Storage]:
    """Each storage backend, empty."""
    if request.param == "memory":
        yield MemoryStorage()
    else:
        with tempfile.TemporaryDirectory() as tmpdir:
            yield SQLiteStorage(Path(tmpdir) / "logshift.db")


@pytest.fixture  # type: ignore[misc]
def tracker(storage: Storage) -> HourTracker:
    """Hour tracker over each storage backend."""
    return HourTracker(storage)
