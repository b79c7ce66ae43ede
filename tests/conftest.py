"""Shared fixtures for the reminder scheduling tests."""

import uuid
from datetime import datetime

import pytest

from src.reminder.clock import fixed_clock
from src.reminder.repository import SqliteOccurrenceStore
from src.reminder.store import InMemoryOccurrenceStore

from tests.helpers import NOW


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return fixed_clock(NOW)


@pytest.fixture
def employee_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def other_employee_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def sqlite_store(tmp_path) -> SqliteOccurrenceStore:
    return SqliteOccurrenceStore(str(tmp_path / "reminders.db"))


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Every store implementation must honour the same contract."""
    if request.param == "memory":
        return InMemoryOccurrenceStore()
    return SqliteOccurrenceStore(str(tmp_path / "reminders.db"))
