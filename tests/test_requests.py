"""Tests for the reminder creation payload."""

import uuid

import pytest

from src.reminder.errors import InvalidReminder
from src.reminder.models import RecurrenceFrequency
from src.reminder.requests import CreateReminderRequest, create_reminder

from tests.helpers import utc


def payload(**overrides):
    body = {
        'text': "Send weekly report",
        'employee_id': "3fa85f64-5717-4562-b3fc-2c963f66afa6",
        'date': "2024-01-31T09:00:00Z",
        'is_recurring': True,
        'recurrence_interval': 1,
        'recurrence_frequency': 3,
    }
    body.update(overrides)
    return body


class TestCreateReminderRequest:

    def test_recurring_payload(self):
        reminder = CreateReminderRequest.from_payload(payload()).to_reminder()

        assert reminder.employee_id == uuid.UUID("3fa85f64-5717-4562-b3fc-2c963f66afa6")
        assert reminder.timestamp == utc(2024, 1, 31, 9)
        assert reminder.is_recurring is True
        assert reminder.recurrence_interval == 1
        assert reminder.recurrence_frequency is RecurrenceFrequency.MONTH

    def test_one_off_drops_recurrence_fields(self):
        reminder = CreateReminderRequest.from_payload(
            payload(is_recurring=False, recurrence_interval=None, recurrence_frequency=None)
        ).to_reminder()

        assert reminder.is_recurring is False
        assert reminder.recurrence_interval is None
        assert reminder.recurrence_frequency is None

    def test_offset_date_normalized(self):
        reminder = CreateReminderRequest.from_payload(
            payload(date="2024-01-31T10:00:00+01:00")
        ).to_reminder()

        assert reminder.timestamp == utc(2024, 1, 31, 9)

    @pytest.mark.parametrize("overrides", [
        {'date': "yesterday"},
        {'date': "2024-01-31T09:00:00"},
        {'recurrence_frequency': 5},
        {'recurrence_frequency': None},
        {'recurrence_interval': 0},
        {'recurrence_interval': None},
        {'is_recurring': False},
        {'is_recurring': False, 'recurrence_interval': None},
        {'is_recurring': False, 'recurrence_frequency': None},
    ])
    def test_invalid_values(self, overrides):
        request = CreateReminderRequest.from_payload(payload(**overrides))

        with pytest.raises(InvalidReminder):
            request.to_reminder()

    @pytest.mark.parametrize("overrides", [
        {'text': ""},
        {'employee_id': "not-a-uuid"},
        {'is_recurring': "yes"},
    ])
    def test_invalid_fields(self, overrides):
        with pytest.raises(InvalidReminder):
            CreateReminderRequest.from_payload(payload(**overrides))

    def test_missing_fields(self):
        body = payload()
        del body['date']

        with pytest.raises(InvalidReminder, match="date"):
            CreateReminderRequest.from_payload(body)


def test_create_reminder_stores(store):
    reminder = create_reminder(store, payload())

    assert store.select_reminder_by_id(reminder.id) == reminder
