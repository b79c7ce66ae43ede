"""Tests for due occurrence computation and materialization."""

import logging

import pytest

from src.reminder.clock import fixed_clock
from src.reminder.errors import StorageUnavailable
from src.reminder.models import RecurrenceFrequency
from src.reminder.scanner import DueOccurrenceScanner
from src.reminder.store import InMemoryOccurrenceStore

from tests.helpers import NOW, one_off, recurring, utc


@pytest.fixture
def scanner(store, clock):
    return DueOccurrenceScanner(store, clock)


class TestCompute:

    def test_recurring_without_occurrence_uses_base(self, store, scanner, employee_id):
        reminder = store.insert_reminder(recurring(employee_id, utc(2024, 3, 1, 9)))

        assert scanner.compute_next_occurrence_timestamps() == {reminder.id: utc(2024, 3, 1, 9)}

    def test_future_reminder_not_due(self, store, scanner, employee_id):
        store.insert_reminder(recurring(employee_id, utc(2024, 3, 16)))
        store.insert_reminder(one_off(employee_id, utc(2024, 4, 1)))

        assert scanner.compute_next_occurrence_timestamps() == {}

    def test_base_exactly_now_is_due(self, store, scanner, employee_id):
        reminder = store.insert_reminder(one_off(employee_id, NOW))

        assert scanner.compute_next_occurrence_timestamps() == {reminder.id: NOW}

    def test_recurring_advances_from_last_occurrence(self, store, scanner, employee_id):
        reminder = store.insert_reminder(
            recurring(employee_id, utc(2024, 1, 31), frequency=RecurrenceFrequency.MONTH)
        )
        store.insert_occurrence(reminder.id, utc(2024, 1, 31))

        assert scanner.compute_next_occurrence_timestamps() == {reminder.id: utc(2024, 2, 29)}

    def test_recurring_next_in_future_not_due(self, store, scanner, employee_id):
        reminder = store.insert_reminder(
            recurring(employee_id, utc(2024, 3, 1), frequency=RecurrenceFrequency.WEEK, interval=2)
        )
        store.insert_occurrence(reminder.id, utc(2024, 3, 8))

        assert scanner.compute_next_occurrence_timestamps() == {}

    def test_one_off_fires_once(self, store, scanner, employee_id):
        reminder = store.insert_reminder(one_off(employee_id, utc(2024, 3, 1)))

        assert scanner.compute_next_occurrence_timestamps() == {reminder.id: utc(2024, 3, 1)}

        scanner.scan()

        assert scanner.compute_next_occurrence_timestamps() == {}
        assert scanner.scan() == []

    def test_idempotent_without_writes(self, store, scanner, employee_id):
        daily = store.insert_reminder(recurring(employee_id, utc(2024, 3, 1)))
        store.insert_reminder(one_off(employee_id, utc(2024, 3, 10)))
        store.insert_occurrence(daily.id, utc(2024, 3, 12))

        first = scanner.compute_next_occurrence_timestamps()
        second = scanner.compute_next_occurrence_timestamps()

        assert first == second
        assert len(first) == 2

    def test_invalid_recurrence_skipped_and_scan_continues(self, store, scanner, employee_id, caplog):
        bad_frequency = store.insert_reminder(recurring(employee_id, utc(2024, 3, 1), frequency=9))
        bad_interval = store.insert_reminder(recurring(employee_id, utc(2024, 3, 1), interval=0))
        good = store.insert_reminder(recurring(employee_id, utc(2024, 3, 1)))
        for reminder in (bad_frequency, bad_interval, good):
            store.insert_occurrence(reminder.id, utc(2024, 3, 1))

        with caplog.at_level(logging.WARNING):
            due = scanner.compute_next_occurrence_timestamps()

        assert due == {good.id: utc(2024, 3, 2)}
        assert str(bad_frequency.id) in caplog.text
        assert str(bad_interval.id) in caplog.text

    def test_storage_failure_propagates(self, clock):
        class BrokenStore(InMemoryOccurrenceStore):
            def select_reminders_with_last_occurrence(self, recurring_only=False):
                raise StorageUnavailable("database is locked")

        with pytest.raises(StorageUnavailable):
            DueOccurrenceScanner(BrokenStore(), clock).compute_next_occurrence_timestamps()


class TestMaterialize:

    def test_creates_occurrence_per_entry(self, store, scanner, employee_id):
        daily = store.insert_reminder(recurring(employee_id, utc(2024, 3, 1)))
        single = store.insert_reminder(one_off(employee_id, utc(2024, 3, 5)))

        created = scanner.materialize(scanner.compute_next_occurrence_timestamps())

        assert {(o.reminder.id, o.timestamp) for o in created} == {
            (daily.id, utc(2024, 3, 1)),
            (single.id, utc(2024, 3, 5)),
        }

    def test_retry_after_success_advances(self, store, scanner, employee_id):
        daily = store.insert_reminder(recurring(employee_id, utc(2024, 3, 1)))
        due = scanner.compute_next_occurrence_timestamps()
        scanner.materialize(due)

        assert scanner.compute_next_occurrence_timestamps() == {daily.id: utc(2024, 3, 2)}

    def test_concurrent_replicas_do_not_duplicate(self, store, clock, employee_id):
        daily = store.insert_reminder(recurring(employee_id, utc(2024, 3, 1)))
        first = DueOccurrenceScanner(store, clock)
        second = DueOccurrenceScanner(store, clock)

        due_first = first.compute_next_occurrence_timestamps()
        due_second = second.compute_next_occurrence_timestamps()
        created_first = first.materialize(due_first)
        created_second = second.materialize(due_second)

        assert len(created_first) == 1
        assert created_second == []
        assert len(store.select_occurrences_before(utc(2025, 1, 1))) == 1
        assert store.select_occurrences_before(utc(2025, 1, 1))[0].reminder.id == daily.id

    def test_catches_up_one_occurrence_per_scan(self, store, employee_id):
        daily = store.insert_reminder(recurring(employee_id, utc(2024, 3, 1)))
        scanner = DueOccurrenceScanner(store, fixed_clock(utc(2024, 3, 3, 12)))

        stamps = [o.timestamp for _ in range(4) for o in scanner.scan()]

        assert stamps == [utc(2024, 3, 1), utc(2024, 3, 2), utc(2024, 3, 3)]
        assert scanner.compute_next_occurrence_timestamps() == {}
        assert [o.reminder.id for o in store.select_occurrences_before(utc(2025, 1, 1))] == [daily.id] * 3

    def test_occurrences_never_precede_base(self, store, scanner, employee_id):
        for frequency in RecurrenceFrequency:
            store.insert_reminder(recurring(employee_id, utc(2023, 1, 31), frequency=frequency))

        for _ in range(3):
            scanner.scan()

        for occurrence in store.select_occurrences_before(utc(2030, 1, 1)):
            assert occurrence.timestamp >= occurrence.reminder.timestamp
