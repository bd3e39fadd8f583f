"""Unit tests for due reminder processing."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from infrastructure.directory import DirectoryStore, InMemoryDirectory
from infrastructure.notifications import EventType, NotificationDispatcher
from infrastructure.operations import OperationResult
from modules.reminders import InMemoryReminderScheduler, ReminderProcessor
from modules.reminders.processor import reminder_payload
from tests.factories import make_contact
from tests.factories.notifications import NOW

DUE = NOW + timedelta(minutes=30)


@pytest.fixture
def scheduler():
    scheduler = InMemoryReminderScheduler(clock=lambda: NOW)
    scheduler.schedule(
        "t-1",
        ["u-alice"],
        {"task_title": "Audit", "assigned_by": "Dana", "assignee_names": ["Alice Brown"]},
    )
    return scheduler


@pytest.fixture
def dispatcher():
    mock = MagicMock(spec=NotificationDispatcher)
    mock.dispatch.return_value = True
    return mock


@pytest.fixture
def processor(scheduler, dispatcher, directory):
    return ReminderProcessor(scheduler, dispatcher, directory, clock=lambda: DUE)


@pytest.mark.unit
class TestProcessDueReminders:
    def test_sends_reminder_and_advances(self, processor, scheduler, dispatcher):
        result = processor.process_due_reminders()

        assert result.is_success
        assert result.data == 1
        event_type, user_ids, payload = dispatcher.dispatch.call_args.args
        assert event_type == EventType.TASK_ASSIGNED_REMINDER
        assert user_ids == ["u-alice"]
        assert payload["task_title"] == "Audit"
        assert payload["task_id"] == "t-1"
        assert payload["attempt"] == 1
        reminder = scheduler.get("t-1", "u-alice")
        assert reminder.reminder_attempts == 1
        assert reminder.last_reminder_sent_at == DUE
        assert reminder.next_reminder_at == DUE + timedelta(minutes=60)
        assert reminder.completed_at is None

    def test_nothing_due_yet(self, processor, dispatcher):
        result = processor.process_due_reminders(now=NOW + timedelta(minutes=10))
        assert result.data == 0
        dispatcher.dispatch.assert_not_called()

    def test_last_allowed_send_completes_reminder(self, processor, scheduler):
        reminder = scheduler.get("t-1", "u-alice")
        scheduler.save(reminder.model_copy(update={"reminder_attempts": 11}))

        assert processor.process_due_reminders().data == 1

        reminder = scheduler.get("t-1", "u-alice")
        assert reminder.reminder_attempts == 12
        assert reminder.completed_at == DUE
        assert reminder.next_reminder_at is None

    def test_exhausted_reminder_is_closed_without_sending(
        self, processor, scheduler, dispatcher
    ):
        reminder = scheduler.get("t-1", "u-alice")
        scheduler.save(reminder.model_copy(update={"reminder_attempts": 12}))

        assert processor.process_due_reminders().data == 0
        dispatcher.dispatch.assert_not_called()
        assert scheduler.get("t-1", "u-alice").completed_at == DUE

    def test_unlinked_assignee_is_closed(self, scheduler, dispatcher):
        directory = InMemoryDirectory([make_contact("u-alice", chat_id=None)])
        processor = ReminderProcessor(scheduler, dispatcher, directory, clock=lambda: DUE)

        assert processor.process_due_reminders().data == 0
        dispatcher.dispatch.assert_not_called()
        assert scheduler.get("t-1", "u-alice").completed_at == DUE

    def test_missing_contact_is_closed(self, scheduler, dispatcher):
        processor = ReminderProcessor(
            scheduler, dispatcher, InMemoryDirectory([]), clock=lambda: DUE
        )
        assert processor.process_due_reminders().data == 0
        assert scheduler.get("t-1", "u-alice").completed_at == DUE

    def test_login_after_assignment_stops_reminders(self, scheduler, dispatcher):
        directory = InMemoryDirectory(
            [
                make_contact(
                    "u-alice",
                    chat_id="1001",
                    chat_notifications_enabled=True,
                    last_login_at=NOW + timedelta(minutes=5),
                )
            ]
        )
        processor = ReminderProcessor(scheduler, dispatcher, directory, clock=lambda: DUE)

        assert processor.process_due_reminders().data == 0
        dispatcher.dispatch.assert_not_called()
        assert scheduler.get("t-1", "u-alice").completed_at == DUE

    def test_login_before_assignment_does_not_stop_reminders(self, scheduler, dispatcher):
        directory = InMemoryDirectory(
            [
                make_contact(
                    "u-alice",
                    chat_id="1001",
                    chat_notifications_enabled=True,
                    last_login_at=NOW - timedelta(days=1),
                )
            ]
        )
        processor = ReminderProcessor(scheduler, dispatcher, directory, clock=lambda: DUE)
        assert processor.process_due_reminders().data == 1

    def test_directory_outage_leaves_reminder_due(self, scheduler, dispatcher):
        store = MagicMock(spec=DirectoryStore)
        store.get_contact.return_value = OperationResult.transient_error("throttled")
        processor = ReminderProcessor(scheduler, dispatcher, store, clock=lambda: DUE)

        assert processor.process_due_reminders().data == 0
        reminder = scheduler.get("t-1", "u-alice")
        assert reminder.completed_at is None
        assert reminder.is_due(DUE)

    def test_failed_delivery_still_counts_attempt(self, processor, scheduler, dispatcher):
        dispatcher.dispatch.return_value = False

        assert processor.process_due_reminders().data == 1
        assert scheduler.get("t-1", "u-alice").reminder_attempts == 1

    def test_one_crash_does_not_stop_the_run(self, scheduler, dispatcher, directory):
        scheduler.schedule("t-2", ["u-bob"], {"task_title": "Review"})
        dispatcher.dispatch.side_effect = [RuntimeError("boom"), True]
        processor = ReminderProcessor(scheduler, dispatcher, directory, clock=lambda: DUE)

        assert processor.process_due_reminders().data == 1

    def test_load_failure_is_returned(self, dispatcher, directory):
        scheduler = MagicMock()
        scheduler.due.return_value = OperationResult.transient_error("down")
        processor = ReminderProcessor(scheduler, dispatcher, directory, clock=lambda: DUE)

        assert processor.process_due_reminders().is_success is False
        dispatcher.dispatch.assert_not_called()


@pytest.mark.unit
def test_reminder_payload_counts_next_attempt(scheduler):
    reminder = scheduler.get("t-1", "u-alice").model_copy(update={"reminder_attempts": 4})
    payload = reminder_payload(reminder)
    assert payload["attempt"] == 5
    assert payload["assignee_names"] == ["Alice Brown"]
