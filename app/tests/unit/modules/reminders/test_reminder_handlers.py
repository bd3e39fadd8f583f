"""Unit tests for the reminder.requested event consumer."""

from unittest.mock import MagicMock, patch

import pytest

from infrastructure.events import Event, dispatch_event, get_handlers_for_event
from infrastructure.notifications import REMINDER_REQUESTED_EVENT
from infrastructure.operations import OperationResult, OperationStatus
from modules.reminders import InMemoryReminderScheduler, ReminderScheduler
from modules.reminders.handlers import handle_reminder_requested, schedule_from_event
from tests.factories.notifications import NOW


def _event(**metadata):
    return Event(event_type=REMINDER_REQUESTED_EVENT, metadata=metadata)


@pytest.mark.unit
class TestScheduleFromEvent:
    def test_schedules_each_assignee(self):
        scheduler = InMemoryReminderScheduler(clock=lambda: NOW)

        result = schedule_from_event(
            scheduler,
            _event(
                task_id="t-1",
                user_ids=["u-1", "u-2"],
                context={"task_title": "Audit", "assignee_names": ["A", "B"]},
            ),
        )

        assert result.data == 2
        assert scheduler.get("t-1", "u-2").metadata["assignee_names"] == ["A", "B"]

    @pytest.mark.parametrize(
        "metadata", [{}, {"task_id": "t-1"}, {"user_ids": ["u-1"]}, {"task_id": "", "user_ids": ["u"]}]
    )
    def test_incomplete_event_is_skipped(self, metadata):
        scheduler = MagicMock(spec=ReminderScheduler)
        result = schedule_from_event(scheduler, _event(**metadata))
        assert result.is_success
        assert result.data == 0
        scheduler.schedule.assert_not_called()

    def test_scheduler_exception_is_reported(self):
        scheduler = MagicMock(spec=ReminderScheduler)
        scheduler.schedule.side_effect = RuntimeError("table missing")

        result = schedule_from_event(scheduler, _event(task_id="t-1", user_ids=["u-1"]))

        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "SCHEDULER_ERROR"

    def test_scheduler_failure_is_passed_through(self):
        scheduler = MagicMock(spec=ReminderScheduler)
        scheduler.schedule.return_value = OperationResult.permanent_error("bad row")
        result = schedule_from_event(scheduler, _event(task_id="t-1", user_ids=["u-1"]))
        assert result.status == OperationStatus.PERMANENT_ERROR


@pytest.mark.unit
class TestHandlerRegistration:
    def test_handler_is_registered(self):
        assert handle_reminder_requested in get_handlers_for_event(REMINDER_REQUESTED_EVENT)

    def test_dispatch_uses_provided_scheduler(self):
        scheduler = InMemoryReminderScheduler(clock=lambda: NOW)
        with patch(
            "infrastructure.services.providers.get_reminder_scheduler",
            return_value=scheduler,
        ):
            dispatch_event(_event(task_id="t-9", user_ids=["u-1"]))

        assert scheduler.get("t-9", "u-1") is not None
