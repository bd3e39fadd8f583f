"""Unit tests for the in-process event dispatcher."""

from unittest.mock import Mock

import pytest

from infrastructure.events import (
    Event,
    dispatch_background,
    dispatch_event,
    get_handlers_for_event,
    register_event_handler,
    shutdown_event_executor,
    start_event_executor,
)


@pytest.mark.unit
@pytest.mark.usefixtures("clean_event_handlers")
class TestRegisterEventHandler:
    def test_registers_handler(self):
        @register_event_handler("reminder.requested")
        def handler(event):
            return event.event_type

        assert get_handlers_for_event("reminder.requested") == [handler]

    def test_duplicate_registration_is_ignored(self):
        def handler(event):
            return None

        register_event_handler("reminder.requested")(handler)
        register_event_handler("reminder.requested")(handler)
        assert get_handlers_for_event("reminder.requested") == [handler]

    def test_unknown_event_type_has_no_handlers(self):
        assert get_handlers_for_event("nothing.here") == []


@pytest.mark.unit
@pytest.mark.usefixtures("clean_event_handlers")
class TestDispatchEvent:
    def test_calls_handlers_in_order(self):
        calls = []
        register_event_handler("task.assigned")(lambda e: calls.append("first") or 1)
        register_event_handler("task.assigned")(lambda e: calls.append("second") or 2)

        results = dispatch_event(Event(event_type="task.assigned"))

        assert calls == ["first", "second"]
        assert results == [1, 2]

    def test_failing_handler_does_not_stop_others(self):
        failing = Mock(side_effect=RuntimeError("boom"), __name__="failing")
        working = Mock(return_value="done", __name__="working")
        register_event_handler("task.assigned")(failing)
        register_event_handler("task.assigned")(working)

        results = dispatch_event(Event(event_type="task.assigned"))

        assert results == ["done"]
        working.assert_called_once()


@pytest.mark.unit
@pytest.mark.usefixtures("clean_event_handlers")
class TestDispatchBackground:
    def test_runs_handler_on_executor(self):
        received = []
        register_event_handler("reminder.requested")(received.append)
        start_event_executor()
        event = Event(event_type="reminder.requested", metadata={"task_id": "t-1"})

        future = dispatch_background(event)
        future.result(timeout=5)

        assert received == [event]

    def test_handler_error_is_not_raised_to_caller(self):
        register_event_handler("reminder.requested")(
            Mock(side_effect=ValueError("bad"), __name__="bad_handler")
        )
        start_event_executor()

        future = dispatch_background(Event(event_type="reminder.requested"))

        assert future.result(timeout=5) is None

    def test_dropped_after_shutdown(self):
        start_event_executor()
        shutdown_event_executor(wait=True)
        try:
            assert dispatch_background(Event(event_type="reminder.requested")) is None
        finally:
            start_event_executor()


@pytest.mark.unit
class TestEventModel:
    def test_to_dict_serializes_timestamp_and_id(self):
        event = Event(event_type="reminder.requested", source="tests", metadata={"a": 1})
        data = event.to_dict()
        assert data["timestamp"] == event.timestamp.isoformat()
        assert data["correlation_id"] == str(event.correlation_id)
        assert data["metadata"] == {"a": 1}
