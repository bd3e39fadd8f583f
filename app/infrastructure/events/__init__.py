"""In-process event system.

A lightweight handler registry used to decouple side effects (such as
reminder scheduling) from notification dispatch.

Usage:

    from infrastructure.events import Event, register_event_handler

    @register_event_handler("reminder.requested")
    def handle_reminder_requested(event: Event) -> None:
        ...

    from infrastructure.events import dispatch_background
    dispatch_background(Event(event_type="reminder.requested", metadata={...}))
"""

from infrastructure.events.dispatcher import (
    clear_handlers,
    dispatch_background,
    dispatch_event,
    get_handlers_for_event,
    register_event_handler,
    shutdown_event_executor,
    start_event_executor,
)
from infrastructure.events.models import Event

__all__ = [
    "Event",
    "dispatch_event",
    "dispatch_background",
    "register_event_handler",
    "get_handlers_for_event",
    "clear_handlers",
    "start_event_executor",
    "shutdown_event_executor",
]
