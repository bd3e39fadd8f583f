"""Event consumers for reminder scheduling.

Importing this module registers the ``reminder.requested`` handler.
"""

from infrastructure.events import Event, register_event_handler
from infrastructure.logging import get_module_logger
from infrastructure.notifications.dispatcher import REMINDER_REQUESTED_EVENT
from infrastructure.operations import OperationResult
from modules.reminders.scheduler import ReminderScheduler

logger = get_module_logger()


def schedule_from_event(scheduler: ReminderScheduler, event: Event) -> OperationResult:
    """Schedule the reminders described by a ``reminder.requested`` event."""
    metadata = event.metadata or {}
    task_id = metadata.get("task_id")
    user_ids = metadata.get("user_ids") or []
    context = metadata.get("context") or {}

    if not task_id or not user_ids:
        logger.debug(
            "reminder_request_skipped",
            correlation_id=str(event.correlation_id),
            reason="missing task id or assignees",
        )
        return OperationResult.success(data=0, message="Nothing to schedule")

    try:
        result = scheduler.schedule(task_id, list(user_ids), context)
    except Exception as e:
        logger.error(
            "task_reminder_schedule_failed",
            task_id=task_id,
            correlation_id=str(event.correlation_id),
            error=str(e),
            exc_info=True,
        )
        return OperationResult.transient_error(
            f"Reminder scheduling raised: {str(e)}", error_code="SCHEDULER_ERROR"
        )

    if result.is_success:
        logger.info(
            "task_reminder_schedule_completed",
            task_id=task_id,
            scheduled=result.data,
            correlation_id=str(event.correlation_id),
        )
    else:
        logger.warning(
            "task_reminder_schedule_failed",
            task_id=task_id,
            correlation_id=str(event.correlation_id),
            error=result.message,
            error_code=result.error_code,
        )
    return result


@register_event_handler(REMINDER_REQUESTED_EVENT)
def handle_reminder_requested(event: Event) -> OperationResult:
    from infrastructure.services.providers import get_reminder_scheduler

    return schedule_from_event(get_reminder_scheduler(), event)
