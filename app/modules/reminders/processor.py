"""Sends the follow-up chat reminders that have fallen due.

A reminder is closed without sending when its assignee can no longer be
reached on chat, has logged in since the last send, or has used up the
reminder cap. Otherwise the ``task_assigned_reminder`` chat message goes
out and the row advances by its interval.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from infrastructure.directory import ContactRecord, DirectoryStore
from infrastructure.logging import get_module_logger
from infrastructure.notifications import EventType, NotificationDispatcher
from infrastructure.operations import OperationResult, OperationStatus
from modules.reminders.models import TaskReminder
from modules.reminders.scheduler import ReminderScheduler

logger = get_module_logger()


def _seen_since_last_send(contact: ContactRecord, reminder: TaskReminder) -> bool:
    if contact.last_login_at is None:
        return False
    marks = [
        mark
        for mark in (reminder.initial_notification_at, reminder.last_reminder_sent_at)
        if mark is not None
    ]
    return any(contact.last_login_at > mark for mark in marks)


def reminder_payload(reminder: TaskReminder) -> Dict[str, Any]:
    """Chat payload for the next send of ``reminder``."""
    payload = dict(reminder.metadata)
    payload["task_id"] = reminder.task_id
    payload["attempt"] = reminder.reminder_attempts + 1
    return payload


class ReminderProcessor:
    """Works through due reminders one assignee at a time."""

    def __init__(
        self,
        scheduler: ReminderScheduler,
        dispatcher: NotificationDispatcher,
        directory: DirectoryStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.scheduler = scheduler
        self.dispatcher = dispatcher
        self.directory = directory
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def process_due_reminders(self, now: Optional[datetime] = None) -> OperationResult:
        """Send every due reminder.

        Returns:
            SUCCESS with ``data`` the number of reminders sent, or the
            scheduler's failure when due reminders could not be loaded.
        """
        now = now or self.clock()
        due = self.scheduler.due(now)
        if not due.is_success:
            logger.error(
                "reminder_fetch_failed",
                error=due.message,
                error_code=due.error_code,
            )
            return due

        processed = 0
        for reminder in due.data or []:
            try:
                if self._process_one(reminder, now):
                    processed += 1
            except Exception as e:
                logger.error(
                    "reminder_processing_failed",
                    task_id=reminder.task_id,
                    user_id=reminder.user_id,
                    error=str(e),
                    exc_info=True,
                )

        logger.info("due_reminders_processed", due=len(due.data or []), processed=processed)
        return OperationResult.success(data=processed, message="Reminders processed")

    def _process_one(self, reminder: TaskReminder, now: datetime) -> bool:
        lookup = self.directory.get_contact(reminder.user_id)
        if lookup.status == OperationStatus.NOT_FOUND:
            self._complete(reminder, now, reason="contact missing")
            return False
        if not lookup.is_success:
            # Left due for the next run
            logger.warning(
                "reminder_contact_lookup_failed",
                task_id=reminder.task_id,
                user_id=reminder.user_id,
                error=lookup.message,
            )
            return False

        contact: ContactRecord = lookup.data
        if not contact.chat_deliverable:
            self._complete(reminder, now, reason="chat not linked")
            return False
        if _seen_since_last_send(contact, reminder):
            self._complete(reminder, now, reason="assignee logged in")
            return False
        if reminder.exhausted:
            self._complete(reminder, now, reason="reminder cap reached")
            return False

        delivered = self.dispatcher.dispatch(
            EventType.TASK_ASSIGNED_REMINDER,
            [reminder.user_id],
            reminder_payload(reminder),
        )
        if not delivered:
            logger.warning(
                "reminder_delivery_failed",
                task_id=reminder.task_id,
                user_id=reminder.user_id,
                attempt=reminder.reminder_attempts + 1,
            )

        attempts = reminder.reminder_attempts + 1
        changes: Dict[str, Any] = {
            "reminder_attempts": attempts,
            "last_reminder_sent_at": now,
            "updated_at": now,
        }
        if reminder.max_reminders > 0 and attempts >= reminder.max_reminders:
            changes["completed_at"] = now
            changes["next_reminder_at"] = None
        else:
            changes["next_reminder_at"] = now + timedelta(
                minutes=reminder.reminder_interval_minutes
            )
        self._save(reminder.model_copy(update=changes))
        return True

    def _complete(self, reminder: TaskReminder, now: datetime, reason: str) -> None:
        logger.info(
            "reminder_completed",
            task_id=reminder.task_id,
            user_id=reminder.user_id,
            reason=reason,
        )
        self._save(reminder.model_copy(update={"completed_at": now, "updated_at": now}))

    def _save(self, reminder: TaskReminder) -> None:
        result = self.scheduler.save(reminder)
        if not result.is_success:
            logger.warning(
                "reminder_update_failed",
                task_id=reminder.task_id,
                user_id=reminder.user_id,
                error=result.message,
            )
