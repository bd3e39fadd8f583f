"""Task assignment reminder rows and the plan that creates them."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field

FIRST_REMINDER_DELAY_MINUTES = 30
REMINDER_INTERVAL_MINUTES = 60
MAX_REMINDERS = 12


class TaskReminder(BaseModel):
    """Follow-up reminder state for one assignee of one task."""

    task_id: str
    user_id: str
    initial_notification_at: datetime
    next_reminder_at: Optional[datetime] = None
    last_reminder_sent_at: Optional[datetime] = None
    reminder_attempts: int = 0
    reminder_interval_minutes: int = REMINDER_INTERVAL_MINUTES
    max_reminders: int = MAX_REMINDERS
    completed_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime

    @property
    def key(self):
        return (self.task_id, self.user_id)

    @property
    def exhausted(self) -> bool:
        """True once the reminder cap is reached; a cap of 0 means unlimited."""
        return self.max_reminders > 0 and self.reminder_attempts >= self.max_reminders

    def is_due(self, now: datetime) -> bool:
        return (
            self.completed_at is None
            and self.next_reminder_at is not None
            and self.next_reminder_at <= now
        )


def build_reminder_plan(
    task_id: str,
    user_ids: Iterable[str],
    context: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> List[TaskReminder]:
    """One reminder row per distinct assignee.

    The assignment notification counts as the first send, so the first
    reminder is due 30 minutes later and then every 60 minutes, up to 12.
    """
    ids = list(dict.fromkeys(u for u in user_ids or [] if u))
    if not task_id or not ids:
        return []
    now = now or datetime.now(timezone.utc)
    metadata = {k: v for k, v in (context or {}).items() if v not in (None, "", [])}
    return [
        TaskReminder(
            task_id=task_id,
            user_id=user_id,
            initial_notification_at=now,
            next_reminder_at=now + timedelta(minutes=FIRST_REMINDER_DELAY_MINUTES),
            last_reminder_sent_at=now,
            metadata=dict(metadata),
            updated_at=now,
        )
        for user_id in ids
    ]
