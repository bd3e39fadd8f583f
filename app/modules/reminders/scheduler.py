"""Reminder scheduling collaborator."""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult
from modules.reminders.models import TaskReminder, build_reminder_plan

logger = get_module_logger()


class ReminderScheduler(ABC):
    """Persists follow-up reminders for task assignees."""

    @abstractmethod
    def schedule(
        self,
        task_id: str,
        user_ids: List[str],
        context: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        """Create or reset the reminders of ``user_ids`` for ``task_id``.

        Returns:
            OperationResult whose data is the number of rows written
        """

    @abstractmethod
    def due(self, now: datetime) -> OperationResult:
        """Reminders whose next send time has passed and are not completed.

        Returns:
            OperationResult whose data is a list of TaskReminder, oldest first
        """

    @abstractmethod
    def save(self, reminder: TaskReminder) -> OperationResult:
        """Store the new state of an existing reminder."""


class InMemoryReminderScheduler(ReminderScheduler):
    """Keeps reminders in a dict keyed by (task_id, user_id)."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.Lock()
        self._reminders: Dict[Tuple[str, str], TaskReminder] = {}

    @property
    def reminders(self) -> List[TaskReminder]:
        with self._lock:
            return list(self._reminders.values())

    def get(self, task_id: str, user_id: str) -> Optional[TaskReminder]:
        with self._lock:
            return self._reminders.get((task_id, user_id))

    def schedule(
        self,
        task_id: str,
        user_ids: List[str],
        context: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        plan = build_reminder_plan(task_id, user_ids, context, now=self.clock())
        if not plan:
            return OperationResult.success(data=0, message="Nothing to schedule")
        with self._lock:
            for reminder in plan:
                self._reminders[reminder.key] = reminder
        logger.info("task_reminders_scheduled", task_id=task_id, count=len(plan))
        return OperationResult.success(data=len(plan), message="Reminders scheduled")

    def due(self, now: datetime) -> OperationResult:
        with self._lock:
            rows = [r.model_copy() for r in self._reminders.values() if r.is_due(now)]
        rows.sort(key=lambda r: r.next_reminder_at)
        return OperationResult.success(data=rows)

    def save(self, reminder: TaskReminder) -> OperationResult:
        with self._lock:
            if reminder.key not in self._reminders:
                return OperationResult.not_found(
                    f"No reminder for task {reminder.task_id} and user {reminder.user_id}"
                )
            self._reminders[reminder.key] = reminder.model_copy()
        return OperationResult.success(data=reminder)
