"""Notification dispatcher: business events to mail and chat deliveries.

For each call the dispatcher:
- resolves mail addresses and chat ids (concurrently)
- renders one message per channel that has recipients and a template
- sends both channels concurrently (chat fans out in bounded batches)
- appends one delivery log entry per attempted channel
- reports success when any channel reached at least one recipient

Usage Example:
    from infrastructure.notifications import EventType, NotificationDispatcher

    dispatcher = NotificationDispatcher(
        resolver=ContactResolver(directory),
        email_channel=EmailChannel(settings.smtp),
        chat_channel=ChatChannel(settings.telegram),
        directory=directory,
    )

    delivered = dispatcher.dispatch(
        EventType.TASK_ASSIGNED,
        ["user-1", "user-2"],
        {"taskId": "t-9", "taskTitle": "Quarterly audit", "assignedBy": "Dana"},
    )
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import structlog

from infrastructure.directory import DeliveryLogEntry, DirectoryStore
from infrastructure.events import Event, dispatch_background
from infrastructure.notifications.channels.chat import ChatChannel
from infrastructure.notifications.channels.email import EmailChannel
from infrastructure.notifications.models import (
    EventType,
    FanOutResult,
    NotificationPayload,
    TaskAssignedPayload,
    parse_payload,
)
from infrastructure.notifications.resolver import ContactResolver
from infrastructure.notifications.templates import TemplateRegistry

logger = structlog.get_logger()

REMINDER_REQUESTED_EVENT = "reminder.requested"


def _event_name(event_type: Any) -> str:
    parsed = EventType.parse(event_type)
    return parsed.value if parsed else str(event_type)


class NotificationDispatcher:
    """Dispatch facade over the resolver, templates and both channels.

    No public method raises: unexpected exceptions are logged and reported
    as ``False``.

    Attributes:
        resolver: Contact resolver for user ids and roles
        email_channel: SMTP transport
        chat_channel: Telegram transport
        directory: Store receiving delivery log entries
        templates: Template registry
        reminder_emitter: Callable receiving the ``reminder.requested`` event
            after a task assignment (default: background event dispatch)
        chat_batch_size: Chat fan-out width
    """

    def __init__(
        self,
        resolver: ContactResolver,
        email_channel: EmailChannel,
        chat_channel: ChatChannel,
        directory: DirectoryStore,
        templates: Optional[TemplateRegistry] = None,
        reminder_emitter: Optional[Callable[[Event], Any]] = None,
        chat_batch_size: int = 5,
    ):
        self.resolver = resolver
        self.email_channel = email_channel
        self.chat_channel = chat_channel
        self.directory = directory
        self.templates = templates or TemplateRegistry()
        self.reminder_emitter = reminder_emitter or dispatch_background
        self.chat_batch_size = chat_batch_size if chat_batch_size >= 1 else 1

        logger.info(
            "initialized_notification_dispatcher",
            email_configured=email_channel.is_configured,
            chat_configured=chat_channel.is_configured,
            chat_batch_size=self.chat_batch_size,
        )

    # Public entry points

    def dispatch(
        self,
        event_type: Any,
        recipient_ids: Sequence[str],
        payload: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Notify ``recipient_ids`` about ``event_type`` on every channel.

        Args:
            event_type: EventType member or its string value; unknown types
                produce no channel attempts
            recipient_ids: Internal user ids (may be empty)
            payload: Event fields, snake_case or camelCase keys

        Returns:
            True when at least one channel delivered to at least one recipient
        """
        try:
            ids = list(dict.fromkeys(r for r in recipient_ids or [] if r))
            parsed = parse_payload(event_type, payload)
            with ThreadPoolExecutor(
                max_workers=2, thread_name_prefix="resolve"
            ) as executor:
                emails_future = executor.submit(self.resolver.resolve_email, ids)
                chats_future = executor.submit(self.resolver.resolve_chat, ids)
                emails = emails_future.result()
                chat_ids = chats_future.result()

            delivered = self._deliver(event_type, parsed, emails, chat_ids, user_count=len(ids))
            if delivered is None:
                return False

            if EventType.parse(event_type) == EventType.TASK_ASSIGNED:
                self._emit_reminder_request(ids, parsed)
            return delivered
        except Exception as e:
            logger.error(
                "notification_dispatch_failed",
                event_type=_event_name(event_type),
                error=str(e),
                exc_info=True,
            )
            return False

    def dispatch_to_role(
        self,
        event_type: Any,
        role: str,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Notify every user holding ``role``.

        Same contract as ``dispatch``. Chat recipients are only resolved
        when the event type has a chat template.
        """
        try:
            parsed = parse_payload(event_type, payload)
            chat_enabled = self.templates.chat_supported(event_type)
            with ThreadPoolExecutor(
                max_workers=2, thread_name_prefix="resolve"
            ) as executor:
                emails_future = executor.submit(self.resolver.resolve_email_by_role, role)
                chats_future = (
                    executor.submit(self.resolver.resolve_chat_by_role, role)
                    if chat_enabled
                    else None
                )
                emails = emails_future.result()
                chat_ids = chats_future.result() if chats_future else []

            delivered = self._deliver(event_type, parsed, emails, chat_ids, role=role)
            return bool(delivered)
        except Exception as e:
            logger.error(
                "notification_dispatch_failed",
                event_type=_event_name(event_type),
                role=role,
                error=str(e),
                exc_info=True,
            )
            return False

    def dispatch_to_addresses(
        self,
        event_type: Any,
        emails: Sequence[str],
        payload: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Mail-only dispatch to known addresses (welcome, password reset)."""
        try:
            parsed = parse_payload(event_type, payload)
            addresses = list(dict.fromkeys(e.strip() for e in emails if e and e.strip()))
            return bool(self._deliver(event_type, parsed, addresses, []))
        except Exception as e:
            logger.error(
                "notification_dispatch_failed",
                event_type=_event_name(event_type),
                error=str(e),
                exc_info=True,
            )
            return False

    # Convenience entry points

    def notify_task_assigned(
        self,
        task_id: str,
        assignee_ids: Sequence[str],
        assigned_by_name: str,
        task_title: str,
        due_date: Optional[str] = None,
        priority: Optional[str] = None,
        project_name: Optional[str] = None,
    ) -> bool:
        return self.dispatch(
            EventType.TASK_ASSIGNED,
            assignee_ids,
            {
                "task_id": task_id,
                "task_title": task_title,
                "assigned_by": assigned_by_name,
                "due_date": due_date,
                "priority": priority,
                "project_name": project_name,
            },
        )

    def notify_task_status_update(
        self,
        task_id: str,
        task_title: str,
        old_status: str,
        new_status: str,
        updated_by_name: str,
        notify_user_ids: Sequence[str],
    ) -> bool:
        return self.dispatch(
            EventType.TASK_STATUS_UPDATE,
            notify_user_ids,
            {
                "task_id": task_id,
                "task_title": task_title,
                "old_status": old_status,
                "new_status": new_status,
                "updated_by": updated_by_name,
            },
        )

    def notify_event_reminder(
        self,
        event_id: str,
        event_title: str,
        event_date: str,
        participant_ids: Sequence[str],
        event_time: Optional[str] = None,
        location: Optional[str] = None,
    ) -> bool:
        return self.dispatch(
            EventType.EVENT_REMINDER,
            participant_ids,
            {
                "event_id": event_id,
                "event_title": event_title,
                "event_date": event_date,
                "event_time": event_time,
                "location": location,
            },
        )

    def notify_project_assigned(
        self,
        project_id: str,
        project_title: str,
        assignee_ids: Sequence[str],
        assigned_by_name: str,
        role: str,
    ) -> bool:
        return self.dispatch(
            EventType.PROJECT_ASSIGNED,
            assignee_ids,
            {
                "project_id": project_id,
                "project_title": project_title,
                "assigned_by": assigned_by_name,
                "role": role,
            },
        )

    def notify_user_welcome(self, user_email: str, user_name: str, temp_password: str) -> bool:
        return self.dispatch_to_addresses(
            EventType.USER_WELCOME,
            [user_email],
            {"user_name": user_name, "temp_password": temp_password},
        )

    def notify_password_reset(self, user_email: str, user_name: str, new_password: str) -> bool:
        return self.dispatch_to_addresses(
            EventType.PASSWORD_RESET,
            [user_email],
            {"user_name": user_name, "new_password": new_password},
        )

    def notify_admins(self, event_type: Any, payload: Optional[Mapping[str, Any]] = None) -> bool:
        return self.dispatch_to_role(event_type, "admin", payload)

    def notify_managers(self, event_type: Any, payload: Optional[Mapping[str, Any]] = None) -> bool:
        return self.dispatch_to_role(event_type, "manager", payload)

    def send_test_email(self, address: str) -> bool:
        """Send the welcome template to ``address`` to verify SMTP settings.

        Nothing is written to the delivery log.
        """
        message = self.templates.render_mail(
            EventType.USER_WELCOME,
            {"user_name": "Test User", "temp_password": "test123"},
        )
        if message is None:
            return False
        result = self.email_channel.send(message, [address])
        logger.info(
            "test_email_sent" if result.is_success else "test_email_failed",
            error=None if result.is_success else result.message,
        )
        return result.is_success

    # Internals

    def _deliver(
        self,
        event_type: Any,
        payload: NotificationPayload,
        emails: List[str],
        chat_ids: List[str],
        **context,
    ) -> Optional[bool]:
        """Render and send on both channels.

        Returns None when there was no recipient on either channel,
        otherwise whether any channel reached at least one recipient.
        """
        name = _event_name(event_type)
        if not emails and not chat_ids:
            logger.warning("notification_no_recipients", event_type=name, **context)
            return None

        mail = self.templates.render_mail(event_type, payload) if emails else None
        chat = self.templates.render_chat(event_type, payload) if chat_ids else None
        if emails and mail is None:
            logger.info("notification_channel_skipped", channel="email", event_type=name)
        if chat_ids and chat is None:
            logger.info("notification_channel_skipped", channel="chat", event_type=name)

        outcomes: Dict[str, FanOutResult] = {}
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="deliver") as executor:
            futures = {}
            if mail is not None:
                futures["email"] = executor.submit(self._send_mail, name, mail, emails, payload)
            if chat is not None:
                futures["chat"] = executor.submit(self._send_chat, name, chat, chat_ids, payload)
            for channel, future in futures.items():
                outcomes[channel] = future.result()

        delivered = any(outcome.successful > 0 for outcome in outcomes.values())
        logger.info(
            "notification_dispatched",
            event_type=name,
            delivered=delivered,
            email_successful=outcomes["email"].successful if "email" in outcomes else 0,
            email_failed=outcomes["email"].failed if "email" in outcomes else 0,
            chat_successful=outcomes["chat"].successful if "chat" in outcomes else 0,
            chat_failed=outcomes["chat"].failed if "chat" in outcomes else 0,
            **context,
        )
        return delivered

    def _send_mail(self, event_name, mail, emails, payload) -> FanOutResult:
        try:
            if len(emails) > 1:
                # Recipients never see each other's addresses
                result = self.email_channel.send(mail, [], bcc=emails)
            else:
                result = self.email_channel.send(mail, emails)
            succeeded = result.is_success
            if not succeeded:
                logger.warning(
                    "notification_email_failed",
                    event_type=event_name,
                    recipients=emails,
                    error=result.message,
                    error_code=result.error_code,
                )
        except Exception as e:
            logger.error(
                "notification_email_failed",
                event_type=event_name,
                recipients=emails,
                error=str(e),
                exc_info=True,
            )
            succeeded = False

        # One SMTP transaction: every address shares the outcome
        outcome = (
            FanOutResult(successful=len(emails), failed=0)
            if succeeded
            else FanOutResult(successful=0, failed=len(emails))
        )
        self._log_delivery("email", event_name, emails, mail.text, outcome, payload)
        return outcome

    def _send_chat(self, event_name, chat, chat_ids, payload) -> FanOutResult:
        try:
            outcome = self.chat_channel.send_to_many(
                chat_ids, chat, batch_size=self.chat_batch_size
            )
        except Exception as e:
            logger.error(
                "notification_chat_failed",
                event_type=event_name,
                recipients=chat_ids,
                error=str(e),
                exc_info=True,
            )
            outcome = FanOutResult(successful=0, failed=len(chat_ids))
        self._log_delivery("chat", event_name, chat_ids, chat.text, outcome, payload)
        return outcome

    def _log_delivery(
        self,
        channel: str,
        event_name: str,
        recipients: List[str],
        rendered_text: str,
        outcome: FanOutResult,
        payload: NotificationPayload,
    ) -> None:
        entry = DeliveryLogEntry(
            channel=channel,
            event_type=event_name,
            recipients=list(recipients),
            rendered_text=rendered_text,
            sent_at=datetime.now(timezone.utc),
            successful_count=outcome.successful,
            failed_count=outcome.failed,
            payload=payload.audit_copy(),
        )
        try:
            result = self.directory.append_delivery_log(entry)
            if not result.is_success:
                logger.warning(
                    "delivery_log_write_failed",
                    channel=channel,
                    event_type=event_name,
                    error=result.message,
                )
        except Exception as e:
            logger.error(
                "delivery_log_write_failed",
                channel=channel,
                event_type=event_name,
                error=str(e),
                exc_info=True,
            )

    def _emit_reminder_request(self, user_ids: List[str], payload: NotificationPayload) -> None:
        """Hand the follow-up reminder request to the emitter without waiting."""
        if not user_ids or not isinstance(payload, TaskAssignedPayload) or not payload.task_id:
            logger.debug("reminder_request_skipped", reason="no task id or assignees")
            return
        try:
            assignee_names = self.resolver.resolve_display_names(user_ids)
            event = Event(
                event_type=REMINDER_REQUESTED_EVENT,
                source="notifications.dispatcher",
                metadata={
                    "task_id": payload.task_id,
                    "user_ids": list(user_ids),
                    "context": {
                        "task_title": payload.task_title,
                        "priority": payload.priority,
                        "project_name": payload.project_name,
                        "assignee_names": assignee_names or payload.assignee_names,
                        "assigned_by": payload.assigned_by,
                        "due_date": payload.due_date,
                    },
                },
            )
            self.reminder_emitter(event)
            logger.info(
                "reminder_request_emitted",
                task_id=payload.task_id,
                user_count=len(user_ids),
                correlation_id=str(event.correlation_id),
            )
        except Exception as e:
            logger.error(
                "reminder_request_failed",
                task_id=payload.task_id,
                error=str(e),
                exc_info=True,
            )
