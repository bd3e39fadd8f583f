"""Notification delivery for portal business events.

Usage:
    from infrastructure.notifications import EventType, NotificationDispatcher

    # Feature-level: describe what happened
    dispatcher.notify_task_assigned(
        task_id="t-9",
        assignee_ids=["user-1", "user-2"],
        assigned_by_name="Dana",
        task_title="Quarterly audit",
    )

    # Infrastructure-level: send a rendered message on one channel
    message = templates.render_chat(EventType.TASK_ASSIGNED, payload)
    outcome = chat_channel.send_to_many(chat_ids, message)
    logger.info("sent", successful=outcome.successful, failed=outcome.failed)
"""

# Models
from infrastructure.notifications.models import (
    ChatMessage,
    EventType,
    FanOutResult,
    InlineButton,
    MailMessage,
    NotificationPayload,
    parse_payload,
)

# Collaborators
from infrastructure.notifications.resolver import ContactResolver
from infrastructure.notifications.templates import TemplateRegistry

# Dispatcher
from infrastructure.notifications.dispatcher import (
    REMINDER_REQUESTED_EVENT,
    NotificationDispatcher,
)

# Channel interface and implementations
from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.channels.chat import ChatChannel
from infrastructure.notifications.channels.email import EmailChannel

__all__ = [
    # Models
    "ChatMessage",
    "EventType",
    "FanOutResult",
    "InlineButton",
    "MailMessage",
    "NotificationPayload",
    "parse_payload",
    # Collaborators
    "ContactResolver",
    "TemplateRegistry",
    # Dispatcher
    "NotificationDispatcher",
    "REMINDER_REQUESTED_EVENT",
    # Channels
    "NotificationChannel",
    "ChatChannel",
    "EmailChannel",
]
