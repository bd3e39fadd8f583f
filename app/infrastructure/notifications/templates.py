"""Mail and chat templates keyed by event type.

Each template reads a typed payload; missing fields are left out of the
output (never rendered as "None") and headline fields fall back to a
generic word ("Task", "Manager"...). HTML output escapes every
interpolated value.

Usage:
    registry = TemplateRegistry(portal_base_url="https://portal.example.com")
    message = registry.render_chat(EventType.TASK_ASSIGNED, {"taskTitle": "Audit"})
"""

from html import escape
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlencode

import structlog

from infrastructure.notifications.models import (
    ChatMessage,
    EventReminderPayload,
    EventType,
    InlineButton,
    MailMessage,
    PAYLOAD_MODELS,
    PasswordResetPayload,
    ProjectAssignedPayload,
    TaskAssignedPayload,
    TaskAssignedReminderPayload,
    TaskStatusUpdatePayload,
    UserWelcomePayload,
    parse_payload,
)
from infrastructure.operations import OperationResult

logger = structlog.get_logger()

PORTAL_FOOTER = "Check the portal for details."

_BOX = "background-color: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;"
_HIGHLIGHT_BOX = (
    "background-color: #fef3c7; padding: 20px; border-radius: 8px; "
    "margin: 20px 0; border-left: 4px solid #f59e0b;"
)

Row = Tuple[str, Optional[str]]


def _text_lines(lines: Sequence[Optional[str]]) -> str:
    return "\n".join(line for line in lines if line is not None)


def _html_rows(rows: Sequence[Row]) -> str:
    return "".join(
        f'<p style="margin: 5px 0;"><strong>{escape(label)}:</strong> {escape(value)}</p>'
        for label, value in rows
        if value
    )


def _mail_html(
    heading: str,
    greeting: str,
    intro: str,
    title: str,
    rows: Sequence[Row],
    closing: Optional[str] = None,
    box_style: str = _BOX,
) -> str:
    closing_html = f"<p>{escape(closing)}</p>" if closing else ""
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #2563eb;">{escape(heading)}</h2>'
        f"<p>{escape(greeting)}</p>"
        f"<p>{escape(intro)}</p>"
        f'<div style="{box_style}">'
        f'<h3 style="margin: 0 0 10px 0; color: #1f2937;">{escape(title)}</h3>'
        f"{_html_rows(rows)}"
        "</div>"
        f"{closing_html}"
        "</div>"
    )


def _text_rows(rows: Sequence[Row]) -> List[str]:
    return [f"{label}: {value}" for label, value in rows if value]


class TemplateRegistry:
    """Resolves and renders the template for an (event type, channel) pair.

    Args:
        portal_base_url: When set, chat messages about a task, event or
            project carry a single inline button opening the portal page.
        app_name: Product name used in the welcome mail.
    """

    def __init__(self, portal_base_url: Optional[str] = None, app_name: str = "Portal"):
        self.portal_base_url = portal_base_url.rstrip("/") if portal_base_url else None
        self.app_name = app_name
        self._mail: Dict[EventType, Callable[[Any], MailMessage]] = {
            EventType.TASK_ASSIGNED: self._mail_task_assigned,
            EventType.TASK_STATUS_UPDATE: self._mail_task_status_update,
            EventType.EVENT_REMINDER: self._mail_event_reminder,
            EventType.PROJECT_ASSIGNED: self._mail_project_assigned,
            EventType.USER_WELCOME: self._mail_user_welcome,
            EventType.PASSWORD_RESET: self._mail_password_reset,
        }
        self._chat: Dict[EventType, Callable[[Any], ChatMessage]] = {
            EventType.TASK_ASSIGNED: self._chat_task_assigned,
            EventType.TASK_ASSIGNED_REMINDER: self._chat_task_assigned_reminder,
            EventType.TASK_STATUS_UPDATE: self._chat_task_status_update,
            EventType.EVENT_REMINDER: self._chat_event_reminder,
            EventType.PROJECT_ASSIGNED: self._chat_project_assigned,
        }

    def mail_supported(self, event_type: Any) -> bool:
        return EventType.parse(event_type) in self._mail

    def chat_supported(self, event_type: Any) -> bool:
        """True when a chat template exists for ``event_type``."""
        return EventType.parse(event_type) in self._chat

    def render(self, channel: str, event_type: Any, payload: Any) -> OperationResult:
        """Render for ``channel`` ("email" or "chat").

        Returns:
            SUCCESS with the rendered message, NOT_FOUND when the event type
            has no template on that channel, PERMANENT_ERROR when the
            template itself failed.
        """
        templates = self._mail if channel == "email" else self._chat
        parsed_type = EventType.parse(event_type)
        builder = templates.get(parsed_type) if parsed_type else None
        if builder is None:
            return OperationResult.not_found(
                f"No {channel} template for {event_type}",
                error_code="NO_TEMPLATE",
            )

        try:
            if type(payload) is not PAYLOAD_MODELS[parsed_type]:
                payload = parse_payload(parsed_type, payload)
            return OperationResult.success(data=builder(payload))
        except Exception as e:
            logger.error(
                "notification_template_failed",
                channel=channel,
                event_type=parsed_type.value,
                error=str(e),
                exc_info=True,
            )
            return OperationResult.permanent_error(
                f"Template rendering failed: {str(e)}",
                error_code="TEMPLATE_ERROR",
            )

    def render_mail(self, event_type: Any, payload: Any) -> Optional[MailMessage]:
        """Rendered mail, or None when there is no usable template."""
        return self.render("email", event_type, payload).unwrap_or(None)

    def render_chat(self, event_type: Any, payload: Any) -> Optional[ChatMessage]:
        """Rendered chat message, or None when there is no usable template."""
        return self.render("chat", event_type, payload).unwrap_or(None)

    def _portal_button(
        self, path: str, param: str, entity_id: Optional[str], label: str
    ) -> List[InlineButton]:
        if not self.portal_base_url or not entity_id:
            return []
        url = f"{self.portal_base_url}{path}?{urlencode({param: entity_id})}"
        return [InlineButton(text=label, url=url)]

    # Mail templates

    def _mail_task_assigned(self, data: TaskAssignedPayload) -> MailMessage:
        title = data.task_title or "Task"
        assigned_by = data.assigned_by or "Manager"
        rows: List[Row] = [
            ("Assigned by", assigned_by),
            ("Due date", data.due_date),
            ("Priority", data.priority),
            ("Project", data.project_name),
        ]
        return MailMessage(
            subject=f"New task assigned: {title}",
            html=_mail_html(
                "New Task Assigned",
                "Hello,",
                "A new task has been assigned to you:",
                title,
                rows,
                closing="Have a productive day!",
            ),
            text=_text_lines(
                [
                    f"New task assigned: {title}",
                    "",
                    *_text_rows(rows),
                    "",
                    "Sign in to the portal to see the task details.",
                ]
            ),
        )

    def _mail_task_status_update(self, data: TaskStatusUpdatePayload) -> MailMessage:
        title = data.task_title or "Task"
        rows: List[Row] = [
            ("Previous status", data.old_status or "Unknown"),
            ("New status", data.new_status or "Unknown"),
            ("Updated by", data.updated_by or "System"),
        ]
        return MailMessage(
            subject=f"Task status updated: {title}",
            html=_mail_html(
                "Task Status Updated",
                "Hello,",
                "The status of a task has changed:",
                title,
                rows,
            ),
            text=_text_lines([f"Task status updated: {title}", "", *_text_rows(rows)]),
        )

    def _mail_event_reminder(self, data: EventReminderPayload) -> MailMessage:
        title = data.event_title or "Event"
        rows: List[Row] = [
            ("Date", data.event_date),
            ("Time", data.event_time),
            ("Location", data.location),
        ]
        return MailMessage(
            subject=f"Event reminder: {title}",
            html=_mail_html(
                "Event Reminder",
                "Hello,",
                "A reminder about an upcoming event:",
                title,
                rows,
                closing="Don't forget to attend!",
                box_style=_HIGHLIGHT_BOX,
            ),
            text=_text_lines([f"Event reminder: {title}", "", *_text_rows(rows)]),
        )

    def _mail_project_assigned(self, data: ProjectAssignedPayload) -> MailMessage:
        title = data.project_title or "Project"
        rows: List[Row] = [
            ("Your role", data.role or "Team member"),
            ("Assigned by", data.assigned_by or "Manager"),
        ]
        return MailMessage(
            subject=f"New project assignment: {title}",
            html=_mail_html(
                "New Project Assignment",
                "Hello,",
                "You have been added to a project:",
                title,
                rows,
                closing="Have a productive day!",
            ),
            text=_text_lines(
                [
                    f"New project assignment: {title}",
                    "",
                    *_text_rows(rows),
                    "",
                    "Sign in to the portal to see the project details.",
                ]
            ),
        )

    def _mail_user_welcome(self, data: UserWelcomePayload) -> MailMessage:
        name = data.user_name or "there"
        rows: List[Row] = [("Temporary password", data.temp_password)]
        return MailMessage(
            subject=f"Welcome to {self.app_name}",
            html=_mail_html(
                "Welcome!",
                f"Hello {name},",
                f"Welcome to {self.app_name}! Your account has been created.",
                "Your sign-in details",
                rows,
                closing="Please change your password after your first sign-in.",
            ),
            text=_text_lines(
                [
                    f"Welcome {name}!",
                    "",
                    f"Welcome to {self.app_name}! Your account has been created.",
                    "",
                    *_text_rows(rows),
                    "",
                    "Please change your password after your first sign-in.",
                ]
            ),
        )

    def _mail_password_reset(self, data: PasswordResetPayload) -> MailMessage:
        name = data.user_name or "there"
        rows: List[Row] = [("New password", data.new_password)]
        return MailMessage(
            subject="Your password has been reset",
            html=_mail_html(
                "Password Reset",
                f"Hello {name},",
                "Your password has been reset.",
                "Your new password",
                rows,
                closing=(
                    "Please change your password after signing in. If you did not "
                    "request this, contact your administrator."
                ),
            ),
            text=_text_lines(
                [
                    "Password reset",
                    "",
                    f"Hello {name},",
                    "",
                    "Your password has been reset.",
                    *_text_rows(rows),
                    "",
                    "Please change your password after signing in.",
                ]
            ),
        )

    # Chat templates

    def _chat_task_assigned(self, data: TaskAssignedPayload) -> ChatMessage:
        return ChatMessage(
            text=_text_lines(
                [
                    "📌 New task assigned",
                    f"Task: {data.task_title or 'Task'}",
                    f"Assigned by: {data.assigned_by or 'Manager'}",
                    f"Project: {data.project_name}" if data.project_name else None,
                    f"Priority: {data.priority}" if data.priority else None,
                    f"Due date: {data.due_date}" if data.due_date else None,
                    f"Task ID: {data.task_id}" if data.task_id else None,
                    "",
                    PORTAL_FOOTER,
                ]
            ),
            buttons=self._portal_button("/tasks", "taskId", data.task_id, "Open task"),
        )

    def _chat_task_assigned_reminder(self, data: TaskAssignedReminderPayload) -> ChatMessage:
        assignees = ", ".join(data.assignee_names) if data.assignee_names else None
        return ChatMessage(
            text=_text_lines(
                [
                    "⏰ Task reminder",
                    f"Task: {data.task_title or 'Task'}",
                    f"Assigned by: {data.assigned_by or 'Manager'}",
                    f"Assignees: {assignees}" if assignees else None,
                    f"Project: {data.project_name}" if data.project_name else None,
                    f"Priority: {data.priority}" if data.priority else None,
                    f"Due date: {data.due_date}" if data.due_date else None,
                    f"Reminder #{data.attempt}" if data.attempt else None,
                    "",
                    "You have not opened the portal since this task was assigned.",
                ]
            ),
            buttons=self._portal_button("/tasks", "taskId", data.task_id, "Open task"),
        )

    def _chat_task_status_update(self, data: TaskStatusUpdatePayload) -> ChatMessage:
        return ChatMessage(
            text=_text_lines(
                [
                    "🔄 Task status updated",
                    f"Task: {data.task_title or 'Task'}",
                    f"Previous status: {data.old_status or 'Unknown'}",
                    f"New status: {data.new_status or 'Unknown'}",
                    f"Updated by: {data.updated_by or 'System'}",
                    f"Task ID: {data.task_id}" if data.task_id else None,
                    "",
                    PORTAL_FOOTER,
                ]
            ),
            buttons=self._portal_button("/tasks", "taskId", data.task_id, "Open task"),
        )

    def _chat_event_reminder(self, data: EventReminderPayload) -> ChatMessage:
        return ChatMessage(
            text=_text_lines(
                [
                    "📅 Event reminder",
                    f"Event: {data.event_title or 'Event'}",
                    f"Date: {data.event_date}" if data.event_date else None,
                    f"Time: {data.event_time}" if data.event_time else None,
                    f"Location: {data.location}" if data.location else None,
                    "",
                    PORTAL_FOOTER,
                ]
            ),
            buttons=self._portal_button("/events", "eventId", data.event_id, "Open event"),
        )

    def _chat_project_assigned(self, data: ProjectAssignedPayload) -> ChatMessage:
        return ChatMessage(
            text=_text_lines(
                [
                    "🧩 New project assignment",
                    f"Project: {data.project_title or 'Project'}",
                    f"Your role: {data.role or 'Team member'}",
                    f"Assigned by: {data.assigned_by or 'Manager'}",
                    f"Project ID: {data.project_id}" if data.project_id else None,
                    "",
                    PORTAL_FOOTER,
                ]
            ),
            buttons=self._portal_button(
                "/projects", "projectId", data.project_id, "Open project"
            ),
        )
