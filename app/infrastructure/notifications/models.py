"""Notification system core models.

Event types, per-event payload models, rendered messages and fan-out
accounting. Payload models accept both snake_case and the portal's
camelCase keys (``task_title`` or ``taskTitle``).
"""

import math
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, List, Mapping, Optional, Type

import structlog
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

logger = structlog.get_logger()


class EventType(str, Enum):
    """Business events the portal can notify about."""

    TASK_ASSIGNED = "task_assigned"
    TASK_ASSIGNED_REMINDER = "task_assigned_reminder"
    TASK_STATUS_UPDATE = "task_status_update"
    EVENT_REMINDER = "event_reminder"
    PROJECT_ASSIGNED = "project_assigned"
    USER_WELCOME = "user_welcome"
    PASSWORD_RESET = "password_reset"

    @classmethod
    def parse(cls, value: Any) -> Optional["EventType"]:
        """Return the member for ``value`` or None when it is not a known type."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


def _is_finite(value: Any) -> bool:
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, float):
        return math.isfinite(value)
    return True


def _format_number(value: Any) -> Optional[str]:
    # inf and nan have no useful rendering
    if not _is_finite(value):
        return None
    if isinstance(value, (float, Decimal)) and value == int(value):
        return str(int(value))
    return str(value)


def to_text(value: Any) -> Optional[str]:
    """Coerce a payload value to a non-empty string, or None to omit it.

    - non-blank strings pass through unchanged
    - finite numbers are formatted (integral floats without the ".0"),
      infinities and NaN are dropped
    - booleans become "true" / "false"
    - lists join their non-blank string items with ", "
    - anything else is dropped
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (int, float, Decimal)):
        return _format_number(value)
    if isinstance(value, (list, tuple)):
        items = [item for item in value if isinstance(item, str) and item.strip()]
        return ", ".join(items) if items else None
    return None


def _to_text_list(value: Any) -> Optional[List[str]]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return None
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return items or None


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if _is_finite(value) and value == int(value):
            return int(value)
        return None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


class NotificationPayload(BaseModel):
    """Base payload: every field optional, unknown keys ignored.

    Values are coerced before validation so a malformed field is omitted
    rather than failing the whole payload.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    # Fields never copied into the delivery log
    SENSITIVE_FIELDS: ClassVar[FrozenSet[str]] = frozenset()

    @field_validator("*", mode="before")
    @classmethod
    def coerce_values(cls, value: Any, info: ValidationInfo) -> Any:
        field = cls.model_fields.get(info.field_name)
        annotation = field.annotation if field else None
        if annotation == Optional[List[str]]:
            return _to_text_list(value)
        if annotation == Optional[int]:
            return _to_int(value)
        return to_text(value)

    def audit_copy(self) -> Dict[str, Any]:
        """Payload as a plain dict for the delivery log, secrets removed."""
        return self.model_dump(exclude_none=True, exclude=set(self.SENSITIVE_FIELDS))


class TaskAssignedPayload(NotificationPayload):
    task_id: Optional[str] = None
    task_title: Optional[str] = None
    assigned_by: Optional[str] = None
    due_date: Optional[str] = None
    priority: Optional[str] = None
    project_name: Optional[str] = None
    assignee_names: Optional[List[str]] = None


class TaskAssignedReminderPayload(TaskAssignedPayload):
    attempt: Optional[int] = None


class TaskStatusUpdatePayload(NotificationPayload):
    task_id: Optional[str] = None
    task_title: Optional[str] = None
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    updated_by: Optional[str] = None


class EventReminderPayload(NotificationPayload):
    event_id: Optional[str] = None
    event_title: Optional[str] = None
    event_date: Optional[str] = None
    event_time: Optional[str] = None
    location: Optional[str] = None


class ProjectAssignedPayload(NotificationPayload):
    project_id: Optional[str] = None
    project_title: Optional[str] = None
    assigned_by: Optional[str] = None
    role: Optional[str] = None


class UserWelcomePayload(NotificationPayload):
    SENSITIVE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"temp_password"})

    user_name: Optional[str] = None
    temp_password: Optional[str] = None


class PasswordResetPayload(NotificationPayload):
    SENSITIVE_FIELDS: ClassVar[FrozenSet[str]] = frozenset({"new_password"})

    user_name: Optional[str] = None
    new_password: Optional[str] = None


PAYLOAD_MODELS: Dict[EventType, Type[NotificationPayload]] = {
    EventType.TASK_ASSIGNED: TaskAssignedPayload,
    EventType.TASK_ASSIGNED_REMINDER: TaskAssignedReminderPayload,
    EventType.TASK_STATUS_UPDATE: TaskStatusUpdatePayload,
    EventType.EVENT_REMINDER: EventReminderPayload,
    EventType.PROJECT_ASSIGNED: ProjectAssignedPayload,
    EventType.USER_WELCOME: UserWelcomePayload,
    EventType.PASSWORD_RESET: PasswordResetPayload,
}


def parse_payload(event_type: Any, raw: Any) -> NotificationPayload:
    """Build the payload model for ``event_type`` from a raw mapping.

    Never raises. Unknown event types yield the empty base payload; a
    payload that is not a mapping or fails validation degrades to an empty
    payload of the right type.
    """
    if isinstance(raw, NotificationPayload):
        data: Mapping[str, Any] = raw.model_dump(exclude_none=True)
    else:
        data = raw if isinstance(raw, Mapping) else {}
    model = PAYLOAD_MODELS.get(EventType.parse(event_type), NotificationPayload)

    if raw is not None and not isinstance(raw, (Mapping, NotificationPayload)):
        logger.warning(
            "notification_payload_not_a_mapping",
            event_type=str(event_type),
            payload_type=type(raw).__name__,
        )
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        logger.warning(
            "notification_payload_invalid",
            event_type=str(event_type),
            error=str(e),
        )
        return model()


class MailMessage(BaseModel):
    """Rendered mail: subject, HTML body and plain text alternative."""

    subject: str
    html: str
    text: str


class InlineButton(BaseModel):
    """Single URL button attached under a chat message."""

    text: str
    url: str


class ChatMessage(BaseModel):
    """Rendered chat message."""

    text: str
    parse_mode: Optional[str] = None
    disable_web_page_preview: bool = True
    buttons: List[InlineButton] = Field(default_factory=list)

    def to_request_body(self, chat_id: str) -> Dict[str, Any]:
        """Build the Bot API ``sendMessage`` JSON body."""
        body: Dict[str, Any] = {
            "chat_id": chat_id,
            "text": self.text,
            "disable_web_page_preview": self.disable_web_page_preview,
        }
        if self.parse_mode:
            body["parse_mode"] = self.parse_mode
        if self.buttons:
            body["reply_markup"] = {
                "inline_keyboard": [
                    [{"text": button.text, "url": button.url} for button in self.buttons]
                ]
            }
        return body


class FanOutResult(BaseModel):
    """Per-recipient accounting of a chat fan-out."""

    successful: int = 0
    failed: int = 0

    @property
    def attempted(self) -> int:
        return self.successful + self.failed
