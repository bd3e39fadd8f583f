"""Directory records: contacts, link tokens and delivery log entries."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContactRecord(BaseModel):
    """Notification-relevant view of a portal user."""

    model_config = ConfigDict(extra="ignore")

    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None
    chat_id: Optional[str] = None
    chat_notifications_enabled: bool = False
    chat_username: Optional[str] = None
    chat_linked_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @field_validator("chat_id", mode="before")
    @classmethod
    def stringify_chat_id(cls, v: Any) -> Optional[str]:
        """Chat platforms use numeric ids; store them as strings."""
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, (int, float, Decimal)):
            try:
                return str(int(v))
            except (ValueError, OverflowError):
                return None
        return v

    @property
    def display_name(self) -> str:
        """First and last name joined, empty when both are missing."""
        parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
        return " ".join(parts)

    @property
    def chat_deliverable(self) -> bool:
        """True when chat delivery is enabled and a chat id is stored."""
        return self.chat_notifications_enabled is True and bool(
            isinstance(self.chat_id, str) and self.chat_id.strip()
        )


class LinkToken(BaseModel):
    """Single-use token binding a portal user to a chat session.

    ``expires_at`` of None means the token never expires. Once
    ``consumed_at`` is set the token is spent and ``chat_id`` is frozen.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    owner_user_id: str
    token: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    consumed_at: Optional[datetime] = None
    chat_id: Optional[str] = None
    last_used_at: Optional[datetime] = None

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None

    def is_expired(self, now: datetime) -> bool:
        """True when an expiry is set and ``now`` is past it."""
        return self.expires_at is not None and now > self.expires_at


class DeliveryLogEntry(BaseModel):
    """Append-only audit row written once per attempted channel."""

    channel: Literal["email", "chat"]
    event_type: str
    recipients: List[str] = Field(default_factory=list)
    rendered_text: str = ""
    sent_at: datetime
    successful_count: int = 0
    failed_count: int = 0
    payload: Dict[str, Any] = Field(default_factory=dict)
