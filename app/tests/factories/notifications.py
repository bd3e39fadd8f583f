"""Test factories for notification and directory data.

All factories return the application's own models so tests exercise the
same validation the services do.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import requests

from infrastructure.directory import ContactRecord, LinkToken
from infrastructure.notifications.models import ChatMessage, InlineButton, MailMessage

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_contact(user_id: str = "u-1", **overrides: Any) -> ContactRecord:
    """Create a ContactRecord with sensible defaults.

    Example:
        >>> contact = make_contact("u-9", chat_id="42", chat_notifications_enabled=True)
    """
    data: Dict[str, Any] = {
        "user_id": user_id,
        "first_name": "Test",
        "last_name": "User",
        "role": "staff",
        "email": f"{user_id}@example.com",
    }
    data.update(overrides)
    return ContactRecord(**data)


def make_link_token(
    token: str = "a" * 32,
    owner_user_id: str = "u-alice",
    created_at: datetime = NOW,
    expires_in: Optional[timedelta] = timedelta(hours=24),
    **overrides: Any,
) -> LinkToken:
    data: Dict[str, Any] = {
        "id": f"id-{token[:8]}",
        "owner_user_id": owner_user_id,
        "token": token,
        "created_at": created_at,
        "expires_at": created_at + expires_in if expires_in is not None else None,
    }
    data.update(overrides)
    return LinkToken(**data)


def make_chat_message(
    text: str = "📌 New task assigned", buttons: Optional[List[InlineButton]] = None
) -> ChatMessage:
    return ChatMessage(text=text, buttons=buttons or [])


def make_mail_message(subject: str = "New task assigned: Audit") -> MailMessage:
    return MailMessage(subject=subject, html="<p>Audit</p>", text="Audit")


def make_telegram_response(
    status_code: int = 200,
    body: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> MagicMock:
    """Mock requests.Response as returned by the Bot API.

    ``raise_for_status`` raises a real HTTPError for 4xx/5xx so the
    classifiers see the same exception type as in production.
    """
    if body is None:
        body = {"ok": True, "result": {"message_id": 1}}
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = body

    def raise_for_status():
        if status_code >= 400:
            raise requests.HTTPError(f"{status_code} Error", response=response)

    response.raise_for_status.side_effect = raise_for_status
    return response
