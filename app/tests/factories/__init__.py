"""Test data factories for deterministic test data generation."""

from tests.factories.notifications import (
    make_chat_message,
    make_contact,
    make_link_token,
    make_mail_message,
    make_telegram_response,
)
from tests.factories.telegram import make_start_update, make_update

__all__ = [
    "make_chat_message",
    "make_contact",
    "make_link_token",
    "make_mail_message",
    "make_start_update",
    "make_telegram_response",
    "make_update",
]
