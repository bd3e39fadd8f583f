"""Telegram account linking.

Binds portal users to Telegram chats, either by redeeming a single-use
link token (``/start <token>``) or by matching the sender's username
against the handle stored on the contact.
"""

from modules.telegram_linking.errors import LinkingConfigurationError
from modules.telegram_linking.handler import LinkingHandler, LinkOutcome
from modules.telegram_linking.tokens import IssuedLink, LinkTokenIssuer
from modules.telegram_linking.updates import InboundUpdate, extract_update
from modules.telegram_linking.usernames import (
    format_username,
    is_valid_username,
    sanitize_username,
)

__all__ = [
    "InboundUpdate",
    "IssuedLink",
    "LinkOutcome",
    "LinkTokenIssuer",
    "LinkingConfigurationError",
    "LinkingHandler",
    "extract_update",
    "format_username",
    "is_valid_username",
    "sanitize_username",
]
