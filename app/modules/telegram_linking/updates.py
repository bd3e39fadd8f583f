"""Inbound Telegram update parsing."""

import re
from typing import Any, Mapping, Optional

from pydantic import BaseModel

START_COMMAND = re.compile(r"^/start(?:@[A-Za-z0-9_]+)?(?:\s+(?P<token>\S+))?\s*$")


class InboundUpdate(BaseModel):
    """The parts of an update the linking handshake needs."""

    chat_id: str
    username: Optional[str] = None
    text: Optional[str] = None
    kind: str = "message"

    @property
    def start_token(self) -> Optional[str]:
        """Token argument of a ``/start <token>`` command, if any.

        ``/start@BotName <token>`` is accepted. A bare ``/start`` has no
        token and is handled like any other message.
        """
        if not self.text:
            return None
        match = START_COMMAND.match(self.text.strip())
        if not match:
            return None
        return match.group("token")


def _chat_id_of(chat: Any) -> Optional[str]:
    if not isinstance(chat, Mapping):
        return None
    chat_id = chat.get("id")
    if chat_id is None or isinstance(chat_id, bool):
        return None
    if isinstance(chat_id, (int, float)):
        return str(int(chat_id))
    if isinstance(chat_id, str) and chat_id.strip():
        return chat_id.strip()
    return None


def extract_update(raw: Any) -> Optional[InboundUpdate]:
    """Pull chat id, sender username and text out of a raw update.

    Supports ``message``, ``edited_message`` and ``callback_query``
    (whose chat comes from ``callback_query.message.chat``). Returns None
    when the update carries no chat or no sender.
    """
    if not isinstance(raw, Mapping):
        return None

    kind = None
    chat = sender = text = None
    for key in ("message", "edited_message"):
        message = raw.get(key)
        if isinstance(message, Mapping):
            kind = key
            chat = message.get("chat")
            sender = message.get("from")
            text = message.get("text")
            break
    else:
        callback = raw.get("callback_query")
        if isinstance(callback, Mapping):
            kind = "callback_query"
            message = callback.get("message")
            chat = message.get("chat") if isinstance(message, Mapping) else None
            sender = callback.get("from")

    chat_id = _chat_id_of(chat)
    if kind is None or chat_id is None or not isinstance(sender, Mapping):
        return None

    username = sender.get("username")
    return InboundUpdate(
        chat_id=chat_id,
        username=username if isinstance(username, str) else None,
        text=text if isinstance(text, str) else None,
        kind=kind,
    )
