"""
Type aliases for FastAPI dependency injection.

Provides annotated type hints for the service singletons.
"""

from typing import Annotated

from fastapi import Depends

from infrastructure.configuration import Settings
from infrastructure.notifications import ChatChannel, EmailChannel
from infrastructure.services.providers import (
    get_chat_channel,
    get_email_channel,
    get_linking_handler,
    get_reminder_processor,
    get_settings,
)
from modules.reminders import ReminderProcessor
from modules.telegram_linking import LinkingHandler

# Settings dependency
SettingsDep = Annotated[Settings, Depends(get_settings)]

# Channel transports
EmailChannelDep = Annotated[EmailChannel, Depends(get_email_channel)]
ChatChannelDep = Annotated[ChatChannel, Depends(get_chat_channel)]

# Telegram linking
LinkingHandlerDep = Annotated[LinkingHandler, Depends(get_linking_handler)]

# Task reminders
ReminderProcessorDep = Annotated[ReminderProcessor, Depends(get_reminder_processor)]

__all__ = [
    "SettingsDep",
    "EmailChannelDep",
    "ChatChannelDep",
    "LinkingHandlerDep",
    "ReminderProcessorDep",
]
