"""
Dependency injection services.

Provides type aliases and provider functions for FastAPI dependency injection.
"""

from infrastructure.services.dependencies import (
    ChatChannelDep,
    EmailChannelDep,
    LinkingHandlerDep,
    ReminderProcessorDep,
    SettingsDep,
)
from infrastructure.services.providers import (
    get_chat_channel,
    get_contact_resolver,
    get_directory,
    get_email_channel,
    get_link_token_issuer,
    get_linking_handler,
    get_notification_dispatcher,
    get_reminder_processor,
    get_reminder_scheduler,
    get_settings,
    get_template_registry,
)

__all__ = [
    "ChatChannelDep",
    "EmailChannelDep",
    "LinkingHandlerDep",
    "ReminderProcessorDep",
    "SettingsDep",
    "get_chat_channel",
    "get_contact_resolver",
    "get_directory",
    "get_email_channel",
    "get_link_token_issuer",
    "get_linking_handler",
    "get_notification_dispatcher",
    "get_reminder_processor",
    "get_reminder_scheduler",
    "get_settings",
    "get_template_registry",
]
