"""Infrastructure configuration module - public API.

Centralized configuration for the portal notification service using
pydantic BaseSettings with domain-based organization. The cached instance
is obtained through ``infrastructure.services.get_settings``.

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()

    bot_token = settings.telegram.TELEGRAM_BOT_TOKEN
    smtp_host = settings.smtp.SMTP_HOST
    batch_size = settings.notifications.CHAT_BATCH_SIZE
    ```
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.integrations import SmtpSettings, TelegramSettings
from infrastructure.configuration.features import NotificationSettings
from infrastructure.configuration.infrastructure import (
    DirectorySettings,
    ServerSettings,
)

__all__ = [
    "Settings",
    "TelegramSettings",
    "SmtpSettings",
    "NotificationSettings",
    "DirectorySettings",
    "ServerSettings",
]
