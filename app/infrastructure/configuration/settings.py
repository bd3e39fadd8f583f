"""Settings aggregator for the portal notification service."""

from typing import Dict, Type

from pydantic_settings import BaseSettings, SettingsConfigDict

from infrastructure.configuration.features import NotificationSettings
from infrastructure.configuration.infrastructure import DirectorySettings, ServerSettings
from infrastructure.configuration.integrations import SmtpSettings, TelegramSettings

_SECTIONS: Dict[str, Type[BaseSettings]] = {
    # Transports
    "telegram": TelegramSettings,
    "smtp": SmtpSettings,
    # Dispatch behaviour
    "notifications": NotificationSettings,
    # Storage and HTTP server
    "directory": DirectorySettings,
    "server": ServerSettings,
}


class Settings(BaseSettings):
    """Application settings, one attribute per configuration section.

    Each section reads its own environment variables; a section passed
    explicitly (tests) is used as is.

    Environment Variables:
        PREFIX: Non-empty for non-production deployments (e.g. ``dev-``)
        LOG_LEVEL: DEBUG, INFO, WARNING or ERROR
        GIT_SHA: Commit deployed, reported by ``/version``

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        if settings.telegram.is_configured:
            width = settings.notifications.CHAT_BATCH_SIZE
        ```
    """

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    telegram: TelegramSettings
    smtp: SmtpSettings
    notifications: NotificationSettings
    directory: DirectorySettings
    server: ServerSettings

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        for name, section in _SECTIONS.items():
            kwargs.setdefault(name, section())
        super().__init__(**kwargs)

    @property
    def is_production(self) -> bool:
        return not self.PREFIX
