"""Telegram Bot API integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class TelegramSettings(IntegrationSettings):
    """Telegram Bot API configuration.

    Environment Variables:
        TELEGRAM_BOT_TOKEN: Bot token issued by BotFather. Chat delivery and
            the webhook are disabled when empty.
        TELEGRAM_BOT_USERNAME: Public bot username, used to build deep links
        TELEGRAM_WEBHOOK_SECRET: Shared secret expected in the webhook
            ``secret`` query parameter
        TELEGRAM_API_BASE: Bot API base URL (default: https://api.telegram.org)
        TELEGRAM_CONNECT_TIMEOUT_SECONDS: Connect timeout per call (default: 15)
        TELEGRAM_READ_TIMEOUT_SECONDS: Read timeout per call (default: 30)
        TELEGRAM_PREFER_IPV4: Resolve the API host over IPv4 only (default: True)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        if settings.telegram.is_configured:
            token = settings.telegram.TELEGRAM_BOT_TOKEN
        ```
    """

    TELEGRAM_BOT_TOKEN: str | None = Field(default=None, alias="TELEGRAM_BOT_TOKEN")
    TELEGRAM_BOT_USERNAME: str | None = Field(
        default=None, alias="TELEGRAM_BOT_USERNAME"
    )
    TELEGRAM_WEBHOOK_SECRET: str | None = Field(
        default=None, alias="TELEGRAM_WEBHOOK_SECRET"
    )
    TELEGRAM_API_BASE: str = Field(
        default="https://api.telegram.org", alias="TELEGRAM_API_BASE"
    )
    TELEGRAM_CONNECT_TIMEOUT_SECONDS: float = Field(
        default=15.0, alias="TELEGRAM_CONNECT_TIMEOUT_SECONDS"
    )
    TELEGRAM_READ_TIMEOUT_SECONDS: float = Field(
        default=30.0, alias="TELEGRAM_READ_TIMEOUT_SECONDS"
    )
    TELEGRAM_PREFER_IPV4: bool = Field(default=True, alias="TELEGRAM_PREFER_IPV4")

    @property
    def is_configured(self) -> bool:
        """True when a bot token is present."""
        return bool(self.TELEGRAM_BOT_TOKEN)
