"""Notification dispatch feature settings."""

from pydantic import Field, field_validator

from infrastructure.configuration.base import FeatureSettings


class NotificationSettings(FeatureSettings):
    """Notification dispatch configuration.

    Environment Variables:
        CHAT_BATCH_SIZE: Maximum concurrent chat sends per batch (default: 5)
        PORTAL_BASE_URL: Public portal URL used for inline "open" buttons
        LINK_TOKEN_TTL_MINUTES: Default link token lifetime (default: 1440,
            0 or negative means the token never expires)
        TASK_REMINDER_SECRET: Shared secret for the reminder processing
            endpoint (unset leaves the endpoint open)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        width = settings.notifications.CHAT_BATCH_SIZE
        ```
    """

    CHAT_BATCH_SIZE: int = Field(default=5, alias="CHAT_BATCH_SIZE")
    PORTAL_BASE_URL: str | None = Field(default=None, alias="PORTAL_BASE_URL")
    LINK_TOKEN_TTL_MINUTES: int = Field(default=1440, alias="LINK_TOKEN_TTL_MINUTES")
    TASK_REMINDER_SECRET: str | None = Field(default=None, alias="TASK_REMINDER_SECRET")

    @field_validator("CHAT_BATCH_SIZE", mode="after")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        """Clamp the batch width to at least one."""
        return v if v >= 1 else 1

    @field_validator("PORTAL_BASE_URL", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        """Normalize the portal URL so paths can be appended."""
        if not v:
            return None
        return v.rstrip("/")
