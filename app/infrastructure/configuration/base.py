"""Base classes shared by the settings sections.

Every section reads the process environment and, when present, a local
``.env`` file. Variable names are case-sensitive and unknown variables are
ignored.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    case_sensitive=True,
    extra="ignore",
)


class IntegrationSettings(BaseSettings):
    """External transports: Telegram Bot API and the SMTP relay."""

    model_config = _ENV_CONFIG


class FeatureSettings(BaseSettings):
    """Notification dispatch behaviour."""

    model_config = _ENV_CONFIG


class InfrastructureSettings(BaseSettings):
    """Directory backend and HTTP server."""

    model_config = _ENV_CONFIG
