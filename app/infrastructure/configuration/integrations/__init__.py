"""Integration settings __init__ - exports all integration settings."""

from infrastructure.configuration.integrations.smtp import SmtpSettings
from infrastructure.configuration.integrations.telegram import TelegramSettings

__all__ = [
    "SmtpSettings",
    "TelegramSettings",
]
