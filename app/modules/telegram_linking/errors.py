"""Errors for the Telegram linking module."""


class LinkingConfigurationError(Exception):
    """Raised when an admin action needs Telegram settings that are missing."""
