"""SMTP mail relay integration settings."""

from pydantic import AliasChoices, Field

from infrastructure.configuration.base import IntegrationSettings


class SmtpSettings(IntegrationSettings):
    """SMTP relay configuration.

    Every variable also accepts the legacy ``EMAIL_*`` spelling
    (``EMAIL_HOST``, ``EMAIL_PORT``...).

    Environment Variables:
        SMTP_HOST: Relay hostname. Mail delivery is disabled when empty.
        SMTP_PORT: Relay port (default: 587)
        SMTP_SECURE: Use implicit TLS (SMTPS) instead of STARTTLS
        SMTP_USER: Login user, optional
        SMTP_PASS: Login password, optional
        SMTP_FROM_NAME: Sender display name (default: Portal)
        SMTP_FROM_EMAIL: Sender address (defaults to SMTP_USER)
        SMTP_TIMEOUT_SECONDS: Socket timeout for the transaction (default: 30)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        host = settings.smtp.SMTP_HOST
        sender = settings.smtp.sender_address
        ```
    """

    SMTP_HOST: str | None = Field(
        default=None, validation_alias=AliasChoices("SMTP_HOST", "EMAIL_HOST")
    )
    SMTP_PORT: int = Field(
        default=587, validation_alias=AliasChoices("SMTP_PORT", "EMAIL_PORT")
    )
    SMTP_SECURE: bool = Field(
        default=False, validation_alias=AliasChoices("SMTP_SECURE", "EMAIL_SECURE")
    )
    SMTP_USER: str | None = Field(
        default=None, validation_alias=AliasChoices("SMTP_USER", "EMAIL_USER")
    )
    SMTP_PASS: str | None = Field(
        default=None, validation_alias=AliasChoices("SMTP_PASS", "EMAIL_PASS")
    )
    SMTP_FROM_NAME: str = Field(
        default="Portal",
        validation_alias=AliasChoices("SMTP_FROM_NAME", "EMAIL_FROM_NAME"),
    )
    SMTP_FROM_EMAIL: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SMTP_FROM_EMAIL", "EMAIL_FROM"),
    )
    SMTP_TIMEOUT_SECONDS: float = Field(
        default=30.0, validation_alias=AliasChoices("SMTP_TIMEOUT_SECONDS")
    )

    @property
    def is_configured(self) -> bool:
        """True when a relay host is present."""
        return bool(self.SMTP_HOST)

    @property
    def sender_address(self) -> str | None:
        """Envelope sender: explicit from-address, else the login user."""
        return self.SMTP_FROM_EMAIL or self.SMTP_USER
