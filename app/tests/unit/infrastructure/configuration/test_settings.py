"""Unit tests for the settings aggregator and its sections."""

import pytest

from infrastructure.configuration import (
    DirectorySettings,
    NotificationSettings,
    ServerSettings,
    Settings,
    SmtpSettings,
    TelegramSettings,
)


@pytest.mark.unit
class TestSettingsAggregator:
    def test_builds_every_section(self):
        settings = Settings()
        assert isinstance(settings.telegram, TelegramSettings)
        assert isinstance(settings.smtp, SmtpSettings)
        assert isinstance(settings.notifications, NotificationSettings)
        assert isinstance(settings.directory, DirectorySettings)
        assert isinstance(settings.server, ServerSettings)

    def test_explicit_section_is_kept(self):
        telegram = TelegramSettings(TELEGRAM_BOT_TOKEN="t")
        settings = Settings(telegram=telegram)
        assert settings.telegram is telegram

    def test_production_when_prefix_empty(self, monkeypatch):
        monkeypatch.setenv("PREFIX", "")
        assert Settings().is_production is True

    def test_not_production_with_prefix(self, monkeypatch):
        monkeypatch.setenv("PREFIX", "dev-")
        assert Settings().is_production is False


@pytest.mark.unit
class TestTelegramSettings:
    def test_defaults(self):
        settings = TelegramSettings()
        assert settings.TELEGRAM_API_BASE == "https://api.telegram.org"
        assert settings.TELEGRAM_CONNECT_TIMEOUT_SECONDS == 15.0
        assert settings.TELEGRAM_READ_TIMEOUT_SECONDS == 30.0
        assert settings.TELEGRAM_PREFER_IPV4 is True
        assert settings.is_configured is False

    def test_configured_from_environment(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
        assert TelegramSettings().is_configured is True


@pytest.mark.unit
class TestSmtpSettings:
    def test_defaults(self):
        settings = SmtpSettings()
        assert settings.SMTP_PORT == 587
        assert settings.SMTP_SECURE is False
        assert settings.SMTP_FROM_NAME == "Portal"
        assert settings.is_configured is False

    def test_legacy_email_names(self, monkeypatch):
        monkeypatch.setenv("EMAIL_HOST", "mail.example.com")
        monkeypatch.setenv("EMAIL_PORT", "465")
        monkeypatch.setenv("EMAIL_SECURE", "true")
        monkeypatch.setenv("EMAIL_FROM", "noreply@example.com")
        settings = SmtpSettings()
        assert settings.SMTP_HOST == "mail.example.com"
        assert settings.SMTP_PORT == 465
        assert settings.SMTP_SECURE is True
        assert settings.sender_address == "noreply@example.com"

    def test_sender_falls_back_to_user(self):
        settings = SmtpSettings(SMTP_HOST="h", SMTP_USER="mailer@example.com")
        assert settings.sender_address == "mailer@example.com"


@pytest.mark.unit
class TestNotificationSettings:
    def test_batch_size_is_clamped(self):
        assert NotificationSettings(CHAT_BATCH_SIZE=0).CHAT_BATCH_SIZE == 1

    def test_portal_url_trailing_slash_removed(self):
        settings = NotificationSettings(PORTAL_BASE_URL="https://portal.example.com/")
        assert settings.PORTAL_BASE_URL == "https://portal.example.com"

    def test_link_token_ttl_default(self):
        assert NotificationSettings().LINK_TOKEN_TTL_MINUTES == 1440

    def test_reminder_secret_from_environment(self, monkeypatch):
        assert NotificationSettings().TASK_REMINDER_SECRET is None
        monkeypatch.setenv("TASK_REMINDER_SECRET", "s3cret")
        assert NotificationSettings().TASK_REMINDER_SECRET == "s3cret"


@pytest.mark.unit
class TestInfrastructureSettings:
    def test_directory_defaults_to_memory(self, monkeypatch):
        monkeypatch.delenv("AWS_REGION", raising=False)
        settings = DirectorySettings()
        assert settings.DIRECTORY_BACKEND == "memory"
        assert settings.AWS_REGION == "ca-central-1"

    def test_cors_origins_split(self):
        settings = ServerSettings(
            CORS_ALLOW_ORIGINS="https://a.example.com, https://b.example.com,"
        )
        assert settings.cors_origins == [
            "https://a.example.com",
            "https://b.example.com",
        ]

    def test_server_bind_defaults(self):
        settings = ServerSettings()
        assert settings.SERVER_HOST == "0.0.0.0"
        assert settings.SERVER_PORT == 8000
        assert settings.cors_origins == []
