import os

import pytest

from infrastructure.configuration.integrations import SmtpSettings, TelegramSettings
from infrastructure.directory import InMemoryDirectory
from infrastructure.events import clear_handlers
from infrastructure.logging import configure_logging
from tests.factories.notifications import make_contact

_ENV_PREFIXES = (
    "TELEGRAM_",
    "SMTP_",
    "EMAIL_",
    "DIRECTORY_",
    "CHAT_BATCH_SIZE",
    "PORTAL_BASE_URL",
    "LINK_TOKEN_TTL_MINUTES",
    "TASK_REMINDER_SECRET",
    "CORS_ALLOW_ORIGINS",
    "SERVER_",
    "PREFIX",
)


@pytest.fixture(scope="session", autouse=True)
def silence_logging():
    """Route structlog through the pytest-silenced configuration."""
    configure_logging()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep host environment variables out of settings built in tests."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def telegram_settings():
    return TelegramSettings(
        TELEGRAM_BOT_TOKEN="123456:test-token",
        TELEGRAM_BOT_USERNAME="portal_bot",
        TELEGRAM_PREFER_IPV4=False,
    )


@pytest.fixture
def smtp_settings():
    return SmtpSettings(
        SMTP_HOST="smtp.example.com",
        SMTP_PORT=587,
        SMTP_USER="mailer@example.com",
        SMTP_PASS="mail-password",
        SMTP_FROM_EMAIL="portal@example.com",
    )


@pytest.fixture
def contacts():
    return [
        make_contact(
            user_id="u-alice",
            first_name="Alice",
            last_name="Brown",
            role="admin",
            email="alice@example.com",
            chat_id="1001",
            chat_notifications_enabled=True,
            chat_username="Alice_B",
        ),
        make_contact(
            user_id="u-bob",
            first_name="Bob",
            last_name="Stone",
            role="manager",
            email="bob@example.com",
            chat_id="1002",
            chat_notifications_enabled=True,
            chat_username="@bob_stone",
        ),
        make_contact(
            user_id="u-carol",
            first_name="Carol",
            role="staff",
            email="carol@example.com",
            chat_id="1003",
            chat_notifications_enabled=False,
        ),
        make_contact(
            user_id="u-dan",
            first_name="Dan",
            role="staff",
            email=None,
            chat_id=None,
            chat_username="dan_the_man",
        ),
    ]


@pytest.fixture
def directory(contacts):
    return InMemoryDirectory(contacts)


@pytest.fixture
def clean_event_handlers():
    """Empty handler registry for the test, restored afterwards."""
    from infrastructure.events.dispatcher import EVENT_HANDLERS

    saved = {key: list(value) for key, value in EVENT_HANDLERS.items()}
    clear_handlers()
    yield
    clear_handlers()
    EVENT_HANDLERS.update(saved)
