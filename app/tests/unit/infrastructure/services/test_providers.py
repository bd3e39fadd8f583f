"""
Unit tests for dependency injection providers.

Tests cover:
- get_settings() caching behavior
- directory backend selection
- wiring of the channel, dispatcher and linking singletons
- SettingsDep override pattern
"""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from infrastructure.configuration import Settings
from infrastructure.directory import DynamoDBDirectory, InMemoryDirectory
from infrastructure.notifications import ChatChannel, EmailChannel, NotificationDispatcher
from infrastructure.services import providers
from infrastructure.services.dependencies import SettingsDep
from modules.reminders import InMemoryReminderScheduler, ReminderProcessor
from modules.telegram_linking import LinkingHandler, LinkTokenIssuer


@pytest.fixture(autouse=True)
def clear_provider_caches():
    def clear():
        for name in dir(providers):
            provider = getattr(providers, name)
            if name.startswith("get_") and hasattr(provider, "cache_clear"):
                provider.cache_clear()

    clear()
    yield
    clear()


@pytest.mark.unit
class TestGetSettings:
    def test_returns_settings_instance(self):
        assert isinstance(providers.get_settings(), Settings)

    def test_returns_cached_instance(self):
        assert providers.get_settings() is providers.get_settings()

    def test_cache_can_be_cleared(self):
        first = providers.get_settings()
        providers.get_settings.cache_clear()
        assert providers.get_settings() is not first


@pytest.mark.unit
class TestDirectorySelection:
    def test_memory_backend_by_default(self):
        assert isinstance(providers.get_directory(), InMemoryDirectory)

    def test_dynamodb_backend(self, monkeypatch):
        monkeypatch.setenv("DIRECTORY_BACKEND", "dynamodb")
        monkeypatch.delenv("AWS_REGION", raising=False)
        monkeypatch.delenv("DYNAMODB_ENDPOINT_URL", raising=False)
        with patch("infrastructure.directory.dynamodb.boto3.client") as client:
            directory = providers.get_directory()
        assert isinstance(directory, DynamoDBDirectory)
        client.assert_called_once_with("dynamodb", region_name="ca-central-1")


@pytest.mark.unit
class TestServiceWiring:
    def test_channels_follow_settings(self, monkeypatch):
        monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
        monkeypatch.setenv("CHAT_BATCH_SIZE", "3")

        email = providers.get_email_channel()
        chat = providers.get_chat_channel()

        assert isinstance(email, EmailChannel)
        assert email.is_configured is True
        assert isinstance(chat, ChatChannel)
        assert chat.is_configured is False
        assert chat.batch_size == 3

    def test_dispatcher_shares_singletons(self):
        dispatcher = providers.get_notification_dispatcher()

        assert isinstance(dispatcher, NotificationDispatcher)
        assert dispatcher is providers.get_notification_dispatcher()
        assert dispatcher.email_channel is providers.get_email_channel()
        assert dispatcher.chat_channel is providers.get_chat_channel()
        assert dispatcher.directory is providers.get_directory()

    def test_linking_services_share_directory(self):
        handler = providers.get_linking_handler()
        issuer = providers.get_link_token_issuer()

        assert isinstance(handler, LinkingHandler)
        assert isinstance(issuer, LinkTokenIssuer)
        assert handler.directory is issuer.directory is providers.get_directory()
        assert handler.chat_channel is providers.get_chat_channel()

    def test_reminder_scheduler_is_in_memory(self):
        assert isinstance(providers.get_reminder_scheduler(), InMemoryReminderScheduler)

    def test_reminder_processor_shares_scheduler_and_dispatcher(self):
        processor = providers.get_reminder_processor()

        assert isinstance(processor, ReminderProcessor)
        assert processor.scheduler is providers.get_reminder_scheduler()
        assert processor.dispatcher is providers.get_notification_dispatcher()
        assert processor.directory is providers.get_directory()


@pytest.mark.unit
class TestDependencyOverridePattern:
    def test_settings_dep_can_be_overridden(self):
        app = FastAPI()

        @app.get("/config")
        def get_config(settings: SettingsDep) -> dict:
            return {"sha": settings.GIT_SHA}

        mock_settings = MagicMock(spec=Settings)
        mock_settings.GIT_SHA = "override"
        app.dependency_overrides[providers.get_settings] = lambda: mock_settings

        response = TestClient(app).get("/config")

        assert response.json() == {"sha": "override"}
