"""Unit tests for link token issuing."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from infrastructure.configuration.integrations import TelegramSettings
from infrastructure.directory import DirectoryStore
from infrastructure.operations import OperationResult, OperationStatus
from modules.telegram_linking import IssuedLink, LinkingConfigurationError, LinkTokenIssuer
from tests.factories.notifications import NOW


@pytest.fixture
def issuer(directory, telegram_settings):
    return LinkTokenIssuer(directory, telegram_settings, clock=lambda: NOW)


@pytest.mark.unit
class TestIssue:
    def test_issues_token_and_deep_link(self, issuer, directory):
        result = issuer.issue("u-dan")

        assert result.is_success
        issued = result.data
        assert isinstance(issued, IssuedLink)
        assert len(issued.token) == 32
        assert issued.deep_link == f"https://t.me/portal_bot?start={issued.token}"
        assert issued.expires_at == NOW + timedelta(minutes=1440)
        stored = directory.get_link_token(issued.token).data
        assert stored.owner_user_id == "u-dan"
        assert stored.created_at == NOW
        assert stored.consumed_at is None

    def test_tokens_are_unique(self, issuer):
        first = issuer.issue("u-dan").data.token
        second = issuer.issue("u-dan").data.token
        assert first != second

    def test_reissue_revokes_outstanding_tokens(self, issuer, directory):
        old = issuer.issue("u-dan").data.token

        issuer.issue("u-dan")

        revoked = directory.get_link_token(old).data
        assert revoked.expires_at == NOW
        assert revoked.is_expired(NOW + timedelta(seconds=1))

    @pytest.mark.parametrize("minutes", [None, 0, -5])
    def test_never_expiring_token(self, issuer, directory, minutes):
        issued = issuer.issue("u-dan", expire_in_minutes=minutes).data
        assert issued.expires_at is None
        assert directory.get_link_token(issued.token).data.expires_at is None

    def test_custom_lifetime(self, issuer):
        issued = issuer.issue("u-dan", expire_in_minutes=15).data
        assert issued.expires_at == NOW + timedelta(minutes=15)

    def test_missing_user_id(self, issuer):
        result = issuer.issue("")
        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "INVALID_REQUEST"

    def test_missing_bot_username_raises(self, directory):
        issuer = LinkTokenIssuer(directory, TelegramSettings(TELEGRAM_BOT_TOKEN="t"))
        with pytest.raises(LinkingConfigurationError):
            issuer.issue("u-dan")

    def test_deep_link_strips_at(self, directory):
        settings = TelegramSettings(TELEGRAM_BOT_USERNAME="@portal_bot")
        assert LinkTokenIssuer(directory, settings).deep_link("abc") == (
            "https://t.me/portal_bot?start=abc"
        )

    def test_directory_failure_is_returned(self, telegram_settings):
        store = MagicMock(spec=DirectoryStore)
        store.expire_outstanding_tokens.return_value = OperationResult.success(data=0)
        store.create_link_token.return_value = OperationResult.transient_error(
            "throttled", error_code="DIRECTORY_ERROR"
        )
        issuer = LinkTokenIssuer(store, telegram_settings, clock=lambda: NOW)

        result = issuer.issue("u-dan")

        assert result.status == OperationStatus.TRANSIENT_ERROR
        assert result.error_code == "DIRECTORY_ERROR"
