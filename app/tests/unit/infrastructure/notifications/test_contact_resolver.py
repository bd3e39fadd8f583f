"""Unit tests for the contact resolver."""

from unittest.mock import MagicMock

import pytest

from infrastructure.directory import DirectoryStore
from infrastructure.notifications import ContactResolver
from infrastructure.operations import OperationResult, OperationStatus
from tests.factories import make_contact


@pytest.fixture
def resolver(directory):
    return ContactResolver(directory)


@pytest.mark.unit
class TestResolveEmail:
    def test_returns_distinct_addresses(self, resolver):
        emails = resolver.resolve_email(["u-alice", "u-bob", "u-alice", "u-dan"])
        assert emails == ["alice@example.com", "bob@example.com"]

    def test_empty_ids_skip_directory(self):
        store = MagicMock(spec=DirectoryStore)
        assert ContactResolver(store).resolve_email([]) == []
        store.get_contacts.assert_not_called()

    def test_shared_address_is_returned_once(self):
        store = MagicMock(spec=DirectoryStore)
        store.get_contacts.return_value = OperationResult.success(
            data=[
                make_contact("u-1", email="team@example.com"),
                make_contact("u-2", email=" team@example.com "),
            ]
        )
        assert ContactResolver(store).resolve_email(["u-1", "u-2"]) == [
            "team@example.com"
        ]

    def test_by_role(self, resolver):
        assert resolver.resolve_email_by_role("staff") == ["carol@example.com"]


@pytest.mark.unit
class TestResolveChat:
    def test_only_enabled_contacts(self, resolver):
        chats = resolver.resolve_chat(["u-alice", "u-bob", "u-carol", "u-dan"])
        assert chats == ["1001", "1002"]

    def test_by_role(self, resolver):
        assert resolver.resolve_chat_by_role("admin") == ["1001"]
        assert resolver.resolve_chat_by_role("staff") == []


@pytest.mark.unit
class TestDirectoryFailures:
    def test_failed_lookup_yields_empty_list(self):
        store = MagicMock(spec=DirectoryStore)
        store.get_contacts.return_value = OperationResult.transient_error(
            "down", error_code="DIRECTORY_ERROR"
        )
        resolver = ContactResolver(store)

        assert resolver.resolve_email(["u-1"]) == []
        assert resolver.lookup_email(["u-1"]).status == OperationStatus.TRANSIENT_ERROR

    def test_raising_store_yields_empty_list(self):
        store = MagicMock(spec=DirectoryStore)
        store.get_contacts_by_role.side_effect = RuntimeError("boom")
        resolver = ContactResolver(store)

        assert resolver.resolve_chat_by_role("admin") == []
        assert resolver.lookup_chat_by_role("admin").error_code == "DIRECTORY_ERROR"


@pytest.mark.unit
class TestResolveDisplayNames:
    def test_skips_blank_names(self):
        store = MagicMock(spec=DirectoryStore)
        store.get_contacts.return_value = OperationResult.success(
            data=[
                make_contact("u-1", first_name="Alice", last_name="Brown"),
                make_contact("u-2", first_name=None, last_name=None),
            ]
        )
        assert ContactResolver(store).resolve_display_names(["u-1", "u-2"]) == [
            "Alice Brown"
        ]

    def test_empty_ids(self, resolver):
        assert resolver.resolve_display_names([]) == []
