"""In-process directory store.

Used by default in development and throughout the test suite. All
mutations happen under one lock so conditional writes behave like their
DynamoDB counterparts.
"""

import threading
from datetime import datetime
from typing import Dict, List, Optional

from infrastructure.directory.base import DirectoryStore
from infrastructure.directory.models import (
    ContactRecord,
    DeliveryLogEntry,
    LinkToken,
)
from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult

logger = get_module_logger()


def _strip_at(handle: Optional[str]) -> Optional[str]:
    if handle is None:
        return None
    return handle[1:] if handle.startswith("@") else handle


class InMemoryDirectory(DirectoryStore):
    """Dictionary-backed DirectoryStore."""

    def __init__(self, contacts: Optional[List[ContactRecord]] = None):
        self._lock = threading.Lock()
        self._contacts: Dict[str, ContactRecord] = {}
        self._tokens: Dict[str, LinkToken] = {}
        self._delivery_log: List[DeliveryLogEntry] = []
        for contact in contacts or []:
            self._contacts[contact.user_id] = contact

    def add_contact(self, contact: ContactRecord) -> None:
        with self._lock:
            self._contacts[contact.user_id] = contact

    @property
    def delivery_log(self) -> List[DeliveryLogEntry]:
        """Snapshot of the delivery log in append order."""
        with self._lock:
            return list(self._delivery_log)

    def get_contacts(self, user_ids: List[str]) -> OperationResult:
        with self._lock:
            found = [
                self._contacts[uid].model_copy()
                for uid in user_ids
                if uid in self._contacts
            ]
        return OperationResult.success(data=found)

    def get_contacts_by_role(self, role: str) -> OperationResult:
        with self._lock:
            found = [c.model_copy() for c in self._contacts.values() if c.role == role]
        return OperationResult.success(data=found)

    def get_contact(self, user_id: str) -> OperationResult:
        with self._lock:
            contact = self._contacts.get(user_id)
        if contact is None:
            return OperationResult.not_found(f"Contact {user_id} not found")
        return OperationResult.success(data=contact.model_copy())

    def find_contacts_by_chat_username(self, username: str) -> OperationResult:
        wanted = _strip_at(username)
        with self._lock:
            found = [
                c.model_copy()
                for c in self._contacts.values()
                if c.chat_username and _strip_at(c.chat_username) == wanted
            ]
        return OperationResult.success(data=found)

    def link_chat(
        self,
        user_id: str,
        chat_id: str,
        linked_at: datetime,
        chat_username: Optional[str] = None,
    ) -> OperationResult:
        changes = {
            "chat_id": str(chat_id),
            "chat_notifications_enabled": True,
            "chat_linked_at": linked_at,
        }
        if chat_username:
            changes["chat_username"] = chat_username
        with self._lock:
            contact = self._contacts.get(user_id)
            if contact is None:
                return OperationResult.not_found(f"Contact {user_id} not found")
            updated = contact.model_copy(update=changes)
            self._contacts[user_id] = updated
        return OperationResult.success(data=updated.model_copy())

    def create_link_token(self, token: LinkToken) -> OperationResult:
        with self._lock:
            if token.token in self._tokens:
                return OperationResult.conflict(
                    "Link token already exists", error_code="DUPLICATE_TOKEN"
                )
            self._tokens[token.token] = token.model_copy()
        return OperationResult.success(data=token)

    def get_link_token(self, token: str) -> OperationResult:
        with self._lock:
            record = self._tokens.get(token)
        if record is None:
            return OperationResult.not_found("Link token not found")
        return OperationResult.success(data=record.model_copy())

    def expire_outstanding_tokens(self, user_id: str, now: datetime) -> OperationResult:
        revoked = 0
        with self._lock:
            for key, record in self._tokens.items():
                if record.owner_user_id == user_id and record.consumed_at is None:
                    self._tokens[key] = record.model_copy(update={"expires_at": now})
                    revoked += 1
        return OperationResult.success(data=revoked)

    def consume_link_token(
        self, token: str, chat_id: str, now: datetime
    ) -> OperationResult:
        with self._lock:
            record = self._tokens.get(token)
            if record is None:
                return OperationResult.not_found("Link token not found")
            if record.consumed_at is not None:
                return OperationResult.conflict(
                    "Link token already consumed", error_code="ALREADY_CONSUMED"
                )
            updated = record.model_copy(
                update={
                    "consumed_at": now,
                    "chat_id": str(chat_id),
                    "last_used_at": now,
                }
            )
            self._tokens[token] = updated
        return OperationResult.success(data=updated.model_copy())

    def release_link_token(
        self, token: str, chat_id: str, consumed_at: datetime
    ) -> OperationResult:
        with self._lock:
            record = self._tokens.get(token)
            if record is None:
                return OperationResult.not_found("Link token not found")
            if record.consumed_at != consumed_at or record.chat_id != str(chat_id):
                return OperationResult.conflict(
                    "Link token not held by this chat", error_code="NOT_HELD"
                )
            updated = record.model_copy(
                update={"consumed_at": None, "chat_id": None, "last_used_at": None}
            )
            self._tokens[token] = updated
        return OperationResult.success(data=updated.model_copy())

    def append_delivery_log(self, entry: DeliveryLogEntry) -> OperationResult:
        with self._lock:
            self._delivery_log.append(entry.model_copy(deep=True))
        return OperationResult.success()
