"""Directory store abstract base class."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from infrastructure.directory.models import DeliveryLogEntry, LinkToken
from infrastructure.operations import OperationResult


class DirectoryStore(ABC):
    """Persistence collaborator for contacts, link tokens and the delivery log.

    Every method returns an OperationResult and never raises. Lookups that
    return collections yield an empty list (not NOT_FOUND) when nothing
    matches.
    """

    @abstractmethod
    def get_contacts(self, user_ids: List[str]) -> OperationResult:
        """Fetch contact records for the given user ids.

        Returns:
            OperationResult with ``data`` a list of ContactRecord. Unknown
            ids are skipped.
        """

    @abstractmethod
    def get_contacts_by_role(self, role: str) -> OperationResult:
        """Fetch every contact holding ``role``."""

    @abstractmethod
    def get_contact(self, user_id: str) -> OperationResult:
        """Fetch one contact; NOT_FOUND when it does not exist."""

    @abstractmethod
    def find_contacts_by_chat_username(self, username: str) -> OperationResult:
        """Find contacts whose stored chat handle equals ``username``.

        Matching is case-sensitive. A stored handle with a leading "@"
        matches the same handle without it.
        """

    @abstractmethod
    def link_chat(
        self,
        user_id: str,
        chat_id: str,
        linked_at: datetime,
        chat_username: Optional[str] = None,
    ) -> OperationResult:
        """Store ``chat_id`` on the contact and enable chat notifications.

        ``chat_username`` replaces the stored handle when given. A missing
        contact yields NOT_FOUND.
        """

    @abstractmethod
    def create_link_token(self, token: LinkToken) -> OperationResult:
        """Persist a freshly issued link token."""

    @abstractmethod
    def get_link_token(self, token: str) -> OperationResult:
        """Fetch a link token by its opaque value; NOT_FOUND when unknown."""

    @abstractmethod
    def expire_outstanding_tokens(self, user_id: str, now: datetime) -> OperationResult:
        """Set ``expires_at = now`` on the user's unconsumed tokens.

        Returns:
            OperationResult with ``data`` the number of tokens revoked.
        """

    @abstractmethod
    def consume_link_token(
        self, token: str, chat_id: str, now: datetime
    ) -> OperationResult:
        """Mark the token consumed by ``chat_id`` only if still unconsumed.

        Returns:
            SUCCESS with the updated LinkToken, CONFLICT
            (``ALREADY_CONSUMED``) when another redemption won, NOT_FOUND
            when the token does not exist.
        """

    @abstractmethod
    def release_link_token(
        self, token: str, chat_id: str, consumed_at: datetime
    ) -> OperationResult:
        """Undo a consumption so the token can be redeemed again.

        Only applies while the token still carries this ``chat_id`` and
        ``consumed_at``; otherwise CONFLICT.
        """

    @abstractmethod
    def append_delivery_log(self, entry: DeliveryLogEntry) -> OperationResult:
        """Append one delivery log entry."""
