"""Contact resolver: user ids or roles to deliverable addresses.

Each lookup returns an OperationResult internally; the public methods
unwrap it to a de-duplicated list and turn any directory failure into an
empty list with a warning.
"""

from typing import Callable, Iterable, List

import structlog

from infrastructure.directory import ContactRecord, DirectoryStore
from infrastructure.operations import OperationResult

logger = structlog.get_logger()


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _email_of(contact: ContactRecord):
    if isinstance(contact.email, str) and contact.email.strip():
        return contact.email.strip()
    return None


def _chat_of(contact: ContactRecord):
    # Rechecked here even when the store already filtered
    if contact.chat_deliverable:
        return contact.chat_id.strip()
    return None


class ContactResolver:
    """Resolves recipients against a DirectoryStore."""

    def __init__(self, directory: DirectoryStore):
        self.directory = directory

    def _collect(
        self,
        fetch: Callable[[], OperationResult],
        pick: Callable[[ContactRecord], object],
        operation: str,
        **context,
    ) -> OperationResult:
        try:
            lookup = fetch()
        except Exception as e:
            logger.warning(
                "contact_resolution_failed",
                operation=operation,
                error=str(e),
                exc_info=True,
                **context,
            )
            return OperationResult.transient_error(
                f"Directory lookup raised: {str(e)}", error_code="DIRECTORY_ERROR"
            )
        if not lookup.is_success:
            logger.warning(
                "contact_resolution_failed",
                operation=operation,
                error=lookup.message,
                error_code=lookup.error_code,
                **context,
            )
            return lookup
        values = [pick(contact) for contact in lookup.data or []]
        return OperationResult.success(data=_unique(v for v in values if v))

    def lookup_email(self, user_ids: List[str]) -> OperationResult:
        if not user_ids:
            return OperationResult.success(data=[])
        return self._collect(
            lambda: self.directory.get_contacts(_unique(user_ids)),
            _email_of,
            "resolve_email",
            user_count=len(user_ids),
        )

    def lookup_chat(self, user_ids: List[str]) -> OperationResult:
        if not user_ids:
            return OperationResult.success(data=[])
        return self._collect(
            lambda: self.directory.get_contacts(_unique(user_ids)),
            _chat_of,
            "resolve_chat",
            user_count=len(user_ids),
        )

    def lookup_email_by_role(self, role: str) -> OperationResult:
        return self._collect(
            lambda: self.directory.get_contacts_by_role(role),
            _email_of,
            "resolve_email_by_role",
            role=role,
        )

    def lookup_chat_by_role(self, role: str) -> OperationResult:
        return self._collect(
            lambda: self.directory.get_contacts_by_role(role),
            _chat_of,
            "resolve_chat_by_role",
            role=role,
        )

    def resolve_email(self, user_ids: List[str]) -> List[str]:
        """Distinct non-empty email addresses of ``user_ids``."""
        return self.lookup_email(user_ids).unwrap_or([])

    def resolve_chat(self, user_ids: List[str]) -> List[str]:
        """Distinct chat ids of ``user_ids`` with chat notifications enabled."""
        return self.lookup_chat(user_ids).unwrap_or([])

    def resolve_email_by_role(self, role: str) -> List[str]:
        return self.lookup_email_by_role(role).unwrap_or([])

    def resolve_chat_by_role(self, role: str) -> List[str]:
        return self.lookup_chat_by_role(role).unwrap_or([])

    def resolve_display_names(self, user_ids: List[str]) -> List[str]:
        """Display names of ``user_ids``, skipping contacts without one."""
        if not user_ids:
            return []
        result = self._collect(
            lambda: self.directory.get_contacts(_unique(user_ids)),
            lambda contact: contact.display_name,
            "resolve_display_names",
            user_count=len(user_ids),
        )
        return result.unwrap_or([])
