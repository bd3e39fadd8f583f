"""Linking handshake between portal users and Telegram chats.

An inbound update is resolved along one of two paths:

- token path: ``/start <token>`` redeems a single-use link token issued
  from the admin side
- passive path: any other message is matched on the sender's username
  against the handle stored on a contact

Every terminal state sends its own reply to the chat and is returned as a
LinkOutcome. Nothing here raises to the webhook.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from infrastructure.directory import DirectoryStore
from infrastructure.logging import get_module_logger
from infrastructure.notifications.channels.chat import ChatChannel
from infrastructure.notifications.models import ChatMessage
from infrastructure.operations import OperationStatus
from modules.telegram_linking import messages
from modules.telegram_linking.updates import InboundUpdate, extract_update
from modules.telegram_linking.usernames import is_valid_username, sanitize_username

logger = get_module_logger()


class LinkOutcome(str, Enum):
    IGNORED = "ignored"
    TOKEN_NOT_FOUND = "token_not_found"
    TOKEN_ALREADY_USED = "token_already_used"
    TOKEN_EXPIRED = "token_expired"
    LINK_FAILED = "link_failed"
    LINKED = "linked"
    USERNAME_MISSING = "username_missing"
    USERNAME_INVALID = "username_invalid"
    LOOKUP_FAILED = "lookup_failed"
    NO_ACCOUNT = "no_account"


REPLIES = {
    LinkOutcome.TOKEN_NOT_FOUND: messages.TOKEN_NOT_FOUND,
    LinkOutcome.TOKEN_ALREADY_USED: messages.TOKEN_ALREADY_USED,
    LinkOutcome.TOKEN_EXPIRED: messages.TOKEN_EXPIRED,
    LinkOutcome.LINK_FAILED: messages.LINK_FAILED,
    LinkOutcome.USERNAME_MISSING: messages.USERNAME_MISSING,
    LinkOutcome.USERNAME_INVALID: messages.USERNAME_INVALID,
    LinkOutcome.LOOKUP_FAILED: messages.LOOKUP_FAILED,
    LinkOutcome.NO_ACCOUNT: messages.NO_ACCOUNT,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LinkingHandler:
    """Resolves inbound updates against link tokens and stored handles.

    Args:
        directory: Store holding contacts and link tokens
        chat_channel: Transport used for replies
        clock: Returns the current time (tests pin it)
    """

    def __init__(
        self,
        directory: DirectoryStore,
        chat_channel: ChatChannel,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.directory = directory
        self.chat_channel = chat_channel
        self.clock = clock or _utcnow

    def handle(self, raw_update: Any) -> LinkOutcome:
        """Process one raw webhook update and reply to its chat."""
        update = extract_update(raw_update)
        if update is None:
            logger.debug("telegram_update_ignored", reason="no chat or sender")
            return LinkOutcome.IGNORED

        try:
            token = update.start_token
            if token:
                outcome, name = self._link_with_token(update, token)
            else:
                outcome, name = self._link_with_username(update)
        except Exception as e:
            logger.error(
                "telegram_linking_failed",
                chat_id=update.chat_id,
                error=str(e),
                exc_info=True,
            )
            outcome, name = LinkOutcome.LINK_FAILED, None

        self._reply(update.chat_id, outcome, name)
        logger.info(
            "telegram_linking_completed",
            chat_id=update.chat_id,
            outcome=outcome.value,
            update_kind=update.kind,
        )
        return outcome

    def _link_with_token(self, update: InboundUpdate, token: str):
        now = self.clock()
        lookup = self.directory.get_link_token(token)
        if lookup.status == OperationStatus.NOT_FOUND:
            return LinkOutcome.TOKEN_NOT_FOUND, None
        if not lookup.is_success:
            logger.warning(
                "link_token_lookup_failed",
                chat_id=update.chat_id,
                error=lookup.message,
                error_code=lookup.error_code,
            )
            return LinkOutcome.LINK_FAILED, None

        record = lookup.data
        if record.is_consumed:
            return LinkOutcome.TOKEN_ALREADY_USED, None
        if record.is_expired(now):
            return LinkOutcome.TOKEN_EXPIRED, None

        consumed = self.directory.consume_link_token(token, update.chat_id, now)
        if consumed.status == OperationStatus.CONFLICT:
            logger.info(
                "link_token_redemption_lost",
                chat_id=update.chat_id,
                owner_user_id=record.owner_user_id,
            )
            return LinkOutcome.TOKEN_ALREADY_USED, None
        if consumed.status == OperationStatus.NOT_FOUND:
            return LinkOutcome.TOKEN_NOT_FOUND, None
        if not consumed.is_success:
            logger.warning(
                "link_token_consume_failed",
                chat_id=update.chat_id,
                owner_user_id=record.owner_user_id,
                error=consumed.message,
            )
            return LinkOutcome.LINK_FAILED, None

        outcome, name = self._link_contact(
            record.owner_user_id, update, now, sanitize_username(update.username)
        )
        if outcome == LinkOutcome.LINK_FAILED:
            # Hand the token back so the user can retry
            released = self.directory.release_link_token(token, update.chat_id, now)
            if not released.is_success:
                logger.warning(
                    "link_token_release_failed",
                    chat_id=update.chat_id,
                    owner_user_id=record.owner_user_id,
                    error=released.message,
                    error_code=released.error_code,
                )
        return outcome, name

    def _link_with_username(self, update: InboundUpdate):
        username = sanitize_username(update.username)
        if not username:
            return LinkOutcome.USERNAME_MISSING, None
        if not is_valid_username(username):
            return LinkOutcome.USERNAME_INVALID, None

        lookup = self.directory.find_contacts_by_chat_username(username)
        if not lookup.is_success:
            logger.warning(
                "chat_username_lookup_failed",
                chat_id=update.chat_id,
                error=lookup.message,
                error_code=lookup.error_code,
            )
            return LinkOutcome.LOOKUP_FAILED, None

        matches = lookup.data or []
        if not matches:
            return LinkOutcome.NO_ACCOUNT, None
        if len(matches) > 1:
            # A handle must identify one contact
            logger.warning(
                "chat_username_ambiguous",
                chat_id=update.chat_id,
                matches=len(matches),
            )
            return LinkOutcome.LOOKUP_FAILED, None

        return self._link_contact(matches[0].user_id, update, self.clock(), username)

    def _link_contact(
        self,
        user_id: str,
        update: InboundUpdate,
        now: datetime,
        username: Optional[str],
    ):
        linked = self.directory.link_chat(
            user_id, update.chat_id, now, chat_username=username
        )
        if not linked.is_success:
            logger.warning(
                "contact_link_failed",
                user_id=user_id,
                chat_id=update.chat_id,
                error=linked.message,
                error_code=linked.error_code,
            )
            return LinkOutcome.LINK_FAILED, None

        logger.info("telegram_chat_linked", user_id=user_id, chat_id=update.chat_id)
        return LinkOutcome.LINKED, linked.data.display_name

    def _reply(self, chat_id: str, outcome: LinkOutcome, name: Optional[str]) -> None:
        if outcome == LinkOutcome.LINKED:
            text = messages.linked(name or "")
        else:
            text = REPLIES.get(outcome)
        if text is None:
            return
        try:
            result = self.chat_channel.send(
                chat_id, ChatMessage(text=text, disable_web_page_preview=True)
            )
        except Exception as e:
            logger.error(
                "telegram_reply_failed",
                chat_id=chat_id,
                outcome=outcome.value,
                error=str(e),
                exc_info=True,
            )
            return
        if not result.is_success:
            logger.warning(
                "telegram_reply_failed",
                chat_id=chat_id,
                outcome=outcome.value,
                error=result.message,
            )
