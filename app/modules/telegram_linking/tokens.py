"""Admin-side issuing of single-use Telegram link tokens."""

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pydantic import BaseModel

from infrastructure.configuration.integrations import TelegramSettings
from infrastructure.directory import DirectoryStore, LinkToken
from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult
from modules.telegram_linking.errors import LinkingConfigurationError

logger = get_module_logger()

DEFAULT_EXPIRE_MINUTES = 1440


class IssuedLink(BaseModel):
    token: str
    deep_link: str
    expires_at: Optional[datetime] = None


class LinkTokenIssuer:
    """Creates link tokens and the bot deep link that redeems them."""

    def __init__(
        self,
        directory: DirectoryStore,
        settings: TelegramSettings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.directory = directory
        self.settings = settings
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def deep_link(self, token: str) -> str:
        username = (self.settings.TELEGRAM_BOT_USERNAME or "").lstrip("@")
        return f"https://t.me/{username}?start={token}"

    def issue(
        self, user_id: str, expire_in_minutes: Optional[int] = DEFAULT_EXPIRE_MINUTES
    ) -> OperationResult:
        """Revoke the user's outstanding tokens and create a fresh one.

        Args:
            user_id: Owner of the new token
            expire_in_minutes: Lifetime; None or a non-positive value means
                the token never expires

        Returns:
            OperationResult whose data is an IssuedLink

        Raises:
            LinkingConfigurationError: TELEGRAM_BOT_USERNAME is not set
        """
        if not self.settings.TELEGRAM_BOT_USERNAME:
            raise LinkingConfigurationError(
                "TELEGRAM_BOT_USERNAME is not configured"
            )
        if not user_id:
            return OperationResult.permanent_error(
                "user_id is required", error_code="INVALID_REQUEST"
            )

        now = self.clock()
        expires_at = (
            now + timedelta(minutes=expire_in_minutes)
            if expire_in_minutes is not None and expire_in_minutes > 0
            else None
        )

        revoked = self.directory.expire_outstanding_tokens(user_id, now)
        if not revoked.is_success:
            logger.warning(
                "link_token_revoke_failed",
                user_id=user_id,
                error=revoked.message,
            )
            return revoked

        record = LinkToken(
            id=str(uuid.uuid4()),
            owner_user_id=user_id,
            token=secrets.token_hex(16),
            created_at=now,
            expires_at=expires_at,
        )
        created = self.directory.create_link_token(record)
        if not created.is_success:
            logger.warning(
                "link_token_create_failed",
                user_id=user_id,
                error=created.message,
                error_code=created.error_code,
            )
            return created

        logger.info(
            "link_token_issued",
            user_id=user_id,
            revoked=revoked.data,
            expires_at=expires_at.isoformat() if expires_at else None,
        )
        return OperationResult.success(
            data=IssuedLink(
                token=record.token,
                deep_link=self.deep_link(record.token),
                expires_at=expires_at,
            ),
            message="Link token issued",
        )
