"""Notification channel abstract base class.

Every transport (mail relay, chat platform) implements this interface.
Sends never raise: failures come back as a non-success OperationResult.
"""

from abc import ABC, abstractmethod

from infrastructure.operations import OperationResult


class NotificationChannel(ABC):
    """Abstract base class for notification channels.

    - EmailChannel: SMTP relay
    - ChatChannel: Telegram Bot API
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Channel identifier ("email" or "chat").

        Used as the delivery log channel and in every log line.
        """

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when the transport has the credentials it needs."""

    @abstractmethod
    def health_check(self) -> OperationResult:
        """Check transport reachability and credentials.

        Returns:
            OperationResult indicating channel health
        """
