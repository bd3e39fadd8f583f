"""Chat channel implementation using the Telegram Bot API."""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Iterable, List, Optional

import requests
import structlog

from infrastructure.configuration.integrations import TelegramSettings
from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.channels.sessions import build_session
from infrastructure.notifications.models import ChatMessage, FanOutResult
from infrastructure.operations import OperationResult
from infrastructure.operations.classifiers import classify_http_error

logger = structlog.get_logger()

DEFAULT_BATCH_SIZE = 5


def unique_chat_ids(chat_ids: Iterable[Any]) -> List[str]:
    """Order-preserving de-duplication; falsy ids are dropped."""
    seen = dict.fromkeys(str(chat_id) for chat_id in chat_ids if chat_id)
    return list(seen)


class ChatChannel(NotificationChannel):
    """Telegram chat notification channel.

    Sends ``sendMessage`` calls over a shared requests Session. When no bot
    token is configured a single warning is logged and every send fails
    fast without network I/O.

    Args:
        settings: Telegram settings (token, API base, timeouts)
        session: Optional pre-built session (tests inject a mock)
        batch_size: Default fan-out width for ``send_to_many``
    """

    def __init__(
        self,
        settings: TelegramSettings,
        session: Optional[requests.Session] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self.settings = settings
        self.session = session or build_session(settings.TELEGRAM_PREFER_IPV4)
        self.batch_size = batch_size
        self.timeout = (
            settings.TELEGRAM_CONNECT_TIMEOUT_SECONDS,
            settings.TELEGRAM_READ_TIMEOUT_SECONDS,
        )
        self._warned_unconfigured = False
        self._warn_lock = threading.Lock()
        logger.info(
            "initialized_chat_channel",
            backend="telegram",
            configured=self.is_configured,
            prefer_ipv4=settings.TELEGRAM_PREFER_IPV4,
        )

    @property
    def channel_name(self) -> str:
        """Channel identifier."""
        return "chat"

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    def _method_url(self, method: str) -> str:
        base = self.settings.TELEGRAM_API_BASE.rstrip("/")
        return f"{base}/bot{self.settings.TELEGRAM_BOT_TOKEN}/{method}"

    def _not_configured(self) -> OperationResult:
        with self._warn_lock:
            if not self._warned_unconfigured:
                self._warned_unconfigured = True
                logger.warning(
                    "chat_channel_not_configured",
                    reason="TELEGRAM_BOT_TOKEN is not set",
                )
        return OperationResult.permanent_error(
            "Telegram bot token is not configured",
            error_code="NOT_CONFIGURED",
        )

    def _call(self, method: str, body: dict) -> OperationResult:
        try:
            response = self.session.post(
                self._method_url(method), json=body, timeout=self.timeout
            )
        except requests.RequestException as e:
            return classify_http_error(e)

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and payload.get("ok") is True:
            return OperationResult.success(data=payload.get("result"))

        if response.status_code >= 400:
            try:
                response.raise_for_status()
            except requests.HTTPError as e:
                result = classify_http_error(e)
                if isinstance(payload, dict) and payload.get("description"):
                    result.message = f"{result.message}: {payload['description']}"
                return result

        description = (
            payload.get("description") if isinstance(payload, dict) else None
        ) or "Telegram API returned a non-ok response"
        return OperationResult.permanent_error(description, error_code="PLATFORM_ERROR")

    def send(self, chat_id: str, message: ChatMessage) -> OperationResult:
        """Send one message to one chat.

        Args:
            chat_id: Target chat id
            message: Rendered chat message

        Returns:
            OperationResult; never raises.
        """
        if not self.is_configured:
            return self._not_configured()

        try:
            result = self._call("sendMessage", message.to_request_body(str(chat_id)))
        except Exception as e:
            logger.error(
                "telegram_message_failed",
                chat_id=str(chat_id),
                error=str(e),
                exc_info=True,
            )
            return OperationResult.transient_error(
                f"Unexpected error sending chat message: {str(e)}",
                error_code="UNEXPECTED_ERROR",
            )

        if result.is_success:
            logger.debug("telegram_message_sent", chat_id=str(chat_id))
        else:
            logger.warning(
                "telegram_message_failed",
                chat_id=str(chat_id),
                error=result.message,
                error_code=result.error_code,
                retry_after=result.retry_after,
            )
        return result

    def send_to_many(
        self,
        chat_ids: Iterable[Any],
        message: ChatMessage,
        batch_size: Optional[int] = None,
    ) -> FanOutResult:
        """Send ``message`` to every distinct chat id in bounded batches.

        Each batch runs concurrently on its own executor; the next batch
        starts only after every call of the current one has finished, so at
        most ``batch_size`` calls are in flight. A failed recipient never
        aborts the batch.

        Args:
            chat_ids: Target chat ids (duplicates and falsy values dropped)
            message: Rendered chat message
            batch_size: Fan-out width; defaults to the channel's width,
                values below 1 fall back to 1

        Returns:
            FanOutResult with successful and failed counts
        """
        targets = unique_chat_ids(chat_ids)
        outcome = FanOutResult()
        if not targets:
            return outcome

        width = batch_size if batch_size is not None else self.batch_size
        if width < 1:
            width = 1

        for start in range(0, len(targets), width):
            batch = targets[start : start + width]
            with ThreadPoolExecutor(
                max_workers=len(batch), thread_name_prefix="chat-send"
            ) as executor:
                future_to_chat = {
                    executor.submit(self.send, chat_id, message): chat_id
                    for chat_id in batch
                }
                for future in as_completed(future_to_chat):
                    chat_id = future_to_chat[future]
                    try:
                        succeeded = future.result().is_success
                    except Exception as exc:  # pylint: disable=broad-except
                        logger.exception(
                            "telegram_send_exception", chat_id=chat_id, error=str(exc)
                        )
                        succeeded = False
                    if succeeded:
                        outcome.successful += 1
                    else:
                        outcome.failed += 1

        logger.info(
            "telegram_fan_out_completed",
            recipients=len(targets),
            successful=outcome.successful,
            failed=outcome.failed,
            batch_size=width,
        )
        return outcome

    def health_check(self) -> OperationResult:
        """Check Bot API connectivity with ``getMe``."""
        if not self.is_configured:
            return self._not_configured()
        result = self._call("getMe", {})
        if result.is_success:
            username = (result.data or {}).get("username")
            return OperationResult.success(
                message="Telegram Bot API healthy", data={"username": username}
            )
        return result
