"""Email channel implementation using an SMTP relay."""

import smtplib
import ssl
import threading
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import List, Optional, Union

import structlog

from infrastructure.configuration.integrations import SmtpSettings
from infrastructure.notifications.channels.base import NotificationChannel
from infrastructure.notifications.models import MailMessage
from infrastructure.operations import OperationResult
from infrastructure.operations.classifiers import classify_smtp_error

logger = structlog.get_logger()


def _as_list(addresses: Union[str, List[str], None]) -> List[str]:
    if not addresses:
        return []
    if isinstance(addresses, str):
        addresses = [addresses]
    return list(dict.fromkeys(a.strip() for a in addresses if a and a.strip()))


class EmailChannel(NotificationChannel):
    """Email notification channel over SMTP.

    One SMTP transaction carries every recipient of a send. Implicit TLS
    is used when ``SMTP_SECURE`` is set, otherwise STARTTLS when the relay
    offers it. Credentials are optional.
    """

    def __init__(self, settings: SmtpSettings):
        self.settings = settings
        self._warned_unconfigured = False
        self._warn_lock = threading.Lock()
        logger.info(
            "initialized_email_channel",
            backend="smtp",
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            secure=settings.SMTP_SECURE,
            sender=settings.sender_address,
        )

    @property
    def channel_name(self) -> str:
        """Channel identifier."""
        return "email"

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    def _not_configured(self, reason: str) -> OperationResult:
        with self._warn_lock:
            if not self._warned_unconfigured:
                self._warned_unconfigured = True
                logger.warning("email_channel_not_configured", reason=reason)
        return OperationResult.permanent_error(
            f"SMTP is not configured: {reason}",
            error_code="NOT_CONFIGURED",
        )

    def _connect(self) -> smtplib.SMTP:
        host = self.settings.SMTP_HOST
        port = self.settings.SMTP_PORT
        timeout = self.settings.SMTP_TIMEOUT_SECONDS
        context = ssl.create_default_context()
        if self.settings.SMTP_SECURE:
            return smtplib.SMTP_SSL(host, port, timeout=timeout, context=context)

        client = smtplib.SMTP(host, port, timeout=timeout)
        client.ehlo()
        if client.has_extn("starttls"):
            client.starttls(context=context)
            client.ehlo()
        return client

    def _build(
        self,
        message: MailMessage,
        sender: str,
        to: List[str],
        cc: List[str],
    ) -> EmailMessage:
        email = EmailMessage()
        email["Subject"] = message.subject
        email["From"] = formataddr((self.settings.SMTP_FROM_NAME, sender))
        if to:
            email["To"] = ", ".join(to)
        elif not cc:
            # Blind-only delivery is addressed to the sender
            email["To"] = email["From"]
        if cc:
            email["Cc"] = ", ".join(cc)
        email["Message-ID"] = make_msgid()
        email.set_content(message.text)
        email.add_alternative(message.html, subtype="html")
        return email

    def send(
        self,
        message: MailMessage,
        to: Union[str, List[str]],
        cc: Optional[List[str]] = None,
        bcc: Optional[List[str]] = None,
    ) -> OperationResult:
        """Send one mail to every address in a single SMTP transaction.

        Args:
            message: Rendered mail
            to: Primary recipients
            cc: Carbon-copy recipients
            bcc: Blind carbon-copy recipients (envelope only)

        Returns:
            OperationResult with ``data`` {"recipients": n, "refused": [...]};
            never raises.
        """
        to_list, cc_list, bcc_list = _as_list(to), _as_list(cc), _as_list(bcc)
        envelope = list(dict.fromkeys(to_list + cc_list + bcc_list))
        if not envelope:
            return OperationResult.permanent_error(
                "No mail recipients", error_code="NO_RECIPIENTS"
            )
        if not self.is_configured:
            return self._not_configured("SMTP_HOST is not set")
        sender = self.settings.sender_address
        if not sender:
            return self._not_configured("no sender address (SMTP_FROM_EMAIL or SMTP_USER)")

        try:
            email = self._build(message, sender, to_list, cc_list)
            with self._connect() as client:
                if self.settings.SMTP_USER and self.settings.SMTP_PASS:
                    client.login(self.settings.SMTP_USER, self.settings.SMTP_PASS)
                refused = client.send_message(email, from_addr=sender, to_addrs=envelope)
        except (smtplib.SMTPException, OSError) as e:
            result = classify_smtp_error(e)
            logger.error(
                "email_send_failed",
                recipients=len(envelope),
                subject=message.subject,
                error=str(e),
                error_code=result.error_code,
            )
            return result
        except Exception as e:
            logger.error(
                "email_send_failed",
                recipients=len(envelope),
                subject=message.subject,
                error=str(e),
                exc_info=True,
            )
            return OperationResult.transient_error(
                f"Unexpected SMTP error: {str(e)}", error_code="SMTP_ERROR"
            )

        if refused:
            logger.warning(
                "email_recipients_refused",
                refused=sorted(refused.keys()),
                subject=message.subject,
            )
        logger.info(
            "email_sent",
            recipients=len(envelope),
            subject=message.subject,
        )
        return OperationResult.success(
            message="Email sent",
            data={"recipients": len(envelope), "refused": sorted(refused or {})},
        )

    def health_check(self) -> OperationResult:
        """Open a connection to the relay and issue NOOP."""
        if not self.is_configured:
            return self._not_configured("SMTP_HOST is not set")
        try:
            with self._connect() as client:
                if self.settings.SMTP_USER and self.settings.SMTP_PASS:
                    client.login(self.settings.SMTP_USER, self.settings.SMTP_PASS)
                client.noop()
        except (smtplib.SMTPException, OSError) as e:
            return classify_smtp_error(e)
        return OperationResult.success(
            message="SMTP relay healthy", data={"host": self.settings.SMTP_HOST}
        )
