"""Error classifiers for transport and storage exceptions.

Converts exceptions raised by the libraries the notification system talks
through (requests for the chat platform, smtplib for mail, botocore for the
DynamoDB directory) into OperationResult objects, so every boundary reports
failures the same way.

Usage:
    from infrastructure.operations.classifiers import classify_http_error

    try:
        response = session.post(url, json=body, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        return classify_http_error(exc)
"""

import smtplib
import socket
from typing import Optional

import requests
from botocore.exceptions import ClientError

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus


def _retry_after_from_response(response: Optional[requests.Response]) -> int:
    default = 60
    if response is None:
        return default

    header_value = response.headers.get("Retry-After")
    if header_value:
        try:
            return int(header_value)
        except (ValueError, TypeError):
            pass

    # Telegram reports flood control in the body
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        parameters = body.get("parameters") or {}
        retry_after = parameters.get("retry_after")
        if isinstance(retry_after, int):
            return retry_after
    return default


def classify_http_error(exc: Exception) -> OperationResult:
    """Classify a ``requests`` exception into an OperationResult.

    Mapping:
    - ConnectTimeout / ReadTimeout: TRANSIENT_ERROR (TIMEOUT)
    - ConnectionError: TRANSIENT_ERROR (CONNECTION_ERROR)
    - HTTPError 429: TRANSIENT_ERROR (RATE_LIMITED) with retry_after
    - HTTPError 401/403: UNAUTHORIZED
    - HTTPError 404: NOT_FOUND
    - HTTPError 5xx: TRANSIENT_ERROR (SERVER_ERROR)
    - HTTPError other 4xx: PERMANENT_ERROR (HTTP_ERROR)
    - Anything else: TRANSIENT_ERROR (UNEXPECTED_ERROR)

    Args:
        exc: Exception raised while talking to an HTTP API

    Returns:
        OperationResult describing the failure
    """
    if isinstance(exc, requests.Timeout):
        return OperationResult.transient_error(
            f"Request timed out: {type(exc).__name__}",
            error_code="TIMEOUT",
        )

    if isinstance(exc, requests.ConnectionError):
        return OperationResult.transient_error(
            f"Connection error: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    if isinstance(exc, requests.HTTPError):
        response = exc.response
        status_code = response.status_code if response is not None else None

        if status_code == 429:
            return OperationResult.error(
                OperationStatus.TRANSIENT_ERROR,
                "Chat platform rate limited",
                error_code="RATE_LIMITED",
                retry_after=_retry_after_from_response(response),
            )

        if status_code in (401, 403):
            return OperationResult.error(
                OperationStatus.UNAUTHORIZED,
                f"Chat platform rejected credentials ({status_code})",
                error_code="UNAUTHORIZED",
            )

        if status_code == 404:
            return OperationResult.not_found(
                "Chat platform endpoint not found",
            )

        if status_code and 500 <= status_code < 600:
            return OperationResult.transient_error(
                f"Chat platform server error ({status_code})",
                error_code="SERVER_ERROR",
            )

        return OperationResult.permanent_error(
            f"Chat platform client error ({status_code}): {str(exc)}",
            error_code="HTTP_ERROR",
        )

    return OperationResult.transient_error(
        f"Unexpected error: {type(exc).__name__}: {str(exc)}",
        error_code="UNEXPECTED_ERROR",
    )


def classify_smtp_error(exc: Exception) -> OperationResult:
    """Classify an ``smtplib`` / socket exception into an OperationResult.

    Mapping:
    - SMTPAuthenticationError: UNAUTHORIZED
    - SMTPRecipientsRefused / SMTPSenderRefused: PERMANENT_ERROR
    - SMTPServerDisconnected / SMTPConnectError / OSError: TRANSIENT_ERROR
    - SMTPResponseException 4xx: TRANSIENT_ERROR, 5xx: PERMANENT_ERROR
    - Anything else: TRANSIENT_ERROR

    Args:
        exc: Exception raised during the SMTP transaction

    Returns:
        OperationResult describing the failure
    """
    if isinstance(exc, smtplib.SMTPAuthenticationError):
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            "SMTP authentication failed",
            error_code="SMTP_AUTH_FAILED",
        )

    if isinstance(exc, smtplib.SMTPRecipientsRefused):
        refused = ", ".join(sorted(exc.recipients.keys()))
        return OperationResult.permanent_error(
            f"SMTP recipients refused: {refused}",
            error_code="SMTP_RECIPIENTS_REFUSED",
        )

    if isinstance(exc, smtplib.SMTPSenderRefused):
        return OperationResult.permanent_error(
            f"SMTP sender refused: {exc.sender}",
            error_code="SMTP_SENDER_REFUSED",
        )

    if isinstance(exc, (smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError)):
        return OperationResult.transient_error(
            f"SMTP connection error: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    if isinstance(exc, smtplib.SMTPResponseException):
        if 400 <= exc.smtp_code < 500:
            return OperationResult.transient_error(
                f"SMTP temporary failure ({exc.smtp_code})",
                error_code="SMTP_ERROR",
            )
        return OperationResult.permanent_error(
            f"SMTP permanent failure ({exc.smtp_code})",
            error_code="SMTP_ERROR",
        )

    if isinstance(exc, socket.timeout):
        return OperationResult.transient_error(
            "SMTP connection timed out",
            error_code="TIMEOUT",
        )

    if isinstance(exc, OSError):
        return OperationResult.transient_error(
            f"SMTP connection error: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    return OperationResult.transient_error(
        f"Unexpected SMTP error: {type(exc).__name__}: {str(exc)}",
        error_code="SMTP_ERROR",
    )


def classify_aws_error(exc: Exception) -> OperationResult:
    """Classify AWS SDK errors into OperationResult.

    Mapping:
    - ConditionalCheckFailedException: CONFLICT
    - ProvisionedThroughputExceededException / ThrottlingException:
      TRANSIENT_ERROR (RATE_LIMITED)
    - AccessDeniedException: UNAUTHORIZED
    - ResourceNotFoundException: NOT_FOUND
    - ValidationException: PERMANENT_ERROR
    - Other ClientError: TRANSIENT_ERROR (AWS convention)
    - Non-ClientError (BotoCoreError, connection): TRANSIENT_ERROR

    Args:
        exc: Exception raised by boto3/botocore

    Returns:
        OperationResult describing the failure
    """
    if not isinstance(exc, ClientError):
        return OperationResult.transient_error(
            f"AWS connection error: {type(exc).__name__}: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    error_code = "Unknown"
    if hasattr(exc, "response") and exc.response:
        error_info = exc.response.get("Error", {})
        error_code = error_info.get("Code", "Unknown")

    if error_code == "ConditionalCheckFailedException":
        return OperationResult.conflict(
            "Conditional write rejected",
            error_code="CONDITION_FAILED",
        )

    if error_code in (
        "ThrottlingException",
        "ProvisionedThroughputExceededException",
    ):
        return OperationResult.error(
            OperationStatus.TRANSIENT_ERROR,
            "AWS API throttled",
            error_code="RATE_LIMITED",
            retry_after=60,
        )

    if error_code == "AccessDeniedException":
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED,
            "AWS API access denied",
            error_code="FORBIDDEN",
        )

    if error_code == "ResourceNotFoundException":
        return OperationResult.not_found("AWS resource not found")

    if error_code == "ValidationException":
        return OperationResult.permanent_error(
            f"AWS validation error: {error_code}",
            error_code="INVALID_REQUEST",
        )

    return OperationResult.transient_error(
        f"AWS client error: {error_code}",
        error_code="AWS_CLIENT_ERROR",
    )
