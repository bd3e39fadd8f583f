"""Result wrapper returned across every boundary of the notification system.

The resolver, the channel transports, the template registry and the
directory stores never raise to their callers; they return an
OperationResult whose status tells the caller whether a retry can help.
"""

from dataclasses import dataclass
from typing import Any, Optional

from infrastructure.operations.status import OperationStatus


@dataclass
class OperationResult:
    """Outcome of one operation.

    Attributes:
        status: High-level outcome
        message: Human-readable detail for logs
        data: Payload (record, list of addresses, rendered message)
        error_code: Machine-readable code, e.g. ``RATE_LIMITED``
        retry_after: Seconds the remote side asked us to wait
    """

    status: OperationStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None
    retry_after: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @property
    def is_retryable(self) -> bool:
        return self.status == OperationStatus.TRANSIENT_ERROR

    def unwrap_or(self, default: Any) -> Any:
        """``data`` on success, ``default`` for any other status."""
        return self.data if self.is_success else default

    @classmethod
    def success(cls, data: Optional[Any] = None, message: str = "ok") -> "OperationResult":
        return cls(status=OperationStatus.SUCCESS, message=message, data=data)

    @classmethod
    def error(
        cls,
        status: OperationStatus,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
        data: Optional[Any] = None,
    ) -> "OperationResult":
        return cls(
            status=status,
            message=message,
            data=data,
            error_code=error_code,
            retry_after=retry_after,
        )

    @classmethod
    def transient_error(
        cls,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> "OperationResult":
        """Connection failures, timeouts, rate limits, 5xx answers."""
        return cls.error(OperationStatus.TRANSIENT_ERROR, message, error_code, retry_after)

    @classmethod
    def permanent_error(cls, message: str, error_code: Optional[str] = None) -> "OperationResult":
        """Missing configuration, rejected recipients, malformed requests."""
        return cls.error(OperationStatus.PERMANENT_ERROR, message, error_code)

    @classmethod
    def not_found(cls, message: str, error_code: Optional[str] = "NOT_FOUND") -> "OperationResult":
        return cls.error(OperationStatus.NOT_FOUND, message, error_code)

    @classmethod
    def conflict(cls, message: str, error_code: Optional[str] = "CONFLICT") -> "OperationResult":
        """A conditional write lost to a concurrent writer."""
        return cls.error(OperationStatus.CONFLICT, message, error_code)
