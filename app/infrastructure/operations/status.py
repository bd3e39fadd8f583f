"""Operation status enumeration.

Status codes carried by every OperationResult crossing a boundary in the
notification system (directory lookups, template rendering, channel sends).
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Network failure, timeout, platform hiccup
        PERMANENT_ERROR: Misconfiguration, rejected request, invalid input
        UNAUTHORIZED: Credentials rejected by the remote side
        NOT_FOUND: Record or template does not exist
        CONFLICT: Conditional write lost (e.g. token already consumed)
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
