"""Structured logging for the portal notification service.

``configure_logging`` sets up structlog once per process (console output
locally, JSON in production, silenced under pytest). Modules obtain their
logger with ``get_module_logger``; webhook handling wraps each update in
``bind_request_context`` so its log entries share a correlation id.
"""

from infrastructure.logging.context import bind_request_context, get_correlation_id
from infrastructure.logging.formatters import (
    SENSITIVE_PATTERNS,
    mask_sensitive_data,
    truncate_large_values,
)
from infrastructure.logging.setup import configure_logging, get_module_logger

__all__ = [
    "configure_logging",
    "get_module_logger",
    "bind_request_context",
    "get_correlation_id",
    "mask_sensitive_data",
    "truncate_large_values",
    "SENSITIVE_PATTERNS",
]
