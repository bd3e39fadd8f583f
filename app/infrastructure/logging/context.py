"""Request-scoped logging context.

Every log entry emitted while a webhook update is handled carries the same
correlation id, so one update can be followed across the handler, the
directory and the Bot API reply.
"""

import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog


@contextmanager
def bind_request_context(
    correlation_id: Optional[str] = None, **fields: Any
) -> Iterator[str]:
    """Bind a correlation id and request fields for the duration of the block.

    Fields whose value is None are not bound. Whatever was bound is removed
    again on exit, including when the block raises.

    Args:
        correlation_id: Identifier to reuse; a new uuid4 when omitted
        **fields: Extra context such as ``request_path`` or ``update_id``

    Yields:
        The correlation id in effect
    """
    correlation_id = correlation_id or str(uuid.uuid4())
    bound = {key: value for key, value in fields.items() if value is not None}
    with structlog.contextvars.bound_contextvars(correlation_id=correlation_id, **bound):
        yield correlation_id


def get_correlation_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get("correlation_id")
