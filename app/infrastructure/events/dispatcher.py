"""Handler registry and dispatch for in-process events.

Handlers register per event type with ``register_event_handler``. An event
is delivered either synchronously (``dispatch_event``) or on a shared
thread pool (``dispatch_background``) so the emitter never waits on its
consumers. The pool is created lazily, started again by the application
lifespan and closed on shutdown; events submitted after shutdown are
dropped and logged.
"""

import atexit
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from infrastructure.events.models import Event
from infrastructure.logging import get_module_logger

logger = get_module_logger()

Handler = Callable[[Event], Any]

# event_type -> handlers in registration order
EVENT_HANDLERS: Dict[str, List[Handler]] = {}

DEFAULT_MAX_WORKERS = 4


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__name__", repr(handler))


def register_event_handler(event_type: str) -> Callable[[Handler], Handler]:
    """Decorator registering ``handler`` for ``event_type``.

    Registering the same function twice for one type is a no-op.
    """

    def decorator(handler: Handler) -> Handler:
        handlers = EVENT_HANDLERS.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(
                "registered_event_handler",
                handler=_handler_name(handler),
                event_type=event_type,
                total_handlers=len(handlers),
            )
        return handler

    return decorator


def get_handlers_for_event(event_type: str) -> List[Handler]:
    return list(EVENT_HANDLERS.get(event_type, []))


def clear_handlers() -> None:
    """Empty the registry (tests only)."""
    EVENT_HANDLERS.clear()


def dispatch_event(event: Event) -> List[Any]:
    """Run every handler of ``event.event_type`` in the calling thread.

    A failing handler is logged and skipped; the others still run.

    Returns:
        Return values of the handlers that completed, in order
    """
    handlers = get_handlers_for_event(event.event_type)
    logger.info(
        "dispatching_event",
        event_type=event.event_type,
        handler_count=len(handlers),
        correlation_id=str(event.correlation_id),
    )

    results = []
    for handler in handlers:
        try:
            results.append(handler(event))
        except Exception as e:
            logger.error(
                "event_handler_failed",
                handler=_handler_name(handler),
                event_type=event.event_type,
                correlation_id=str(event.correlation_id),
                error=str(e),
                exc_info=True,
            )
    return results


class _BackgroundPool:
    """Lazily created executor that refuses work once closed."""

    def __init__(self):
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._closed = False

    def open(self, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        with self._lock:
            self._closed = False
        self.get(max_workers)

    def get(self, max_workers: int = DEFAULT_MAX_WORKERS) -> Optional[ThreadPoolExecutor]:
        with self._lock:
            if self._closed:
                return None
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=max_workers, thread_name_prefix="events"
                )
                logger.debug("created_background_event_executor", max_workers=max_workers)
            return self._executor

    def close(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
            self._closed = True
        if executor is not None:
            executor.shutdown(wait=wait)
            logger.debug("background_event_executor_shut_down", wait=wait)


_pool = _BackgroundPool()
atexit.register(_pool.close, wait=False)


def start_event_executor(max_workers: int = DEFAULT_MAX_WORKERS) -> None:
    """(Re)open the background pool."""
    _pool.open(max_workers)


def shutdown_event_executor(wait: bool = True) -> None:
    """Close the background pool; later submissions are dropped. Idempotent."""
    _pool.close(wait=wait)


def _run_in_background(event: Event) -> None:
    try:
        dispatch_event(event)
    except Exception as e:
        logger.exception(
            "background_event_dispatch_failed",
            event_type=event.event_type,
            correlation_id=str(event.correlation_id),
            error=str(e),
        )


def dispatch_background(event: Event) -> Optional[Future]:
    """Submit ``event`` to the background pool without waiting.

    Handler errors are logged in the worker and never reach the caller.

    Returns:
        The submitted future, or None when the event was dropped
    """
    executor = _pool.get()
    if executor is None:
        logger.error(
            "event_executor_unavailable",
            event_type=event.event_type,
            correlation_id=str(event.correlation_id),
        )
        return None
    try:
        return executor.submit(_run_in_background, event)
    except RuntimeError as e:
        # Closed between get() and submit()
        logger.error(
            "failed_to_submit_event_to_executor",
            event_type=event.event_type,
            correlation_id=str(event.correlation_id),
            error=str(e),
        )
        return None
