"""structlog configuration.

Local runs render coloured console output, production (empty ``PREFIX``)
emits one JSON object per line for the log shipper, and test runs are
silenced entirely. Module loggers are lazy proxies, so they can be created
at import time and still follow the configuration applied at startup.
"""

import inspect
import logging
import sys
from typing import Any, Callable, List, Optional, Sequence

import structlog
from structlog.stdlib import BoundLogger

from infrastructure.logging.formatters import mask_sensitive_data, truncate_large_values

Processor = Callable[..., Any]

# Rendered mail bodies end up in delivery log events
MAX_LOGGED_VALUE_LENGTH = 2000


def _is_test_environment() -> bool:
    return "pytest" in sys.modules


def _shared_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        mask_sensitive_data(),
        truncate_large_values(max_length=MAX_LOGGED_VALUE_LENGTH),
    ]


def _silence() -> BoundLogger:
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=logging.CRITICAL + 1, force=True)
    return structlog.stdlib.get_logger()


def configure_logging(
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
    extra_processors: Optional[Sequence[Processor]] = None,
) -> BoundLogger:
    """Configure structlog for the process.

    Args:
        log_level: Level name; defaults to ``LOG_LEVEL`` from settings
        is_production: JSON output when True; defaults to the settings flag
        extra_processors: Processors run after redaction, before rendering

    Returns:
        A logger bound to the new configuration
    """
    if _is_test_environment():
        return _silence()

    if log_level is None or is_production is None:
        # Providers import this package; resolve lazily
        from infrastructure.services.providers import get_settings

        settings = get_settings()
        log_level = log_level or settings.LOG_LEVEL
        if is_production is None:
            is_production = settings.is_production

    processors = _shared_processors() + list(extra_processors or [])
    processors.append(
        structlog.processors.JSONRenderer()
        if is_production
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    return structlog.stdlib.get_logger()


def get_module_logger() -> BoundLogger:
    """Logger bound with the calling module's name.

    Example:
        # in modules/telegram_linking/handler.py
        logger = get_module_logger()
        # binds component="handler",
        #       module_path="modules.telegram_linking.handler"
    """
    logger = structlog.stdlib.get_logger()
    caller = inspect.currentframe()
    caller = caller.f_back if caller is not None else None
    module = inspect.getmodule(caller) if caller is not None else None
    if module is None:
        return logger.bind(component="unknown")
    return logger.bind(
        component=module.__name__.rsplit(".", 1)[-1],
        module_path=module.__name__,
    )
