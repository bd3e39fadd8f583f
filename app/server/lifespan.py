from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from fastapi import FastAPI
from structlog.stdlib import BoundLogger

from infrastructure.events import (
    get_handlers_for_event,
    shutdown_event_executor,
    start_event_executor,
)
from infrastructure.logging.setup import configure_logging
from infrastructure.notifications import REMINDER_REQUESTED_EVENT
from infrastructure.services import (
    get_chat_channel,
    get_email_channel,
    get_notification_dispatcher,
    get_settings,
)

if TYPE_CHECKING:
    from infrastructure.configuration import Settings


def _list_configs(settings: "Settings", logger: BoundLogger) -> None:
    config_settings: dict[str, list[object]] = {"settings": []}

    for key, value in settings.model_dump().items():
        if isinstance(value, dict):
            config_settings[key] = list(value.keys())
        else:
            config_settings["settings"].append({key: value})

    logger.info("configuration_initialized", base_settings=config_settings["settings"])
    for key, value in config_settings.items():
        if key != "settings":
            logger.info("configuration_loaded", config_setting=key, keys=value)


def _register_event_handlers(logger: BoundLogger) -> None:
    # Importing the module registers its handlers
    import modules.reminders.handlers  # noqa: F401  pylint: disable=unused-import,import-outside-toplevel

    logger.info(
        "event_handlers_registered",
        event_type=REMINDER_REQUESTED_EVENT,
        count=len(get_handlers_for_event(REMINDER_REQUESTED_EVENT)),
    )


def _log_channel_status(logger: BoundLogger) -> None:
    email = get_email_channel()
    chat = get_chat_channel()
    logger.info(
        "notification_channels_ready",
        email_configured=email.is_configured,
        chat_configured=chat.is_configured,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger = configure_logging(
        log_level=settings.LOG_LEVEL, is_production=settings.is_production
    )

    app.state.settings = settings
    app.state.logger = logger

    logger.info("application_startup", git_sha=settings.GIT_SHA)
    _list_configs(settings, logger)

    _register_event_handlers(logger)
    start_event_executor()
    _log_channel_status(logger)
    app.state.notification_dispatcher = get_notification_dispatcher()

    try:
        yield
    finally:
        logger.info("application_shutdown")
        shutdown_event_executor(wait=True)
