"""
Factory functions for dependency injection.

Provides application-scoped singleton providers for the notification and
linking services. Each collaborator is built once per process from
settings and injected into the services that need it.
"""

from functools import lru_cache

from infrastructure.configuration import Settings
from infrastructure.directory import DirectoryStore, DynamoDBDirectory, InMemoryDirectory
from infrastructure.logging import get_module_logger
from infrastructure.notifications import (
    ChatChannel,
    ContactResolver,
    EmailChannel,
    NotificationDispatcher,
    TemplateRegistry,
)
from modules.reminders import (
    InMemoryReminderScheduler,
    ReminderProcessor,
    ReminderScheduler,
)
from modules.telegram_linking import LinkingHandler, LinkTokenIssuer

logger = get_module_logger()


@lru_cache
def get_settings() -> Settings:
    """
    Get application-scoped settings singleton.

    This is the single source of truth for settings across the entire application.
    The @lru_cache decorator ensures only ONE instance is created per process.

    Infrastructure packages should use this directly:
        from infrastructure.services.providers import get_settings
        settings = get_settings()

    Application code should use the DI type alias for testability:
        from infrastructure.services import SettingsDep
        @router.get("/config")
        def get_config(settings: SettingsDep):
            return settings.model_dump()

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()


@lru_cache
def get_directory() -> DirectoryStore:
    """
    Get the directory store selected by ``DIRECTORY_BACKEND``.

    Returns:
        DirectoryStore: DynamoDB-backed store, or the in-process store for
        local development.
    """
    settings = get_settings()
    backend = settings.directory.DIRECTORY_BACKEND
    logger.info("directory_backend_selected", backend=backend)
    if backend == "dynamodb":
        return DynamoDBDirectory(settings=settings.directory)
    return InMemoryDirectory()


@lru_cache
def get_email_channel() -> EmailChannel:
    return EmailChannel(get_settings().smtp)


@lru_cache
def get_chat_channel() -> ChatChannel:
    settings = get_settings()
    return ChatChannel(
        settings.telegram, batch_size=settings.notifications.CHAT_BATCH_SIZE
    )


@lru_cache
def get_contact_resolver() -> ContactResolver:
    return ContactResolver(get_directory())


@lru_cache
def get_template_registry() -> TemplateRegistry:
    return TemplateRegistry(portal_base_url=get_settings().notifications.PORTAL_BASE_URL)


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    """Get application-scoped notification dispatcher singleton.

    The lifespan also stores this instance on ``app.state.notification_dispatcher``
    for callers outside the request cycle.
    """
    settings = get_settings()
    return NotificationDispatcher(
        resolver=get_contact_resolver(),
        email_channel=get_email_channel(),
        chat_channel=get_chat_channel(),
        directory=get_directory(),
        templates=get_template_registry(),
        chat_batch_size=settings.notifications.CHAT_BATCH_SIZE,
    )


@lru_cache
def get_linking_handler() -> LinkingHandler:
    return LinkingHandler(get_directory(), get_chat_channel())


@lru_cache
def get_link_token_issuer() -> LinkTokenIssuer:
    return LinkTokenIssuer(get_directory(), get_settings().telegram)


@lru_cache
def get_reminder_scheduler() -> ReminderScheduler:
    return InMemoryReminderScheduler()


@lru_cache
def get_reminder_processor() -> ReminderProcessor:
    return ReminderProcessor(
        get_reminder_scheduler(), get_notification_dispatcher(), get_directory()
    )
