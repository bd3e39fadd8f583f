"""Directory backend infrastructure settings."""

from typing import Literal

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class DirectorySettings(InfrastructureSettings):
    """Directory store configuration.

    Environment Variables:
        DIRECTORY_BACKEND: ``memory`` (default) or ``dynamodb``
        DIRECTORY_CONTACTS_TABLE: DynamoDB table holding contact records
        DIRECTORY_LINK_TOKENS_TABLE: DynamoDB table holding link tokens
        DIRECTORY_DELIVERY_LOG_TABLE: DynamoDB table for the delivery log
        AWS_REGION: AWS region (default: ca-central-1)
        DYNAMODB_ENDPOINT_URL: Override endpoint (local DynamoDB)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        if settings.directory.DIRECTORY_BACKEND == "dynamodb":
            table = settings.directory.DIRECTORY_CONTACTS_TABLE
        ```
    """

    DIRECTORY_BACKEND: Literal["memory", "dynamodb"] = Field(
        default="memory", alias="DIRECTORY_BACKEND"
    )
    DIRECTORY_CONTACTS_TABLE: str = Field(
        default="portal_contacts", alias="DIRECTORY_CONTACTS_TABLE"
    )
    DIRECTORY_LINK_TOKENS_TABLE: str = Field(
        default="portal_telegram_link_tokens", alias="DIRECTORY_LINK_TOKENS_TABLE"
    )
    DIRECTORY_DELIVERY_LOG_TABLE: str = Field(
        default="portal_notification_logs", alias="DIRECTORY_DELIVERY_LOG_TABLE"
    )
    AWS_REGION: str = Field(default="ca-central-1", alias="AWS_REGION")
    DYNAMODB_ENDPOINT_URL: str | None = Field(
        default=None, alias="DYNAMODB_ENDPOINT_URL"
    )
