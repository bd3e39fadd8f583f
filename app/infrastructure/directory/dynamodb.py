"""DynamoDB directory store.

Tables (all keyed by a single string partition key):

- contacts: ``user_id``
- link tokens: ``token``
- delivery log: ``id`` (uuid4)

Token consumption relies on a ConditionExpression so that two concurrent
redemptions of the same token cannot both succeed.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from infrastructure.configuration.infrastructure import DirectorySettings
from infrastructure.directory.base import DirectoryStore
from infrastructure.directory.models import (
    ContactRecord,
    DeliveryLogEntry,
    LinkToken,
)
from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult, OperationStatus
from infrastructure.operations.classifiers import classify_aws_error

logger = get_module_logger()

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def to_item(data: Dict[str, Any]) -> Dict[str, Any]:
    """Serialize a plain dict to DynamoDB attribute format, dropping Nones."""
    return {k: _serializer.serialize(v) for k, v in data.items() if v is not None}


def from_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """Deserialize a DynamoDB item to a plain dict."""
    return {k: _deserializer.deserialize(v) for k, v in item.items()}


class DynamoDBDirectory(DirectoryStore):
    """DirectoryStore backed by three DynamoDB tables."""

    def __init__(
        self,
        settings: Optional[DirectorySettings] = None,
        client: Any = None,
    ):
        self.settings = settings or DirectorySettings()
        if client is None:
            client_config: Dict[str, Any] = {"region_name": self.settings.AWS_REGION}
            if self.settings.DYNAMODB_ENDPOINT_URL:
                client_config["endpoint_url"] = self.settings.DYNAMODB_ENDPOINT_URL
            client = boto3.client("dynamodb", **client_config)
        self.client = client
        self.contacts_table = self.settings.DIRECTORY_CONTACTS_TABLE
        self.tokens_table = self.settings.DIRECTORY_LINK_TOKENS_TABLE
        self.log_table = self.settings.DIRECTORY_DELIVERY_LOG_TABLE
        logger.info(
            "initialized_dynamodb_directory",
            contacts_table=self.contacts_table,
            tokens_table=self.tokens_table,
            log_table=self.log_table,
            region=self.settings.AWS_REGION,
        )

    def _scan(self, table_name: str, **kwargs) -> List[Dict[str, Any]]:
        paginator = self.client.get_paginator("scan")
        items: List[Dict[str, Any]] = []
        for page in paginator.paginate(TableName=table_name, **kwargs):
            items.extend(from_item(item) for item in page.get("Items", []))
        return items

    def _failure(self, operation: str, exc: Exception, **context) -> OperationResult:
        result = classify_aws_error(exc)
        logger.warning(
            "directory_operation_failed",
            operation=operation,
            error=str(exc),
            error_code=result.error_code,
            **context,
        )
        if result.status == OperationStatus.CONFLICT:
            return result
        return OperationResult.error(
            result.status,
            f"Directory {operation} failed: {result.message}",
            error_code="DIRECTORY_ERROR",
            retry_after=result.retry_after,
        )

    def get_contacts(self, user_ids: List[str]) -> OperationResult:
        contacts = []
        try:
            for user_id in dict.fromkeys(user_ids):
                response = self.client.get_item(
                    TableName=self.contacts_table,
                    Key={"user_id": {"S": user_id}},
                )
                item = response.get("Item")
                if item:
                    contacts.append(ContactRecord.model_validate(from_item(item)))
        except (BotoCoreError, ClientError) as e:
            return self._failure("get_contacts", e, count=len(user_ids))
        return OperationResult.success(data=contacts)

    def get_contacts_by_role(self, role: str) -> OperationResult:
        try:
            items = self._scan(
                self.contacts_table,
                FilterExpression="#role = :role",
                ExpressionAttributeNames={"#role": "role"},
                ExpressionAttributeValues={":role": {"S": role}},
            )
        except (BotoCoreError, ClientError) as e:
            return self._failure("get_contacts_by_role", e, role=role)
        return OperationResult.success(
            data=[ContactRecord.model_validate(item) for item in items]
        )

    def get_contact(self, user_id: str) -> OperationResult:
        try:
            response = self.client.get_item(
                TableName=self.contacts_table,
                Key={"user_id": {"S": user_id}},
            )
        except (BotoCoreError, ClientError) as e:
            return self._failure("get_contact", e, user_id=user_id)
        item = response.get("Item")
        if not item:
            return OperationResult.not_found(f"Contact {user_id} not found")
        return OperationResult.success(
            data=ContactRecord.model_validate(from_item(item))
        )

    def find_contacts_by_chat_username(self, username: str) -> OperationResult:
        bare = username[1:] if username.startswith("@") else username
        try:
            items = self._scan(
                self.contacts_table,
                FilterExpression="chat_username IN (:bare, :at)",
                ExpressionAttributeValues={
                    ":bare": {"S": bare},
                    ":at": {"S": f"@{bare}"},
                },
            )
        except (BotoCoreError, ClientError) as e:
            return self._failure("find_contacts_by_chat_username", e)
        return OperationResult.success(
            data=[ContactRecord.model_validate(item) for item in items]
        )

    def link_chat(
        self,
        user_id: str,
        chat_id: str,
        linked_at: datetime,
        chat_username: Optional[str] = None,
    ) -> OperationResult:
        update_expression = (
            "SET chat_id = :chat_id, chat_notifications_enabled = :enabled, "
            "chat_linked_at = :linked_at"
        )
        values = {
            ":chat_id": {"S": str(chat_id)},
            ":enabled": {"BOOL": True},
            ":linked_at": {"S": linked_at.isoformat()},
        }
        if chat_username:
            update_expression += ", chat_username = :username"
            values[":username"] = {"S": chat_username}
        try:
            response = self.client.update_item(
                TableName=self.contacts_table,
                Key={"user_id": {"S": user_id}},
                UpdateExpression=update_expression,
                ConditionExpression="attribute_exists(user_id)",
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code == "ConditionalCheckFailedException":
                return OperationResult.not_found(f"Contact {user_id} not found")
            return self._failure("link_chat", e, user_id=user_id)
        except BotoCoreError as e:
            return self._failure("link_chat", e, user_id=user_id)
        return OperationResult.success(
            data=ContactRecord.model_validate(from_item(response["Attributes"]))
        )

    def create_link_token(self, token: LinkToken) -> OperationResult:
        try:
            self.client.put_item(
                TableName=self.tokens_table,
                Item=to_item(token.model_dump(mode="json")),
                ConditionExpression="attribute_not_exists(#token)",
                ExpressionAttributeNames={"#token": "token"},
            )
        except (BotoCoreError, ClientError) as e:
            return self._failure("create_link_token", e, owner=token.owner_user_id)
        return OperationResult.success(data=token)

    def get_link_token(self, token: str) -> OperationResult:
        try:
            response = self.client.get_item(
                TableName=self.tokens_table,
                Key={"token": {"S": token}},
                ConsistentRead=True,
            )
        except (BotoCoreError, ClientError) as e:
            return self._failure("get_link_token", e)
        item = response.get("Item")
        if not item:
            return OperationResult.not_found("Link token not found")
        return OperationResult.success(data=LinkToken.model_validate(from_item(item)))

    def expire_outstanding_tokens(self, user_id: str, now: datetime) -> OperationResult:
        revoked = 0
        try:
            items = self._scan(
                self.tokens_table,
                FilterExpression=(
                    "owner_user_id = :owner AND attribute_not_exists(consumed_at)"
                ),
                ExpressionAttributeValues={":owner": {"S": user_id}},
            )
            for item in items:
                try:
                    self.client.update_item(
                        TableName=self.tokens_table,
                        Key={"token": {"S": item["token"]}},
                        UpdateExpression="SET expires_at = :now",
                        ConditionExpression="attribute_not_exists(consumed_at)",
                        ExpressionAttributeValues={":now": {"S": now.isoformat()}},
                    )
                    revoked += 1
                except ClientError as e:
                    code = e.response.get("Error", {}).get("Code")
                    if code != "ConditionalCheckFailedException":
                        raise
                    # Consumed between the scan and the update
        except (BotoCoreError, ClientError) as e:
            return self._failure("expire_outstanding_tokens", e, user_id=user_id)
        return OperationResult.success(data=revoked)

    def consume_link_token(
        self, token: str, chat_id: str, now: datetime
    ) -> OperationResult:
        try:
            response = self.client.update_item(
                TableName=self.tokens_table,
                Key={"token": {"S": token}},
                UpdateExpression=(
                    "SET consumed_at = :now, chat_id = :chat_id, last_used_at = :now"
                ),
                ConditionExpression=(
                    "attribute_exists(#token) AND attribute_not_exists(consumed_at)"
                ),
                ExpressionAttributeNames={"#token": "token"},
                ExpressionAttributeValues={
                    ":now": {"S": now.isoformat()},
                    ":chat_id": {"S": str(chat_id)},
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code == "ConditionalCheckFailedException":
                existing = self.get_link_token(token)
                if existing.status == OperationStatus.NOT_FOUND:
                    return existing
                return OperationResult.conflict(
                    "Link token already consumed", error_code="ALREADY_CONSUMED"
                )
            return self._failure("consume_link_token", e)
        except BotoCoreError as e:
            return self._failure("consume_link_token", e)
        return OperationResult.success(
            data=LinkToken.model_validate(from_item(response["Attributes"]))
        )

    def release_link_token(
        self, token: str, chat_id: str, consumed_at: datetime
    ) -> OperationResult:
        try:
            response = self.client.update_item(
                TableName=self.tokens_table,
                Key={"token": {"S": token}},
                UpdateExpression="REMOVE consumed_at, chat_id, last_used_at",
                ConditionExpression=(
                    "consumed_at = :consumed_at AND chat_id = :chat_id"
                ),
                ExpressionAttributeValues={
                    ":consumed_at": {"S": consumed_at.isoformat()},
                    ":chat_id": {"S": str(chat_id)},
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code == "ConditionalCheckFailedException":
                return OperationResult.conflict(
                    "Link token not held by this chat", error_code="NOT_HELD"
                )
            return self._failure("release_link_token", e)
        except BotoCoreError as e:
            return self._failure("release_link_token", e)
        return OperationResult.success(
            data=LinkToken.model_validate(from_item(response["Attributes"]))
        )

    def append_delivery_log(self, entry: DeliveryLogEntry) -> OperationResult:
        record = entry.model_dump(mode="json")
        record["id"] = str(uuid.uuid4())
        try:
            self.client.put_item(TableName=self.log_table, Item=to_item(record))
        except (BotoCoreError, ClientError) as e:
            return self._failure(
                "append_delivery_log",
                e,
                channel=entry.channel,
                event_type=entry.event_type,
            )
        return OperationResult.success(data=record["id"])
