"""Directory collaborator: contact records, link tokens and delivery log.

The concrete store is chosen by ``DIRECTORY_BACKEND`` and built once in
``infrastructure.services.providers``.
"""

from infrastructure.directory.base import DirectoryStore
from infrastructure.directory.dynamodb import DynamoDBDirectory
from infrastructure.directory.memory import InMemoryDirectory
from infrastructure.directory.models import (
    ContactRecord,
    DeliveryLogEntry,
    LinkToken,
)

__all__ = [
    "ContactRecord",
    "DeliveryLogEntry",
    "DirectoryStore",
    "DynamoDBDirectory",
    "InMemoryDirectory",
    "LinkToken",
]
