"""Event model for the in-process event system."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID, uuid4


@dataclass(frozen=True)
class Event:
    """Snapshot of something that happened, handed to registered handlers.

    Attributes:
        event_type: Dotted name, e.g. ``reminder.requested``
        timestamp: Emission time (UTC)
        correlation_id: Ties together log lines of the emitter and handlers
        source: Emitting component
        metadata: Event payload
    """

    event_type: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: UUID = field(default_factory=uuid4)
    source: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        data["correlation_id"] = str(self.correlation_id)
        return data
