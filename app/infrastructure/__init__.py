"""Infrastructure modules for the portal notification service.

Centralized infrastructure components:
- configuration: Settings management (Settings and its sections)
- directory: Contact, link token and delivery log storage
- events: In-process event handlers and background dispatch
- logging: Structured logging setup (get_module_logger)
- notifications: Mail and chat channels and the dispatcher
- operations: Operation results and error classification
- services: Dependency injection providers (SettingsDep, get_settings)
"""

from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
]
