"""Import all models so Base.metadata knows every table."""
from command_outbox.infrastructure.db.models.pending_command import (
    PendingCommandModel,
    PendingScheduledCommandModel,
)
from command_outbox.infrastructure.db.models.process_manager import ProcessManagerModel

__all__ = [
    "PendingCommandModel",
    "PendingScheduledCommandModel",
    "ProcessManagerModel",
]
