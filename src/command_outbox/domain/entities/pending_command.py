from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from command_outbox.domain.value_objects.ids import CorrelationId, MessageId, ProcessManagerId


@dataclass(frozen=True, slots=True)
class PendingCommand:
    """A command recorded by a committed transition but not yet delivered.

    ``id`` is assigned by the store on insert and orders delivery within
    one process manager. It is ``None`` until the row has been written.
    """

    process_manager_id: ProcessManagerId
    message_id: MessageId
    correlation_id: CorrelationId | None
    command_json: str
    id: int | None = None


@dataclass(frozen=True, slots=True)
class PendingScheduledCommand:
    process_manager_id: ProcessManagerId
    message_id: MessageId
    correlation_id: CorrelationId | None
    command_json: str
    scheduled_time_utc: datetime
    id: int | None = None
