from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from command_outbox.domain.value_objects.ids import CorrelationId, MessageId


@dataclass(frozen=True, slots=True)
class Envelope:
    """A command plus the identity it is delivered under."""

    message_id: MessageId
    message: Any
    correlation_id: CorrelationId | None = None


@dataclass(frozen=True, slots=True)
class ScheduledEnvelope:
    envelope: Envelope
    scheduled_time: datetime
