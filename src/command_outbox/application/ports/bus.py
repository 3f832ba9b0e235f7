from __future__ import annotations

from typing import Protocol, Sequence

from command_outbox.domain.value_objects.envelope import Envelope, ScheduledEnvelope


class CommandBus(Protocol):
    """Immediate delivery channel. Receives one ordered batch per call."""

    async def send(self, envelopes: Sequence[Envelope]) -> None: ...


class ScheduledCommandBus(Protocol):
    """Scheduled delivery channel. Honors ``scheduled_time`` on its own."""

    async def send(self, scheduled_envelope: ScheduledEnvelope) -> None: ...
