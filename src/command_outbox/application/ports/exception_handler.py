from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol
from uuid import UUID


class HandlerOutcome(StrEnum):
    HANDLED = "handled"
    PROPAGATE = "propagate"


@dataclass(frozen=True, slots=True)
class CommandPublisherExceptionContext:
    process_manager_type: type
    process_manager_id: UUID
    exception: Exception


class CommandPublisherExceptionHandler(Protocol):
    """Decides whether a failed flush after a committed save is fatal.

    Returning ``HANDLED`` makes the save succeed; the undelivered commands
    stay in the outbox for a later flush or sweep.
    """

    async def handle(self, context: CommandPublisherExceptionContext) -> HandlerOutcome: ...


class PropagateAllExceptionHandler:
    """Default handler: never suppresses."""

    async def handle(self, context: CommandPublisherExceptionContext) -> HandlerOutcome:
        return HandlerOutcome.PROPAGATE
