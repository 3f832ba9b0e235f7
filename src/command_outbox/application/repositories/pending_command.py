from __future__ import annotations

from enum import StrEnum
from typing import Protocol, Sequence
from uuid import UUID

from command_outbox.domain.entities.pending_command import (
    PendingCommand,
    PendingScheduledCommand,
)


class RemoveResult(StrEnum):
    DELETED = "deleted"
    ALREADY_GONE = "already_gone"


class PendingCommandStore(Protocol):
    async def add_commands(self, commands: Sequence[PendingCommand]) -> None: ...

    async def add_scheduled_commands(
        self, commands: Sequence[PendingScheduledCommand],
    ) -> None: ...

    async def list_for(self, process_manager_id: UUID) -> list[PendingCommand]: ...

    async def list_scheduled_for(
        self, process_manager_id: UUID,
    ) -> list[PendingScheduledCommand]: ...

    async def remove(self, command: PendingCommand) -> RemoveResult: ...

    async def remove_scheduled(self, command: PendingScheduledCommand) -> RemoveResult: ...

    async def find_owners_with_pending(self, limit: int) -> list[UUID]: ...

    async def find_owners_with_scheduled(self, limit: int) -> list[UUID]: ...
