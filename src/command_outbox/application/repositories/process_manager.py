from __future__ import annotations

from typing import Protocol, TypeVar
from uuid import UUID

from command_outbox.domain.entities.process_manager import ProcessManager

PM = TypeVar("PM", bound=ProcessManager)


class ProcessManagerRepository(Protocol):
    async def find(self, pm_type: type[PM], process_manager_id: UUID) -> PM | None: ...

    async def upsert(self, process_manager: ProcessManager) -> None:
        """Insert a new instance or update one guarded by its version.

        Raises ConcurrencyConflictError when the stored version moved on.
        Does not change ``process_manager.version``; the caller bumps it
        once the enclosing unit of work has committed.
        """
        ...
