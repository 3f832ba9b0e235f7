from __future__ import annotations

from types import TracebackType
from typing import Callable, Protocol, Self

from command_outbox.application.repositories.pending_command import PendingCommandStore
from command_outbox.application.repositories.process_manager import ProcessManagerRepository


class UnitOfWork(Protocol):
    process_managers: ProcessManagerRepository
    pending_commands: PendingCommandStore

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...

    async def __aenter__(self) -> Self: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
