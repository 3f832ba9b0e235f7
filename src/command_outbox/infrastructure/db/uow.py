from __future__ import annotations

from types import TracebackType
from typing import Callable, Self

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from command_outbox.infrastructure.db.repositories.pending_command import PendingCommandRepo
from command_outbox.infrastructure.db.repositories.process_manager import ProcessManagerRepo


class SqlAlchemyUoW:
    """Concrete Unit-of-Work backed by a single AsyncSession.

    Used as ``async with``: rolls back when the block raises and closes the
    session on exit.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.process_managers = ProcessManagerRepo(session)
        self.pending_commands = PendingCommandRepo(session)

    async def flush(self) -> None:
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is not None:
                await self.rollback()
        finally:
            await self._session.close()


def make_uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SqlAlchemyUoW]:
    """One fresh session per unit of work, so flushes can run concurrently."""

    def _factory() -> SqlAlchemyUoW:
        return SqlAlchemyUoW(session_factory())

    return _factory
