from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from command_outbox.application.repositories.pending_command import RemoveResult
from command_outbox.domain.entities.pending_command import (
    PendingCommand,
    PendingScheduledCommand,
)
from command_outbox.infrastructure.db.mappers import pending_command as mapper
from command_outbox.infrastructure.db.models.pending_command import (
    PendingCommandModel,
    PendingScheduledCommandModel,
)


class PendingCommandRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add_commands(self, commands: Sequence[PendingCommand]) -> None:
        if not commands:
            return
        self._session.add_all([mapper.entity_to_model(c) for c in commands])
        await self._session.flush()

    async def add_scheduled_commands(
        self,
        commands: Sequence[PendingScheduledCommand],
    ) -> None:
        if not commands:
            return
        self._session.add_all([mapper.scheduled_entity_to_model(c) for c in commands])
        await self._session.flush()

    async def list_for(self, process_manager_id: UUID) -> list[PendingCommand]:
        stmt = (
            select(PendingCommandModel)
            .where(PendingCommandModel.process_manager_id == process_manager_id)
            .order_by(PendingCommandModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_scheduled_for(
        self,
        process_manager_id: UUID,
    ) -> list[PendingScheduledCommand]:
        stmt = (
            select(PendingScheduledCommandModel)
            .where(PendingScheduledCommandModel.process_manager_id == process_manager_id)
            .order_by(PendingScheduledCommandModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.scheduled_model_to_entity(m) for m in result.scalars().all()]

    async def remove(self, command: PendingCommand) -> RemoveResult:
        stmt = delete(PendingCommandModel).where(PendingCommandModel.id == command.id)
        result = await self._session.execute(stmt)
        return RemoveResult.DELETED if result.rowcount else RemoveResult.ALREADY_GONE

    async def remove_scheduled(self, command: PendingScheduledCommand) -> RemoveResult:
        stmt = delete(PendingScheduledCommandModel).where(
            PendingScheduledCommandModel.id == command.id,
        )
        result = await self._session.execute(stmt)
        return RemoveResult.DELETED if result.rowcount else RemoveResult.ALREADY_GONE

    async def find_owners_with_pending(self, limit: int) -> list[UUID]:
        stmt = select(PendingCommandModel.process_manager_id).distinct().limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def find_owners_with_scheduled(self, limit: int) -> list[UUID]:
        stmt = select(PendingScheduledCommandModel.process_manager_id).distinct().limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
