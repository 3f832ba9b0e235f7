from __future__ import annotations

from typing import TypeVar
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from command_outbox.application.exceptions import ConcurrencyConflictError
from command_outbox.domain.entities.process_manager import ProcessManager
from command_outbox.infrastructure.db.mappers import process_manager as mapper
from command_outbox.infrastructure.db.models.process_manager import ProcessManagerModel

PM = TypeVar("PM", bound=ProcessManager)


class ProcessManagerRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find(self, pm_type: type[PM], process_manager_id: UUID) -> PM | None:
        stmt = select(ProcessManagerModel).where(
            ProcessManagerModel.id == process_manager_id,
            ProcessManagerModel.type == pm_type.type_name(),
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model, pm_type) if model else None

    async def upsert(self, process_manager: ProcessManager) -> None:
        if process_manager.version == 0:
            await self._insert(process_manager)
            return

        stmt = (
            update(ProcessManagerModel)
            .where(
                ProcessManagerModel.id == process_manager.id,
                ProcessManagerModel.version == process_manager.version,
            )
            .values(state=process_manager.snapshot(), version=process_manager.version + 1)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrencyConflictError(
                f"{process_manager.type_name()} {process_manager.id} "
                f"is no longer at version {process_manager.version}"
            )

    async def _insert(self, process_manager: ProcessManager) -> None:
        self._session.add(mapper.entity_to_model(process_manager))
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise ConcurrencyConflictError(
                f"{process_manager.type_name()} {process_manager.id} already exists"
            ) from e
