"""Outbox flusher and recovery sweep for process manager commands."""
from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from command_outbox.application.exceptions import InvalidArgumentError
from command_outbox.application.ports.bus import CommandBus, ScheduledCommandBus
from command_outbox.application.ports.serializer import MessageSerializer
from command_outbox.application.repositories.pending_command import RemoveResult
from command_outbox.application.uow import UnitOfWork, UnitOfWorkFactory
from command_outbox.domain.entities.pending_command import (
    PendingCommand,
    PendingScheduledCommand,
)
from command_outbox.domain.value_objects.envelope import Envelope, ScheduledEnvelope
from command_outbox.domain.value_objects.ids import is_empty_id

logger = logging.getLogger(__name__)


class CommandPublisher:
    """Drains pending commands of process managers to the delivery channels.

    Several flushes of the same process manager may run at once (an explicit
    flush racing a sweep). Rows are deleted one by one after their send
    returned, and a row that is already gone counts as done, so concurrent
    flushes converge without locking. Delivery is at-least-once.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        serializer: MessageSerializer,
        command_bus: CommandBus,
        scheduled_command_bus: ScheduledCommandBus,
        *,
        probe_limit: int = 1,
    ) -> None:
        if probe_limit < 1:
            raise InvalidArgumentError("probe_limit must be positive")
        self._uow_factory = uow_factory
        self._serializer = serializer
        self._command_bus = command_bus
        self._scheduled_command_bus = scheduled_command_bus
        self._probe_limit = probe_limit

    async def flush_commands(self, process_manager_id: UUID) -> None:
        """Deliver every command pending for one process manager at load time.

        Rows inserted after the load are left for the next flush.
        """
        if is_empty_id(process_manager_id):
            raise InvalidArgumentError("process_manager_id cannot be empty")

        async with self._uow_factory() as uow:
            await self._flush_pending_commands(uow, process_manager_id)
            await self._flush_pending_scheduled_commands(uow, process_manager_id)

    async def enqueue_all(self) -> None:
        """Flush every process manager with outstanding rows, until none remain.

        Each pass probes for a few owners of immediate and scheduled rows,
        flushes them concurrently and probes again. Does not return while
        producers keep adding rows faster than they are drained.
        """
        passes = 0
        while True:
            async with self._uow_factory() as uow:
                with_pending = await uow.pending_commands.find_owners_with_pending(
                    self._probe_limit,
                )
                with_scheduled = await uow.pending_commands.find_owners_with_scheduled(
                    self._probe_limit,
                )

            if not with_pending and not with_scheduled:
                break

            passes += 1
            process_manager_ids = list(dict.fromkeys([*with_pending, *with_scheduled]))
            results = await asyncio.gather(
                *(self.flush_commands(pm_id) for pm_id in process_manager_ids),
                return_exceptions=True,
            )
            failures: list[BaseException] = []
            for pm_id, result in zip(process_manager_ids, results):
                if isinstance(result, BaseException):
                    logger.error(
                        "Sweep failed to flush process manager %s",
                        pm_id,
                        exc_info=result,
                    )
                    failures.append(result)
            if failures:
                raise failures[0]

        if passes:
            logger.info("Outbox sweep drained pending commands in %d pass(es)", passes)

    async def _flush_pending_commands(self, uow: UnitOfWork, process_manager_id: UUID) -> None:
        commands = await uow.pending_commands.list_for(process_manager_id)
        if not commands:
            return

        envelopes = [self._restore_envelope(c) for c in commands]
        await self._command_bus.send(envelopes)

        for command in commands:
            await self._remove(uow, command)
        logger.debug(
            "Flushed %d command(s) of process manager %s",
            len(commands),
            process_manager_id,
        )

    async def _flush_pending_scheduled_commands(
        self, uow: UnitOfWork, process_manager_id: UUID,
    ) -> None:
        commands = await uow.pending_commands.list_scheduled_for(process_manager_id)
        for command in commands:
            await self._scheduled_command_bus.send(self._restore_scheduled_envelope(command))
            await self._remove_scheduled(uow, command)
        if commands:
            logger.debug(
                "Flushed %d scheduled command(s) of process manager %s",
                len(commands),
                process_manager_id,
            )

    def _restore_envelope(self, command: PendingCommand) -> Envelope:
        return Envelope(
            message_id=command.message_id,
            message=self._serializer.deserialize(command.command_json),
            correlation_id=command.correlation_id,
        )

    def _restore_scheduled_envelope(self, command: PendingScheduledCommand) -> ScheduledEnvelope:
        return ScheduledEnvelope(
            envelope=Envelope(
                message_id=command.message_id,
                message=self._serializer.deserialize(command.command_json),
                correlation_id=command.correlation_id,
            ),
            scheduled_time=command.scheduled_time_utc,
        )

    @staticmethod
    async def _remove(uow: UnitOfWork, command: PendingCommand) -> None:
        result = await uow.pending_commands.remove(command)
        await uow.commit()
        if result is RemoveResult.ALREADY_GONE:
            logger.debug("Pending command %s already removed by a concurrent flush", command.id)

    @staticmethod
    async def _remove_scheduled(uow: UnitOfWork, command: PendingScheduledCommand) -> None:
        result = await uow.pending_commands.remove_scheduled(command)
        await uow.commit()
        if result is RemoveResult.ALREADY_GONE:
            logger.debug(
                "Pending scheduled command %s already removed by a concurrent flush",
                command.id,
            )
