from __future__ import annotations

import logging
import uuid
from typing import TypeVar

from command_outbox.application.exceptions import InvalidArgumentError
from command_outbox.application.ports.exception_handler import (
    CommandPublisherExceptionContext,
    CommandPublisherExceptionHandler,
    HandlerOutcome,
    PropagateAllExceptionHandler,
)
from command_outbox.application.ports.serializer import MessageSerializer
from command_outbox.application.uow import UnitOfWork
from command_outbox.domain.entities.pending_command import (
    PendingCommand,
    PendingScheduledCommand,
)
from command_outbox.domain.entities.process_manager import ProcessManager
from command_outbox.domain.value_objects.ids import is_empty_id
from command_outbox.services.command_publisher import CommandPublisher

logger = logging.getLogger(__name__)

PM = TypeVar("PM", bound=ProcessManager)

_DEFAULT_EXCEPTION_HANDLER = PropagateAllExceptionHandler()


async def find_process_manager(
    pm_type: type[PM],
    process_manager_id: uuid.UUID,
    uow: UnitOfWork,
) -> PM | None:
    return await uow.process_managers.find(pm_type, process_manager_id)


async def save_and_publish_commands(
    process_manager: ProcessManager,
    correlation_id: uuid.UUID | None,
    uow: UnitOfWork,
    publisher: CommandPublisher,
    serializer: MessageSerializer,
    *,
    exception_handler: CommandPublisherExceptionHandler | None = None,
) -> None:
    """Persist a process manager with the commands it produced, then flush them.

    State and commands are committed together. A commit failure (e.g. a
    version conflict) propagates and nothing is flushed; the caller must
    retry the transition from fresh state. A flush failure after the commit
    goes to ``exception_handler``; unless it reports HANDLED the original
    error is re-raised. Either way the commands stay durable for a later
    flush.
    """
    if is_empty_id(process_manager.id):
        raise InvalidArgumentError("process manager id cannot be empty")

    await uow.process_managers.upsert(process_manager)
    await uow.pending_commands.add_commands(
        _drain_pending_commands(process_manager, correlation_id, serializer),
    )
    await uow.pending_commands.add_scheduled_commands(
        _drain_pending_scheduled_commands(process_manager, correlation_id, serializer),
    )
    await uow.commit()
    process_manager.version += 1

    await _flush_commands(
        process_manager,
        publisher,
        exception_handler or _DEFAULT_EXCEPTION_HANDLER,
    )


def _drain_pending_commands(
    process_manager: ProcessManager,
    correlation_id: uuid.UUID | None,
    serializer: MessageSerializer,
) -> list[PendingCommand]:
    return [
        PendingCommand(
            process_manager_id=process_manager.id,
            message_id=uuid.uuid4(),
            correlation_id=correlation_id,
            command_json=serializer.serialize(command),
        )
        for command in process_manager.flush_pending_commands()
    ]


def _drain_pending_scheduled_commands(
    process_manager: ProcessManager,
    correlation_id: uuid.UUID | None,
    serializer: MessageSerializer,
) -> list[PendingScheduledCommand]:
    return [
        PendingScheduledCommand(
            process_manager_id=process_manager.id,
            message_id=uuid.uuid4(),
            correlation_id=correlation_id,
            command_json=serializer.serialize(scheduled.command),
            scheduled_time_utc=scheduled.scheduled_time,
        )
        for scheduled in process_manager.flush_pending_scheduled_commands()
    ]


async def _flush_commands(
    process_manager: ProcessManager,
    publisher: CommandPublisher,
    exception_handler: CommandPublisherExceptionHandler,
) -> None:
    try:
        await publisher.flush_commands(process_manager.id)
    except Exception as exc:
        context = CommandPublisherExceptionContext(
            process_manager_type=type(process_manager),
            process_manager_id=process_manager.id,
            exception=exc,
        )
        try:
            outcome = await exception_handler.handle(context)
        except Exception:
            logger.exception(
                "Command publisher exception handler failed for %s %s",
                process_manager.type_name(),
                process_manager.id,
            )
            outcome = HandlerOutcome.PROPAGATE

        if outcome != HandlerOutcome.HANDLED:
            raise
        logger.warning(
            "Flush of %s %s failed and was handled; commands stay pending: %s",
            process_manager.type_name(),
            process_manager.id,
            exc,
        )
