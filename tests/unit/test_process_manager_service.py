from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field

import pytest

from command_outbox.application.exceptions import (
    ConcurrencyConflictError,
    DeliveryFailureError,
    InvalidArgumentError,
)
from command_outbox.application.ports.exception_handler import (
    CommandPublisherExceptionContext,
    HandlerOutcome,
)
from command_outbox.domain.value_objects.ids import EMPTY_ID
from command_outbox.services import process_manager_service
from tests.fakes import ChargeCard, ExpireReservation, OrderProcessManager, ShipOrder


@dataclass
class RecordingHandler:
    outcome: HandlerOutcome
    contexts: list[CommandPublisherExceptionContext] = field(default_factory=list)

    async def handle(self, context: CommandPublisherExceptionContext) -> HandlerOutcome:
        self.contexts.append(context)
        return self.outcome


class ExplodingHandler:
    async def handle(self, context: CommandPublisherExceptionContext) -> HandlerOutcome:
        raise RuntimeError("handler is broken")


@pytest.fixture
def started_pm() -> OrderProcessManager:
    pm = OrderProcessManager()
    pm.start(uuid.uuid4(), amount_cents=1500)
    return pm


async def _save(pm, uow_factory, publisher, serializer, **kwargs):
    async with uow_factory() as uow:
        await process_manager_service.save_and_publish_commands(
            pm, kwargs.pop("correlation_id", None), uow, publisher, serializer, **kwargs,
        )


@pytest.mark.asyncio
async def test_save_persists_and_flushes_everything(
    started_pm, uow_factory, publisher, serializer, command_bus, scheduled_bus,
):
    correlation_id = uuid.uuid4()

    await _save(started_pm, uow_factory, publisher, serializer, correlation_id=correlation_id)

    stored = uow_factory.db.process_managers[started_pm.id]
    assert stored["version"] == 1
    assert stored["state"]["status"] == "started"
    assert started_pm.version == 1

    assert [type(m) for m in command_bus.messages] == [ChargeCard, ShipOrder]
    assert all(e.correlation_id == correlation_id for e in command_bus.batches[0])
    assert len({e.message_id for e in command_bus.batches[0]}) == 2
    assert [type(s.envelope.message) for s in scheduled_bus.sent] == [ExpireReservation]

    assert uow_factory.db.pending == {}
    assert uow_factory.db.scheduled == {}


@pytest.mark.asyncio
async def test_save_drains_the_command_buffer(started_pm, uow_factory, publisher, serializer, command_bus):
    await _save(started_pm, uow_factory, publisher, serializer)
    started_pm.complete()
    await _save(started_pm, uow_factory, publisher, serializer)

    assert len(command_bus.batches) == 1
    assert uow_factory.db.process_managers[started_pm.id]["version"] == 2
    assert uow_factory.db.process_managers[started_pm.id]["state"]["status"] == "completed"


@pytest.mark.asyncio
async def test_stale_version_fails_without_flushing(
    started_pm, uow_factory, publisher, serializer, command_bus,
):
    await _save(started_pm, uow_factory, publisher, serializer)

    async with uow_factory() as uow:
        stale = await process_manager_service.find_process_manager(
            OrderProcessManager, started_pm.id, uow,
        )
    started_pm.complete()
    await _save(started_pm, uow_factory, publisher, serializer)

    stale.add_command(ShipOrder(order_id=uuid.uuid4()))
    with pytest.raises(ConcurrencyConflictError):
        await _save(stale, uow_factory, publisher, serializer)

    assert len(command_bus.batches) == 1
    assert uow_factory.db.pending == {}
    assert stale.version == 1


@pytest.mark.asyncio
async def test_failed_commit_does_not_flush(started_pm, uow_factory, publisher, serializer, command_bus):
    uow = uow_factory()
    uow.fail_commit = ConcurrencyConflictError("lost the race")

    with pytest.raises(ConcurrencyConflictError):
        async with uow:
            await process_manager_service.save_and_publish_commands(
                started_pm, None, uow, publisher, serializer,
            )

    assert uow._rolled_back is True
    assert uow_factory.db.process_managers == {}
    assert uow_factory.db.pending == {}
    assert command_bus.batches == []
    assert started_pm.version == 0


@pytest.mark.asyncio
async def test_delivery_failure_propagates_by_default(
    started_pm, uow_factory, publisher, serializer, command_bus,
):
    command_bus.fail_with = DeliveryFailureError("stream unavailable")

    with pytest.raises(DeliveryFailureError):
        await _save(started_pm, uow_factory, publisher, serializer)

    # The transition itself committed; the commands wait for a later flush.
    assert started_pm.id in uow_factory.db.process_managers
    assert len(uow_factory.db.pending) == 2


@pytest.mark.asyncio
async def test_handled_delivery_failure_lets_save_succeed(
    started_pm, uow_factory, publisher, serializer, command_bus,
):
    failure = DeliveryFailureError("stream unavailable")
    command_bus.fail_with = failure
    handler = RecordingHandler(HandlerOutcome.HANDLED)

    await _save(started_pm, uow_factory, publisher, serializer, exception_handler=handler)

    (context,) = handler.contexts
    assert context.process_manager_type is OrderProcessManager
    assert context.process_manager_id == started_pm.id
    assert context.exception is failure
    assert len(uow_factory.db.pending) == 2

    command_bus.fail_with = None
    await publisher.enqueue_all()
    assert uow_factory.db.pending == {}
    assert [type(m) for m in command_bus.messages] == [ChargeCard, ShipOrder]


@pytest.mark.asyncio
async def test_unhandled_delivery_failure_propagates(
    started_pm, uow_factory, publisher, serializer, command_bus,
):
    failure = DeliveryFailureError("stream unavailable")
    command_bus.fail_with = failure
    handler = RecordingHandler(HandlerOutcome.PROPAGATE)

    with pytest.raises(DeliveryFailureError) as exc_info:
        await _save(started_pm, uow_factory, publisher, serializer, exception_handler=handler)

    assert exc_info.value is failure
    assert len(handler.contexts) == 1


@pytest.mark.asyncio
async def test_broken_handler_is_logged_and_original_error_propagates(
    started_pm, uow_factory, publisher, serializer, command_bus, caplog,
):
    failure = DeliveryFailureError("stream unavailable")
    command_bus.fail_with = failure

    with caplog.at_level(logging.ERROR, logger="command_outbox.services.process_manager_service"):
        with pytest.raises(DeliveryFailureError) as exc_info:
            await _save(
                started_pm, uow_factory, publisher, serializer,
                exception_handler=ExplodingHandler(),
            )

    assert exc_info.value is failure
    assert "exception handler failed" in caplog.text


@pytest.mark.asyncio
async def test_empty_id_is_rejected_before_anything_is_stored(
    uow_factory, publisher, serializer, command_bus,
):
    pm = OrderProcessManager(EMPTY_ID)
    pm.start(uuid.uuid4(), amount_cents=100)
    handler = RecordingHandler(HandlerOutcome.HANDLED)

    with pytest.raises(InvalidArgumentError):
        await _save(pm, uow_factory, publisher, serializer, exception_handler=handler)

    assert uow_factory.db.process_managers == {}
    assert uow_factory.db.pending == {}
    assert uow_factory.db.scheduled == {}
    assert handler.contexts == []
    assert command_bus.batches == []
    assert pm.version == 0


@pytest.mark.asyncio
async def test_cancelled_save_skips_the_handler_and_keeps_commands(
    started_pm, uow_factory, publisher, serializer, command_bus,
):
    command_bus.gate = asyncio.Event()
    handler = RecordingHandler(HandlerOutcome.HANDLED)

    task = asyncio.create_task(
        _save(started_pm, uow_factory, publisher, serializer, exception_handler=handler),
    )
    await command_bus.entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert handler.contexts == []
    assert started_pm.id in uow_factory.db.process_managers
    assert len(uow_factory.db.pending) == 2

    command_bus.gate = None
    await publisher.enqueue_all()
    assert [type(m) for m in command_bus.messages] == [ChargeCard, ShipOrder]
    assert uow_factory.db.pending == {}

@pytest.mark.asyncio
async def test_find_process_manager_restores_state(started_pm, uow_factory, publisher, serializer):
    await _save(started_pm, uow_factory, publisher, serializer)

    async with uow_factory() as uow:
        found = await process_manager_service.find_process_manager(
            OrderProcessManager, started_pm.id, uow,
        )
        missing = await process_manager_service.find_process_manager(
            OrderProcessManager, uuid.uuid4(), uow,
        )

    assert isinstance(found, OrderProcessManager)
    assert found.version == 1
    assert found.state == started_pm.state
    assert found.flush_pending_commands() == []
    assert missing is None
