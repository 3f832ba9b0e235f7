from __future__ import annotations

from datetime import datetime, timezone

from command_outbox.domain.entities.pending_command import (
    PendingCommand,
    PendingScheduledCommand,
)
from command_outbox.infrastructure.db.models.pending_command import (
    PendingCommandModel,
    PendingScheduledCommandModel,
)


def _as_utc(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def model_to_entity(model: PendingCommandModel) -> PendingCommand:
    return PendingCommand(
        id=model.id,
        process_manager_id=model.process_manager_id,
        message_id=model.message_id,
        correlation_id=model.correlation_id,
        command_json=model.command_json,
    )


def entity_to_model(entity: PendingCommand) -> PendingCommandModel:
    return PendingCommandModel(
        id=entity.id,
        process_manager_id=entity.process_manager_id,
        message_id=entity.message_id,
        correlation_id=entity.correlation_id,
        command_json=entity.command_json,
    )


def scheduled_model_to_entity(model: PendingScheduledCommandModel) -> PendingScheduledCommand:
    return PendingScheduledCommand(
        id=model.id,
        process_manager_id=model.process_manager_id,
        message_id=model.message_id,
        correlation_id=model.correlation_id,
        command_json=model.command_json,
        scheduled_time_utc=_as_utc(model.scheduled_time_utc),
    )


def scheduled_entity_to_model(entity: PendingScheduledCommand) -> PendingScheduledCommandModel:
    return PendingScheduledCommandModel(
        id=entity.id,
        process_manager_id=entity.process_manager_id,
        message_id=entity.message_id,
        correlation_id=entity.correlation_id,
        command_json=entity.command_json,
        scheduled_time_utc=_as_utc(entity.scheduled_time_utc),
    )
