from __future__ import annotations

from typing import TypeVar

from command_outbox.domain.entities.process_manager import ProcessManager
from command_outbox.infrastructure.db.models.process_manager import ProcessManagerModel

PM = TypeVar("PM", bound=ProcessManager)


def model_to_entity(model: ProcessManagerModel, pm_type: type[PM]) -> PM:
    return pm_type.restore(model.id, model.version, model.state)


def entity_to_model(entity: ProcessManager) -> ProcessManagerModel:
    return ProcessManagerModel(
        id=entity.id,
        type=entity.type_name(),
        state=entity.snapshot(),
        version=entity.version + 1,
    )
