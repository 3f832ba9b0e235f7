from __future__ import annotations

import importlib
import json
from datetime import datetime
from typing import Any, Iterable
from uuid import UUID

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from command_outbox.application.exceptions import SerializationError
from command_outbox.application.ports.serializer import MessageSerializer
from command_outbox.domain.value_objects.envelope import Envelope, ScheduledEnvelope


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, UUID):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


class JsonMessageSerializer:
    """Serializes pydantic commands as ``{"type": ..., "data": ...}`` JSON.

    Only the registered command types can be written or read back; the
    type is identified by its class name.
    """

    def __init__(self, command_types: Iterable[type[BaseModel]]) -> None:
        self._types: dict[str, type[BaseModel]] = {}
        for command_type in command_types:
            name = command_type.__name__
            if name in self._types and self._types[name] is not command_type:
                raise SerializationError(f"Duplicate command type name: {name}")
            self._types[name] = command_type

    def serialize(self, message: Any) -> str:
        name = type(message).__name__
        if self._types.get(name) is not type(message):
            raise SerializationError(f"Unregistered command type: {name}")
        return json.dumps({"type": name, "data": message.model_dump(mode="json")})

    def deserialize(self, payload: str) -> Any:
        try:
            raw = json.loads(payload)
            command_type = self._types[raw["type"]]
            return command_type.model_validate(raw["data"])
        except KeyError as e:
            raise SerializationError(f"Unknown command payload: {e}") from e
        except (TypeError, ValueError, PydanticValidationError) as e:
            raise SerializationError(str(e)) from e


def load_command_types(paths: Iterable[str]) -> list[type[BaseModel]]:
    """Resolve ``package.module:ClassName`` strings from configuration."""
    types: list[type[BaseModel]] = []
    for path in paths:
        module_name, _, attr = path.partition(":")
        if not attr:
            raise SerializationError(f"Expected 'module:ClassName', got {path!r}")
        command_type = getattr(importlib.import_module(module_name), attr, None)
        if not (isinstance(command_type, type) and issubclass(command_type, BaseModel)):
            raise SerializationError(f"{path} is not a pydantic model")
        types.append(command_type)
    return types


def encode_envelope(envelope: Envelope, serializer: MessageSerializer) -> dict[str, str]:
    """Flat string fields, as stored in a redis stream entry."""
    return {
        "message_id": str(envelope.message_id),
        "correlation_id": str(envelope.correlation_id) if envelope.correlation_id else "",
        "command": serializer.serialize(envelope.message),
    }


def encode_scheduled_envelope(
    scheduled: ScheduledEnvelope,
    serializer: MessageSerializer,
) -> str:
    data = {
        **encode_envelope(scheduled.envelope, serializer),
        "scheduled_time": scheduled.scheduled_time,
    }
    return json.dumps(data, cls=_Encoder, sort_keys=True)
