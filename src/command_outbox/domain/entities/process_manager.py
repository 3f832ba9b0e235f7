from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Self
from uuid import UUID

from command_outbox.application.exceptions import InvalidArgumentError


@dataclass(frozen=True, slots=True)
class ScheduledCommand:
    command: Any
    scheduled_time: datetime


class ProcessManager:
    """Base class for long-lived process managers (sagas).

    Subclasses implement transitions that mutate ``state`` and emit
    commands through :meth:`add_command` / :meth:`add_scheduled_command`.
    Emitted commands stay buffered in memory until the next save drains
    them into the outbox.

    ``version`` is the optimistic-concurrency token: 0 means the instance
    has never been persisted.
    """

    def __init__(
        self,
        id: UUID | None = None,
        *,
        version: int = 0,
        state: dict[str, Any] | None = None,
    ) -> None:
        self.id = id or uuid.uuid4()
        self.version = version
        self.state: dict[str, Any] = dict(state or {})
        self._pending_commands: list[Any] = []
        self._pending_scheduled_commands: list[ScheduledCommand] = []

    @classmethod
    def type_name(cls) -> str:
        return cls.__name__

    @classmethod
    def restore(cls, id: UUID, version: int, state: dict[str, Any]) -> Self:
        return cls(id, version=version, state=state)

    def snapshot(self) -> dict[str, Any]:
        return dict(self.state)

    def add_command(self, command: Any) -> None:
        self._pending_commands.append(command)

    def add_scheduled_command(self, command: Any, scheduled_time: datetime) -> None:
        if scheduled_time.tzinfo is None:
            raise InvalidArgumentError("scheduled_time must be timezone-aware")
        self._pending_scheduled_commands.append(ScheduledCommand(command, scheduled_time))

    def flush_pending_commands(self) -> list[Any]:
        """Return and clear every command produced since the last drain."""
        commands, self._pending_commands = self._pending_commands, []
        return commands

    def flush_pending_scheduled_commands(self) -> list[ScheduledCommand]:
        commands, self._pending_scheduled_commands = self._pending_scheduled_commands, []
        return commands
