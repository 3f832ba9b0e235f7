from __future__ import annotations

from typing import NewType
from uuid import UUID

ProcessManagerId = NewType("ProcessManagerId", UUID)
MessageId = NewType("MessageId", UUID)
CorrelationId = NewType("CorrelationId", UUID)

EMPTY_ID = UUID(int=0)


def is_empty_id(value: object) -> bool:
    """True for anything that cannot name a stored process manager."""
    return not isinstance(value, UUID) or value == EMPTY_ID
