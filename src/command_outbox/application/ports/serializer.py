from __future__ import annotations

from typing import Any, Protocol


class MessageSerializer(Protocol):
    def serialize(self, message: Any) -> str: ...

    def deserialize(self, payload: str) -> Any: ...
