"""Redis Streams: immediate delivery channel for process manager commands."""
from __future__ import annotations

import logging
from typing import Sequence

import redis.asyncio as aioredis

from command_outbox.application.exceptions import DeliveryFailureError
from command_outbox.application.ports.serializer import MessageSerializer
from command_outbox.domain.value_objects.envelope import Envelope
from command_outbox.infrastructure.bus.serializer import encode_envelope

logger = logging.getLogger(__name__)


class RedisStreamCommandBus:
    """Implements application.ports.bus.CommandBus.

    A batch is appended inside one MULTI/EXEC so consumers see all of it
    or none of it, in order.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        stream: str,
        serializer: MessageSerializer,
        *,
        maxlen: int | None = None,
    ) -> None:
        self._redis = redis
        self._stream = stream
        self._serializer = serializer
        self._maxlen = maxlen

    async def send(self, envelopes: Sequence[Envelope]) -> None:
        if not envelopes:
            return
        fields = [encode_envelope(e, self._serializer) for e in envelopes]
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                for entry in fields:
                    pipe.xadd(self._stream, entry, maxlen=self._maxlen, approximate=True)
                await pipe.execute()
        except aioredis.RedisError as e:
            raise DeliveryFailureError(
                f"Failed to append {len(fields)} command(s) to stream {self._stream}"
            ) from e
        logger.debug("Appended %d command(s) to stream %s", len(fields), self._stream)
