"""Redis sorted set: hand-off point for commands released at a later time."""
from __future__ import annotations

import logging

import redis.asyncio as aioredis

from command_outbox.application.exceptions import DeliveryFailureError
from command_outbox.application.ports.serializer import MessageSerializer
from command_outbox.domain.value_objects.envelope import ScheduledEnvelope
from command_outbox.infrastructure.bus.serializer import encode_scheduled_envelope

logger = logging.getLogger(__name__)


class RedisScheduledCommandBus:
    """Implements application.ports.bus.ScheduledCommandBus.

    Entries are scored by release time (epoch seconds). The member is the
    encoded envelope, so sending the same message twice stores it once.
    Releasing due entries is up to the scheduler reading the set.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        key: str,
        serializer: MessageSerializer,
    ) -> None:
        self._redis = redis
        self._key = key
        self._serializer = serializer

    async def send(self, scheduled_envelope: ScheduledEnvelope) -> None:
        member = encode_scheduled_envelope(scheduled_envelope, self._serializer)
        score = scheduled_envelope.scheduled_time.timestamp()
        try:
            await self._redis.zadd(self._key, {member: score})
        except aioredis.RedisError as e:
            raise DeliveryFailureError(
                f"Failed to schedule message {scheduled_envelope.envelope.message_id}"
            ) from e
        logger.debug(
            "Scheduled message %s for %s",
            scheduled_envelope.envelope.message_id,
            scheduled_envelope.scheduled_time.isoformat(),
        )
