"""Outbox sweeper: periodically flushes commands left behind by crashed saves."""
from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis

from command_outbox.config import settings
from command_outbox.infrastructure.bus.redis_scheduled import RedisScheduledCommandBus
from command_outbox.infrastructure.bus.redis_streams import RedisStreamCommandBus
from command_outbox.infrastructure.bus.serializer import JsonMessageSerializer, load_command_types
from command_outbox.infrastructure.db.session import create_engine, create_session_factory
from command_outbox.infrastructure.db.uow import make_uow_factory
from command_outbox.services.command_publisher import CommandPublisher

logger = logging.getLogger(__name__)


async def run_outbox_sweeper() -> None:
    engine = create_engine(settings)
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    serializer = JsonMessageSerializer(load_command_types(settings.OUTBOX_COMMAND_TYPES))
    publisher = CommandPublisher(
        make_uow_factory(create_session_factory(engine)),
        serializer,
        RedisStreamCommandBus(
            redis,
            settings.OUTBOX_COMMANDS_STREAM,
            serializer,
            maxlen=settings.OUTBOX_COMMANDS_STREAM_MAXLEN,
        ),
        RedisScheduledCommandBus(redis, settings.OUTBOX_SCHEDULED_KEY, serializer),
        probe_limit=settings.OUTBOX_SWEEP_PROBE_LIMIT,
    )

    logger.info(
        "Outbox sweeper started (interval=%.1fs, probe_limit=%d, command_types=%d)",
        settings.OUTBOX_SWEEP_INTERVAL,
        settings.OUTBOX_SWEEP_PROBE_LIMIT,
        len(settings.OUTBOX_COMMAND_TYPES),
    )

    try:
        while True:
            try:
                await publisher.enqueue_all()
            except Exception:
                logger.exception("Outbox sweeper loop error")
            await asyncio.sleep(settings.OUTBOX_SWEEP_INTERVAL)
    finally:
        await redis.aclose()
        await engine.dispose()


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(run_outbox_sweeper())


if __name__ == "__main__":
    main()
