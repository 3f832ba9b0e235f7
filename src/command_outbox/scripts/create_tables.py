"""One-time script: create the process manager and outbox tables."""
from __future__ import annotations

import asyncio
import logging

from command_outbox.config import settings
from command_outbox.infrastructure.db.base import Base
from command_outbox.infrastructure.db.session import create_engine

# Registers every table on Base.metadata.
import command_outbox.infrastructure.db.models  # noqa: F401

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    engine = create_engine(settings)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))
    finally:
        await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_tables())


if __name__ == "__main__":
    main()
