from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from command_outbox.infrastructure.db.base import Base

# BIGSERIAL on PostgreSQL; SQLite only auto-increments INTEGER primary keys.
_SequenceId = BigInteger().with_variant(Integer, "sqlite")


class PendingCommandModel(Base):
    __tablename__ = "pending_commands"

    id: Mapped[int] = mapped_column(_SequenceId, primary_key=True, autoincrement=True)
    process_manager_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    message_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, unique=True)
    correlation_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    command_json: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_pending_commands_process_manager", "process_manager_id", "id"),
    )


class PendingScheduledCommandModel(Base):
    __tablename__ = "pending_scheduled_commands"

    id: Mapped[int] = mapped_column(_SequenceId, primary_key=True, autoincrement=True)
    process_manager_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    message_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, unique=True)
    correlation_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    command_json: Mapped[str] = mapped_column(Text, nullable=False)
    scheduled_time_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_pending_scheduled_commands_process_manager", "process_manager_id", "id"),
    )
