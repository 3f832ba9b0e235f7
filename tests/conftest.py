"""Shared test fixtures."""
from __future__ import annotations

import pytest

from command_outbox.infrastructure.bus.serializer import JsonMessageSerializer
from command_outbox.services.command_publisher import CommandPublisher
from tests.fakes import (
    COMMAND_TYPES,
    FakeCommandBus,
    FakeScheduledCommandBus,
    FakeUoWFactory,
)


@pytest.fixture
def serializer() -> JsonMessageSerializer:
    return JsonMessageSerializer(COMMAND_TYPES)


@pytest.fixture
def uow_factory() -> FakeUoWFactory:
    return FakeUoWFactory()


@pytest.fixture
def command_bus() -> FakeCommandBus:
    return FakeCommandBus()


@pytest.fixture
def scheduled_bus() -> FakeScheduledCommandBus:
    return FakeScheduledCommandBus()


@pytest.fixture
def publisher(uow_factory, serializer, command_bus, scheduled_bus) -> CommandPublisher:
    return CommandPublisher(uow_factory, serializer, command_bus, scheduled_bus)
