"""Shared fixtures: loopback collaborators and a handler wired to them."""

import pytest
import pytest_asyncio

from unified_messaging.collaborators.memory import (
    InMemoryPushTransport,
    InMemoryRenderer,
)
from unified_messaging.core import Platform, Settings
from unified_messaging.handler import NotificationHandler


@pytest.fixture
def settings():
    """Android settings, so permission negotiation creates a channel."""
    return Settings(platform=Platform.ANDROID)


@pytest.fixture
def push():
    return InMemoryPushTransport()


@pytest.fixture
def renderer():
    return InMemoryRenderer()


@pytest_asyncio.fixture
async def handler(push, renderer, settings):
    """Create a NotificationHandler and cancel its subscriptions afterwards."""
    handler = NotificationHandler(push, renderer, settings)
    yield handler
    await handler.close()
