import asyncio
from datetime import datetime

import pytest

from assistant.data_provider import SeededDataProvider
from assistant.errors import ErrorKind
from assistant.llm import ChatProvider, ProviderReply
from assistant.orchestrator import FallbackOrchestrator, OrchestratorConfig

NOW = datetime(2025, 3, 15, 12, 0, 0)


class FakeProvider(ChatProvider):
    """Scripted provider: returns queued replies (or raises / sleeps) and records requests."""

    def __init__(self, name="fake", replies=None, configured=True, delay=0.0, raises=None):
        self.name = name
        self.replies = list(replies or [])
        self.configured = configured
        self.delay = delay
        self.raises = raises
        self.requests = []

    @property
    def is_configured(self):
        return self.configured

    async def complete(self, request):
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        if not self.replies:
            return ProviderReply.failure(ErrorKind.NETWORK)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, ProviderReply):
            return reply
        return ProviderReply.success(reply)


def failing(name="fake", kind=ErrorKind.NETWORK):
    return FakeProvider(name=name, replies=[ProviderReply.failure(kind)])


def build_orchestrator(primary=None, secondary=None, timeout_seconds=1.0):
    return FallbackOrchestrator(
        config=OrchestratorConfig(timeout_seconds=timeout_seconds),
        primary=primary,
        secondary=secondary,
    )


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def provider():
    return SeededDataProvider(now=NOW)


@pytest.fixture()
def offline_orchestrator():
    """Both remote tiers failing."""
    return build_orchestrator(primary=failing("primary"), secondary=failing("secondary", ErrorKind.AUTH))
