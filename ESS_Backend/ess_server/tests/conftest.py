import pytest
import pytest_asyncio
import fakeredis
from httpx import AsyncClient, ASGITransport

from ESS_Backend.ess_db.allocator import IdAllocator
from ESS_Backend.ess_db.store import SecretStore
from ESS_Backend.ess_server.api import create_app
from ESS_Backend.ess_server.service import SecretService
from ESS_Backend.ess_shared.config import Settings
from ESS_Backend.ess_shared.types import LimitResult


# ─── Stub limiters ───

class StubLimiter:
    """Answers from a fixed script; records every key it sees."""

    def __init__(self, allowed=True, error=None, window_seconds=30):
        self.allowed = allowed
        self.error = error
        self.window_seconds = window_seconds
        self.keys = []

    async def limit(self, key):
        self.keys.append(key)
        if self.error is not None:
            raise self.error
        return LimitResult(allowed=self.allowed, count=len(self.keys), limit=10)


class RecordingTasks:
    """Minimal background-task handle: collects tasks and runs them on demand."""

    def __init__(self):
        self.tasks = []

    def add_task(self, func, *args, **kwargs):
        self.tasks.append((func, args, kwargs))

    async def run_all(self):
        for func, args, kwargs in self.tasks:
            await func(*args, **kwargs)


# ─── Fakeredis fixtures (no Docker) ───

@pytest_asyncio.fixture
async def secret_client():
    r = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer())
    yield r
    await r.flushdb()
    await r.aclose()


@pytest.fixture
def settings():
    return Settings(short_window_limit=3, long_window_limit=10)


@pytest.fixture
def store(secret_client):
    return SecretStore(secret_client)


@pytest.fixture
def service(store, settings):
    return SecretService(store, IdAllocator(store), settings)


@pytest.fixture
def app(settings, secret_client):
    return create_app(settings=settings, client=secret_client)


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
