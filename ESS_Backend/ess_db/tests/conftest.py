import pytest
import pytest_asyncio
import fakeredis

from ESS_Backend.ess_db.store import SecretStore
from ESS_Backend.ess_db.allocator import IdAllocator
from ESS_Backend.ess_shared.types import SecretMetadata


@pytest_asyncio.fixture
async def secret_client():
    r = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer())
    yield r
    await r.flushdb()
    await r.aclose()


@pytest.fixture
def store(secret_client):
    return SecretStore(secret_client)


@pytest.fixture
def allocator(store):
    return IdAllocator(store)


@pytest.fixture
def sample_metadata():
    return SecretMetadata(
        read_once=False,
        creation_time=1_700_000_000_000,
        user_expiry_option="5min",
    )
