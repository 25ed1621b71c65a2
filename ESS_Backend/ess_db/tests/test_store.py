import pytest
import redis

from ESS_Backend.ess_db.store import SecretStore
from ESS_Backend.ess_shared import config, errors
from ESS_Backend.ess_shared.types import SecretMetadata, SecretRecord


pytestmark = pytest.mark.asyncio


# ── Put ──

async def test_put_then_get_roundtrip(store, sample_metadata):
    await store.put("AbC123", "ciphertext==", 300, sample_metadata)
    record = await store.get_with_metadata("AbC123")

    assert isinstance(record, SecretRecord)
    assert record.secret_id == "AbC123"
    assert record.payload == "ciphertext=="
    assert record.metadata == sample_metadata


async def test_put_sets_ttl(store, secret_client, sample_metadata):
    await store.put("ttlCheck", "payload", 300, sample_metadata)
    ttl = await secret_client.ttl(store._secret_key("ttlCheck"))
    assert 0 < ttl <= 300


async def test_put_preserves_unicode_payload(store, sample_metadata):
    payload = "ünïcødé ✓ " * 50
    await store.put("uni1", payload, 300, sample_metadata)
    record = await store.get_with_metadata("uni1")
    assert record.payload == payload


async def test_put_without_expiry_option(store):
    meta = SecretMetadata(read_once=True, creation_time=123, user_expiry_option=None)
    await store.put("noOpt", "x", 60, meta)
    record = await store.get_with_metadata("noOpt")
    assert record.metadata.read_once is True
    assert record.metadata.user_expiry_option is None
    assert record.metadata.creation_time == 123


async def test_put_overwrites_existing_entry(store, sample_metadata):
    await store.put("dup", "first", 300, sample_metadata)
    meta = SecretMetadata(read_once=True, creation_time=1, user_expiry_option=None)
    await store.put("dup", "second", 300, meta)

    record = await store.get_with_metadata("dup")
    assert record.payload == "second"
    assert record.metadata.user_expiry_option is None


async def test_put_uses_namespaced_key(store, secret_client, sample_metadata):
    await store.put("ns1", "x", 60, sample_metadata)
    assert await secret_client.exists(f"{config.SECRET_KEY_PREFIX}:ns1") == 1


# ── Get ──

async def test_get_missing_returns_none(store):
    assert await store.get_with_metadata("nothingHere") is None


async def test_get_after_expiry_returns_none(store, secret_client, sample_metadata):
    await store.put("gone", "x", 60, sample_metadata)
    # simulate the backend expiring the entry
    await secret_client.delete(store._secret_key("gone"))
    assert await store.get_with_metadata("gone") is None


# ── Exists ──

async def test_exists_true(store, sample_metadata):
    await store.put("here", "x", 60, sample_metadata)
    assert await store.exists("here") is True


async def test_exists_false(store):
    assert await store.exists("nowhere") is False


# ── Delete ──

async def test_delete_existing(store, sample_metadata):
    await store.put("del1", "x", 60, sample_metadata)
    assert await store.delete("del1") is True
    assert await store.get_with_metadata("del1") is None


async def test_delete_is_idempotent(store, sample_metadata):
    await store.put("del2", "x", 60, sample_metadata)
    await store.delete("del2")
    assert await store.delete("del2") is False
    assert await store.delete("neverExisted") is False


async def test_delete_leaves_other_ids_alone(store, sample_metadata):
    await store.put("keepMe", "keep", 60, sample_metadata)
    await store.put("dropMe", "drop", 60, sample_metadata)

    await store.delete("dropMe")
    await store.delete("dropMe")

    record = await store.get_with_metadata("keepMe")
    assert record is not None
    assert record.payload == "keep"


# ── Backend failures ──

class _BrokenPipeline:
    def __getattr__(self, name):
        def _noop(*args, **kwargs):
            return self
        return _noop

    async def execute(self):
        raise redis.exceptions.ConnectionError("down")


class _BrokenClient:
    def pipeline(self, transaction=True):
        return _BrokenPipeline()

    async def hgetall(self, key):
        raise redis.exceptions.ConnectionError("down")

    async def exists(self, key):
        raise redis.exceptions.TimeoutError("slow")

    async def delete(self, key):
        raise redis.exceptions.ConnectionError("down")


@pytest.fixture
def broken_store():
    return SecretStore(_BrokenClient())


async def test_put_failure_raises_storage_error(broken_store, sample_metadata):
    with pytest.raises(errors.StorageError):
        await broken_store.put("x1", "x", 60, sample_metadata)


async def test_get_failure_raises_storage_error(broken_store):
    with pytest.raises(errors.StorageError):
        await broken_store.get_with_metadata("x1")


async def test_exists_failure_raises_storage_error(broken_store):
    with pytest.raises(errors.StorageError):
        await broken_store.exists("x1")


async def test_delete_failure_raises_storage_error(broken_store):
    with pytest.raises(errors.StorageError):
        await broken_store.delete("x1")
