from typing import Optional

import redis
import redis.asyncio as aioredis

from ESS_Backend.ess_shared import config, errors
from ESS_Backend.ess_shared.types import SecretMetadata, SecretRecord


class SecretStore:
    def __init__(self, client: aioredis.Redis, key_prefix: str = config.SECRET_KEY_PREFIX):
        self.db: aioredis.Redis = client
        self.key_prefix = key_prefix

    def _secret_key(self, secret_id: str) -> str:
        return f"{self.key_prefix}:{secret_id}"

    def _serialize_entry(self, payload: str, metadata: SecretMetadata) -> dict:
        mapping = {
            "payload": payload.encode("utf-8"),
            "read_once": "1" if metadata.read_once else "0",
            "creation_time": str(metadata.creation_time),
        }
        if metadata.user_expiry_option is not None:
            mapping["expiry_option"] = metadata.user_expiry_option
        return mapping

    def _deserialize_entry(self, secret_id: str, data: dict[bytes, bytes]) -> SecretRecord:
        expiry_option = data.get(b"expiry_option")
        return SecretRecord(
            secret_id=secret_id,
            payload=data[b"payload"].decode("utf-8"),
            metadata=SecretMetadata(
                read_once=data.get(b"read_once") == b"1",
                creation_time=int(data.get(b"creation_time", b"0")),
                user_expiry_option=expiry_option.decode() if expiry_option is not None else None,
            ),
        )

    async def put(self, secret_id: str, payload: str, ttl_seconds: int, metadata: SecretMetadata) -> None:
        full_key = self._secret_key(secret_id)
        mapping = self._serialize_entry(payload, metadata)

        try:
            pipe = self.db.pipeline(transaction=True)
            # a racing writer may have taken this id; replace rather than merge fields
            pipe.delete(full_key)
            pipe.hset(full_key, mapping=mapping)
            pipe.expire(full_key, ttl_seconds)
            await pipe.execute()
        except redis.exceptions.RedisError:
            raise errors.StorageError("put")

    async def get_with_metadata(self, secret_id: str) -> Optional[SecretRecord]:
        try:
            data = await self.db.hgetall(self._secret_key(secret_id))
        except redis.exceptions.RedisError:
            raise errors.StorageError("get_with_metadata")

        if not data or not data.get(b"payload"):
            return None
        return self._deserialize_entry(secret_id, data)

    async def exists(self, secret_id: str) -> bool:
        try:
            return bool(await self.db.exists(self._secret_key(secret_id)))
        except redis.exceptions.RedisError:
            raise errors.StorageError("exists")

    async def delete(self, secret_id: str) -> bool:
        """Remove a secret. Deleting a missing id is a no-op that returns False."""
        try:
            return bool(await self.db.delete(self._secret_key(secret_id)))
        except redis.exceptions.RedisError:
            raise errors.StorageError("delete")
