"""
Create and read paths for secrets.

    create:  validate payload → allocate id → compute TTL → store
    read:    validate id → single lookup → (read-once) schedule delete → return

Read-once cleanup is handed to a background-task handle (anything with
``add_task``, e.g. FastAPI's BackgroundTasks) so it runs after the response
has gone out. Its result only shows up in the logs.
"""

import logging
import time

from ESS_Backend.ess_db.allocator import IdAllocator
from ESS_Backend.ess_db.store import SecretStore
from ESS_Backend.ess_shared import errors
from ESS_Backend.ess_shared.config import Settings
from ESS_Backend.ess_shared.ttl_policy import compute_ttl
from ESS_Backend.ess_shared.types import SecretMetadata, SecretRecord
from ESS_Backend.ess_shared.validation import validate_payload, validate_secret_id

logger = logging.getLogger(__name__)


class SecretService:
    def __init__(self, store: SecretStore, allocator: IdAllocator, settings: Settings):
        self.store = store
        self.allocator = allocator
        self.settings = settings

    async def create(self, body) -> str:
        if not isinstance(body, dict):
            raise errors.ValidationError("Invalid JSON")

        payload = validate_payload(body.get("encryptedPayload"), self.settings.max_payload_size)
        expiry_option = body.get("expiryOption")
        read_once = bool(body.get("readOnce"))

        secret_id = await self.allocator.allocate()
        ttl = compute_ttl(expiry_option, read_once, self.settings)

        metadata = SecretMetadata(
            read_once=read_once,
            creation_time=int(time.time() * 1000),
            user_expiry_option=expiry_option if isinstance(expiry_option, str) else None,
        )
        await self.store.put(secret_id, payload, ttl, metadata)
        return secret_id

    async def read(self, secret_id, background) -> SecretRecord:
        validate_secret_id(secret_id, self.settings.max_id_length)

        record = await self.store.get_with_metadata(secret_id)
        if record is None:
            raise errors.SecretNotFoundError(secret_id)

        if record.metadata.read_once:
            background.add_task(self._purge_after_read, secret_id)

        return record

    async def _purge_after_read(self, secret_id: str) -> None:
        try:
            removed = await self.store.delete(secret_id)
        except Exception:
            # response already sent
            logger.exception("Read-once cleanup failed for %s", secret_id)
            return

        if removed:
            logger.info("Read-once secret %s deleted after first read", secret_id)
        else:
            logger.info("Read-once secret %s was already gone at cleanup", secret_id)
