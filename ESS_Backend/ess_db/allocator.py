import logging
import secrets
from typing import Callable, Optional

from ESS_Backend.ess_shared import config, errors
from ESS_Backend.ess_db.store import SecretStore

logger = logging.getLogger(__name__)


def generate_id(length: int = config.ID_LENGTH, alphabet: str = config.ID_ALPHABET) -> str:
    # secrets.choice draws with randbelow (rejection sampling), so no modulo bias
    return "".join(secrets.choice(alphabet) for _ in range(length))


class IdAllocator:
    """Hands out secret ids that are not in use at the moment of the check.

    The check and the later write are separate round trips, so two concurrent
    creates can still land on the same id. With 62**16 candidates this is left as is.
    """

    def __init__(
        self,
        store: SecretStore,
        length: int = config.ID_LENGTH,
        max_attempts: int = config.ID_MAX_ATTEMPTS,
        alphabet: str = config.ID_ALPHABET,
        generate: Optional[Callable[[], str]] = None,
    ):
        self.store = store
        self.length = length
        self.max_attempts = max_attempts
        self.alphabet = alphabet
        self._generate = generate or (lambda: generate_id(self.length, self.alphabet))

    async def allocate(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            candidate = self._generate()
            if not await self.store.exists(candidate):
                return candidate
            logger.warning("Secret id collision on attempt %d/%d", attempt, self.max_attempts)

        logger.error("Secret id allocation exhausted after %d attempts", self.max_attempts)
        raise errors.ServiceBusyError(self.max_attempts)
