import logging

import redis
import redis.asyncio as aioredis

from ESS_Backend.ess_shared import errors
from ESS_Backend.ess_shared.config import Settings
from ESS_Backend.ess_shared.types import HealthStatus

logger = logging.getLogger(__name__)


def create_secret_client(settings: Settings) -> aioredis.Redis:
    """Build the async client. Connections are opened lazily on first command."""
    return aioredis.Redis.from_url(
        settings.redis_url,
        decode_responses=False,
        socket_connect_timeout=settings.redis_socket_timeout,
        socket_timeout=settings.redis_socket_timeout,
    )


async def ping(client: aioredis.Redis) -> None:
    try:
        await client.ping()
    except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError):
        raise errors.StorageError("ping")


async def health_check(client: aioredis.Redis) -> HealthStatus:
    connected = False
    key_count = 0
    uptime = 0.0

    try:
        connected = bool(await client.ping())
        key_count = await client.dbsize()
        info = await client.info()
        uptime = float(info.get("uptime_in_seconds", 0))
    except redis.exceptions.RedisError:
        logger.warning("Redis health check failed", exc_info=True)

    return HealthStatus(
        redis_connected=connected,
        key_count=key_count,
        uptime_seconds=uptime,
    )


async def close(client: aioredis.Redis) -> None:
    await client.aclose()
