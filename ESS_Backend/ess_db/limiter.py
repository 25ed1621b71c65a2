"""
Fixed-window request counter in Redis.

One instance per window. Each call increments ``{prefix}:{name}:{key}:{window_index}``
and sets its expiry in the same transaction, so a counter never outlives its window.
Redis errors propagate; deciding what to do when the limiter is down is the caller's job.
"""

import time
from typing import Callable

import redis.asyncio as aioredis

from ESS_Backend.ess_shared import config
from ESS_Backend.ess_shared.types import LimitResult


class WindowLimiter:
    def __init__(
        self,
        client: aioredis.Redis,
        name: str,
        limit: int,
        window_seconds: int,
        key_prefix: str = config.RATE_LIMIT_KEY_PREFIX,
        clock: Callable[[], float] = time.time,
    ):
        self.db = client
        self.name = name
        self.max_requests = limit
        self.window_seconds = window_seconds
        self.key_prefix = key_prefix
        self._clock = clock

    def _counter_key(self, key: str) -> str:
        window_index = int(self._clock() // self.window_seconds)
        return f"{self.key_prefix}:{self.name}:{key}:{window_index}"

    async def limit(self, key: str) -> LimitResult:
        counter_key = self._counter_key(key)

        pipe = self.db.pipeline(transaction=True)
        pipe.incr(counter_key)
        pipe.expire(counter_key, self.window_seconds)
        count, _ = await pipe.execute()

        return LimitResult(
            allowed=int(count) <= self.max_requests,
            count=int(count),
            limit=self.max_requests,
        )
