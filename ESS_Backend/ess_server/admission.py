import asyncio
import logging

from ESS_Backend.ess_db.limiter import WindowLimiter
from ESS_Backend.ess_shared import errors
from ESS_Backend.ess_shared.types import AdmissionDecision, SCOPE_LONG, SCOPE_SHORT

logger = logging.getLogger(__name__)


class AdmissionController:
    """Two-window gate in front of every create/read call.

    Fails open: if either limiter errors the request is let through and the
    decision is marked ``degraded``.
    """

    def __init__(self, short_limiter: WindowLimiter, long_limiter: WindowLimiter):
        self.short_limiter = short_limiter
        self.long_limiter = long_limiter

    async def check(self, fingerprint: str) -> AdmissionDecision:
        short_result, long_result = await asyncio.gather(
            self.short_limiter.limit(fingerprint),
            self.long_limiter.limit(fingerprint),
            return_exceptions=True,
        )

        failures = [r for r in (short_result, long_result) if isinstance(r, BaseException)]
        for failure in failures:
            if isinstance(failure, asyncio.CancelledError):
                raise failure
        if failures:
            logger.warning(
                "Rate limiter unavailable, failing open for %s: %r",
                fingerprint[:12], failures[0],
            )
            return AdmissionDecision(allowed=True, degraded=True)

        if not short_result.allowed:
            logger.info(
                "Rate limited (%s window, %d/%d) for %s",
                SCOPE_SHORT, short_result.count, short_result.limit, fingerprint[:12],
            )
            return AdmissionDecision(allowed=False, scope=SCOPE_SHORT)

        if not long_result.allowed:
            logger.info(
                "Rate limited (%s window, %d/%d) for %s",
                SCOPE_LONG, long_result.count, long_result.limit, fingerprint[:12],
            )
            return AdmissionDecision(allowed=False, scope=SCOPE_LONG)

        logger.debug("Admitted %s", fingerprint[:12])
        return AdmissionDecision(allowed=True)

    async def enforce(self, fingerprint: str) -> AdmissionDecision:
        """Like ``check`` but raises RateLimitedError on a deny."""
        decision = await self.check(fingerprint)
        if not decision.allowed:
            limiter = self.short_limiter if decision.scope == SCOPE_SHORT else self.long_limiter
            raise errors.RateLimitedError(decision.scope, limiter.window_seconds)
        return decision
