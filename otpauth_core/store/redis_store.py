"""
Redis Challenge Store
=====================
Challenge store shared between instances through Redis.
"""

import json
import math
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Optional

import structlog
from redis.asyncio import Redis

from ..otp.models import OTPChallenge
from .base import ChallengeStore

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RedisChallengeStore(ChallengeStore):
    """
    Redis-backed challenge store.

    Each challenge is a JSON string whose key expires shortly after the
    later of its code expiry and block end. Per-phone serialization uses a
    Redis lock so concurrent verifications on different instances are still
    counted once each.
    """

    def __init__(
        self,
        redis_client: Redis,
        key_prefix: str = "otp:challenge",
        lock_timeout: float = 10.0,
        lock_wait: float = 5.0,
        grace_seconds: int = 60,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            redis_client: Async Redis client (redis.asyncio.Redis)
            key_prefix: Prefix for challenge and lock keys
            lock_timeout: Seconds before a held lock auto-releases
            lock_wait: Seconds to wait for a lock before failing
            grace_seconds: Extra key lifetime past the challenge deadline
            clock: Current time source
        """
        self.redis = redis_client
        self.key_prefix = key_prefix
        self.lock_timeout = lock_timeout
        self.lock_wait = lock_wait
        self.grace_seconds = grace_seconds
        self._clock = clock

    def _key(self, phone: str) -> str:
        return f"{self.key_prefix}:{phone}"

    def _lock_key(self, phone: str) -> str:
        return f"{self.key_prefix}:lock:{phone}"

    def _ttl(self, challenge: OTPChallenge) -> int:
        deadlines = [d for d in (challenge.expires_at, challenge.blocked_until) if d]
        if not deadlines:
            return self.grace_seconds
        remaining = (max(deadlines) - self._clock()).total_seconds()
        return max(math.ceil(remaining), 0) + self.grace_seconds

    async def get(self, phone: str) -> Optional[OTPChallenge]:
        raw = await self.redis.get(self._key(phone))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        return OTPChallenge.from_dict(json.loads(raw))

    async def put(self, challenge: OTPChallenge) -> None:
        payload = json.dumps(challenge.to_dict(), separators=(",", ":"))
        await self.redis.set(self._key(challenge.phone), payload, ex=self._ttl(challenge))

    async def delete(self, phone: str) -> None:
        await self.redis.delete(self._key(phone))

    @asynccontextmanager
    async def lock(self, phone: str) -> AsyncIterator[None]:
        redis_lock = self.redis.lock(
            self._lock_key(phone),
            timeout=self.lock_timeout,
            blocking_timeout=self.lock_wait,
        )
        async with redis_lock:
            yield

    async def close(self) -> None:
        await self.redis.aclose()
