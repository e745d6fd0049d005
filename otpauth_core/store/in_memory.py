"""
In-Memory Challenge Store
=========================
Process-local challenge store for single-instance deployments and tests.
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from ..otp.models import OTPChallenge
from .base import ChallengeStore


class InMemoryChallengeStore(ChallengeStore):
    """
    Dict-backed challenge store with one asyncio.Lock per phone.

    Locks are held weakly and disappear once no coroutine uses them.
    Use RedisChallengeStore when running more than one instance.
    """

    def __init__(self):
        self._challenges: Dict[str, OTPChallenge] = {}
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    async def get(self, phone: str) -> Optional[OTPChallenge]:
        return self._challenges.get(phone)

    async def put(self, challenge: OTPChallenge) -> None:
        self._challenges[challenge.phone] = challenge

    async def delete(self, phone: str) -> None:
        self._challenges.pop(phone, None)

    @asynccontextmanager
    async def lock(self, phone: str) -> AsyncIterator[None]:
        phone_lock = self._locks.get(phone)
        if phone_lock is None:
            phone_lock = asyncio.Lock()
            self._locks[phone] = phone_lock
        async with phone_lock:
            yield

    async def close(self) -> None:
        self._challenges.clear()

    def __len__(self) -> int:
        return len(self._challenges)
