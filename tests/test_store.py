"""
Tests for challenge stores.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from otpauth_core.otp import Purpose, new_challenge
from otpauth_core.store import InMemoryChallengeStore, RedisChallengeStore

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
PHONE = "+972501234567"


def _challenge(purpose=Purpose.LOGIN):
    return new_challenge(PHONE, "483920", purpose, NOW, ttl_seconds=300)


class TestInMemoryChallengeStore:

    @pytest.mark.asyncio
    async def test_put_get_delete(self):
        store = InMemoryChallengeStore()
        challenge = _challenge()

        await store.put(challenge)
        assert await store.get(PHONE) == challenge

        await store.delete(PHONE)
        assert await store.get(PHONE) is None

        # Deleting again is harmless
        await store.delete(PHONE)

    @pytest.mark.asyncio
    async def test_one_challenge_per_phone(self):
        """A newer challenge replaces the older one."""
        store = InMemoryChallengeStore()

        await store.put(_challenge(Purpose.LOGIN))
        await store.put(_challenge(Purpose.REGISTER))

        assert len(store) == 1
        assert (await store.get(PHONE)).purpose is Purpose.REGISTER

    @pytest.mark.asyncio
    async def test_lock_serializes_same_phone(self):
        """Read-modify-write under the lock must not lose updates."""
        store = InMemoryChallengeStore()
        await store.put(_challenge())

        async def increment():
            async with store.lock(PHONE):
                current = await store.get(PHONE)
                await asyncio.sleep(0)
                await store.put(current.evolve(attempts=current.attempts + 1))

        await asyncio.gather(*(increment() for _ in range(10)))

        assert (await store.get(PHONE)).attempts == 10

    @pytest.mark.asyncio
    async def test_different_phones_do_not_block(self):
        store = InMemoryChallengeStore()

        async with store.lock(PHONE):
            async with store.lock("+972521234567"):
                pass


class TestRedisChallengeStore:

    @pytest.mark.asyncio
    async def test_round_trip_json(self, fake_redis):
        store = RedisChallengeStore(fake_redis, clock=lambda: NOW)
        challenge = _challenge()

        await store.put(challenge)

        raw = fake_redis.data[f"otp:challenge:{PHONE}"]
        assert json.loads(raw)["phone"] == PHONE
        assert await store.get(PHONE) == challenge

    @pytest.mark.asyncio
    async def test_key_expires_after_deadline(self, fake_redis):
        """TTL should cover the code expiry plus the grace period."""
        store = RedisChallengeStore(fake_redis, grace_seconds=60, clock=lambda: NOW)

        await store.put(_challenge())

        assert fake_redis.expiry[f"otp:challenge:{PHONE}"] == 300 + 60

    @pytest.mark.asyncio
    async def test_blocked_challenge_kept_for_block_duration(self, fake_redis):
        store = RedisChallengeStore(fake_redis, grace_seconds=60, clock=lambda: NOW)
        blocked = _challenge().evolve(
            attempts=3,
            blocked_until=NOW + timedelta(minutes=15),
            code_hash=None,
            salt=None,
            expires_at=None,
        )

        await store.put(blocked)

        assert fake_redis.expiry[f"otp:challenge:{PHONE}"] == 900 + 60
        assert (await store.get(PHONE)).blocked_until == blocked.blocked_until

    @pytest.mark.asyncio
    async def test_delete_and_close(self, fake_redis):
        store = RedisChallengeStore(fake_redis, clock=lambda: NOW)
        await store.put(_challenge())

        await store.delete(PHONE)
        await store.close()

        assert await store.get(PHONE) is None
        assert fake_redis.closed is True

    @pytest.mark.asyncio
    async def test_lock_uses_redis_lock(self, fake_redis):
        store = RedisChallengeStore(fake_redis, clock=lambda: NOW)

        async with store.lock(PHONE):
            pass

        assert f"otp:challenge:lock:{PHONE}" in fake_redis._locks
