"""
Shared fixtures for the auth core tests.
"""

import asyncio
import re
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest

from otpauth_core.audit import AuditLogger
from otpauth_core.config import AuthConfig
from otpauth_core.controller import AuthFlowController
from otpauth_core.gateways import ConsoleSmsGateway, InMemoryUserRepository
from otpauth_core.session import SessionIssuer
from otpauth_core.store import InMemoryChallengeStore

TEST_SECRET = "test-session-secret-that-is-long-enough-1234"
CODE_PATTERN = re.compile(r"verification code is: (\d+)")


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeRedis:
    """Minimal async stand-in for the redis client calls the stores make."""

    def __init__(self):
        self.data = {}
        self.expiry = {}
        self._locks = {}
        self.closed = False

    async def get(self, key):
        value = self.data.get(key)
        return value.encode() if isinstance(value, str) else value

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex

    async def delete(self, key):
        self.data.pop(key, None)
        self.expiry.pop(key, None)

    def lock(self, name, timeout=None, blocking_timeout=None):
        lock = self._locks.setdefault(name, asyncio.Lock())

        @asynccontextmanager
        async def _held():
            async with lock:
                yield

        return _held()

    async def aclose(self):
        self.closed = True


class YieldingChallengeStore(InMemoryChallengeStore):
    """In-memory store that yields to the event loop on every access."""

    async def get(self, phone):
        await asyncio.sleep(0)
        return await super().get(phone)

    async def put(self, challenge):
        await asyncio.sleep(0)
        await super().put(challenge)

    async def delete(self, phone):
        await asyncio.sleep(0)
        await super().delete(phone)


def last_code(sms: ConsoleSmsGateway) -> str:
    """Read the code from the most recent logged SMS."""
    _, message = sms.outbox[-1]
    return CODE_PATTERN.search(message).group(1)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return AuthConfig(session_secret=TEST_SECRET)


@pytest.fixture
def users():
    return InMemoryUserRepository()


@pytest.fixture
def sms():
    return ConsoleSmsGateway()


@pytest.fixture
def audit(clock):
    return AuditLogger("test-service", clock=clock)


@pytest.fixture
def challenges():
    return YieldingChallengeStore()


@pytest.fixture
def sessions(clock, config):
    return SessionIssuer(secret=config.session_secret, ttl_seconds=config.session_ttl_seconds, clock=clock)


@pytest.fixture
def controller(users, sms, audit, challenges, sessions, config, clock):
    return AuthFlowController(
        users=users,
        sms=sms,
        audit=audit,
        challenges=challenges,
        sessions=sessions,
        config=config,
        clock=clock,
    )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def read_code(sms):
    return lambda: last_code(sms)
