"""
Session Stores
==============
Server-side session storage. Deleting a record revokes the session.
"""

import json
import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from redis.asyncio import Redis

from .models import Session


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore(ABC):
    """Keyed store of sessions by session id."""

    @abstractmethod
    async def get(self, session_id: str) -> Optional[Session]:
        ...

    @abstractmethod
    async def put(self, session: Session) -> None:
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        ...

    async def close(self) -> None:
        ...


class InMemorySessionStore(SessionStore):
    """Dict-backed session store for development and testing."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    async def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    async def put(self, session: Session) -> None:
        self._sessions[session.session_id] = session

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def close(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Redis-backed session store; keys expire with the session."""

    def __init__(
        self,
        redis_client: Redis,
        key_prefix: str = "otpauth:sess",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.redis = redis_client
        self.key_prefix = key_prefix
        self._clock = clock

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}:{session_id}"

    async def get(self, session_id: str) -> Optional[Session]:
        raw = await self.redis.get(self._key(session_id))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        return Session.from_dict(json.loads(raw))

    async def put(self, session: Session) -> None:
        ttl = math.ceil((session.expires_at - self._clock()).total_seconds())
        await self.redis.set(
            self._key(session.session_id),
            json.dumps(session.to_dict(), separators=(",", ":")),
            ex=max(ttl, 1),
        )

    async def delete(self, session_id: str) -> None:
        await self.redis.delete(self._key(session_id))

    async def close(self) -> None:
        await self.redis.aclose()
