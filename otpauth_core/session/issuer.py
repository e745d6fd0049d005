"""
Session Issuer
==============
Mints, resolves and revokes opaque session tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import structlog

from .models import Session
from .store import InMemorySessionStore, SessionStore
from .tokens import SessionTokenSigner

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionIssuer:
    """
    Issues signed session tokens backed by a server-side store.

    A token resolves only while its record exists and has not expired, so
    revocation is immediate and a replayed token never resolves again.
    """

    def __init__(
        self,
        secret: str,
        store: Optional[SessionStore] = None,
        ttl_seconds: int = 86400,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.signer = SessionTokenSigner(secret)
        self.store = store or InMemorySessionStore()
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    async def issue(self, user_id: str, role: str) -> str:
        """
        Create a session for a user.

        Args:
            user_id: Authenticated user id
            role: User role

        Returns:
            Opaque session token
        """
        now = self._clock()
        session = Session(
            session_id=self.signer.new_session_id(),
            user_id=user_id,
            role=role,
            issued_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        await self.store.put(session)

        logger.info("session_issued", user_id=user_id, role=role, expires_in=self.ttl_seconds)
        return self.signer.sign(session.session_id)

    async def resolve(self, token: Optional[str]) -> Optional[Session]:
        """Return the live session for a token, or None."""
        session_id = self.signer.unsign(token)
        if session_id is None:
            return None

        session = await self.store.get(session_id)
        if session is None:
            return None

        if session.is_expired(self._clock()):
            await self.store.delete(session_id)
            logger.info("session_expired", user_id=session.user_id)
            return None

        return session

    async def revoke(self, token: Optional[str]) -> bool:
        """
        Revoke a session. Unknown or malformed tokens are ignored.

        Returns:
            True if a session record was removed
        """
        session_id = self.signer.unsign(token)
        if session_id is None:
            return False

        session = await self.store.get(session_id)
        await self.store.delete(session_id)

        if session is not None:
            logger.info("session_revoked", user_id=session.user_id)
        return session is not None
