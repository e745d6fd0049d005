"""
Sessions
========
Opaque, revocable, expiring sessions for authenticated users.
"""

from .models import Session
from .tokens import SessionTokenSigner
from .store import SessionStore, InMemorySessionStore, RedisSessionStore
from .issuer import SessionIssuer

__all__ = [
    "Session",
    "SessionTokenSigner",
    "SessionStore",
    "InMemorySessionStore",
    "RedisSessionStore",
    "SessionIssuer",
]
