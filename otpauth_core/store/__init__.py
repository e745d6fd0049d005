"""
Challenge Stores
================
Keyed OTP challenge repositories with per-phone locking.
"""

from .base import ChallengeStore
from .in_memory import InMemoryChallengeStore
from .redis_store import RedisChallengeStore

__all__ = [
    "ChallengeStore",
    "InMemoryChallengeStore",
    "RedisChallengeStore",
]
