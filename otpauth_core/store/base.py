"""
Challenge Store Interface
=========================
Keyed repository of OTP challenges, one per phone.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager, Optional

from ..otp.models import OTPChallenge


class ChallengeStore(ABC):
    """
    Abstract keyed store mapping a canonical phone to its challenge.

    ``put`` overwrites any existing challenge for the phone. Read-modify-write
    sequences must run inside ``lock(phone)``.
    """

    @abstractmethod
    async def get(self, phone: str) -> Optional[OTPChallenge]:
        """Return the stored challenge, or None."""

    @abstractmethod
    async def put(self, challenge: OTPChallenge) -> None:
        """Store a challenge, replacing the previous one for the phone."""

    @abstractmethod
    async def delete(self, phone: str) -> None:
        """Remove the challenge for a phone. Missing keys are ignored."""

    @abstractmethod
    def lock(self, phone: str) -> AsyncContextManager:
        """Async context manager serializing mutations for one phone."""

    async def close(self) -> None:
        """Release resources held by the store."""
