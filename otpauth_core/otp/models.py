"""
OTP Models
==========
Data models and enums for OTP challenges.
"""

from dataclasses import dataclass, asdict, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Purpose(str, Enum):
    """Whether a challenge authenticates an existing account or creates one."""
    LOGIN = "login"
    REGISTER = "register"


class ChallengeState(str, Enum):
    """Lifecycle states of a phone's OTP challenge."""
    ABSENT = "absent"
    PENDING = "pending"
    EXPIRED = "expired"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class OTPChallenge:
    """
    Snapshot of the outstanding OTP challenge for one phone.

    The code is held only as a salted hash. ``code_hash``, ``salt`` and
    ``expires_at`` are cleared when the challenge gets blocked.
    """
    phone: str
    purpose: Purpose
    created_at: datetime
    code_hash: Optional[str] = None
    salt: Optional[str] = None
    expires_at: Optional[datetime] = None
    attempts: int = 0
    blocked_until: Optional[datetime] = None

    def evolve(self, **changes) -> "OTPChallenge":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        d = asdict(self)
        d["purpose"] = self.purpose.value
        for key in ("created_at", "expires_at", "blocked_until"):
            value = getattr(self, key)
            d[key] = value.isoformat() if value else None
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OTPChallenge":
        def _ts(value):
            return datetime.fromisoformat(value) if value else None

        return cls(
            phone=data["phone"],
            purpose=Purpose(data["purpose"]),
            created_at=_ts(data["created_at"]),
            code_hash=data.get("code_hash"),
            salt=data.get("salt"),
            expires_at=_ts(data.get("expires_at")),
            attempts=int(data.get("attempts", 0)),
            blocked_until=_ts(data.get("blocked_until")),
        )
