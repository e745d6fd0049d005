"""
User Repository
===============
Account records consumed by the auth flow.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UserAccount:
    """An account as stored by the user repository."""
    id: str
    phone: str
    role: str = "user"
    is_active: bool = True
    is_phone_verified: bool = False
    is_email_verified: bool = False
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    national_id: str = ""
    language: str = "he"
    last_login: Optional[datetime] = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_placeholder(self) -> bool:
        """An inert record awaiting phone verification."""
        return not self.is_active and not self.is_phone_verified


ACCOUNT_FIELDS = frozenset(f.name for f in fields(UserAccount))


class UserRepository(ABC):
    """Abstract account store."""

    @abstractmethod
    async def find_by_phone(self, phone: str) -> Optional[UserAccount]:
        """Return the account registered for a canonical phone, or None."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserAccount]:
        """Return an account by id, or None."""

    @abstractmethod
    async def create(self, phone: str, **attributes: Any) -> UserAccount:
        """Create an account for a phone."""

    @abstractmethod
    async def update(self, user_id: str, changes: Dict[str, Any]) -> UserAccount:
        """Apply field changes to an account and return the new record."""


class InMemoryUserRepository(UserRepository):
    """
    Dict-backed user repository.

    For development and testing only.
    """

    def __init__(self):
        self._users: Dict[str, UserAccount] = {}

    async def find_by_phone(self, phone: str) -> Optional[UserAccount]:
        for user in self._users.values():
            if user.phone == phone:
                return user
        return None

    async def get(self, user_id: str) -> Optional[UserAccount]:
        return self._users.get(user_id)

    async def create(self, phone: str, **attributes: Any) -> UserAccount:
        if await self.find_by_phone(phone) is not None:
            raise ValueError(f"Phone already registered: {phone}")

        unknown = set(attributes) - ACCOUNT_FIELDS
        if unknown:
            raise ValueError(f"Unknown account fields: {sorted(unknown)}")

        attributes.setdefault("id", str(uuid.uuid4()))
        user = UserAccount(phone=phone, **attributes)
        self._users[user.id] = user

        logger.info("user_created", user_id=user.id)
        return user

    async def update(self, user_id: str, changes: Dict[str, Any]) -> UserAccount:
        user = self._users.get(user_id)
        if user is None:
            raise KeyError(user_id)

        unknown = set(changes) - ACCOUNT_FIELDS
        if unknown:
            raise ValueError(f"Unknown account fields: {sorted(unknown)}")

        updated = replace(user, **changes)
        self._users[user_id] = updated
        return updated
