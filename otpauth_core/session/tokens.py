"""
Session Tokens
==============
Signs and verifies opaque session tokens.
"""

import hashlib
import hmac
import secrets
from typing import Optional


class SessionTokenSigner:
    """Generates ``<session_id>.<signature>`` tokens and checks them."""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Session secret is required")
        self.secret = secret

    def _sign(self, session_id: str) -> str:
        return hmac.new(
            self.secret.encode(),
            session_id.encode(),
            hashlib.sha256,
        ).hexdigest()[:32]

    def new_session_id(self) -> str:
        return secrets.token_urlsafe(24)

    def sign(self, session_id: str) -> str:
        """
        Build a token for a session id.

        Args:
            session_id: Random session identifier

        Returns:
            Signed token
        """
        return f"{session_id}.{self._sign(session_id)}"

    def unsign(self, token: Optional[str]) -> Optional[str]:
        """
        Return the session id of a correctly signed token, else None.
        """
        if not token:
            return None

        session_id, sep, signature = token.rpartition(".")
        if not sep or not session_id or not signature:
            return None

        if not hmac.compare_digest(signature, self._sign(session_id)):
            return None
        return session_id
