"""Handshake tokens that link a Telegram chat to an account."""

import base64
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

logger = logging.getLogger(__name__)

HANDSHAKE_CLAIM = "telegram"
JWT_ALGORITHM = "HS256"


class HandshakeTokenService:
    """Issues and verifies handshake tokens.

    A token is a signed JWT carrying the username, base64url-encoded so it
    can be pasted into a chat as a single word.
    """

    def __init__(
        self,
        secret: str,
        *,
        ttl_seconds: Optional[int] = 3600,
        algorithm: str = JWT_ALGORITHM,
    ) -> None:
        self._secret = secret
        self._ttl = ttl_seconds
        self._algorithm = algorithm

    def issue(self, username: str, now: Optional[datetime] = None) -> str:
        """Create a handshake token for ``username``."""
        now = now or datetime.now(timezone.utc)
        payload = {HANDSHAKE_CLAIM: username, "iat": now}
        if self._ttl:
            payload["exp"] = now + timedelta(seconds=self._ttl)

        encoded = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return base64.urlsafe_b64encode(encoded.encode("utf-8")).decode("ascii").rstrip("=")

    def verify(self, token: str) -> Optional[str]:
        """Return the username a token was issued for, or None."""
        try:
            padded = token + "=" * (-len(token) % 4)
            encoded = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
        except ValueError:
            return None

        try:
            payload = jwt.decode(encoded, self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError as e:
            logger.debug(f"Rejected handshake token: {e}")
            return None

        username = payload.get(HANDSHAKE_CLAIM)
        if not isinstance(username, str) or not username:
            return None
        return username
