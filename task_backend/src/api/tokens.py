"""
Session token issuance and verification.

Tokens are HS256 JWTs carrying the user id in ``sub`` plus ``iat``/``exp``.
Verification is stateless: there is no revocation list, so a token stays valid
until it expires or the signing secret changes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import jwt

from .settings import get_settings

TOKEN_LIFETIME = timedelta(days=7)
TOKEN_ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Raised when a token is malformed, tampered with, expired or carries no subject."""


# PUBLIC_INTERFACE
class TokenCodec:
    """Issue and verify signed, time-limited session tokens."""

    def __init__(self, secret: str, lifetime: timedelta = TOKEN_LIFETIME, algorithm: str = TOKEN_ALGORITHM) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self.lifetime = lifetime

    def issue(self, user_id: str, now: Optional[datetime] = None) -> str:
        """Return a signed token for ``user_id`` expiring ``lifetime`` after ``now``."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> str:
        """
        Verify ``token`` and return the user id it was issued for.

        Raises:
            InvalidTokenError: on a bad signature, malformed structure, elapsed
                expiry, missing claims or an empty subject.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("token expired") from exc
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(f"invalid token: {exc}") from exc

        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError("token carries no subject")
        return user_id


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_token_codec() -> TokenCodec:
    """Return the process-wide codec signed with the configured secret."""
    return TokenCodec(get_settings().jwt_secret)
