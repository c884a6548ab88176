from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Response
from fastapi.security import APIKeyCookie

from .errors import UnauthorizedError
from .settings import Settings
from .tokens import InvalidTokenError, TokenCodec, get_token_codec

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "token"
SESSION_COOKIE_MAX_AGE = 7 * 24 * 60 * 60
SESSION_COOKIE_PATH = "/"

_session_cookie = APIKeyCookie(name=SESSION_COOKIE_NAME, auto_error=False)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Identity:
    """The acting user, as resolved from a verified session token."""

    user_id: str


# PUBLIC_INTERFACE
def attach_session(response: Response, token: str, settings: Settings) -> None:
    """
    Set the session cookie on ``response``.

    The cookie is HTTP-only, SameSite=Lax, scoped to the whole site, lives as
    long as the token and is marked Secure when running in production.
    """
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=SESSION_COOKIE_MAX_AGE,
        path=SESSION_COOKIE_PATH,
        secure=settings.is_production,
        httponly=True,
        samesite="lax",
    )


# PUBLIC_INTERFACE
def clear_session(response: Response, settings: Settings) -> None:
    """Remove the session cookie. The token itself stays valid until it expires."""
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path=SESSION_COOKIE_PATH,
        secure=settings.is_production,
        httponly=True,
        samesite="lax",
    )


# PUBLIC_INTERFACE
def read_session_token(token: Optional[str] = Depends(_session_cookie)) -> Optional[str]:
    """Return the carried session token, or None for an anonymous request."""
    return token or None


# PUBLIC_INTERFACE
def require_identity(
    token: Optional[str] = Depends(read_session_token),
    codec: TokenCodec = Depends(get_token_codec),
) -> Identity:
    """
    Resolve the acting user for a protected request.

    This is the only producer of ``Identity``; protected handlers take its
    result as a parameter and never read a user id from request input.

    Raises:
        UnauthorizedError: if no token is carried or the token does not verify.
    """
    if token is None:
        raise UnauthorizedError("Not authenticated")
    try:
        user_id = codec.verify(token)
    except InvalidTokenError as exc:
        logger.info("Rejected session token: %s", exc)
        raise UnauthorizedError("Invalid or expired session") from exc
    return Identity(user_id=user_id)
