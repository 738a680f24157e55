"""
Bearer-token identity check.

Tokens are HS256 JWTs with an `id` claim (user id), read from `Authorization: Bearer <token>`
or the `token` cookie. Issuing tokens belongs to the auth service; create_access_token exists
for scripts and tests that need one.
"""
import logging
import time

import jwt
from fastapi import Cookie, Depends, Header
from sqlalchemy.orm import Session

from foodshare.config import settings
from foodshare.core.errors import UnauthorizedError
from foodshare.db.session import get_db
from foodshare.models.user import User

logger = logging.getLogger(__name__)

# Token lifetime for create_access_token
_TOKEN_EXPIRY_SECONDS = 30 * 24 * 60 * 60


def create_access_token(user_id: int, expires_in: int = _TOKEN_EXPIRY_SECONDS) -> str:
    now = int(time.time())
    token = jwt.encode(
        {"id": user_id, "iat": now, "exp": now + expires_in},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def decode_user_id(token: str) -> int:
    """Verify signature and expiry; return the user id claim or raise UnauthorizedError."""
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        logger.debug("Rejected token: %s", e)
        raise UnauthorizedError() from e
    user_id = claims.get("id")
    try:
        return int(user_id)
    except (TypeError, ValueError) as e:
        raise UnauthorizedError() from e


def _request_token(
    authorization: str | None = Header(None),
    token: str | None = Cookie(None),
) -> str | None:
    if authorization and authorization.startswith("Bearer"):
        parts = authorization.split(" ", 1)
        return parts[1].strip() if len(parts) == 2 and parts[1].strip() else None
    return token or None


def get_current_user(
    db: Session = Depends(get_db),
    token: str | None = Depends(_request_token),
) -> User:
    """Route dependency: the authenticated user, or 401."""
    if not token:
        raise UnauthorizedError()
    user = db.get(User, decode_user_id(token))
    if user is None:
        raise UnauthorizedError("User not found")
    return user


def get_optional_user(
    db: Session = Depends(get_db),
    token: str | None = Depends(_request_token),
) -> User | None:
    """Route dependency for public routes: the user when a valid token is present, else None."""
    if not token:
        return None
    try:
        return db.get(User, decode_user_id(token))
    except UnauthorizedError:
        return None
