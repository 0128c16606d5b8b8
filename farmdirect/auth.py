"""Authentication utilities."""
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional
import logging

import bcrypt
import jwt
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from farmdirect.config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ADMIN_TOKENS,
    BCRYPT_ROUNDS,
    JWT_ALGORITHM,
    JWT_SECRET_KEY,
)
from farmdirect.database import get_db
from farmdirect.exceptions import AuthenticationError, ForbiddenError
from farmdirect.models import User
from farmdirect.monitoring import auth_failures_counter, auth_attempts_counter

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed access token for a user.

    Args:
        user: Authenticated user
        expires_delta: Token lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "type": user.type,
        "iat": now,
        "exp": now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)),
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        auth_failures_counter.add(1, {"reason": "expired_token"})
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        auth_failures_counter.add(1, {"reason": "invalid_token"})
        logger.warning("Authentication failed: Invalid token", extra={
            "token_prefix": token[:8] + "..." if len(token) > 8 else token
        })
        raise AuthenticationError("Invalid token")


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthenticationError: If the header is missing or malformed
    """
    if authorization is None:
        auth_failures_counter.add(1, {"reason": "missing_header"})
        logger.warning("Authentication failed: Missing authorization header")
        raise AuthenticationError("Not authorized, no token")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        auth_failures_counter.add(1, {"reason": "invalid_format"})
        logger.warning("Authentication failed: Invalid authorization header format", extra={
            "auth_header": authorization[:20] + "..." if len(authorization) > 20 else authorization
        })
        raise AuthenticationError("Invalid authorization header format")

    return parts[1]


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the user behind the bearer token.

    Args:
        authorization: Authorization header value
        db: Database session

    Returns:
        Authenticated user

    Raises:
        AuthenticationError: If the token is missing, invalid or names an unknown user
    """
    auth_attempts_counter.add(1, {"type": "bearer_token"})

    token = extract_bearer_token(authorization)
    payload = decode_access_token(token)

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        auth_failures_counter.add(1, {"reason": "invalid_subject"})
        raise AuthenticationError("Invalid token payload")

    user = db.get(User, user_id)
    if user is None:
        auth_failures_counter.add(1, {"reason": "unknown_user"})
        logger.warning("Authentication failed: Unknown user", extra={"user_id": user_id})
        raise AuthenticationError("User no longer exists")

    logger.debug("Authentication successful", extra={"user_id": user.id, "user_type": user.type})
    return user


def require_user_type(*user_types: str) -> Callable[..., User]:
    """Dependency factory restricting a route to the given user types."""
    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.type not in user_types:
            logger.warning("Role check failed", extra={
                "user_id": user.id,
                "user_type": user.type,
                "required": list(user_types)
            })
            raise ForbiddenError(f"User type '{user.type}' is not authorized to access this route")
        return user
    return dependency


require_farmer = require_user_type("farmer")
require_buyer = require_user_type("buyer")


def verify_admin_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """
    Gate shared-resource writes behind a static admin token.

    When no ADMIN_TOKENS are configured the route stays public.
    """
    if not ADMIN_TOKENS:
        return None

    token = extract_bearer_token(authorization)
    if token not in ADMIN_TOKENS:
        auth_failures_counter.add(1, {"reason": "not_admin"})
        logger.warning("Admin token rejected", extra={
            "token_prefix": token[:8] + "..." if len(token) > 8 else token
        })
        raise ForbiddenError("Admin access required")
    return token
