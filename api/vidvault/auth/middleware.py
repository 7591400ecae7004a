"""Authentication dependency for JWT bearer tokens.

The token subject is the user's email; the user row is loaded on every
request so a deleted account stops authenticating immediately.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vidvault.auth.crypto import TOKEN_TYPE, decode_token
from vidvault.db import get_db
from vidvault.errors import UnauthorizedError
from vidvault.logging_config import logger
from vidvault.models import User

# Security scheme for extracting Bearer token
security = HTTPBearer(auto_error=False)


class AuthUser:
    """Authenticated caller resolved from the bearer token."""

    def __init__(self, id: int, email: str):
        self.id = id
        self.email = email

    def __repr__(self):
        return f"<AuthUser(id={self.id}, email={self.email})>"


def verify_token(token: str) -> dict:
    """Verify a JWT and return its payload.

    Raises:
        UnauthorizedError: If token is invalid or expired
    """
    try:
        payload = decode_token(token)
    except JWTError:
        raise UnauthorizedError("Invalid authentication token")

    if payload.get("type") != TOKEN_TYPE:
        raise UnauthorizedError("Invalid token type")
    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> AuthUser:
    """Get current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer credentials
        db: Database session

    Returns:
        Authenticated user context

    Raises:
        UnauthorizedError: If authentication fails
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Not authenticated")

    payload = verify_token(credentials.credentials)
    email = payload.get("sub")
    if not email:
        raise UnauthorizedError("Invalid token: missing subject")

    result = await db.execute(select(User.id).where(User.email == email))
    user_id = result.scalar_one_or_none()
    if user_id is None:
        logger.warning("Token subject has no account", email=email)
        raise UnauthorizedError("Invalid authentication token")

    return AuthUser(id=user_id, email=email)
