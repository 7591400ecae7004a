"""Password hashing, password-reset OTPs and access tokens."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
from vidvault.config import settings
from vidvault.logging_config import logger
from vidvault.models.base import as_utc, utcnow

TOKEN_TYPE = "access"

# Argon2id; costs come from settings so tests can make hashing cheap
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__type="ID",
    argon2__time_cost=settings.password_hash_time_cost,
    argon2__memory_cost=settings.password_hash_memory_cost,
    argon2__parallelism=settings.password_hash_parallelism,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check ``password`` against a stored hash.

    A missing or malformed hash is a mismatch, never an error.
    """
    if not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError) as e:
        logger.warning("Stored password hash is unusable", error=str(e))
        return False


def generate_otp(num_bytes: int = 3) -> str:
    """``num_bytes`` random bytes rendered as uppercase hex (6 characters by default)."""
    return secrets.token_hex(num_bytes).upper()


def issue_otp() -> Tuple[str, datetime]:
    """New OTP plus the instant it stops being accepted."""
    return generate_otp(), utcnow() + timedelta(minutes=settings.otp_expire_minutes)


def otp_is_valid(stored: Optional[str], expires_at: Optional[datetime], supplied: str) -> bool:
    """True when ``supplied`` equals the stored OTP and the OTP has not expired."""
    if not stored or not supplied or expires_at is None:
        return False
    if as_utc(expires_at) < utcnow():
        return False
    # compare_digest rejects non-ASCII str, bytes work for any input
    return secrets.compare_digest(stored.encode("utf-8"), supplied.encode("utf-8"))


def create_access_token(email: str, expires_delta: Optional[timedelta] = None) -> str:
    """Signed JWT whose ``sub`` is the account email.

    Args:
        email: Account email
        expires_delta: Lifetime override; defaults to the configured expiry
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    claims = {
        "sub": email,
        "type": TOKEN_TYPE,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Verify signature, expiry, issuer and audience and return the claims.

    Raises:
        JWTError: If any check fails
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except JWTError as e:
        logger.info("Rejected access token", error=str(e))
        raise
