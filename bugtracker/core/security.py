"""Security utilities for authentication and authorization."""

import base64
import binascii
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import jwt

from bugtracker.config import settings
from bugtracker.models.user import UserRole

# Initialize Argon2 password hasher with secure defaults
password_hasher = PasswordHasher(
    time_cost=3,  # Number of iterations
    memory_cost=65536,  # 64 MB
    parallelism=4,  # Number of parallel threads
    hash_len=32,  # Length of the hash in bytes
    salt_len=16,  # Length of the salt in bytes
)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    return password_hasher.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.

    Args:
        password: Plain text password to verify
        hashed_password: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    try:
        password_hasher.verify(hashed_password, password)
        return True
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(hashed_password: str) -> bool:
    """Check if a password hash was produced with outdated parameters."""
    return password_hasher.check_needs_rehash(hashed_password)


def _decode_key(value: str) -> str:
    # Keys may be supplied base64-encoded so they fit in a single env var
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return value


def _get_signing_key() -> str:
    """Key used to sign tokens: the RSA/EC private key, else the HMAC secret."""
    private_key = settings.jwt_private_key.get_secret_value()
    if private_key:
        return _decode_key(private_key)
    return settings.secret_key.get_secret_value()


def _get_verification_key() -> str:
    """Get the key used to verify tokens."""
    algorithm = _get_algorithm()
    if algorithm.startswith(("RS", "ES")) and settings.jwt_public_key:
        return _decode_key(settings.jwt_public_key)
    return _get_signing_key()


def _get_algorithm() -> str:
    # Without a private key fall back to HS256
    if not settings.jwt_private_key.get_secret_value():
        return "HS256"
    return settings.jwt_algorithm


def create_access_token(
    user_id: str,
    role: UserRole,
    session_id: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    The role claim is informational for clients; the server always
    re-reads the role from the database.

    Args:
        user_id: User ID to encode in token
        role: User role to encode in token
        session_id: Session ID for token tracking
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT access token
    """
    now = datetime.now(timezone.utc)
    expires_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)

    payload = {
        "sub": str(user_id),
        "role": role.value,
        "session_id": session_id,
        "exp": now + expires_delta,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "type": ACCESS_TOKEN_TYPE,
    }

    return jwt.encode(payload, _get_signing_key(), algorithm=_get_algorithm())


def create_refresh_token(
    user_id: str,
    session_id: str,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, str]:
    """
    Create a JWT refresh token.

    Returns:
        Tuple of (encoded JWT refresh token, token JTI)
    """
    now = datetime.now(timezone.utc)
    expires_delta = expires_delta or timedelta(days=settings.refresh_token_expire_days)
    jti = str(uuid.uuid4())

    payload = {
        "sub": str(user_id),
        "session_id": session_id,
        "exp": now + expires_delta,
        "iat": now,
        "jti": jti,
        "type": REFRESH_TOKEN_TYPE,
    }

    token = jwt.encode(payload, _get_signing_key(), algorithm=_get_algorithm())
    return token, jti


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a JWT token.

    Raises:
        JWTError: If token is invalid or expired
    """
    algorithm = _get_algorithm()
    return jwt.decode(token, _get_verification_key(), algorithms=[algorithm])


def seconds_until_expiry(payload: dict[str, Any]) -> int:
    """Remaining lifetime of a decoded token in seconds (0 if expired)."""
    exp = payload.get("exp", 0)
    remaining = exp - int(datetime.now(timezone.utc).timestamp())
    return max(0, remaining)


def generate_session_id() -> str:
    """Generate a unique session ID."""
    return str(uuid.uuid4())
