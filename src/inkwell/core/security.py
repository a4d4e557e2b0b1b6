"""Token issuance, token verification and password hashing."""

from __future__ import annotations

import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import JWTError, jwt

from inkwell.core.errors import AuthenticationError
from inkwell.core.settings import settings

_password_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Return True if `password` matches the stored Argon2 hash."""
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def create_access_token(
    user_id: int,
    *,
    email: str,
    username: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed, time-limited bearer token carrying the user's claims."""
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "username": username,
        "role": role,
        "exp": expire,
    }
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify a bearer token and return its claims.

    Raises:
        AuthenticationError: If the token is malformed, expired, signed with a
            different key/algorithm, or lacks a numeric subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise AuthenticationError("Invalid or expired token") from err

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError("Invalid or expired token")
    try:
        payload["user_id"] = int(subject)
    except (TypeError, ValueError) as err:
        raise AuthenticationError("Invalid or expired token") from err
    return payload


def generate_reset_token() -> tuple[str, str]:
    """Return `(raw_token, hashed_token)` for a password reset request."""
    raw_token = secrets.token_hex(32)
    return raw_token, hash_reset_token(raw_token)


def hash_reset_token(raw_token: str) -> str:
    """Return the SHA-256 hex digest stored for a reset token."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()
