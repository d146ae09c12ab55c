"""Token utilities - invitation tokens and identity-provider JWTs."""

import re
import secrets
from datetime import UTC, datetime, timedelta
from hashlib import sha256
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from src.activation.core.config import get_settings

INVITATION_TOKEN_BYTES = 32
_INVITATION_TOKEN_FORMAT = re.compile(r"^[a-f0-9]{64}$")


def hash_token(token: str) -> str:
    """Hash a token using SHA256 for secure storage."""
    return sha256(token.encode()).hexdigest()


def generate_invitation_token() -> str:
    """Generate an unguessable invitation token (64 lowercase hex chars)."""
    return secrets.token_hex(INVITATION_TOKEN_BYTES)


def normalize_invitation_token(token: str | None) -> str | None:
    """Return the canonical form of a token, or None if it is malformed."""
    if not token:
        return None
    normalized = token.strip().lower()
    if not _INVITATION_TOKEN_FORMAT.match(normalized):
        return None
    return normalized


def mask_token(token: str) -> str:
    """Shorten a token for logs, e.g. 'abc12345...6789'."""
    if len(token) < 16:
        return "***"
    return f"{token[:8]}...{token[-4:]}"


def create_access_token(
    subject: str | UUID,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create an identity-provider style access token.

    Production tokens are minted by the identity provider; this helper
    exists for local development and tests.
    """
    settings = get_settings()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=30))
    to_encode = {
        "sub": str(subject),
        "email": email,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(  # type: ignore[no-any-return]
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and verify a JWT. Returns None if invalid or expired."""
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except JWTError:
        return None
