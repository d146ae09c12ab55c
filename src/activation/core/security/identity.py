"""Credentials issued by the external identity provider."""

from dataclasses import dataclass
from uuid import UUID

from src.activation.core.errors import UnauthenticatedError
from src.activation.core.security.crypto import decode_token


@dataclass(frozen=True)
class Credential:
    """The authenticated actor as the identity provider sees it."""

    id: UUID
    email: str


def credential_from_token(token: str) -> Credential:
    """Verify an access token and extract the credential.

    Raises:
        UnauthenticatedError: Token is invalid, expired, or incomplete.
    """
    payload = decode_token(token)
    if payload is None or payload.get("type") != "access":
        raise UnauthenticatedError("Invalid or expired token")

    subject = payload.get("sub")
    email = payload.get("email")
    if not subject or not email:
        raise UnauthenticatedError("Invalid token payload")

    try:
        identity_id = UUID(subject)
    except ValueError as e:
        raise UnauthenticatedError("Invalid subject in token") from e

    return Credential(id=identity_id, email=email.strip().lower())
