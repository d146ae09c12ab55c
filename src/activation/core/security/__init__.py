"""Security utilities - tokens and credentials.

Re-exports all security-related functions for convenience.
"""

from src.activation.core.security.crypto import (
    INVITATION_TOKEN_BYTES,
    create_access_token,
    decode_token,
    generate_invitation_token,
    hash_token,
    mask_token,
    normalize_invitation_token,
)
from src.activation.core.security.identity import Credential, credential_from_token

__all__ = [
    # Tokens
    "INVITATION_TOKEN_BYTES",
    "create_access_token",
    "decode_token",
    "generate_invitation_token",
    "hash_token",
    "mask_token",
    "normalize_invitation_token",
    # Credentials
    "Credential",
    "credential_from_token",
]
