"""Security utilities for identity verification.

Ornot uses emailed one-time codes and salted, deterministic bearer tokens.
Every identifier here is a SHA-256 hex digest.
"""

import hashlib
from collections.abc import Mapping

BEARER_SCHEME = "bearer"


def sha256_hex(data: str) -> str:
    """Return the SHA-256 hex digest of a UTF-8 string."""
    return hashlib.sha256(data.encode()).hexdigest()


def normalize_email(email: str) -> str:
    """Normalize an email address for identity purposes."""
    return email.strip().lower()


def generate_user_id(email: str) -> str:
    """
    Derive the content-addressed user id from an email address.

    The same address always maps to the same user, which makes sign-up an upsert.
    """
    return sha256_hex(f"email:{normalize_email(email)}")


def generate_temp_code(salt: str, nickname: str, email: str) -> str:
    """
    Generate the one-time verification code for a sign-up.

    Args:
        salt: Server-side temp code salt
        nickname: Nickname given at sign-up
        email: Email address given at sign-up

    Returns:
        A SHA-256 hex digest of salt, nickname and normalized email
    """
    return sha256_hex(f"{salt}{nickname}{normalize_email(email)}")


def generate_access_token(salt: str, user_id: str) -> str:
    """
    Derive the bearer token for a verified user.

    The token is deterministic: no nonce, no timestamp, no expiry. Verifying
    the same user twice yields the same token.
    """
    return sha256_hex(f"{salt}{user_id}")


def extract_bearer_token(headers: Mapping[str, str]) -> str | None:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header.

    Returns None for a missing or malformed header; never raises.
    """
    value = headers.get("Authorization") or headers.get("authorization")
    if not value:
        return None

    parts = value.split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        return None

    return parts[1]
