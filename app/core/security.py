"""
Password hashing and secret generation utilities.

Follows Layer 1 rules:
- Always use a strong hashing algorithm (bcrypt)
- NEVER log plaintext passwords, hashes or generated secrets
"""
from __future__ import annotations
import hashlib
import secrets
import string
import bcrypt

CODE_ALPHABET = string.ascii_uppercase + string.digits


def hash_password(plain: str) -> str:
    """
    Hash a plaintext password using bcrypt.

    Args:
        plain: Plaintext password

    Returns:
        Hashed password string
    """
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a plaintext password against a hash.

    Args:
        plain: Plaintext password to verify
        hashed: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        # malformed hash
        return False


def placeholder_password() -> str:
    """High-entropy password for credentials minted on someone else's behalf."""
    return secrets.token_urlsafe(32)


def random_code_suffix(length: int) -> str:
    """Uppercase alphanumeric suffix for access codes."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def new_reset_token() -> tuple[str, str]:
    """One-time reset token and the sha256 digest stored in its place."""
    token = secrets.token_urlsafe(32)
    return token, hashlib.sha256(token.encode()).hexdigest()
