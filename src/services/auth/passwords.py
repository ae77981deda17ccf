"""
Password Hashing using bcrypt

The store never sees plaintext after a record is prepared: the users
rules call hash_password() before the store lock is even taken.

bcrypt only looks at the first 72 bytes of a password (newer releases
refuse longer ones outright). The store rejects such passwords up
front, and verify_password() never matches them.
"""

from typing import Optional

import bcrypt

from src.config import get_settings


MAX_PASSWORD_BYTES = 72


def hash_password(plaintext: str, rounds: Optional[int] = None) -> str:
    """
    Hash a password with a fresh salt.

    Args:
        plaintext: The password to hash, at most 72 bytes as UTF-8
        rounds: bcrypt cost factor; defaults to the configured value

    Returns:
        The bcrypt digest as text

    Raises:
        ValueError: If the password is longer than 72 bytes
    """
    secret = plaintext.encode("utf-8")
    if len(secret) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    if rounds is None:
        rounds = get_settings().store.password_hash_rounds
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(secret, salt).decode("utf-8")


def verify_password(plaintext: str, digest: Optional[str]) -> bool:
    """Check a password against a stored digest. Malformed digests never match."""
    if not digest:
        return False
    secret = plaintext.encode("utf-8")
    if len(secret) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(secret, digest.encode("utf-8"))
    except ValueError:
        return False
