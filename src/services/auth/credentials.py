"""
Credential Check

The credential-comparison half of authentication. It uses the store's
privileged lookup to read the password hash, compares it, and hands back
a password-free record. Token issuance lives elsewhere.
"""

from typing import Optional

from src.models.record import Collection, Record
from src.services.auth.passwords import verify_password
from src.services.storage.interface import CollectionStoreInterface


def authenticate_user(
    store: CollectionStoreInterface,
    email: str,
    password: str,
) -> Optional[Record]:
    """
    Look up a user by email and verify the password.

    Returns:
        The user record without its password, or None if the email is
        unknown, the account is inactive, or the password is wrong
    """
    user = store.find_by_field(
        Collection.USERS.value, "email", email, include_secrets=True
    )
    if user is None or user.get("isActive") is False:
        return None
    if not verify_password(password, user.get("password")):
        return None

    user.pop("password", None)
    return user
