"""Password hashing and credential checks."""

from src.services.auth.passwords import hash_password, verify_password
from src.services.auth.credentials import authenticate_user

__all__ = [
    "authenticate_user",
    "hash_password",
    "verify_password",
]
