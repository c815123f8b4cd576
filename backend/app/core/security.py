"""
Password hashing utilities.

This module wraps passlib for hashing and verifying user passwords.
"""

from passlib.context import CryptContext


# pbkdf2_sha256 ships with passlib and needs no native backend
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    """Hash a plain-text password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain-text password against its stored hash."""
    return pwd_context.verify(plain_password, hashed_password)
