"""
Password hashing and validation using argon2id.
"""

from __future__ import annotations

import argon2

from arcticcare.config import get_settings

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,  # 64 MB
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,  # argon2id
)


class PasswordStrengthError(ValueError):
    """Raised when a password does not meet strength requirements."""


def hash_password(password: str) -> str:
    """Hash a password using argon2id. Returns the full hash string."""
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its argon2id hash.

    Returns True if the password matches. Never raises on mismatch.
    """
    try:
        return _hasher.verify(password_hash, password)
    except argon2.exceptions.VerifyMismatchError:
        return False
    except argon2.exceptions.InvalidHashError:
        return False


def validate_password_strength(password: str) -> None:
    """
    Validate password length bounds.

    Raises PasswordStrengthError if the password is empty, too short or too long.
    """
    settings = get_settings()
    if not password or not password.strip():
        msg = "A senha não pode ser vazia"
        raise PasswordStrengthError(msg)
    if len(password) < settings.password_min_length:
        msg = f"A senha deve ter pelo menos {settings.password_min_length} caracteres"
        raise PasswordStrengthError(msg)
    if len(password) > settings.password_max_length:
        msg = f"A senha deve ter no máximo {settings.password_max_length} caracteres"
        raise PasswordStrengthError(msg)
