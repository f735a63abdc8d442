"""Institution API keys: argon2id hashes, looked up by their visible prefix."""

from __future__ import annotations

import secrets

import argon2

KEY_PREFIX = "arc_"
LOOKUP_PREFIX_LENGTH = 16

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,
)


def generate_api_key() -> tuple[str, str, str]:
    """
    Generate a new institution key.

    Returns:
        (full_key, lookup_prefix, argon2_hash). Only the prefix and hash are
        stored; the full key is returned to the caller once.
    """
    full_key = f"{KEY_PREFIX}{secrets.token_hex(32)}"
    return full_key, full_key[:LOOKUP_PREFIX_LENGTH], _hasher.hash(full_key)


def lookup_prefix(full_key: str) -> str:
    return full_key[:LOOKUP_PREFIX_LENGTH]


def verify_api_key(full_key: str, stored_hash: str) -> bool:
    try:
        return _hasher.verify(stored_hash, full_key)
    except (argon2.exceptions.VerifyMismatchError, argon2.exceptions.InvalidHashError):
        return False
