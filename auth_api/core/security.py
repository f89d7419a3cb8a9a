"""Security helpers (salting, hashing and verification)."""

from __future__ import annotations

import secrets

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()
SALT_BYTES = 16
MIN_PASSWORD_LENGTH = 6


def make_salt() -> str:
    return secrets.token_hex(SALT_BYTES)


def hash_password(password: str, salt: str) -> str:
    """Argon2 hash of the password using the user's own salt."""
    return _ph.hash(password, salt=bytes.fromhex(salt))


def verify_password(password: str, stored_hash: str | None) -> bool:
    if not stored_hash or password is None:
        return False
    try:
        return _ph.verify(stored_hash, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False
