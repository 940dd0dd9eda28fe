"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

Work factor defaults to 11 (2^11 rounds). Each hash carries its own random
salt, so hashing the same password twice gives two different digests, and
verify_password() reads salt and cost back out of the stored digest.
"""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 11


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are silently truncated by bcrypt. The API
    layer caps password length (Pydantic field) well below that.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Malformed or empty digests return False rather than raising.
    """
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Timing equalization dummy hash. Computed once at module load so sign-in for
# an unknown username still pays one bcrypt verification.
DUMMY_HASH: str = hash_password("funkostore_timing_dummy")
