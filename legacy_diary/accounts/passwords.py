"""bcrypt password hashing.

Hashes are the standard ``$2b$<cost>$...`` strings produced by bcrypt, so the
cost factor travels with each hash and can be raised without a migration.
"""

from __future__ import annotations

import bcrypt

from legacy_diary.config import PASSWORD_BCRYPT_ROUNDS


def hash_password(password: str, rounds: int = PASSWORD_BCRYPT_ROUNDS) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("ascii")


def verify_password(password: str, stored: str) -> bool:
    """Check a password against a stored hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("ascii"))
    except ValueError:
        return False
