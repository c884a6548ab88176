"""
Password hashing and verification.

bcrypt with automatic salting; cost factor 10.
"""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 10
# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


# PUBLIC_INTERFACE
def hash_password(password: str) -> str:
    """Hash a password with bcrypt (auto-salted)."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a bcrypt hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
