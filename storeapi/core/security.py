"""Security helpers (password hashing, opaque tokens and their fingerprints)."""

from __future__ import annotations

import hashlib
import secrets

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()
RESET_TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    """Create a salted Argon2 hash; two calls with the same input never match."""
    if not password:
        raise ValueError("Password must not be empty")
    return _ph.hash(password)


def verify_password(password: str, stored_hash: str | None) -> bool:
    if not password or not stored_hash:
        return False
    try:
        return _ph.verify(stored_hash, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


def password_needs_rehash(stored_hash: str) -> bool:
    try:
        return _ph.check_needs_rehash(stored_hash)
    except argon_exc.InvalidHashError:
        return True


def new_opaque_token() -> str:
    """32 random bytes, hex encoded (always 64 characters)."""
    return secrets.token_hex(RESET_TOKEN_BYTES)


def fingerprint(raw_token: str) -> str:
    # The raw token already carries full entropy, a plain SHA-256 is enough.
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()
