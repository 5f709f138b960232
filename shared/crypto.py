"""
Token hashing helpers.

Verification codes are stored as their SHA-256 digest so the plaintext OTP
is never persisted.
"""

from __future__ import annotations

import hashlib
import hmac


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def verify_token(token: str, token_hash: str) -> bool:
    """Constant-time comparison of *token* against a stored *token_hash*."""
    return hmac.compare_digest(hash_token(token), token_hash)
