"""
Utility functions for the auth module.
"""

import hashlib
import hmac


def hash_token(token: str) -> str:
    """
    Return a SHA256 hex digest of the given token.

    Note:
        Tokens are kept hashed in memory so a process dump does not leak them.
    """
    return hashlib.sha256(token.encode()).hexdigest()


def tokens_match(stored_hash: str, token: str) -> bool:
    """Constant-time comparison of a stored digest with a presented token."""
    return hmac.compare_digest(stored_hash, hash_token(token))
