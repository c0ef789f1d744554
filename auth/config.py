"""
Configuration for the auth module.

This defines where API tokens come from. For demo purposes, tokens are
read from the SHORTLINK_API_TOKENS environment variable as comma-separated
"token:user_id" pairs, e.g.

    SHORTLINK_API_TOKENS="dev-token-1:u1,dev-token-2:u2"

In production, replace the static provider with one that calls your
identity service.
"""

import os
from typing import Dict


def parse_tokens(raw: str) -> Dict[str, str]:
    """Parse "token:user,token2:user2" into {token: user}. Malformed pairs are skipped."""
    tokens: Dict[str, str] = {}
    for pair in raw.split(","):
        token, sep, user_id = pair.strip().partition(":")
        if sep and token.strip() and user_id.strip():
            tokens[token.strip()] = user_id.strip()
    return tokens


def load_tokens() -> Dict[str, str]:
    """Read the token table from the environment (at call time)."""
    return parse_tokens(os.getenv("SHORTLINK_API_TOKENS", ""))
