"""
Core authentication logic.

`IdentityProvider.verify_token` is the only call the API makes per request:
a bearer token goes in, a stable user id (or None) comes out. The shipped
`StaticTokenIdentityProvider` checks against a configured token table and
can be replaced by one backed by an external identity service.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from .config import load_tokens
from .utils import hash_token, tokens_match


class IdentityProvider(ABC):
    """Resolves bearer tokens to user ids."""

    @abstractmethod
    def verify_token(self, token: str) -> Optional[str]:  # pragma: no cover
        """
        Args:
            token (str): The raw bearer token presented by the client.

        Returns:
            Optional[str]: The user id, or None if the token is invalid.
        """
        raise NotImplementedError


class StaticTokenIdentityProvider(IdentityProvider):
    def __init__(self, tokens: Dict[str, str]):
        """
        Args:
            tokens (Dict[str, str]): Mapping of raw token -> user id.
        """
        self._users_by_hash: Dict[str, str] = {hash_token(t): u for t, u in tokens.items()}

    @classmethod
    def from_env(cls) -> "StaticTokenIdentityProvider":
        return cls(load_tokens())

    def verify_token(self, token: str) -> Optional[str]:
        if not token:
            return None
        for stored_hash, user_id in self._users_by_hash.items():
            if tokens_match(stored_hash, token):
                return user_id
        return None
