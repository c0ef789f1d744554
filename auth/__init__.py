"""
Auth package for FastAPI applications.

Provides the Identity Provider used by the short-link API: bearer tokens in,
stable user ids out. Credential checking lives here; the registry only ever
sees an already-resolved user id.
"""

from .service import IdentityProvider, StaticTokenIdentityProvider

__all__ = ["IdentityProvider", "StaticTokenIdentityProvider"]
