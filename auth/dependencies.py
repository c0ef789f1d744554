"""
FastAPI dependency functions for authentication.

These can be used in routes with Depends() to protect endpoints. The
identity provider is taken from `app.state.identity_provider`, so each app
built by the factory carries its own.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shortlink_registry.errors import Unauthorized

# auto_error=False: missing credentials are reported through our own error shape
security = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Dependency that resolves the bearer token to a user id.

    Returns:
        str: The authenticated user id.

    Raises:
        Unauthorized: Missing bearer token, or the provider rejected it.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing bearer token")
    provider = request.app.state.identity_provider
    user_id = provider.verify_token(credentials.credentials)
    if not user_id:
        raise Unauthorized("Invalid token")
    return user_id
