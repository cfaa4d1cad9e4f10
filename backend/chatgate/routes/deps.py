"""
ChatGate Backend — Route Dependencies
=======================================

What:  Bearer-token authentication shared by the protected routes.
How:   Reads `Authorization: Bearer <token>`, asks Supabase who it belongs to.
"""

from typing import Optional

from fastapi import Header

from chatgate.exceptions import AuthError
from chatgate.schemas.auth import AuthUser
from chatgate.services.identity_service import identity_service


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Returns the token of a 'Bearer <token>' header value, or None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
) -> AuthUser:
    """
    FastAPI dependency resolving the caller's identity.

    Raises:
        AuthError: header missing/malformed (401) or token rejected by Supabase (401)
        IdentityProviderError: Supabase unreachable (500)
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthError(message="Missing authentication token")

    user = await identity_service.get_user(token)
    if user is None:
        raise AuthError(message="Invalid or expired authentication token")
    return user
