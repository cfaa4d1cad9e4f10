"""
ChatGate Backend — Supabase Identity Service
==============================================

What:  Thin async client for the Supabase Auth (GoTrue) REST API.
Why:   Identity is an external collaborator: this module is the only place
       that knows its URLs, headers and response shapes.
How:   One httpx.AsyncClient per call, `apikey` + `Authorization` headers.

Endpoints used:
    POST   /auth/v1/signup                    create identity
    POST   /auth/v1/token?grant_type=password  sign in, returns a session
    GET    /auth/v1/user                      bearer token → user
    DELETE /auth/v1/admin/users/{id}          signup rollback (service-role key)

Error mapping:
    - 4xx from signup  → RegistrationError (400), message from Supabase
    - 4xx from token   → InvalidCredentialsError (400)
    - non-200 from /user → None (the caller turns it into a 401)
    - transport errors, 5xx → IdentityProviderError (500)
"""

import logging
from typing import Any, Dict, Optional

import httpx

from chatgate.config import settings
from chatgate.exceptions import (
    IdentityProviderError,
    InvalidCredentialsError,
    RegistrationError,
)
from chatgate.schemas.auth import AuthUser

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response, default: str) -> str:
    """Supabase uses msg, error_description, message or error depending on the endpoint."""
    try:
        body = response.json()
    except ValueError:
        return default
    if not isinstance(body, dict):
        return default
    for key in ("msg", "error_description", "message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return default


def _user_from_payload(payload: Any) -> Optional[AuthUser]:
    # signup returns either the user itself or a session wrapping it
    if not isinstance(payload, dict):
        return None
    user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
    uid = str(user.get("id") or "").strip()
    if not uid:
        return None
    return AuthUser(id=uid, email=user.get("email"), raw=user)


class SupabaseIdentityService:
    """
    Identity verifier backed by Supabase Auth.

    Args:
        base_url:  Supabase project URL
        api_key:   service-role key (needed for the admin delete)
        timeout:   per-request timeout in seconds
        transport: optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self, bearer: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer or self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if not self.base_url:
            raise IdentityProviderError(context={"reason": "SUPABASE_URL not configured"})
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Supabase %s %s failed: %s", method, path, str(e))
            raise IdentityProviderError(
                context={"path": path, "error_type": type(e).__name__}
            ) from e

        if response.status_code >= 500:
            logger.error(
                "Supabase %s %s returned %d: %s",
                method,
                path,
                response.status_code,
                response.text[:500],
            )
            raise IdentityProviderError(context={"path": path, "status": response.status_code})
        return response

    async def sign_up(self, email: str, password: str, display_name: str) -> AuthUser:
        """
        Create an identity with `display_name` in its user metadata.

        Raises:
            RegistrationError: Supabase rejected the signup (duplicate email, weak password...)
            IdentityProviderError: Supabase unreachable, or it accepted the signup
                but returned no user
        """
        response = await self._request(
            "POST",
            "/auth/v1/signup",
            headers=self._headers(),
            json={"email": email, "password": password, "data": {"display_name": display_name}},
        )
        if response.status_code >= 400:
            message = _error_message(response, "Signup was rejected")
            logger.info("Signup rejected for %s: %s", email, message)
            raise RegistrationError(message=message, context={"status": response.status_code})

        user = _user_from_payload(response.json())
        if user is None:
            raise IdentityProviderError(
                message="The user was created but could not be found.",
                context={"email": email},
            )
        return user

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """
        Password sign-in.

        Returns:
            The Supabase session dict (access_token, refresh_token, expires_in, user...).

        Raises:
            InvalidCredentialsError: wrong email/password or unconfirmed account
        """
        response = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            headers=self._headers(),
            json={"email": email, "password": password},
        )
        if response.status_code >= 400:
            message = _error_message(response, "Invalid login credentials")
            raise InvalidCredentialsError(message=message, context={"status": response.status_code})
        return response.json()

    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        """Resolve a bearer token to its user, or None if Supabase does not accept it."""
        response = await self._request(
            "GET",
            "/auth/v1/user",
            headers=self._headers(bearer=access_token),
        )
        if response.status_code != 200:
            return None
        return _user_from_payload(response.json())

    async def delete_user(self, user_id: str) -> None:
        """
        Admin delete, used to roll back a signup whose profile insert failed.

        Raises:
            IdentityProviderError: the delete did not succeed
        """
        response = await self._request(
            "DELETE",
            f"/auth/v1/admin/users/{user_id}",
            headers=self._headers(),
        )
        if response.status_code >= 400:
            logger.error(
                "Supabase refused to delete user %s: %d %s",
                user_id,
                response.status_code,
                response.text[:500],
            )
            raise IdentityProviderError(
                context={"user_id": user_id, "status": response.status_code}
            )


identity_service = SupabaseIdentityService(
    base_url=settings.supabase_url,
    api_key=settings.supabase_key,
    timeout=settings.http_timeout_seconds,
)
