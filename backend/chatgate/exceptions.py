"""
ChatGate Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for every failure the API can report.
Why:   Services raise these; global handlers in main.py turn them into JSON
       responses with the right status code. Services never build HTTP
       responses themselves.
How:   Each exception carries a user-safe `message` and a `context` dict that
       is logged but never returned to the client.

Exception Hierarchy:
    ChatGateError (base)
    ├── AuthError                  → 401 Unauthorized (missing/invalid token)
    ├── InvalidCredentialsError    → 400 Bad Request (login rejected)
    ├── RegistrationError          → 400 Bad Request (signup rejected, identity rolled back)
    ├── AuthorizationError         → 403 Forbidden (entitlement denied)
    ├── NotFoundError              → 404 Not Found
    ├── MalformedInputError        → 400 Bad Request (unparseable webhook payload)
    ├── WebhookVerificationError   → 401 Unauthorized (webhook secret missing/wrong)
    └── UpstreamError              → 500 Internal Server Error
        ├── ProfileStoreError      (profile database read/write failed)
        ├── IdentityProviderError  (Supabase Auth unreachable or misbehaving)
        └── InferenceError         (Gemini call failed)
"""

from typing import Any, Dict, Optional


class ChatGateError(Exception):
    """
    Base exception for all ChatGate application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class AuthError(ChatGateError):
    """
    Raised when a request carries no usable bearer token.

    HTTP: 401 Unauthorized. Never retried.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentialsError(ChatGateError):
    """Login rejected by the identity provider. HTTP 400."""

    def __init__(
        self,
        message: str = "Invalid login credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RegistrationError(ChatGateError):
    """
    Raised when signup cannot complete.

    When:    The identity provider rejects the signup, or the profile row could
             not be written (in which case the new identity has already been
             deleted again).
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Signup failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(ChatGateError):
    """
    Raised when the entitlement policy denies a chat request.

    HTTP: 403 Forbidden. No profile mutation has happened when this is raised.

    Attributes:
        deny_reason: Machine-readable reason ("no_credits", "not_premium")
    """

    def __init__(
        self,
        message: str = "Your plan does not allow this request",
        deny_reason: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if deny_reason:
            ctx["deny_reason"] = deny_reason
        super().__init__(message=message, context=ctx)
        self.deny_reason = deny_reason


class NotFoundError(ChatGateError):
    """Raised when a requested resource does not exist. HTTP 404."""

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class MalformedInputError(ChatGateError):
    """
    Raised when an untrusted payload cannot be decoded.

    When:    The Ko-fi `data` form field is missing, is not JSON, or is JSON of
             the wrong shape.
    HTTP:    400 Bad Request. Distinct from a benign "not applicable" event,
             which is acknowledged with 200.
    """

    def __init__(
        self,
        message: str = "Malformed request payload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class WebhookVerificationError(ChatGateError):
    """Webhook did not carry the configured shared secret. HTTP 401."""

    def __init__(
        self,
        message: str = "Webhook verification failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamError(ChatGateError):
    """
    Base for failures of an external collaborator.

    HTTP: 500 Internal Server Error. The message returned to the client is
    generic; the context is logged server-side only.
    """

    def __init__(
        self,
        message: str = "An upstream service failed. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ProfileStoreError(UpstreamError):
    def __init__(
        self,
        message: str = "Could not access the profile store. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentityProviderError(UpstreamError):
    def __init__(
        self,
        message: str = "The authentication service is unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InferenceError(UpstreamError):
    """
    Raised when the Gemini call fails for any reason.

    The chat service catches it long enough to restore a debited credit,
    then lets it propagate to the 500 handler.
    """

    def __init__(
        self,
        message: str = "An error occurred while communicating with the AI server.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
