"""
ChatGate Backend — Auth Request/Response Schemas
==================================================

What:  API contracts for /api/auth/signup and /api/auth/login, plus the
       AuthUser identity passed from the bearer-token dependency to services.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1)
    name: str = Field(default="", max_length=255, description="Display name stored on the profile")


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1)


class AuthUser(BaseModel):
    """
    What:  The identity Supabase Auth vouches for.
    Why:   Only the id and email matter to this service; the raw user object
           is kept for echoing back from signup/login.
    """
    id: str
    email: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict, exclude=True)


class SignupResponse(BaseModel):
    user: Dict[str, Any] = Field(description="User object as returned by the identity provider")


class LoginResponse(BaseModel):
    session: Dict[str, Any] = Field(description="Access/refresh token pair from the identity provider")
    user: Optional[Dict[str, Any]] = Field(default=None)
