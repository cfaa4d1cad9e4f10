"""
ChatGate Backend — Chat and Profile Schemas
=============================================
"""

from typing import Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    prompt: str = Field(min_length=1, description="User prompt forwarded to Gemini")


class ChatResponse(BaseModel):
    text: str = Field(description="Generated text")


class ProfileResponse(BaseModel):
    """
    What:  The caller's own entitlement state.
    Who:   Returned by GET /api/profile so the frontend can show remaining credits.
    """
    id: str
    email: str
    display_name: Optional[str] = None
    plan_type: str
    chat_credits: int
    is_premium: bool

    model_config = {"from_attributes": True}
