"""
ChatGate Backend — Chat Route Handlers
========================================

What:  POST /api/chat (gated Gemini call) and GET /api/profile.

Status codes of POST /api/chat, in the order they are checked:
    401  missing or invalid bearer token
    500  profile could not be loaded
    403  entitlement denied (no credits / not premium), nothing written
    500  Gemini failed (debited credit restored first)
    200  {"text": ...}
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chatgate.database import get_db_session
from chatgate.exceptions import NotFoundError
from chatgate.routes.deps import get_current_user
from chatgate.schemas.auth import AuthUser
from chatgate.schemas.chat import ChatRequest, ChatResponse, ProfileResponse
from chatgate.schemas.common import ErrorResponse
from chatgate.services.chat_service import chat_service
from chatgate.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        403: {"description": "Entitlement denied", "model": ErrorResponse},
        500: {"description": "Profile lookup or AI call failed", "model": ErrorResponse},
    },
    summary="Send a prompt to the AI model",
)
async def chat(
    body: ChatRequest,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ChatResponse:
    text = await chat_service.chat(db=db, user_id=user.id, prompt=body.prompt)
    return ChatResponse(text=text)


@router.get(
    "/profile",
    response_model=ProfileResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "No profile for this user", "model": ErrorResponse},
    },
    summary="Current plan and remaining credits",
)
async def get_profile(
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    profile = await ProfileStore(db).get(user.id)
    if profile is None:
        raise NotFoundError(resource="profile", resource_id=user.id)
    return ProfileResponse.model_validate(profile)
