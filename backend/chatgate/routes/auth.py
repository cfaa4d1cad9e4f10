"""
ChatGate Backend — Auth Route Handlers
========================================

What:  POST /api/auth/signup and POST /api/auth/login.
How:   JSON body → AuthService → Supabase (+ profile insert for signup).
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chatgate.database import get_db_session
from chatgate.schemas.auth import LoginRequest, LoginResponse, SignupRequest, SignupResponse
from chatgate.schemas.common import ErrorResponse
from chatgate.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    responses={
        400: {"description": "Signup rejected (identity rolled back if needed)", "model": ErrorResponse},
        500: {"description": "Identity provider unavailable", "model": ErrorResponse},
    },
    summary="Create an account and its profile",
)
async def signup(
    body: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SignupResponse:
    user = await auth_service.signup(
        db=db,
        email=body.email,
        password=body.password,
        name=body.name,
    )
    return SignupResponse(user=user)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Bad credentials", "model": ErrorResponse},
        500: {"description": "Identity provider unavailable", "model": ErrorResponse},
    },
    summary="Sign in with email and password",
)
async def login(body: LoginRequest) -> LoginResponse:
    result = await auth_service.login(email=body.email, password=body.password)
    return LoginResponse(**result)
