"""
ChatGate Backend — Ko-fi Webhook Route
========================================

What:  POST /api/kofi-webhook, form-encoded `data=<json>`.
Why:   Ko-fi retries any delivery that is not answered with 200. Once the
       event is verified we always answer 200 "OK", whether or not it led to
       an upgrade, so a failed or irrelevant delivery is not replayed forever.

Responses:
    400  `data` missing or not a Ko-fi event
    401  verification token missing or wrong
    200  "OK" for everything else
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Header
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from chatgate.database import get_db_session
from chatgate.schemas.common import ErrorResponse
from chatgate.services.webhook_service import webhook_reconciler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Webhooks"])


@router.post(
    "/kofi-webhook",
    response_class=PlainTextResponse,
    responses={
        200: {"description": "Acknowledged", "content": {"text/plain": {"example": "OK"}}},
        400: {"description": "Malformed payload", "model": ErrorResponse},
        401: {"description": "Verification failed", "model": ErrorResponse},
    },
    summary="Ko-fi payment notification",
)
async def kofi_webhook(
    data: Optional[str] = Form(default=None),
    x_kofi_token: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> PlainTextResponse:
    event = webhook_reconciler.parse(data)
    webhook_reconciler.verify(event, header_token=x_kofi_token)
    await webhook_reconciler.reconcile(db, event)
    return PlainTextResponse("OK", status_code=200)
