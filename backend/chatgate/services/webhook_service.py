"""
ChatGate Backend — Ko-fi Webhook Reconciler
=============================================

What:  Turns a Ko-fi payment notification into a profile upgrade.
Why:   Ko-fi is the only way a user's tier changes; the payer is identified by
       email, which is why profiles.email is unique.
How:   parse → verify shared token → look up tier in a fixed table →
       one UPDATE ... WHERE email = :email.

Outcomes:
    malformed `data`            → MalformedInputError (400), no write
    missing/wrong token         → WebhookVerificationError (401), no write
    not a subscription payment  → no-op, 200
    unknown tier name           → no-op, 200
    known tier                  → exactly one update by email, 200
                                  (even if no profile matches, even if the
                                   write fails; Ko-fi must not retry)

Re-delivery of the same event is harmless: the upgrade is a plain field
assignment, not an increment. Downgrades on cancellation are not modelled;
Ko-fi sends no cancellation event this service could act on.
"""

import hmac
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from chatgate.config import settings
from chatgate.exceptions import (
    MalformedInputError,
    WebhookVerificationError,
)
from chatgate.models.profile import PlanType
from chatgate.schemas.webhook import KofiWebhookEvent
from chatgate.services.profile_store import ProfileStore

logger = logging.getLogger(__name__)


def build_tier_table(policy_name: str) -> Dict[str, Dict[str, Any]]:
    """
    Exact-match tier name → profile field assignments for one entitlement model.
    """
    if policy_name == "premium":
        return {
            settings.kofi_standard_tier_name: {"is_premium": True},
            settings.kofi_pro_tier_name: {"is_premium": True},
        }
    return {
        settings.kofi_standard_tier_name: {
            "plan_type": PlanType.STANDARD.value,
            "chat_credits": settings.standard_plan_credits,
        },
        settings.kofi_pro_tier_name: {
            "plan_type": PlanType.PRO.value,
            "chat_credits": settings.pro_plan_credits,
        },
    }


class WebhookReconciler:
    """
    Args:
        tier_table: tier name → fields to assign
        verification_token: the shared secret configured in the Ko-fi dashboard
    """

    def __init__(self, tier_table: Dict[str, Dict[str, Any]], verification_token: str):
        self.tier_table = tier_table
        self.verification_token = verification_token

    def parse(self, data: Optional[str]) -> KofiWebhookEvent:
        """
        Decode the form field `data`.

        Raises:
            MalformedInputError: field missing, not JSON, or not a JSON object
        """
        if not data:
            raise MalformedInputError(message="Missing 'data' field in webhook payload")
        try:
            return KofiWebhookEvent.model_validate_json(data)
        except PydanticValidationError as e:
            raise MalformedInputError(
                message="Webhook 'data' field is not a valid Ko-fi event",
                context={"errors": e.error_count()},
            ) from e

    def verify(self, event: KofiWebhookEvent, header_token: Optional[str] = None) -> None:
        """
        Check the shared secret, from the payload or the X-Kofi-Token header.

        Raises:
            WebhookVerificationError: no secret configured, none supplied, or mismatch
        """
        if not self.verification_token:
            logger.error("Rejecting Ko-fi webhook: KOFI_VERIFICATION_TOKEN is not configured")
            raise WebhookVerificationError()

        supplied = header_token or event.verification_token or ""
        if not hmac.compare_digest(supplied.encode("utf-8"), self.verification_token.encode("utf-8")):
            logger.warning(
                "Rejecting Ko-fi webhook with bad verification token (tx=%s)",
                event.kofi_transaction_id,
            )
            raise WebhookVerificationError()

    def map_event(self, event: KofiWebhookEvent) -> Optional[Dict[str, Any]]:
        """Pure mapping: the fields to assign, or None if the event is not applicable."""
        if not event.is_subscription_payment:
            return None
        return self.tier_table.get(event.tier_name or "")

    async def reconcile(self, db: AsyncSession, event: KofiWebhookEvent) -> Optional[Dict[str, Any]]:
        """
        Apply the upgrade for a verified event.

        Returns:
            The assigned fields, or None for a no-op. Store failures are logged
            and swallowed; the sender always gets its acknowledgment.
        """
        upgrade = self.map_event(event)
        if upgrade is None:
            logger.info(
                "Ko-fi event ignored (subscription=%s, tier=%r)",
                event.is_subscription_payment,
                event.tier_name,
            )
            return None

        if not event.email:
            logger.warning("Ko-fi subscription event for tier %r has no email", event.tier_name)
            return None

        logger.info("[Ko-fi] %s subscribed to %s", event.email, event.tier_name)
        try:
            matched = await ProfileStore(db).update_by_email(event.email, dict(upgrade))
        except Exception as e:
            # Ko-fi redelivers anything that is not a 200; the upgrade is applied by hand
            logger.error(
                "[Ko-fi] Failed to upgrade %s to %s: %s: %s | %s",
                event.email,
                event.tier_name,
                type(e).__name__,
                str(e),
                getattr(e, "context", {}),
            )
            return upgrade

        if matched == 0:
            logger.warning("[Ko-fi] No profile with email %s; upgrade not applied", event.email)
        return upgrade


webhook_reconciler = WebhookReconciler(
    tier_table=build_tier_table(settings.entitlement_policy),
    verification_token=settings.kofi_verification_token,
)
