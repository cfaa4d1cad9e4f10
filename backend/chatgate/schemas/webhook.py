"""
ChatGate Backend — Ko-fi Webhook Event Schema
===============================================

What:  The subset of the Ko-fi webhook payload this service acts on.
Why:   Ko-fi posts form-encoded `data=<json>`; everything in that JSON is
       untrusted until the verification token has been checked.
How:   Unknown fields are ignored so Ko-fi can add fields without breaking us.

Example payload (abridged):
    {
        "verification_token": "4f7a...",
        "type": "Subscription",
        "is_subscription_payment": true,
        "is_first_subscription_payment": true,
        "tier_name": "프로 플랜",
        "email": "jo@example.com",
        "amount": "5.00"
    }
"""

from typing import Optional

from pydantic import BaseModel


class KofiWebhookEvent(BaseModel):
    verification_token: Optional[str] = None
    type: Optional[str] = None
    is_subscription_payment: bool = False
    is_first_subscription_payment: bool = False
    tier_name: Optional[str] = None
    email: Optional[str] = None
    kofi_transaction_id: Optional[str] = None

    model_config = {"extra": "ignore"}
