"""
ChatGate Backend — Entitlement Policies
=========================================

What:  Decides whether a profile may make one Gemini call, and what has to be
       written to the profile store before that call.
Why:   Two deployments of this service exist. One sells metered chat credits,
       the other a single premium flag. The rest of the request path is
       identical, so the difference lives behind one interface.
How:   EntitlementPolicy.evaluate(profile) -> EntitlementDecision. The policy
       is pure: it never touches the store. ChatService applies the decision.

Metered policy:
    plan_type   chat_credits   decision
    ─────────   ────────────   ──────────────────────────────────
    pro         anything       allow, no mutation
    free/std    > 0            allow, post_action=DECREMENT_CREDIT
    free/std    <= 0           deny, NO_CREDITS

Premium policy:
    is_premium=True  → allow, no mutation
    is_premium=False → deny, NOT_PREMIUM
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from chatgate.config import settings
from chatgate.models.profile import PlanType, Profile


class DenyReason(str, enum.Enum):
    NO_CREDITS = "no_credits"
    NOT_PREMIUM = "not_premium"


class PostAction(str, enum.Enum):
    DECREMENT_CREDIT = "decrement_credit"
    NONE = "none"


DENY_MESSAGES = {
    DenyReason.NO_CREDITS: "You have used all of your chat credits. Please upgrade your plan.",
    DenyReason.NOT_PREMIUM: "This feature is available to premium subscribers only.",
}


@dataclass(frozen=True)
class EntitlementDecision:
    allow: bool
    deny_reason: Optional[DenyReason] = None
    post_action: PostAction = PostAction.NONE

    @classmethod
    def allowed(cls, post_action: PostAction = PostAction.NONE) -> "EntitlementDecision":
        return cls(allow=True, post_action=post_action)

    @classmethod
    def denied(cls, reason: DenyReason) -> "EntitlementDecision":
        return cls(allow=False, deny_reason=reason)


class EntitlementPolicy(ABC):
    """
    Contract shared by both entitlement models.

    evaluate() must:
        - be side-effect free
        - never return allow=False together with a post action
        - accept any object exposing the Profile attributes it reads
    """

    name: str = ""

    @abstractmethod
    def evaluate(self, profile: Profile) -> EntitlementDecision:
        """Return the decision for one "consume one AI call" request."""
        ...


class MeteredPolicy(EntitlementPolicy):
    """Per-request credits for free/standard, unlimited for pro."""

    name = "metered"

    def evaluate(self, profile: Profile) -> EntitlementDecision:
        if profile.plan_type == PlanType.PRO.value:
            return EntitlementDecision.allowed()
        if (profile.chat_credits or 0) <= 0:
            return EntitlementDecision.denied(DenyReason.NO_CREDITS)
        return EntitlementDecision.allowed(PostAction.DECREMENT_CREDIT)


class PremiumPolicy(EntitlementPolicy):
    """Boolean gate. There is no consumption path."""

    name = "premium"

    def evaluate(self, profile: Profile) -> EntitlementDecision:
        if profile.is_premium:
            return EntitlementDecision.allowed()
        return EntitlementDecision.denied(DenyReason.NOT_PREMIUM)


_POLICIES = {
    MeteredPolicy.name: MeteredPolicy,
    PremiumPolicy.name: PremiumPolicy,
}


def build_policy(name: str) -> EntitlementPolicy:
    """Instantiate the policy registered under `name` (metered or premium)."""
    try:
        return _POLICIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown entitlement policy '{name}'. Must be one of: {sorted(_POLICIES)}"
        ) from None


# Singleton selected once from configuration; one instance never mixes models
entitlement_policy = build_policy(settings.entitlement_policy)
