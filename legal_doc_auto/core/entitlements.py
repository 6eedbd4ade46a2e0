"""
Subscription entitlement checks.

Decides whether a generation request may proceed given an organization's
tier, subscription status and usage count. Stateless: every call is
evaluated against values supplied by the caller.

Check Order:
1. Subscription status - cancelled or past_due is denied regardless of usage
2. Usage limit - denied when usage >= tier limit (pro is unlimited)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .errors import EntitlementError

UNLIMITED = -1


class SubscriptionTier(str, Enum):
    TRIAL = "trial"
    BASIC = "basic"
    PRO = "pro"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    PAST_DUE = "past_due"


class DenyReason(str, Enum):
    SUBSCRIPTION_INACTIVE = "SUBSCRIPTION_INACTIVE"
    LIMIT_REACHED = "LIMIT_REACHED"


TIER_LIMITS = {
    SubscriptionTier.TRIAL: 3,
    SubscriptionTier.BASIC: 10,
    SubscriptionTier.PRO: UNLIMITED,
}

INACTIVE_STATUSES = (SubscriptionStatus.CANCELLED, SubscriptionStatus.PAST_DUE)


@dataclass(frozen=True)
class EntitlementDecision:
    """Outcome of an entitlement check.

    Quota details are always populated so a denied caller can render an
    upgrade prompt.
    """
    allowed: bool
    current_usage: int
    limit: int
    tier: SubscriptionTier
    reason: Optional[DenyReason] = None

    @property
    def message(self) -> str:
        if self.reason == DenyReason.SUBSCRIPTION_INACTIVE:
            return (
                "Your subscription is not active. Please update your payment "
                "method or resubscribe."
            )
        if self.reason == DenyReason.LIMIT_REACHED:
            return (
                f"You've reached your document limit ({self.limit} documents). "
                "Please upgrade your plan to continue."
            )
        return "Allowed"


def get_document_limit(tier: Union[SubscriptionTier, str]) -> int:
    """Document limit for a tier; UNLIMITED (-1) for pro."""
    return TIER_LIMITS[SubscriptionTier(tier)]


def can_generate_document(tier: Union[SubscriptionTier, str], documents_used: int) -> bool:
    limit = get_document_limit(tier)
    if limit == UNLIMITED:
        return True
    return documents_used < limit


def check_entitlement(
    tier: Union[SubscriptionTier, str],
    status: Union[SubscriptionStatus, str],
    usage_count: int,
) -> EntitlementDecision:
    """Check whether a new document may be generated.

    Args:
        tier: Subscription tier
        status: Subscription status
        usage_count: Documents already generated by the organization

    Returns:
        EntitlementDecision, allowed or denied with a reason

    Raises:
        ValueError: If tier or status is not a known value
    """
    tier = SubscriptionTier(tier)
    status = SubscriptionStatus(status)
    limit = get_document_limit(tier)

    if status in INACTIVE_STATUSES:
        return EntitlementDecision(
            allowed=False,
            current_usage=usage_count,
            limit=limit,
            tier=tier,
            reason=DenyReason.SUBSCRIPTION_INACTIVE,
        )

    if not can_generate_document(tier, usage_count):
        return EntitlementDecision(
            allowed=False,
            current_usage=usage_count,
            limit=limit,
            tier=tier,
            reason=DenyReason.LIMIT_REACHED,
        )

    return EntitlementDecision(allowed=True, current_usage=usage_count, limit=limit, tier=tier)


def entitlement_error(decision: EntitlementDecision) -> EntitlementError:
    """Build the error describing a denied decision."""
    return EntitlementError(
        decision.message,
        code=decision.reason.value,
        current_usage=decision.current_usage,
        limit=decision.limit,
        tier=decision.tier.value,
    )


def enforce_entitlement(
    tier: Union[SubscriptionTier, str],
    status: Union[SubscriptionStatus, str],
    usage_count: int,
) -> EntitlementDecision:
    """Like check_entitlement() but raises on deny.

    Raises:
        EntitlementError: With SUBSCRIPTION_INACTIVE or LIMIT_REACHED code
    """
    decision = check_entitlement(tier, status, usage_count)
    if not decision.allowed:
        raise entitlement_error(decision)
    return decision
