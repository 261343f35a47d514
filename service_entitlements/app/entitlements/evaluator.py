"""
Entitlement evaluation for FyxxLabs subscriptions.

Everything here is a pure function of (subscription row, current time): nothing
is persisted and nothing is cached, so callers may evaluate speculatively or
retry freely. Entitlements are recomputed on every call from the latest
subscription snapshot; there is no state machine.
"""

from datetime import datetime, timedelta
from typing import Optional

from shared.errors import PaywallError
from shared.logging import get_logger
from ..clock import utcnow, ensure_aware, parse_timestamp
from .models import (
    SubscriptionRecord, SubscriptionStatus, Plan, PAID_PLANS,
    Entitlements, PlanQuotas, Capability
)

logger = get_logger("entitlements.evaluator")

DEFAULT_TRIAL_DAYS = 3

PAYWALL_SCAN_LIMIT = "PAYWALL_SCAN_LIMIT"
PAYWALL_COACH = "PAYWALL_COACH"
PAYWALL_FULL_RESULTS = "PAYWALL_FULL_RESULTS"
PAYWALL_RESCAN = "PAYWALL_RESCAN"

# Daily scan and hourly coach-message limits per tier; None is unlimited
SCAN_LIMITS_PER_DAY = {
    Plan.CREATE.value: 1,
    Plan.STARTER.value: 2,
    Plan.PRO.value: 10,
    Plan.ELITE.value: None,
    Plan.LIFETIME.value: None,
    Plan.TRIAL.value: 1,
    Plan.FREE.value: 0,
}

COACH_MESSAGES_PER_HOUR = {
    Plan.CREATE.value: 5,
    Plan.STARTER.value: 10,
    Plan.PRO.value: None,
    Plan.ELITE.value: None,
    Plan.LIFETIME.value: None,
    Plan.TRIAL.value: 0,
    Plan.FREE.value: 0,
}

_PAYWALL_CODES = {
    Capability.SCAN: (
        PAYWALL_SCAN_LIMIT,
        "Your free scan has been used. Unlock the full plan to keep scanning."
    ),
    Capability.COACH: (
        PAYWALL_COACH,
        "The AI coach is part of the full plan. Upgrade to use it."
    ),
    Capability.FULL_ISSUES: (
        PAYWALL_FULL_RESULTS,
        "Full scan results are part of the full plan. Upgrade to see every issue."
    ),
    Capability.RESCAN: (
        PAYWALL_RESCAN,
        "Re-scanning is part of the full plan. Upgrade to re-scan your store."
    ),
}


def _resolve_now(now: Optional[datetime]) -> datetime:
    return ensure_aware(now) if now is not None else utcnow()


def evaluate(subscription: Optional[SubscriptionRecord], now: Optional[datetime] = None) -> Entitlements:
    """
    Compute capability flags for a subscription.

    A missing subscription yields the most restrictive set. Active lifetime or
    active allow-listed plans get everything. Otherwise only an active trial
    with its single advice still unused may scan; paid-only capabilities stay
    locked. An unparseable or missing ``trial_end`` counts as an expired trial.
    """
    if subscription is None:
        return Entitlements()

    now = _resolve_now(now)
    status = subscription.status
    plan = subscription.plan

    is_lifetime = plan == Plan.LIFETIME.value and status == SubscriptionStatus.ACTIVE.value
    is_paid = status == SubscriptionStatus.ACTIVE.value and plan in PAID_PLANS

    if is_lifetime or is_paid:
        return Entitlements(
            is_trial_active=False,
            has_advice_remaining=True,
            is_paid=True,
            is_lifetime=is_lifetime,
            trial_ends_at=None,
            can_scan=True,
            can_use_coach=True,
            can_see_full_issues=True,
            can_rescan=True,
        )

    trial_end = parse_timestamp(subscription.trial_end, field="trial_end")
    is_trial_active = (
        status == SubscriptionStatus.TRIALING.value
        and trial_end is not None
        and now < trial_end
    )
    has_advice_remaining = subscription.advice_consumed is not True

    return Entitlements(
        is_trial_active=is_trial_active,
        has_advice_remaining=has_advice_remaining,
        is_paid=False,
        is_lifetime=False,
        trial_ends_at=trial_end if is_trial_active else None,
        can_scan=is_trial_active and has_advice_remaining,
        can_use_coach=False,
        can_see_full_issues=False,
        can_rescan=False,
    )


def effective_plan(subscription: Optional[SubscriptionRecord], now: Optional[datetime] = None) -> str:
    """Normalise a subscription to the tier used for quotas."""
    if subscription is None:
        return Plan.FREE.value

    plan = subscription.plan
    if subscription.status == SubscriptionStatus.ACTIVE.value and plan in PAID_PLANS:
        if plan == Plan.BUSINESS.value:
            return Plan.ELITE.value
        return plan

    if evaluate(subscription, now).is_trial_active:
        return Plan.TRIAL.value
    return Plan.FREE.value


def plan_quotas(subscription: Optional[SubscriptionRecord], now: Optional[datetime] = None) -> PlanQuotas:
    """Usage limits for the subscription's effective tier."""
    plan = effective_plan(subscription, now)
    return PlanQuotas(
        plan=plan,
        scan_limit_per_day=SCAN_LIMITS_PER_DAY[plan],
        coach_messages_per_hour=COACH_MESSAGES_PER_HOUR[plan],
    )


def assert_capability(
    subscription: Optional[SubscriptionRecord],
    capability: Capability,
    now: Optional[datetime] = None
) -> Entitlements:
    """Raise PaywallError unless the capability is granted; return the entitlements otherwise."""
    capability = Capability(capability)
    entitlements = evaluate(subscription, now)
    if not entitlements.allows(capability):
        code, message = _PAYWALL_CODES[capability]
        raise PaywallError(code, message, {"capability": capability.value})
    return entitlements


def assert_can_scan(subscription: Optional[SubscriptionRecord], now: Optional[datetime] = None) -> Entitlements:
    return assert_capability(subscription, Capability.SCAN, now)


def assert_can_use_coach(subscription: Optional[SubscriptionRecord], now: Optional[datetime] = None) -> Entitlements:
    return assert_capability(subscription, Capability.COACH, now)


def assert_can_see_full_issues(subscription: Optional[SubscriptionRecord], now: Optional[datetime] = None) -> Entitlements:
    return assert_capability(subscription, Capability.FULL_ISSUES, now)


def assert_can_rescan(subscription: Optional[SubscriptionRecord], now: Optional[datetime] = None) -> Entitlements:
    return assert_capability(subscription, Capability.RESCAN, now)


def start_trial(now: Optional[datetime] = None, days: int = DEFAULT_TRIAL_DAYS) -> SubscriptionRecord:
    """Subscription fields for a fresh trial (signup or admin reset)."""
    if days < 1:
        raise ValueError("days must be at least 1")

    now = _resolve_now(now)
    record = SubscriptionRecord(
        status=SubscriptionStatus.TRIALING.value,
        plan=Plan.FREE.value,
        trial_start=now,
        trial_end=now + timedelta(days=days),
        advice_consumed=False,
        source="manual",
    )
    logger.debug("Trial window built", trial_end=record.trial_end.isoformat(), days=days)
    return record
