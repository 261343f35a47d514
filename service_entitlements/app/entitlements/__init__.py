"""
Entitlement evaluator package.

Turns a subscription row into capability flags, per-tier quotas and paywall
guards. Modules of interest:
- models: Subscription record, Entitlements, PlanQuotas and HTTP shapes.
- evaluator: The pure evaluation functions.
"""

from .evaluator import (
    evaluate, effective_plan, plan_quotas, start_trial,
    assert_capability, assert_can_scan, assert_can_use_coach,
    assert_can_see_full_issues, assert_can_rescan,
    PAYWALL_SCAN_LIMIT, PAYWALL_COACH, PAYWALL_FULL_RESULTS, PAYWALL_RESCAN,
)
from .models import (
    SubscriptionRecord, SubscriptionStatus, Plan, PAID_PLANS,
    Capability, Entitlements, PlanQuotas,
)

__all__ = [
    "evaluate", "effective_plan", "plan_quotas", "start_trial",
    "assert_capability", "assert_can_scan", "assert_can_use_coach",
    "assert_can_see_full_issues", "assert_can_rescan",
    "PAYWALL_SCAN_LIMIT", "PAYWALL_COACH", "PAYWALL_FULL_RESULTS", "PAYWALL_RESCAN",
    "SubscriptionRecord", "SubscriptionStatus", "Plan", "PAID_PLANS",
    "Capability", "Entitlements", "PlanQuotas",
]
