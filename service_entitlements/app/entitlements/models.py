"""
Data models for the entitlement evaluator.

Dataclasses describe the records the evaluator consumes and produces; the
pydantic models below them are the HTTP request/response shapes.
"""

from typing import Any, Optional, Mapping, Union
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..paywall.models import PaywallProfilePayload

Timestamp = Union[str, datetime]


class SubscriptionStatus(str, Enum):
    """Subscription lifecycle states."""
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


class Plan(str, Enum):
    """Plan identifiers known to billing."""
    FREE = "free"
    TRIAL = "trial"
    CREATE = "create"
    STARTER = "starter"
    PRO = "pro"
    ELITE = "elite"
    BUSINESS = "business"
    LIFETIME = "lifetime"


# Plans that unlock the full capability set while the subscription is active
PAID_PLANS = frozenset({
    Plan.CREATE.value,
    Plan.STARTER.value,
    Plan.PRO.value,
    Plan.ELITE.value,
    Plan.BUSINESS.value,
    Plan.LIFETIME.value,
})


class Capability(str, Enum):
    """Capabilities a caller may gate on."""
    SCAN = "scan"
    COACH = "coach"
    FULL_ISSUES = "full_issues"
    RESCAN = "rescan"


@dataclass
class SubscriptionRecord:
    """Subscription row as stored by billing."""
    status: str
    plan: str
    trial_start: Optional[Timestamp] = None
    trial_end: Optional[Timestamp] = None
    advice_consumed: Optional[bool] = None
    ends_at: Optional[Timestamp] = None
    source: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    current_period_end: Optional[Timestamp] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SubscriptionRecord":
        """Build a record from a database row or JSON object, ignoring unknown columns."""
        return cls(
            status=row.get("status") or "",
            plan=row.get("plan") or "",
            trial_start=row.get("trial_start"),
            trial_end=row.get("trial_end"),
            advice_consumed=row.get("advice_consumed"),
            ends_at=row.get("ends_at"),
            source=row.get("source"),
            stripe_customer_id=row.get("stripe_customer_id"),
            stripe_subscription_id=row.get("stripe_subscription_id"),
            current_period_end=row.get("current_period_end"),
        )


@dataclass(frozen=True)
class Entitlements:
    """Capability flags derived from a subscription."""
    is_trial_active: bool = False
    has_advice_remaining: bool = False
    is_paid: bool = False
    is_lifetime: bool = False
    trial_ends_at: Optional[datetime] = None
    can_scan: bool = False
    can_use_coach: bool = False
    can_see_full_issues: bool = False
    can_rescan: bool = False

    def allows(self, capability: Capability) -> bool:
        """Whether the given capability is granted."""
        return {
            Capability.SCAN: self.can_scan,
            Capability.COACH: self.can_use_coach,
            Capability.FULL_ISSUES: self.can_see_full_issues,
            Capability.RESCAN: self.can_rescan,
        }[Capability(capability)]


@dataclass(frozen=True)
class PlanQuotas:
    """Usage limits for the effective tier. None means unlimited."""
    plan: str
    scan_limit_per_day: Optional[int]
    coach_messages_per_hour: Optional[int]


class SubscriptionPayload(BaseModel):
    """Subscription row as sent by callers."""
    status: SubscriptionStatus = Field(..., description="Subscription status")
    plan: str = Field(..., description="Plan identifier")
    trial_start: Optional[str] = Field(None, description="Trial start (ISO-8601)")
    trial_end: Optional[str] = Field(None, description="Trial end (ISO-8601)")
    advice_consumed: Optional[bool] = Field(None, description="Whether the trial advice was used")
    ends_at: Optional[str] = Field(None, description="Subscription end (informational)")
    source: Optional[str] = Field(None, description="Origin of the subscription (informational)")

    def to_record(self) -> SubscriptionRecord:
        return SubscriptionRecord(
            status=self.status.value,
            plan=self.plan,
            trial_start=self.trial_start,
            trial_end=self.trial_end,
            advice_consumed=self.advice_consumed,
            ends_at=self.ends_at,
            source=self.source,
        )


class EvaluateRequest(BaseModel):
    """Request model for entitlement evaluation."""
    user_id: Optional[str] = Field(None, description="User ID, used for log correlation only")
    subscription: Optional[SubscriptionPayload] = Field(None, description="Current subscription row")


class EntitlementsResponse(BaseModel):
    """Response model for entitlement evaluation."""
    is_trial_active: bool
    has_advice_remaining: bool
    is_paid: bool
    is_lifetime: bool
    trial_ends_at: Optional[datetime] = None
    can_scan: bool
    can_use_coach: bool
    can_see_full_issues: bool
    can_rescan: bool
    plan: str = Field(..., description="Effective tier")
    scan_limit_per_day: Optional[int] = Field(None, description="Scans allowed per day, null when unlimited")
    coach_messages_per_hour: Optional[int] = Field(None, description="Coach messages per hour, null when unlimited")

    @classmethod
    def from_evaluation(cls, entitlements: Entitlements, quotas: PlanQuotas) -> "EntitlementsResponse":
        return cls(**asdict(entitlements), **asdict(quotas))


class TrialRequest(BaseModel):
    """Request model for starting a trial."""
    user_id: Optional[str] = Field(None, description="User ID, used for log correlation only")
    days: Optional[int] = Field(None, ge=1, le=30, description="Trial length in days")


class TrialResponse(BaseModel):
    """Subscription fields for a fresh trial, to be persisted by the caller."""
    status: SubscriptionStatus
    plan: str
    trial_start: datetime
    trial_end: datetime
    advice_consumed: bool
    source: str


class CheckRequest(BaseModel):
    """Request model for a capability check."""
    user_id: Optional[str] = Field(None, description="User ID, used for log correlation only")
    capability: Capability = Field(..., description="Capability to check")
    subscription: Optional[SubscriptionPayload] = Field(None, description="Current subscription row")
    paywall_profile: Optional[PaywallProfilePayload] = Field(
        None, description="Paywall-display record, used to decide show_paywall on denial"
    )


class CheckResponse(BaseModel):
    """Response model for an allowed capability check."""
    allowed: bool
    capability: Capability
