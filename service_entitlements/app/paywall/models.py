"""
Paywall-display record and its HTTP shapes.
"""

from typing import Any, Optional, Mapping, Union
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field


@dataclass
class PaywallProfile:
    """Per-user record of paywall presentations."""
    last_paywall_shown_at: Optional[Union[str, datetime]] = None
    paywall_show_day: Optional[str] = None
    paywall_show_count_today: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PaywallProfile":
        return cls(
            last_paywall_shown_at=row.get("last_paywall_shown_at"),
            paywall_show_day=row.get("paywall_show_day"),
            paywall_show_count_today=row.get("paywall_show_count_today") or 0,
        )


class PaywallProfilePayload(BaseModel):
    """Paywall-display record as sent by callers."""
    last_paywall_shown_at: Optional[str] = Field(None, description="Last presentation (ISO-8601)")
    paywall_show_day: Optional[str] = Field(None, description="UTC day of the last counter reset (YYYY-MM-DD)")
    paywall_show_count_today: int = Field(0, ge=0, description="Presentations on paywall_show_day")

    def to_profile(self) -> PaywallProfile:
        return PaywallProfile(
            last_paywall_shown_at=self.last_paywall_shown_at,
            paywall_show_day=self.paywall_show_day,
            paywall_show_count_today=self.paywall_show_count_today,
        )


class PaywallRequest(BaseModel):
    """Request model for paywall operations."""
    user_id: Optional[str] = Field(None, description="User ID, used for log correlation only")
    paywall_profile: Optional[PaywallProfilePayload] = Field(None, description="Current paywall-display record")


class PaywallEligibilityResponse(BaseModel):
    can_show_paywall: bool


class PaywallProfileResponse(BaseModel):
    """Updated paywall-display record, to be persisted by the caller."""
    last_paywall_shown_at: datetime
    paywall_show_day: str
    paywall_show_count_today: int
