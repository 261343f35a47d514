"""
Paywall rules package.

Decides whether the upgrade paywall may be presented and computes the
paywall-display record the caller persists after presenting it.
"""

from .models import PaywallProfile
from .rules import can_show_paywall, record_paywall_shown, PAYWALL_COOLDOWN

__all__ = ["PaywallProfile", "can_show_paywall", "record_paywall_shown", "PAYWALL_COOLDOWN"]
