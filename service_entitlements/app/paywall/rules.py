"""
Paywall display rules.

The paywall is non-intrusive: it is only shown when a user attempts a locked
action, and at most once per cooldown window (24 hours by default).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from shared.logging import get_logger
from ..clock import utcnow, ensure_aware, parse_timestamp
from .models import PaywallProfile

logger = get_logger("entitlements.paywall")

PAYWALL_COOLDOWN = timedelta(hours=24)


def can_show_paywall(
    profile: Optional[PaywallProfile],
    now: Optional[datetime] = None,
    cooldown: timedelta = PAYWALL_COOLDOWN
) -> bool:
    """
    True when the paywall was never shown or the cooldown has elapsed.

    A stored ``last_paywall_shown_at`` that cannot be parsed suppresses the
    paywall rather than resetting the cooldown.
    """
    if profile is None:
        return True

    raw = profile.last_paywall_shown_at
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return True

    last_shown = parse_timestamp(raw, field="last_paywall_shown_at")
    if last_shown is None:
        return False

    now = ensure_aware(now) if now is not None else utcnow()
    return now - last_shown >= cooldown


def record_paywall_shown(profile: Optional[PaywallProfile], now: Optional[datetime] = None) -> PaywallProfile:
    """
    Return the paywall-display record after a presentation at ``now``.

    The daily counter resets when the stored day differs from today (UTC).
    The input is not modified; persisting the result is the caller's job.
    """
    now = ensure_aware(now) if now is not None else utcnow()
    today = now.astimezone(timezone.utc).date().isoformat()

    if profile is not None and profile.paywall_show_day == today:
        count = profile.paywall_show_count_today or 0
    else:
        count = 0

    updated = PaywallProfile(
        last_paywall_shown_at=now,
        paywall_show_day=today,
        paywall_show_count_today=count + 1,
    )
    logger.debug("Paywall presentation recorded", day=today, count=updated.paywall_show_count_today)
    return updated
