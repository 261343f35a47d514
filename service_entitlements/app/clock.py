"""
Time helpers shared by the evaluator and the paywall rules.
"""

from datetime import datetime, timezone
from typing import Optional, Union

from shared.logging import get_logger

logger = get_logger("entitlements.clock")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: Optional[Union[str, datetime]], field: str = "timestamp") -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Accepts "Z" suffixes, space separators, hour-only offsets and any
    fraction length, as emitted by JS and Postgres. Returns None for missing
    or unparseable input and logs the latter.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)

    text = str(value).strip()
    if not text:
        return None

    try:
        return ensure_aware(datetime.fromisoformat(text))
    except ValueError:
        logger.warning("Unparseable timestamp", field=field, value=str(value))
        return None
