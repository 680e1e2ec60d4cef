"""UTC time helpers shared by models and services."""
from datetime import datetime, date, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today() -> date:
    """Current UTC calendar date; event dates are compared against this."""
    return utcnow().date()
