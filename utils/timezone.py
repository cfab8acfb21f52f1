"""UTC-everywhere time handling. Eliminates timezone bugs at the source."""

from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere: cookie expiry and
    token exp claims are computed from it.
    """
    return datetime.now(timezone.utc)
