from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC "now". Every DateTime column in this app stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class SystemClock:
    def now(self) -> datetime:
        return utcnow()


class FixedClock:
    """Clock pinned to a given instant."""

    def __init__(self, instant: datetime):
        self.instant = to_naive_utc(instant)

    def now(self) -> datetime:
        return self.instant
