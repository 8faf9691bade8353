from datetime import UTC, datetime, timedelta

SECONDS_PER_DAY = 86_400


def utc_day_hour(ts: int) -> tuple[int, int]:
    """(day, hour) in UTC; day 0 is Sunday."""
    dt = datetime.fromtimestamp(ts, tz=UTC)
    return (dt.weekday() + 1) % 7, dt.hour


def utc_midnight_ts(now: float) -> int:
    dt = datetime.fromtimestamp(now, tz=UTC)
    return int(dt.replace(hour=0, minute=0, second=0, microsecond=0).timestamp())


def days_since(ts: int, now: float) -> float:
    return (now - ts) / SECONDS_PER_DAY


def iso_date(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=UTC).date().isoformat()


def previous_utc_midnight_ts(now: float) -> int:
    midnight = datetime.fromtimestamp(utc_midnight_ts(now), tz=UTC)
    return int((midnight - timedelta(days=1)).timestamp())
