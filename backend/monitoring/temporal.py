"""
Temporal helpers — date parsing, past-due predicate, and calendar buckets.

Every function that depends on "today" takes ``now`` explicitly so the
monitoring pipeline stays deterministic under test.

Bucket keys:
  - day:   YYYY-MM-DD
  - week:  ISO week, YYYY-Www (week 1 contains the year's first Thursday)
  - month: YYYY-MM
"""

from datetime import date, datetime, time, timedelta
from typing import Literal

Granularity = Literal["day", "week", "month"]

_FALLBACK_FORMATS = ("%m/%d/%Y", "%Y/%m/%d", "%m/%d/%Y %H:%M", "%d-%b-%Y")


def parse_datetime(value) -> datetime | None:
    """Parse an ISO-ish date/datetime value. Returns None if unparseable.

    Numbers are not treated as dates: change logs carry quantities as
    numbers and those must never be read as ETAs.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def align(moment: datetime, reference: datetime) -> datetime:
    """Bring ``moment`` into the same naive/aware convention as ``reference``.

    Naive values are local wall-clock time.
    """
    if reference.tzinfo is None:
        if moment.tzinfo is None:
            return moment
        return moment.astimezone().replace(tzinfo=None)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=reference.tzinfo)
    return moment.astimezone(reference.tzinfo)


def parse_aligned(value, reference: datetime) -> datetime | None:
    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return align(parsed, reference)


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(now: datetime) -> datetime:
    return now.replace(hour=23, minute=59, second=59, microsecond=999999)


def is_past_due(eta, now: datetime) -> bool:
    """ETA strictly before today at 00:00. Unparseable ETAs are not past due."""
    eta_dt = parse_aligned(eta, now)
    if eta_dt is None:
        return False
    return eta_dt < start_of_day(now)


def lookback_cutoff(now: datetime, days: float) -> datetime:
    """Start of a trailing window. Windows reaching past year 1 cover all history."""
    try:
        return now - timedelta(days=days)
    except OverflowError:
        return datetime.min.replace(tzinfo=now.tzinfo)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def is_later(new_value, old_value) -> bool:
    """True when both values parse as dates and ``new_value`` is later."""
    new_dt = parse_datetime(new_value)
    old_dt = parse_datetime(old_value)
    if new_dt is None or old_dt is None:
        return False
    try:
        return align(new_dt, old_dt) > old_dt
    except (TypeError, ValueError, OverflowError):
        return False


# ── Calendar buckets ─────────────────────────────────────────────────────


def day_key(moment: date) -> str:
    return moment.strftime("%Y-%m-%d")


def iso_week_key(moment: date) -> str:
    iso_year, iso_week, _ = moment.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def month_key(moment: date) -> str:
    return moment.strftime("%Y-%m")


def bucket_key(moment: date, granularity: Granularity) -> str:
    if granularity == "day":
        return day_key(moment)
    if granularity == "month":
        return month_key(moment)
    return iso_week_key(moment)


def bucket_label(key: str, granularity: Granularity) -> str:
    """Human-readable label for a bucket key."""
    if granularity == "week":
        return key.replace("-W", " W")
    if granularity == "month":
        year, month = key.split("-")
        return date(int(year), int(month), 1).strftime("%b %Y")
    return key
