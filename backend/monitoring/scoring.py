"""
Vendor Performance Scorer — 0-100 composite per vendor.

Weighted components:
  - 50 pts: past-due rate        50 × (1 − min(1, past_due_pct / 100))
  - 30 pts: trend                30 × (1 − min(1, negative_change_ratio / 100))
  - 20 pts: acknowledgment       20 × on-time ack fraction

Only lines that reached Acknowledged status enter the ack component; a
vendor with none scores the full 20. Lines still Pending are not
penalized here (the po_ack vendor rule covers them). Whether they should
be is an open product question; the weighting is unchanged until decided.
"""

from collections.abc import Iterable
from datetime import timedelta

from monitoring.models import AckStatus, POLine
from monitoring.temporal import align, parse_datetime

PAST_DUE_WEIGHT = 50
TREND_WEIGHT = 30
ACK_WEIGHT = 20

ACK_ON_TIME_WINDOW = timedelta(hours=24)


def _acknowledged_on_time(line: POLine) -> bool:
    created = parse_datetime(line.creation_date)
    acked = parse_datetime(line.ack_date)
    if created is None or acked is None:
        return False
    return align(acked, created) - created <= ACK_ON_TIME_WINDOW


def on_time_ack_fraction(lines: Iterable[POLine]) -> float:
    """Share of acknowledged lines acknowledged within 24h of creation.

    1.0 when no line has been acknowledged.
    """
    acknowledged = [line for line in lines if line.ack_status == AckStatus.ACKNOWLEDGED]
    if not acknowledged:
        return 1.0
    on_time = sum(1 for line in acknowledged if _acknowledged_on_time(line))
    return on_time / len(acknowledged)


def performance_score(
    past_due_percentage: float,
    negative_change_ratio: float,
    ack_fraction: float,
) -> float:
    past_due_score = PAST_DUE_WEIGHT * (1 - min(1.0, past_due_percentage / 100))
    trend_score = TREND_WEIGHT * (1 - min(1.0, negative_change_ratio / 100))
    ack_score = ACK_WEIGHT * ack_fraction
    return max(0.0, past_due_score + trend_score + ack_score)


def score_vendor(
    lines: Iterable[POLine],
    past_due_percentage: float,
    negative_change_ratio: float,
) -> float:
    """Score one vendor from its aggregate ratios and its PO lines."""
    return performance_score(past_due_percentage, negative_change_ratio, on_time_ack_fraction(lines))
