"""
Trend Classifier + per-vendor trend series.

Classification is stateless: each pass re-derives the trend from the
current windowed negative-change ratio, no smoothing or hysteresis.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from monitoring.aggregator import is_negative_eta_change
from monitoring.models import POLine, POLog, Trend
from monitoring.temporal import (
    Granularity,
    bucket_key,
    bucket_label,
    end_of_day,
    parse_aligned,
    start_of_day,
)


def classify_trend(negative_change_ratio: float, worsening_percentage: float) -> Trend:
    """Worsening when the ratio strictly exceeds the threshold, else stable."""
    if negative_change_ratio > worsening_percentage:
        return Trend.WORSENING
    return Trend.STABLE


# ── Trend series (chart feed) ─────────────────────────────────────────────


@dataclass(frozen=True)
class TrendPoint:
    key: str
    label: str
    negative_eta_changes: int
    newly_past_due: int


@dataclass
class TrendSeries:
    vendor: str
    granularity: Granularity
    days_back: int
    points: list[TrendPoint] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return any(p.negative_eta_changes > 0 or p.newly_past_due > 0 for p in self.points)


def build_trend_series(
    vendor: str,
    po_lines: Iterable[POLine],
    po_logs: Iterable[POLog],
    days_back: int,
    granularity: Granularity,
    now: datetime,
) -> TrendSeries:
    """
    Bucket a vendor's negative ETA changes and newly past-due lines over the
    trailing ``days_back`` days ending at the end of today.

    Every bucket in the window is emitted, zero-filled, in key order.
    """
    window_end = end_of_day(now)
    window_start = start_of_day(now - timedelta(days=days_back))

    vendor_lines = [line for line in po_lines if line.vendor == vendor]
    line_ids = {line.po_line_id for line in vendor_lines}

    negative_changes: dict[str, int] = {}
    for log in po_logs:
        if log.po_line_id not in line_ids:
            continue
        changed_at = parse_aligned(log.change_date, now)
        if changed_at is None or not window_start <= changed_at <= window_end:
            continue
        if is_negative_eta_change(log):
            key = bucket_key(changed_at, granularity)
            negative_changes[key] = negative_changes.get(key, 0) + 1

    past_due: dict[str, int] = {}
    for line in vendor_lines:
        eta = parse_aligned(line.eta, now)
        if eta is None:
            continue
        if window_start <= eta < window_end:
            key = bucket_key(eta, granularity)
            past_due[key] = past_due.get(key, 0) + 1

    keys: set[str] = set()
    cursor = window_start
    while cursor <= window_end:
        keys.add(bucket_key(cursor, granularity))
        cursor += timedelta(days=1)
    if not keys:
        keys.add(bucket_key(now, granularity))

    points = [
        TrendPoint(
            key=key,
            label=bucket_label(key, granularity),
            negative_eta_changes=negative_changes.get(key, 0),
            newly_past_due=past_due.get(key, 0),
        )
        for key in sorted(keys)
    ]
    return TrendSeries(vendor=vendor, granularity=granularity, days_back=days_back, points=points)
