"""
Monitoring pipeline — one full recompute over a PO snapshot.

  PO lines + change logs
    → aggregate per vendor (totals, past due, windowed push-outs)
    → trend + performance score
    → min-PO-line filter
    → alert rules (global thresholds + vendor-specific rules)

Pure and synchronous; ``now`` is injected so repeated runs over the same
snapshot are identical.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from alerts.engine import evaluate_alerts
from monitoring.aggregator import VendorAggregate, aggregate_vendors
from monitoring.models import Alert, POLine, POLog, Severity, Thresholds, VendorRule, VendorStats
from monitoring.scoring import score_vendor
from monitoring.trend import classify_trend

logger = structlog.get_logger()


@dataclass
class MonitoringResult:
    stats: list[VendorStats]
    alerts: list[Alert]
    lines_by_vendor: dict[str, list[POLine]] = field(default_factory=dict)

    @property
    def critical_alerts(self) -> list[Alert]:
        return [a for a in self.alerts if a.severity == Severity.CRITICAL]


def _to_stats(aggregate: VendorAggregate, thresholds: Thresholds) -> VendorStats:
    ratio = aggregate.negative_change_ratio
    return VendorStats(
        name=aggregate.name,
        vendor_number=aggregate.vendor_number,
        total_lines=aggregate.total_lines,
        past_due_lines_count=aggregate.past_due_lines_count,
        past_due_percentage=aggregate.past_due_percentage,
        trend=classify_trend(ratio, thresholds.worsening_percentage),
        recent_negative_changes=aggregate.recent_negative_changes,
        negative_change_ratio=ratio,
        performance_score=score_vendor(aggregate.lines, aggregate.past_due_percentage, ratio),
    )


def compute_vendor_stats_with_lines(
    po_lines: Sequence[POLine],
    po_logs: Sequence[POLog],
    thresholds: Thresholds,
    now: datetime,
) -> tuple[list[VendorStats], dict[str, list[POLine]]]:
    aggregates = aggregate_vendors(po_lines, po_logs, thresholds.worsening_days, now)
    all_stats = [_to_stats(aggregate, thresholds) for aggregate in aggregates.values()]

    # Minimum-volume filter runs last, after trend and score are attached.
    visible = [s for s in all_stats if s.total_lines >= thresholds.min_po_lines]
    visible.sort(key=lambda s: s.past_due_percentage, reverse=True)

    lines_by_vendor = {name: list(aggregate.lines) for name, aggregate in aggregates.items()}
    return visible, lines_by_vendor


def compute_vendor_stats(
    po_lines: Sequence[POLine],
    po_logs: Sequence[POLog],
    thresholds: Thresholds,
    now: datetime,
) -> list[VendorStats]:
    """Per-vendor stats for vendors with at least ``min_po_lines`` lines."""
    stats, _ = compute_vendor_stats_with_lines(po_lines, po_logs, thresholds, now)
    return stats


def run_monitoring(
    po_lines: Sequence[POLine],
    po_logs: Sequence[POLog],
    thresholds: Thresholds,
    vendor_rules: Sequence[VendorRule],
    now: datetime,
) -> MonitoringResult:
    """Full recompute: vendor stats plus the ranked alert list."""
    stats, lines_by_vendor = compute_vendor_stats_with_lines(po_lines, po_logs, thresholds, now)
    alerts = evaluate_alerts(stats, thresholds, vendor_rules, lines_by_vendor, now)

    result = MonitoringResult(stats=stats, alerts=alerts, lines_by_vendor=lines_by_vendor)
    logger.info(
        "monitoring.recomputed",
        vendors=len(stats),
        alerts=len(alerts),
        critical=len(result.critical_alerts),
    )
    return result
