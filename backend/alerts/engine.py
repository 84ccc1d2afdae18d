"""
Alert Engine — Vendor delivery alerts from aggregated stats and PO lines.

Patterns used: Rule-based detection, deterministic alert ids, severity ranking

Global rules (at most one alert per vendor):
  - worsening: trend worsening AND (count OR % exceeded)   → Critical
  - breach:    count AND % exceeded                        → Critical
  - warning:   count OR % exceeded                         → Warning

Vendor-specific rules (additive):
  - po_ack:            Pending line unacknowledged > N hours  → Warning per line
  - performance_score: score strictly below floor             → Warning

Alerts are rebuilt from scratch on every pass. Ids combine vendor + rule
(+ PO line) so a UI can key and diff them across recomputes.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

import structlog

from monitoring.models import (
    AckStatus,
    Alert,
    NotificationSettings,
    POLine,
    RuleType,
    Severity,
    Thresholds,
    Trend,
    VendorRule,
    VendorStats,
)
from monitoring.temporal import hours_between, parse_aligned

logger = structlog.get_logger()

SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
}


def alert_id(vendor: str, rule: str, po_line_id: str | None = None) -> str:
    if po_line_id:
        return f"{vendor}-{rule}-{po_line_id}"
    return f"{vendor}-{rule}"


# ──────────────────────────────────────────────────────────────────────────
# Global Threshold Rules
# ──────────────────────────────────────────────────────────────────────────


def classify_global_alert(stats: VendorStats, thresholds: Thresholds) -> tuple[str, Severity, str] | None:
    """Return (rule, severity, message) for a vendor, or None if within thresholds."""
    count_exceeded = stats.past_due_lines_count > thresholds.count
    percent_exceeded = stats.past_due_percentage > thresholds.percentage
    summary = f"{stats.past_due_lines_count} past due lines ({stats.past_due_percentage:.1f}%)"

    if stats.trend == Trend.WORSENING and (count_exceeded or percent_exceeded):
        return "worsening", Severity.CRITICAL, f"Performance is worsening, with {summary}."
    elif count_exceeded and percent_exceeded:
        return "breach", Severity.CRITICAL, f"Exceeds thresholds with {summary}."
    elif count_exceeded or percent_exceeded:
        return "warning", Severity.WARNING, f"Has {summary}."
    return None


def evaluate_global_rules(
    stats: Iterable[VendorStats],
    thresholds: Thresholds,
    now: datetime,
) -> list[Alert]:
    alerts = []
    for vendor in stats:
        outcome = classify_global_alert(vendor, thresholds)
        if outcome is None:
            continue
        rule, severity, message = outcome
        alerts.append(
            Alert(
                id=alert_id(vendor.name, rule),
                vendor=vendor.name,
                message=message,
                timestamp=now,
                severity=severity,
                rule=rule,
            )
        )
    return alerts


# ──────────────────────────────────────────────────────────────────────────
# Vendor-Specific Rules
# ──────────────────────────────────────────────────────────────────────────


def evaluate_po_ack_rule(rule: VendorRule, lines: Iterable[POLine], now: datetime) -> list[Alert]:
    """One Warning per Pending line older than ``rule.threshold`` hours."""
    alerts = []
    for line in lines:
        if line.ack_status != AckStatus.PENDING:
            continue
        created = parse_aligned(line.creation_date, now)
        if created is None:
            continue
        elapsed = hours_between(created, now)
        if elapsed <= rule.threshold:
            continue
        alerts.append(
            Alert(
                id=alert_id(rule.vendor_name, RuleType.PO_ACK.value, line.po_line_id),
                vendor=rule.vendor_name,
                message=(
                    f"PO line {line.po_line_id} has been pending acknowledgment for "
                    f"{elapsed:.0f} hours (threshold: {rule.threshold:g}h)."
                ),
                timestamp=now,
                severity=Severity.WARNING,
                rule=RuleType.PO_ACK.value,
                po_line_id=line.po_line_id,
            )
        )
    return alerts


def evaluate_performance_score_rule(rule: VendorRule, stats: VendorStats, now: datetime) -> list[Alert]:
    if stats.performance_score >= rule.threshold:
        return []
    return [
        Alert(
            id=alert_id(rule.vendor_name, RuleType.PERFORMANCE_SCORE.value),
            vendor=rule.vendor_name,
            message=(
                f"Performance score {stats.performance_score:.1f} is below the "
                f"threshold of {rule.threshold:g}."
            ),
            timestamp=now,
            severity=Severity.WARNING,
            rule=RuleType.PERFORMANCE_SCORE.value,
        )
    ]


def evaluate_vendor_rules(
    stats: Iterable[VendorStats],
    rules: Sequence[VendorRule],
    lines_by_vendor: Mapping[str, Sequence[POLine]],
    now: datetime,
) -> list[Alert]:
    """Apply each rule to its target vendor, if that vendor is monitored."""
    stats_by_vendor = {s.name: s for s in stats}
    alerts = []
    for rule in rules:
        vendor_stats = stats_by_vendor.get(rule.vendor_name)
        if vendor_stats is None:
            continue
        if rule.rule_type == RuleType.PO_ACK:
            alerts.extend(evaluate_po_ack_rule(rule, lines_by_vendor.get(rule.vendor_name, ()), now))
        elif rule.rule_type == RuleType.PERFORMANCE_SCORE:
            alerts.extend(evaluate_performance_score_rule(rule, vendor_stats, now))
    return alerts


# ──────────────────────────────────────────────────────────────────────────
# Ranking + Pipeline
# ──────────────────────────────────────────────────────────────────────────


def rank_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    """Critical before Warning; discovery order kept within a severity."""
    return sorted(alerts, key=lambda a: SEVERITY_RANK[a.severity])


def evaluate_alerts(
    stats: Sequence[VendorStats],
    thresholds: Thresholds,
    rules: Sequence[VendorRule],
    lines_by_vendor: Mapping[str, Sequence[POLine]],
    now: datetime,
) -> list[Alert]:
    global_alerts = evaluate_global_rules(stats, thresholds, now)
    vendor_alerts = evaluate_vendor_rules(stats, rules, lines_by_vendor, now)
    # Overlapping rules yield the same id; the first one found wins.
    unique: dict[str, Alert] = {}
    for alert in global_alerts + vendor_alerts:
        unique.setdefault(alert.id, alert)
    return rank_alerts(unique.values())


async def run_alert_pipeline(
    stats: Sequence[VendorStats],
    thresholds: Thresholds,
    rules: Sequence[VendorRule],
    lines_by_vendor: Mapping[str, Sequence[POLine]],
    now: datetime,
    notifications: NotificationSettings,
) -> list[Alert]:
    """
    Full alert pipeline:
    1. Evaluate global + vendor-specific rules
    2. Rank by severity
    3. Hand Critical alerts to the configured notification sink

    Returns the ranked alert list; delivery failures never drop alerts.
    """
    from alerts.notifier import dispatch_critical_alerts

    alerts = evaluate_alerts(stats, thresholds, rules, lines_by_vendor, now)
    await dispatch_critical_alerts(alerts, notifications)
    return alerts
