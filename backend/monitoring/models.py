"""
Monitoring domain records.

PO lines and change logs are immutable snapshots handed in by the caller.
VendorStats and Alert are derived on every recompute and never persisted.
Thresholds, vendor rules and notification settings are caller-owned
configuration passed explicitly into each pass.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Union

DateLike = Union[str, date, datetime, None]
LogValue = Union[str, int, float, None]


class AckStatus(str, Enum):
    PENDING = "Pending"
    ACKNOWLEDGED = "Acknowledged"


class Trend(str, Enum):
    """Vendor delivery trend.

    IMPROVING is part of the vocabulary but no rule currently assigns it.
    """

    IMPROVING = "improving"
    WORSENING = "worsening"
    STABLE = "stable"


class Severity(str, Enum):
    CRITICAL = "Critical"
    WARNING = "Warning"


class RuleType(str, Enum):
    PO_ACK = "po_ack"  # Pending acknowledgment older than N hours
    PERFORMANCE_SCORE = "performance_score"  # Score below floor


class NotificationChannel(str, Enum):
    EMAIL = "email"
    TEAMS = "teams"


# ── Input snapshots ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class POLine:
    po_line_id: str
    vendor: str
    vendor_number: int
    esd: DateLike  # Early ship date
    eta: DateLike
    scheduled_ship_qty: float = 0
    shipped_qty: float = 0
    open_qty: float = 0
    unscheduled_qty: float = 0
    transit_time_days: float = 0
    tracking_number: str | None = None
    creation_date: DateLike = None
    ack_status: AckStatus = AckStatus.PENDING
    ack_date: DateLike = None


@dataclass(frozen=True)
class POLog:
    log_id: str
    po_line_id: str
    change_date: DateLike
    changed_field: str
    old_value: LogValue = None
    new_value: LogValue = None


# ── Derived records ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class VendorStats:
    name: str
    vendor_number: int
    total_lines: int
    past_due_lines_count: int
    past_due_percentage: float
    trend: Trend
    recent_negative_changes: int  # Distinct lines with a push-out in the window
    negative_change_ratio: float
    performance_score: float


@dataclass(frozen=True)
class Alert:
    id: str
    vendor: str
    message: str
    timestamp: datetime
    severity: Severity
    rule: str
    po_line_id: str | None = None


# ── Configuration ──────────────────────────────────────────────────────────


def coerce_non_negative(value: Any) -> float:
    """Parse a threshold value, mapping anything unusable to 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


_THRESHOLD_KEYS = {
    "percentage": ("percentage",),
    "count": ("count",),
    "min_po_lines": ("min_po_lines", "minPoLines"),
    "worsening_days": ("worsening_days", "worseningDays"),
    "worsening_percentage": ("worsening_percentage", "worseningPercentage"),
}


@dataclass(frozen=True)
class Thresholds:
    """Global alerting thresholds."""

    percentage: float = 20
    count: float = 5
    min_po_lines: float = 0
    worsening_days: float = 7
    worsening_percentage: float = 0

    @classmethod
    def defaults(cls) -> Thresholds:
        from core.config import get_settings

        settings = get_settings()
        return cls(
            percentage=coerce_non_negative(settings.default_past_due_percentage),
            count=coerce_non_negative(settings.default_past_due_count),
            min_po_lines=coerce_non_negative(settings.default_min_po_lines),
            worsening_days=coerce_non_negative(settings.default_worsening_days),
            worsening_percentage=coerce_non_negative(settings.default_worsening_percentage),
        )

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None, base: Thresholds | None = None) -> Thresholds:
        """
        Build thresholds from loosely-typed input (form fields, JSON, env).

        Keys may be snake_case or camelCase. Missing keys keep the base
        value; present keys that are non-numeric or negative become 0.
        """
        base = base or cls.defaults()
        raw = raw or {}
        values: dict[str, float] = {}
        for attr, aliases in _THRESHOLD_KEYS.items():
            for key in aliases:
                if key in raw:
                    values[attr] = coerce_non_negative(raw[key])
                    break
            else:
                values[attr] = getattr(base, attr)
        return cls(**values)


@dataclass(frozen=True)
class VendorRule:
    vendor_name: str
    rule_type: RuleType
    threshold: float

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> VendorRule:
        return cls(
            vendor_name=str(raw.get("vendor_name", raw.get("vendorName", ""))),
            rule_type=RuleType(raw.get("rule_type", raw.get("ruleType"))),
            threshold=coerce_non_negative(raw.get("threshold")),
        )


@dataclass(frozen=True)
class NotificationSettings:
    enabled: bool = False
    channel: NotificationChannel = NotificationChannel.EMAIL
    recipients: str = ""
