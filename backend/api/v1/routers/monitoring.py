"""
Monitoring Router — vendor stats, alerts and trend series.

Stateless: every request carries the PO line / change log snapshot and
the caller's thresholds, rules and notification settings.
"""

from datetime import datetime
from typing import Any, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from alerts.engine import run_alert_pipeline
from api.deps import get_clock
from monitoring.filters import FilterCondition, SortSpec, apply_view
from monitoring.models import (
    AckStatus,
    NotificationChannel,
    NotificationSettings,
    POLine,
    POLog,
    RuleType,
    Severity,
    Thresholds,
    Trend,
    VendorRule,
)
from monitoring.pipeline import compute_vendor_stats, compute_vendor_stats_with_lines
from monitoring.trend import build_trend_series

router = APIRouter(prefix="/api/v1/monitoring", tags=["monitoring"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class POLineIn(BaseModel):
    po_line_id: str
    vendor: str
    vendor_number: int
    esd: str | None = None
    eta: str | None = None
    scheduled_ship_qty: float = 0
    shipped_qty: float = 0
    open_qty: float = 0
    unscheduled_qty: float = 0
    transit_time_days: float = 0
    tracking_number: str | None = None
    creation_date: str | None = None
    ack_status: AckStatus = AckStatus.PENDING
    ack_date: str | None = None

    def to_domain(self) -> POLine:
        return POLine(**self.model_dump())


class POLogIn(BaseModel):
    log_id: str
    po_line_id: str
    change_date: str | None = None
    changed_field: str
    old_value: str | float | None = None
    new_value: str | float | None = None

    def to_domain(self) -> POLog:
        return POLog(**self.model_dump())


class VendorRuleIn(BaseModel):
    vendor_name: str
    rule_type: RuleType
    threshold: float = Field(gt=0)

    def to_domain(self) -> VendorRule:
        return VendorRule(vendor_name=self.vendor_name, rule_type=self.rule_type, threshold=self.threshold)


class NotificationSettingsIn(BaseModel):
    enabled: bool = False
    channel: NotificationChannel = NotificationChannel.EMAIL
    recipients: str = ""

    def to_domain(self) -> NotificationSettings:
        return NotificationSettings(enabled=self.enabled, channel=self.channel, recipients=self.recipients)


class SnapshotRequest(BaseModel):
    po_lines: list[POLineIn]
    po_logs: list[POLogIn] = []
    # Loosely typed on purpose: invalid values are coerced to 0, not rejected.
    thresholds: dict[str, Any] = {}

    def lines(self) -> list[POLine]:
        return [line.to_domain() for line in self.po_lines]

    def logs(self) -> list[POLog]:
        return [log.to_domain() for log in self.po_logs]

    def parsed_thresholds(self) -> Thresholds:
        return Thresholds.from_raw(self.thresholds)


class VendorStatsRequest(SnapshotRequest):
    filters: list[FilterCondition] = []
    sort: SortSpec = SortSpec()


class AlertsRequest(SnapshotRequest):
    vendor_rules: list[VendorRuleIn] = []
    notifications: NotificationSettingsIn = NotificationSettingsIn()


class TrendRequest(BaseModel):
    po_lines: list[POLineIn]
    po_logs: list[POLogIn] = []
    days_back: int = Field(30, ge=0, le=366)
    granularity: Literal["day", "week", "month"] = "week"


class VendorStatsResponse(BaseModel):
    name: str
    vendor_number: int
    total_lines: int
    past_due_lines_count: int
    past_due_percentage: float
    trend: Trend
    recent_negative_changes: int
    negative_change_ratio: float
    performance_score: float

    model_config = {"from_attributes": True}


class AlertResponse(BaseModel):
    id: str
    vendor: str
    message: str
    timestamp: datetime
    severity: Severity
    rule: str
    po_line_id: str | None

    model_config = {"from_attributes": True}


class TrendPointResponse(BaseModel):
    key: str
    label: str
    negative_eta_changes: int
    newly_past_due: int

    model_config = {"from_attributes": True}


class TrendSeriesResponse(BaseModel):
    vendor: str
    granularity: str
    days_back: int
    has_data: bool
    points: list[TrendPointResponse]

    model_config = {"from_attributes": True}


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.post("/vendors", response_model=list[VendorStatsResponse])
async def list_vendor_stats(body: VendorStatsRequest, now: datetime = Depends(get_clock)):
    """Per-vendor stats, filtered and sorted for display."""
    stats = compute_vendor_stats(body.lines(), body.logs(), body.parsed_thresholds(), now)
    view = apply_view(stats, body.filters, body.sort)
    return [VendorStatsResponse.model_validate(s) for s in view]


@router.post("/alerts", response_model=list[AlertResponse])
async def list_alerts(body: AlertsRequest, now: datetime = Depends(get_clock)):
    """Ranked alerts; Critical alerts go to the notification sink when enabled."""
    thresholds = body.parsed_thresholds()
    stats, lines_by_vendor = compute_vendor_stats_with_lines(body.lines(), body.logs(), thresholds, now)
    alerts = await run_alert_pipeline(
        stats,
        thresholds,
        [rule.to_domain() for rule in body.vendor_rules],
        lines_by_vendor,
        now,
        body.notifications.to_domain(),
    )
    return [AlertResponse.model_validate(a) for a in alerts]


@router.post("/vendors/{vendor}/trend", response_model=TrendSeriesResponse)
async def get_vendor_trend(vendor: str, body: TrendRequest, now: datetime = Depends(get_clock)):
    """Negative ETA changes and newly past-due lines per calendar bucket."""
    series = build_trend_series(
        vendor,
        [line.to_domain() for line in body.po_lines],
        [log.to_domain() for log in body.po_logs],
        body.days_back,
        body.granularity,
        now,
    )
    return TrendSeriesResponse.model_validate(series)
