"""
Vendor Aggregator — group PO lines by vendor and count recent push-outs.

Per vendor:
  - total line count and vendor number
  - past-due lines (ETA strictly before today 00:00)
  - distinct PO lines with a negative ETA change inside the trend window

A negative change is an ``eta`` log entry whose old and new values both
parse as dates with new > old. Several push-outs on the same line inside
the window count once.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from monitoring.models import POLine, POLog
from monitoring.temporal import is_later, is_past_due, lookback_cutoff, parse_aligned

logger = structlog.get_logger()

ETA_FIELD = "eta"


@dataclass
class VendorAggregate:
    """Per-vendor accumulator, before trend and score are attached."""

    name: str
    vendor_number: int
    lines: list[POLine] = field(default_factory=list)
    past_due_lines: list[POLine] = field(default_factory=list)
    negative_change_line_ids: set[str] = field(default_factory=set)

    @property
    def total_lines(self) -> int:
        return len(self.lines)

    @property
    def past_due_lines_count(self) -> int:
        return len(self.past_due_lines)

    @property
    def past_due_percentage(self) -> float:
        if self.total_lines == 0:
            return 0.0
        return self.past_due_lines_count / self.total_lines * 100

    @property
    def recent_negative_changes(self) -> int:
        return len(self.negative_change_line_ids)

    @property
    def negative_change_ratio(self) -> float:
        if self.total_lines == 0:
            return 0.0
        return self.recent_negative_changes / self.total_lines * 100


def is_negative_eta_change(log: POLog) -> bool:
    return log.changed_field == ETA_FIELD and is_later(log.new_value, log.old_value)


def group_lines_by_vendor(po_lines: Iterable[POLine], now: datetime) -> dict[str, VendorAggregate]:
    """Group lines by vendor name, preserving first-seen vendor order."""
    vendors: dict[str, VendorAggregate] = {}
    for line in po_lines:
        aggregate = vendors.get(line.vendor)
        if aggregate is None:
            aggregate = VendorAggregate(name=line.vendor, vendor_number=line.vendor_number)
            vendors[line.vendor] = aggregate
        aggregate.lines.append(line)
        if is_past_due(line.eta, now):
            aggregate.past_due_lines.append(line)
    return vendors


def aggregate_vendors(
    po_lines: Iterable[POLine],
    po_logs: Iterable[POLog],
    worsening_days: float,
    now: datetime,
) -> dict[str, VendorAggregate]:
    """
    Build one aggregate per vendor from a PO line / change log snapshot.

    Logs dated at or before ``now - worsening_days`` are outside the window.
    Logs with an unparseable date or an unknown PO line are skipped.
    """
    vendors = group_lines_by_vendor(po_lines, now)
    vendor_by_line_id = {
        line.po_line_id: aggregate for aggregate in vendors.values() for line in aggregate.lines
    }

    cutoff = lookback_cutoff(now, worsening_days)
    skipped = 0
    for log in po_logs:
        aggregate = vendor_by_line_id.get(log.po_line_id)
        if aggregate is None:
            skipped += 1
            continue
        changed_at = parse_aligned(log.change_date, now)
        if changed_at is None:
            skipped += 1
            continue
        if changed_at > cutoff and is_negative_eta_change(log):
            aggregate.negative_change_line_ids.add(log.po_line_id)

    if skipped:
        logger.debug("monitoring.logs_skipped", skipped=skipped)
    return vendors
