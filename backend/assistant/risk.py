"""
Risk assessment report — wraps the risk prediction call with vendor
enrichment, a High-risk per-vendor tally, and justification categories.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from assistant.client import LLMClient
from assistant.schemas import EnrichedRiskAssessment, JustificationCategory, Language, RiskAssessment
from assistant.service import categorize_justifications, get_risk_prediction
from monitoring.models import POLine

RiskSortKey = Literal["vendor", "po_line_id", "risk_level"]
SortDirection = Literal["asc", "desc"]

RISK_ORDER = {"High": 3, "Medium": 2, "Low": 1}
UNKNOWN_VENDOR = "Unknown"


@dataclass
class RiskReport:
    results: list[EnrichedRiskAssessment] = field(default_factory=list)
    vendor_summary: list[tuple[str, int]] = field(default_factory=list)
    justification_summary: list[JustificationCategory] = field(default_factory=list)


def select_vendor_lines(po_lines: Sequence[POLine], vendors: Sequence[str]) -> list[POLine]:
    selected = set(vendors)
    return [line for line in po_lines if line.vendor in selected]


def simulation_lines(po_lines: Sequence[POLine], vendors: Sequence[str]) -> list[POLine]:
    """Selected vendors' lines, or every line when nothing is selected."""
    if not vendors:
        return list(po_lines)
    return select_vendor_lines(po_lines, vendors)


def enrich_risk_results(results: Sequence[RiskAssessment], po_lines: Sequence[POLine]) -> list[EnrichedRiskAssessment]:
    vendor_by_line = {line.po_line_id: line.vendor for line in po_lines}
    return [
        EnrichedRiskAssessment(**r.model_dump(), vendor=vendor_by_line.get(r.po_line_id, UNKNOWN_VENDOR))
        for r in results
    ]


def high_risk_vendor_summary(results: Sequence[EnrichedRiskAssessment]) -> list[tuple[str, int]]:
    counts: dict[str, int] = {}
    for r in results:
        if r.risk_level == "High":
            counts[r.vendor] = counts.get(r.vendor, 0) + 1
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def sort_risk_results(
    results: Sequence[EnrichedRiskAssessment],
    key: RiskSortKey = "risk_level",
    direction: SortDirection = "desc",
) -> list[EnrichedRiskAssessment]:
    def sort_value(r: EnrichedRiskAssessment):
        if key == "risk_level":
            return RISK_ORDER.get(r.risk_level, 0)
        return getattr(r, key)

    return sorted(results, key=sort_value, reverse=direction == "desc")


def toggle_risk_sort(
    current_key: RiskSortKey,
    current_direction: SortDirection,
    key: RiskSortKey,
) -> tuple[RiskSortKey, SortDirection]:
    if key == current_key:
        return key, "asc" if current_direction == "desc" else "desc"
    return key, "desc"


async def run_risk_assessment(
    client: LLMClient,
    po_lines: Sequence[POLine],
    vendors: Sequence[str],
    language: Language,
    now: datetime,
) -> RiskReport:
    """Assess the selected vendors' lines. No vendors selected → empty report."""
    lines = select_vendor_lines(po_lines, vendors)
    if not lines:
        return RiskReport()

    predictions = await get_risk_prediction(client, lines, language, now)
    if not predictions:
        return RiskReport()

    enriched = enrich_risk_results(predictions, po_lines)
    report = RiskReport(
        results=sort_risk_results(enriched),
        vendor_summary=high_risk_vendor_summary(enriched),
    )

    high_risk = [r.justification for r in enriched if r.risk_level == "High"]
    if high_risk:
        categories = await categorize_justifications(client, high_risk, language)
        report.justification_summary = sorted(categories, key=lambda c: c.count, reverse=True)
    return report
