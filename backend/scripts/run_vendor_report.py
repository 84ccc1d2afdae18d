#!/usr/bin/env python3
"""Run one monitoring pass over CSV exports and print vendor stats + alerts.

Examples:
  python backend/scripts/run_vendor_report.py --lines po_lines.csv --logs po_logs.csv
  python backend/scripts/run_vendor_report.py --lines po_lines.csv --percentage 15 --count 3 --pretty
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict
from datetime import datetime
from typing import Any

# Add backend/ to path when run as a script.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from monitoring.filters import SortSpec, sort_stats
from monitoring.loader import load_po_lines, load_po_logs
from monitoring.models import Thresholds, VendorRule
from monitoring.pipeline import run_monitoring


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--lines", required=True, help="PO line CSV export")
    parser.add_argument("--logs", help="PO change log CSV export")
    parser.add_argument("--rules", help="JSON file with a list of vendor rules")
    parser.add_argument("--percentage", type=float, help="Past-due percentage threshold")
    parser.add_argument("--count", type=float, help="Past-due line count threshold")
    parser.add_argument("--min-po-lines", type=float, help="Hide vendors with fewer lines")
    parser.add_argument("--worsening-days", type=float, help="Trend lookback window in days")
    parser.add_argument("--worsening-percentage", type=float, help="Negative change ratio threshold")
    parser.add_argument("--sort", default="past_due_percentage", help="Vendor stats sort key")
    parser.add_argument("--ascending", action="store_true", help="Sort ascending")
    parser.add_argument("--now", help="Reference time (ISO 8601); defaults to the current time")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    return parser.parse_args(argv)


def _thresholds_from_args(args: argparse.Namespace) -> Thresholds:
    raw = {
        "percentage": args.percentage,
        "count": args.count,
        "min_po_lines": args.min_po_lines,
        "worsening_days": args.worsening_days,
        "worsening_percentage": args.worsening_percentage,
    }
    return Thresholds.from_raw({k: v for k, v in raw.items() if v is not None})


def _load_rules(path: str | None) -> list[VendorRule]:
    if not path:
        return []
    with open(path, encoding="utf-8") as fh:
        return [VendorRule.from_raw(item) for item in json.load(fh)]


def build_report(args: argparse.Namespace) -> dict[str, Any]:
    now = datetime.fromisoformat(args.now) if args.now else datetime.now()
    po_lines = load_po_lines(args.lines)
    po_logs = load_po_logs(args.logs) if args.logs else []

    result = run_monitoring(po_lines, po_logs, _thresholds_from_args(args), _load_rules(args.rules), now)
    sort = SortSpec(key=args.sort, direction="asc" if args.ascending else "desc")
    return {
        "generated_at": now.isoformat(),
        "vendors": [asdict(s) for s in sort_stats(result.stats, sort)],
        "alerts": [asdict(a) for a in result.alerts],
    }


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    report = build_report(args)
    print(json.dumps(report, indent=2 if args.pretty else None, default=str))
    return 1 if any(a["severity"] == "Critical" for a in report["alerts"]) else 0


if __name__ == "__main__":
    raise SystemExit(main())
