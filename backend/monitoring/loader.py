"""
CSV ingest for PO line and change-log exports.

Quantities are coerced numeric (unparseable → 0), blank cells become
absent values. Date columns are left as text; the monitoring pipeline
parses them and tolerates garbage.
"""

from pathlib import Path

import pandas as pd
import structlog

from monitoring.models import AckStatus, POLine, POLog

logger = structlog.get_logger()

PO_LINE_COLUMNS = ["po_line_id", "vendor", "vendor_number", "esd", "eta"]
PO_LOG_COLUMNS = ["log_id", "po_line_id", "change_date", "changed_field"]
QTY_COLUMNS = [
    "scheduled_ship_qty",
    "shipped_qty",
    "open_qty",
    "unscheduled_qty",
    "transit_time_days",
]


def _missing_columns(df: pd.DataFrame, required: list[str]) -> list[str]:
    return [c for c in required if c not in df.columns]


def _clean(value):
    """NaN/blank → None, numbers stay numbers, everything else str."""
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, str):
        return value.strip() or None
    return value


def normalize_numeric_columns(df: pd.DataFrame, cols: list[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0)
        else:
            df[col] = 0
    return df


def po_lines_from_frame(df: pd.DataFrame) -> list[POLine]:
    missing = _missing_columns(df, PO_LINE_COLUMNS)
    if missing:
        raise ValueError(f"PO line export is missing columns: {', '.join(missing)}")

    df = normalize_numeric_columns(df.copy(), QTY_COLUMNS)
    df["vendor_number"] = pd.to_numeric(df["vendor_number"], errors="coerce").fillna(0).astype(int)

    lines = []
    for row in df.to_dict(orient="records"):
        ack_raw = _clean(row.get("ack_status"))
        ack_status = AckStatus.ACKNOWLEDGED if ack_raw == AckStatus.ACKNOWLEDGED.value else AckStatus.PENDING
        tracking = _clean(row.get("tracking_number"))
        lines.append(
            POLine(
                po_line_id=str(row["po_line_id"]).strip(),
                vendor=str(row["vendor"]).strip(),
                vendor_number=int(row["vendor_number"]),
                esd=_clean(row["esd"]),
                eta=_clean(row["eta"]),
                scheduled_ship_qty=float(row["scheduled_ship_qty"]),
                shipped_qty=float(row["shipped_qty"]),
                open_qty=float(row["open_qty"]),
                unscheduled_qty=float(row["unscheduled_qty"]),
                transit_time_days=float(row["transit_time_days"]),
                tracking_number=str(tracking) if tracking is not None else None,
                creation_date=_clean(row.get("creation_date")),
                ack_status=ack_status,
                ack_date=_clean(row.get("ack_date")),
            )
        )
    return lines


def po_logs_from_frame(df: pd.DataFrame) -> list[POLog]:
    missing = _missing_columns(df, PO_LOG_COLUMNS)
    if missing:
        raise ValueError(f"PO change log export is missing columns: {', '.join(missing)}")

    logs = []
    for row in df.to_dict(orient="records"):
        logs.append(
            POLog(
                log_id=str(row["log_id"]).strip(),
                po_line_id=str(row["po_line_id"]).strip(),
                change_date=_clean(row["change_date"]),
                changed_field=str(row["changed_field"]).strip(),
                old_value=_clean(row.get("old_value")),
                new_value=_clean(row.get("new_value")),
            )
        )
    return logs


def load_po_lines(path: str | Path) -> list[POLine]:
    df = pd.read_csv(path, dtype={"po_line_id": str, "tracking_number": str})
    lines = po_lines_from_frame(df)
    logger.info("loader.po_lines_loaded", path=str(path), rows=len(lines))
    return lines


def load_po_logs(path: str | Path) -> list[POLog]:
    # Old/new values mix dates and quantities; keep them as text.
    df = pd.read_csv(path, dtype={"log_id": str, "po_line_id": str, "old_value": str, "new_value": str})
    logs = po_logs_from_frame(df)
    logger.info("loader.po_logs_loaded", path=str(path), rows=len(logs))
    return logs
