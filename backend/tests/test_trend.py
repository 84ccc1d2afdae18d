"""
Tests for trend classification and the per-vendor trend series.
"""

from conftest import NOW, make_line, make_log
from monitoring.models import Trend
from monitoring.trend import build_trend_series, classify_trend


class TestClassifyTrend:
    def test_ratio_above_threshold_is_worsening(self):
        assert classify_trend(10.0, 5.0) == Trend.WORSENING

    def test_ratio_at_threshold_is_stable(self):
        assert classify_trend(5.0, 5.0) == Trend.STABLE

    def test_zero_threshold_any_push_out_worsens(self):
        assert classify_trend(0.1, 0) == Trend.WORSENING
        assert classify_trend(0.0, 0) == Trend.STABLE

    def test_improving_never_assigned(self):
        outcomes = {classify_trend(r, t) for r in (0, 5, 50, 100) for t in (0, 5, 50, 100)}
        assert Trend.IMPROVING not in outcomes


class TestTrendSeries:
    def _snapshot(self):
        lines = [
            make_line("S-1", eta="2024-06-10"),
            make_line("S-2", eta="2024-06-01"),
            make_line("S-3"),
            make_line("A-1", vendor="Acme", eta="2024-06-11"),
        ]
        logs = [
            make_log("L1", "S-1", change_date="2024-06-13T09:00:00"),
            make_log("L2", "S-3", change_date="2024-06-08T10:00:00"),
            make_log("L3", "S-3", change_date="2024-06-13T10:00:00", changed_field="open_qty"),
            make_log("L4", "A-1", change_date="2024-06-13T10:00:00"),
        ]
        return lines, logs

    def test_weekly_buckets_zero_filled(self):
        lines, logs = self._snapshot()
        series = build_trend_series("Stellar", lines, logs, 7, "week", NOW)

        assert [p.key for p in series.points] == ["2024-W23", "2024-W24"]
        w23, w24 = series.points
        assert (w23.negative_eta_changes, w23.newly_past_due) == (1, 0)
        assert (w24.negative_eta_changes, w24.newly_past_due) == (1, 1)
        assert w24.label == "2024 W24"
        assert series.has_data

    def test_daily_buckets_cover_window(self):
        lines, logs = self._snapshot()
        series = build_trend_series("Stellar", lines, logs, 7, "day", NOW)
        keys = [p.key for p in series.points]
        assert keys[0] == "2024-06-08"
        assert keys[-1] == "2024-06-15"
        assert len(keys) == 8

    def test_monthly_labels(self):
        lines, logs = self._snapshot()
        series = build_trend_series("Stellar", lines, logs, 45, "month", NOW)
        assert [p.label for p in series.points] == ["May 2024", "Jun 2024"]
        may = series.points[0]
        assert may.newly_past_due == 0

    def test_other_vendor_data_excluded(self):
        lines, logs = self._snapshot()
        series = build_trend_series("Acme", lines, logs, 7, "week", NOW)
        assert sum(p.negative_eta_changes for p in series.points) == 1
        assert sum(p.newly_past_due for p in series.points) == 1

    def test_unknown_vendor_has_no_data(self):
        lines, logs = self._snapshot()
        series = build_trend_series("Ghost", lines, logs, 30, "week", NOW)
        assert series.points
        assert not series.has_data
