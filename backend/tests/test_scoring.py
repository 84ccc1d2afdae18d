"""
Tests for the vendor performance score.
"""

import pytest

from conftest import make_line
from monitoring.models import AckStatus
from monitoring.scoring import on_time_ack_fraction, performance_score, score_vendor


def _acked(po_line_id, ack_date, creation_date="2024-06-01T08:00:00"):
    return make_line(
        po_line_id,
        creation_date=creation_date,
        ack_status=AckStatus.ACKNOWLEDGED,
        ack_date=ack_date,
    )


class TestAckFraction:
    def test_no_acknowledged_lines_is_full_credit(self):
        assert on_time_ack_fraction([make_line("P-1"), make_line("P-2")]) == 1.0
        assert on_time_ack_fraction([]) == 1.0

    def test_exactly_24_hours_is_on_time(self):
        assert on_time_ack_fraction([_acked("P-1", "2024-06-02T08:00:00")]) == 1.0

    def test_late_ack(self):
        lines = [_acked("P-1", "2024-06-01T20:00:00"), _acked("P-2", "2024-06-03T08:00:00")]
        assert on_time_ack_fraction(lines) == 0.5

    def test_acknowledged_without_date_is_not_on_time(self):
        assert on_time_ack_fraction([_acked("P-1", None)]) == 0.0

    def test_pending_lines_not_in_denominator(self):
        lines = [_acked("P-1", "2024-06-01T09:00:00"), make_line("P-2"), make_line("P-3")]
        assert on_time_ack_fraction(lines) == 1.0


class TestPerformanceScore:
    def test_perfect_vendor(self):
        assert performance_score(0, 0, 1.0) == 100.0

    def test_zero_ack_component_with_no_acks(self):
        assert score_vendor([make_line("P-1")], 0, 0) == pytest.approx(100.0)

    def test_weighted_components(self):
        # 50 * 0.6 + 30 * 0.9 + 20 * 0.5
        assert performance_score(40, 10, 0.5) == pytest.approx(67.0)

    def test_ratios_above_100_clamp(self):
        assert performance_score(100, 250, 0.0) == 0.0

    @pytest.mark.parametrize("pct", [0, 10, 25, 50, 75, 100])
    def test_bounded(self, pct):
        score = performance_score(pct, pct, 0.5)
        assert 0 <= score <= 100

    def test_monotonic_in_past_due(self):
        scores = [performance_score(p, 10, 1.0) for p in (0, 20, 40, 60, 80, 100)]
        assert scores == sorted(scores, reverse=True)
