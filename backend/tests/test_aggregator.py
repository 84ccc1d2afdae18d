"""
Tests for the vendor aggregator — grouping, past-due counts, push-out window.
"""

from datetime import datetime, timezone

from conftest import NOW, PAST_ETA, make_line, make_log, vendor_lines
from monitoring.aggregator import aggregate_vendors, group_lines_by_vendor, is_negative_eta_change
from monitoring.temporal import lookback_cutoff


class TestGrouping:
    def test_groups_by_vendor_in_first_seen_order(self):
        lines = [
            make_line("A-1", vendor="Acme"),
            make_line("S-1", vendor="Stellar"),
            make_line("A-2", vendor="Acme", eta=PAST_ETA),
        ]
        vendors = group_lines_by_vendor(lines, NOW)
        assert list(vendors) == ["Acme", "Stellar"]
        assert vendors["Acme"].total_lines == 2
        assert vendors["Acme"].past_due_lines_count == 1
        assert vendors["Acme"].past_due_percentage == 50.0

    def test_vendor_number_from_first_line(self):
        vendors = group_lines_by_vendor([make_line("A-1", vendor="Acme", vendor_number=77)], NOW)
        assert vendors["Acme"].vendor_number == 77

    def test_empty_snapshot(self):
        assert aggregate_vendors([], [], 7, NOW) == {}


class TestNegativeChanges:
    def test_distinct_lines_counted_once(self):
        lines = vendor_lines("Stellar", total=4, past_due=0)
        logs = [
            make_log("L1", "Stellar-0"),
            make_log("L2", "Stellar-0", old_value="2024-06-27", new_value="2024-07-04"),
            make_log("L3", "Stellar-1"),
        ]
        aggregate = aggregate_vendors(lines, logs, 7, NOW)["Stellar"]
        assert aggregate.recent_negative_changes == 2
        assert aggregate.negative_change_ratio == 50.0

    def test_non_eta_fields_ignored(self):
        lines = vendor_lines("Stellar", total=2, past_due=0)
        logs = [make_log("L1", "Stellar-0", changed_field="open_qty", old_value="10", new_value="20")]
        assert aggregate_vendors(lines, logs, 7, NOW)["Stellar"].recent_negative_changes == 0

    def test_unknown_line_and_bad_date_skipped(self):
        lines = vendor_lines("Stellar", total=2, past_due=0)
        logs = [
            make_log("L1", "missing-line"),
            make_log("L2", "Stellar-0", change_date="garbage"),
        ]
        assert aggregate_vendors(lines, logs, 7, NOW)["Stellar"].recent_negative_changes == 0

    def test_window_boundary_is_exclusive(self):
        lines = vendor_lines("Stellar", total=2, past_due=0)
        at_cutoff = make_log("L1", "Stellar-0", change_date="2024-06-08T12:00:00")
        just_inside = make_log("L2", "Stellar-1", change_date="2024-06-08T12:00:01")
        aggregate = aggregate_vendors(lines, [at_cutoff, just_inside], 7, NOW)["Stellar"]
        assert aggregate.negative_change_line_ids == {"Stellar-1"}

    def test_zero_day_window_counts_nothing_past(self):
        lines = vendor_lines("Stellar", total=2, past_due=0)
        logs = [make_log("L1", "Stellar-0")]
        assert aggregate_vendors(lines, logs, 0, NOW)["Stellar"].recent_negative_changes == 0

    def test_window_past_year_one_covers_all_history(self):
        lines = vendor_lines("Stellar", total=2, past_due=0)
        logs = [make_log("L1", "Stellar-0", change_date="1999-01-01T00:00:00")]
        aggregate = aggregate_vendors(lines, logs, 1_000_000, NOW)["Stellar"]
        assert aggregate.negative_change_line_ids == {"Stellar-0"}

    def test_lookback_cutoff_clamps(self):
        assert lookback_cutoff(NOW, 1_000_000) == datetime.min
        aware = NOW.replace(tzinfo=timezone.utc)
        assert lookback_cutoff(aware, 1e12) == datetime.min.replace(tzinfo=timezone.utc)
        assert lookback_cutoff(NOW, 7) == datetime(2024, 6, 8, 12, 0, 0)

    def test_is_negative_eta_change(self):
        assert is_negative_eta_change(make_log("L1", "X"))
        assert not is_negative_eta_change(make_log("L1", "X", changed_field="esd"))
        assert not is_negative_eta_change(make_log("L1", "X", old_value=None))
