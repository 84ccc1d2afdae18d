"""
Tests for the vendor stats filter / sort facade.
"""

import pytest
from pydantic import TypeAdapter, ValidationError

from monitoring.filters import (
    FilterCondition,
    NumberCondition,
    SortSpec,
    StringCondition,
    TrendCondition,
    apply_filters,
    apply_view,
    collation_key,
    sort_stats,
    toggle_sort,
)
from monitoring.models import Trend, VendorStats


def _stats(name, pct, trend=Trend.STABLE, score=90.0, total=10) -> VendorStats:
    return VendorStats(
        name=name,
        vendor_number=len(name),
        total_lines=total,
        past_due_lines_count=int(total * pct / 100),
        past_due_percentage=pct,
        trend=trend,
        recent_negative_changes=0,
        negative_change_ratio=0.0,
        performance_score=score,
    )


@pytest.fixture
def stats():
    return [
        _stats("Stellar Supply", 41.7, Trend.WORSENING, score=55.0),
        _stats("acme corp", 10.0, score=92.0),
        _stats("Blue Harbor", 25.0, score=74.0, total=40),
    ]


_conditions = TypeAdapter(list[FilterCondition])


class TestConditions:
    def test_string_contains_case_insensitive(self, stats):
        cond = StringCondition(field="name", operator="contains", value="SUPPLY")
        assert [s.name for s in apply_filters(stats, [cond])] == ["Stellar Supply"]

    def test_string_is_not(self, stats):
        cond = StringCondition(field="name", operator="is_not", value="ACME CORP")
        assert "acme corp" not in [s.name for s in apply_filters(stats, [cond])]

    def test_number_gte(self, stats):
        cond = NumberCondition(field="past_due_percentage", operator=">=", value=25)
        assert {s.name for s in apply_filters(stats, [cond])} == {"Stellar Supply", "Blue Harbor"}

    def test_trend_is(self, stats):
        cond = TrendCondition(operator="is", value="worsening")
        assert [s.name for s in apply_filters(stats, [cond])] == ["Stellar Supply"]

    def test_conditions_and_together(self, stats):
        conds = [
            NumberCondition(field="performance_score", operator="<=", value=80),
            NumberCondition(field="total_lines", operator=">=", value=20),
        ]
        assert [s.name for s in apply_filters(stats, conds)] == ["Blue Harbor"]

    def test_incomplete_conditions_skipped(self, stats):
        conds = [
            StringCondition(field="name", operator="contains", value=""),
            NumberCondition(field="past_due_percentage", operator=None, value=5),
            NumberCondition(field="past_due_percentage", operator=">=", value=""),
            TrendCondition(operator="is", value=None),
        ]
        assert apply_filters(stats, conds) == stats

    def test_filtering_is_idempotent(self, stats):
        conds = [NumberCondition(field="past_due_percentage", operator=">=", value=20)]
        once = apply_filters(stats, conds)
        assert apply_filters(once, conds) == once


class TestConditionParsing:
    def test_discriminated_by_kind(self):
        parsed = _conditions.validate_python(
            [
                {"kind": "string", "field": "name", "operator": "contains", "value": "acme"},
                {"kind": "number", "field": "total_lines", "operator": "<=", "value": "12"},
                {"kind": "enum", "operator": "is_not", "value": "stable"},
            ]
        )
        assert [type(c) for c in parsed] == [StringCondition, NumberCondition, TrendCondition]
        assert parsed[1].value == 12.0

    def test_operator_must_fit_field_type(self):
        with pytest.raises(ValidationError):
            _conditions.validate_python([{"kind": "number", "field": "total_lines", "operator": "contains", "value": 1}])

    def test_string_field_rejects_numeric_field(self):
        with pytest.raises(ValidationError):
            _conditions.validate_python([{"kind": "string", "field": "total_lines", "operator": "is", "value": "1"}])


class TestSorting:
    def test_default_is_past_due_descending(self, stats):
        assert [s.name for s in apply_view(stats)] == ["Stellar Supply", "Blue Harbor", "acme corp"]

    def test_name_sort_case_insensitive(self, stats):
        ordered = sort_stats(stats, SortSpec(key="name", direction="asc"))
        assert [s.name for s in ordered] == ["acme corp", "Blue Harbor", "Stellar Supply"]

    def test_accented_names_sort_with_base_letter(self):
        vendors = [_stats("Zenith", 1.0), _stats("Élan", 2.0), _stats("acme", 3.0), _stats("Elan", 4.0)]
        ordered = sort_stats(vendors, SortSpec(key="name", direction="asc"))
        assert [s.name for s in ordered] == ["acme", "Elan", "Élan", "Zenith"]

    def test_collation_key(self):
        assert collation_key("Élan")[0] == "elan"
        assert collation_key("Straße")[0] == "strasse"

    def test_numeric_ascending(self, stats):
        ordered = sort_stats(stats, SortSpec(key="performance_score", direction="asc"))
        assert [s.performance_score for s in ordered] == [55.0, 74.0, 92.0]

    def test_toggle_same_key_flips(self):
        current = SortSpec(key="name", direction="desc")
        assert toggle_sort(current, "name") == SortSpec(key="name", direction="asc")
        assert toggle_sort(toggle_sort(current, "name"), "name") == current

    def test_toggle_new_key_starts_descending(self):
        current = SortSpec(key="name", direction="asc")
        assert toggle_sort(current, "total_lines") == SortSpec(key="total_lines", direction="desc")

    def test_view_does_not_mutate_input(self, stats):
        before = list(stats)
        apply_view(stats, [NumberCondition(field="total_lines", operator=">=", value=20)], SortSpec(key="name"))
        assert stats == before
