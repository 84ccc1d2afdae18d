"""
Filter / Sort facade over the vendor stats collection.

Filter conditions are a tagged union on ``kind`` so each field type only
accepts its own operators:
  - string: name                   contains | not_contains | is | is_not
  - number: counts, %, score       >= | <=
  - enum:   trend                  is | is_not

Conditions AND together. An incomplete condition (field or operator
unset, or empty value) is skipped rather than rejected.
"""

import unicodedata
from collections.abc import Iterable, Sequence
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

from monitoring.models import Trend, VendorStats

StringField = Literal["name"]
NumberField = Literal[
    "vendor_number",
    "total_lines",
    "past_due_lines_count",
    "past_due_percentage",
    "recent_negative_changes",
    "negative_change_ratio",
    "performance_score",
]
SortKey = Literal[
    "name",
    "trend",
    "vendor_number",
    "total_lines",
    "past_due_lines_count",
    "past_due_percentage",
    "recent_negative_changes",
    "negative_change_ratio",
    "performance_score",
]
SortDirection = Literal["asc", "desc"]

STRING_SORT_KEYS = {"name", "trend"}


# ── Conditions ───────────────────────────────────────────────────────────


class StringCondition(BaseModel):
    kind: Literal["string"] = "string"
    field: StringField | None = None
    operator: Literal["contains", "not_contains", "is", "is_not"] | None = None
    value: str = ""

    def is_complete(self) -> bool:
        return self.field is not None and self.operator is not None and self.value != ""

    def matches(self, stats: VendorStats) -> bool:
        actual = str(getattr(stats, self.field)).casefold()
        expected = self.value.casefold()
        if self.operator == "contains":
            return expected in actual
        if self.operator == "not_contains":
            return expected not in actual
        if self.operator == "is":
            return actual == expected
        return actual != expected


class NumberCondition(BaseModel):
    kind: Literal["number"] = "number"
    field: NumberField | None = None
    operator: Literal[">=", "<="] | None = None
    value: float | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _blank_is_empty(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def is_complete(self) -> bool:
        return self.field is not None and self.operator is not None and self.value is not None

    def matches(self, stats: VendorStats) -> bool:
        actual = float(getattr(stats, self.field))
        if self.operator == ">=":
            return actual >= self.value
        return actual <= self.value


class TrendCondition(BaseModel):
    kind: Literal["enum"] = "enum"
    field: Literal["trend"] | None = "trend"
    operator: Literal["is", "is_not"] | None = None
    value: Trend | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _blank_is_empty(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def is_complete(self) -> bool:
        return self.field is not None and self.operator is not None and self.value is not None

    def matches(self, stats: VendorStats) -> bool:
        if self.operator == "is":
            return stats.trend == self.value
        return stats.trend != self.value


FilterCondition = Annotated[
    Union[StringCondition, NumberCondition, TrendCondition],
    Field(discriminator="kind"),
]


def apply_filters(stats: Iterable[VendorStats], conditions: Sequence[FilterCondition]) -> list[VendorStats]:
    active = [c for c in conditions if c.is_complete()]
    return [s for s in stats if all(c.matches(s) for c in active)]


# ── Sorting ──────────────────────────────────────────────────────────────


class SortSpec(BaseModel):
    key: SortKey = "past_due_percentage"
    direction: SortDirection = "desc"


def toggle_sort(current: SortSpec, key: SortKey) -> SortSpec:
    """Selecting the active key flips direction; a new key starts descending."""
    if key == current.key:
        return SortSpec(key=key, direction="asc" if current.direction == "desc" else "desc")
    return SortSpec(key=key, direction="desc")


def collation_key(text: str) -> tuple[str, str]:
    """Case- and accent-insensitive ordering key; accents only break ties."""
    folded = text.casefold()
    base = "".join(c for c in unicodedata.normalize("NFKD", folded) if not unicodedata.combining(c))
    return base, folded


def _sort_value(stats: VendorStats, key: str):
    value = getattr(stats, key)
    if key in STRING_SORT_KEYS:
        text = value.value if isinstance(value, Trend) else str(value)
        return collation_key(text)
    return float(value)


def sort_stats(stats: Iterable[VendorStats], sort: SortSpec) -> list[VendorStats]:
    return sorted(stats, key=lambda s: _sort_value(s, sort.key), reverse=sort.direction == "desc")


def apply_view(
    stats: Iterable[VendorStats],
    conditions: Sequence[FilterCondition] = (),
    sort: SortSpec | None = None,
) -> list[VendorStats]:
    """Filter then sort, as the dashboard table presents vendors."""
    return sort_stats(apply_filters(stats, conditions), sort or SortSpec())
