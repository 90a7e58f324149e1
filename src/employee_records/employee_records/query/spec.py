from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Sequence, Tuple

from ..core.constants import TIE_BREAK_FIELD
from ..core.enums import SortOrder
from .predicate import Filterable, Predicate


@dataclass(frozen=True)
class SortKey:
    field: str
    order: SortOrder = SortOrder.ASC

    def flipped(self) -> "SortKey":
        return SortKey(self.field, self.order.flipped())


@dataclass(frozen=True)
class PositionKey:
    """Values of one record for every key of a total order, in key order."""

    values: Tuple[Any, ...]


def _compare_values(a: Any, b: Any) -> int:
    # Missing values sort lowest.
    if a == b:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    return -1 if a < b else 1


def compare_positions(order: Sequence[SortKey], a: PositionKey, b: PositionKey) -> int:
    """Three-way compare two positions under ``order`` (-1, 0 or 1)."""
    for key, left, right in zip(order, a.values, b.values):
        result = _compare_values(left, right)
        if result:
            return -result if key.order is SortOrder.DESC else result
    return 0


def position_of(order: Sequence[SortKey], record: Filterable) -> PositionKey:
    return PositionKey(tuple(record.field_value(key.field) for key in order))


@dataclass(frozen=True)
class QuerySpec:
    """Normalized query: predicate + declared sort + unique tie-break.

    The tie-break makes the order total even when the declared sort field has
    duplicate values, which is what keeps cursor pages stable.
    """

    predicate: Predicate
    sort: SortKey
    tie_break: SortKey = field(default_factory=lambda: SortKey(TIE_BREAK_FIELD, SortOrder.ASC))

    @property
    def order(self) -> Tuple[SortKey, ...]:
        return (self.sort, self.tie_break)

    def reversed(self) -> "QuerySpec":
        return replace(self, sort=self.sort.flipped(), tie_break=self.tie_break.flipped())

    def with_predicate(self, predicate: Predicate) -> "QuerySpec":
        return replace(self, predicate=predicate)

    def position_of(self, record: Filterable) -> PositionKey:
        return position_of(self.order, record)

    def compare(self, a: PositionKey, b: PositionKey) -> int:
        return compare_positions(self.order, a, b)
