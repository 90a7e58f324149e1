from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..core.constants import UNKNOWN_GROUP_LABEL
from .predicate import Equals, Predicate


@dataclass(frozen=True)
class GroupCount:
    key: str
    count: int


@dataclass(frozen=True)
class EmployeeStats:
    total_count: int
    active_count: int
    inactive_count: int
    department_counts: Tuple[GroupCount, ...]
    class_counts: Tuple[GroupCount, ...]
    average_age: float


class AggregationEngine:
    """Grouped counts and averages, independent of pagination."""

    def __init__(self, store):
        self._store = store

    def stats(self, predicate: Optional[Predicate] = None) -> EmployeeStats:
        predicate = predicate or Predicate.universal()
        return EmployeeStats(
            total_count=self._store.count(predicate),
            active_count=self._store.count(predicate.and_(Equals("isActive", True))),
            inactive_count=self._store.count(predicate.and_(Equals("isActive", False))),
            department_counts=self.group_counts("department", predicate),
            class_counts=self.group_counts("class", predicate),
            average_age=self.average("age", predicate),
        )

    def group_counts(self, field: str, predicate: Optional[Predicate] = None) -> Tuple[GroupCount, ...]:
        merged: Dict[str, int] = {}
        for key, count in self._store.aggregate_group_by(field, predicate or Predicate.universal()):
            label = UNKNOWN_GROUP_LABEL if key is None or key == "" else str(key)
            merged[label] = merged.get(label, 0) + int(count)
        ordered = sorted(merged.items(), key=lambda kv: (-kv[1], kv[0]))
        return tuple(GroupCount(key=k, count=c) for k, c in ordered)

    def average(self, field: str, predicate: Optional[Predicate] = None) -> float:
        value = self._store.aggregate_average(field, predicate or Predicate.universal())
        # An empty match set averages to 0, not None.
        return float(value) if value is not None else 0.0
