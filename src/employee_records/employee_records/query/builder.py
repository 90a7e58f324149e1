from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_SORT_FIELD
from ..core.enums import SortOrder
from .predicate import AnyOf, Constraint, Contains, Equals, Predicate, Range
from .spec import QuerySpec, SortKey

SEARCH_FIELDS = ("name", "employeeId", "department", "class")


@dataclass(frozen=True)
class EmployeeFilter:
    name: Optional[str] = None
    class_name: Optional[str] = None
    department: Optional[str] = None
    is_active: Optional[bool] = None
    age_min: Optional[int] = None
    age_max: Optional[int] = None


@dataclass(frozen=True)
class EmployeeSort:
    field: str
    order: SortOrder = SortOrder.ASC


DEFAULT_SORT = EmployeeSort(DEFAULT_SORT_FIELD, SortOrder.DESC)


class QuerySpecBuilder:
    """Turn filter/sort requests into a QuerySpec.

    Sort field names are not checked here; the store rejects names it does not know.
    """

    def build(self, filter_request: Optional[EmployeeFilter] = None, sort_request: Optional[EmployeeSort] = None) -> QuerySpec:
        return QuerySpec(
            predicate=self.predicate_for(filter_request),
            sort=self._sort_key(sort_request),
        )

    def build_search(self, text: str, sort_request: Optional[EmployeeSort] = None) -> QuerySpec:
        text = (text or "").strip()
        predicate = Predicate.universal()
        if text:
            predicate = Predicate.of(AnyOf(tuple(Contains(f, text) for f in SEARCH_FIELDS)))
        return QuerySpec(predicate=predicate, sort=self._sort_key(sort_request))

    @staticmethod
    def predicate_for(filter_request: Optional[EmployeeFilter]) -> Predicate:
        if filter_request is None:
            return Predicate.universal()

        f = filter_request
        constraints: list[Constraint] = []
        if f.name:
            constraints.append(Contains("name", f.name))
        if f.class_name:
            constraints.append(Equals("class", f.class_name))
        if f.department:
            constraints.append(Equals("department", f.department))
        if f.is_active is not None:
            constraints.append(Equals("isActive", bool(f.is_active)))
        if f.age_min is not None or f.age_max is not None:
            constraints.append(Range("age", f.age_min, f.age_max))
        return Predicate(tuple(constraints))

    @staticmethod
    def _sort_key(sort_request: Optional[EmployeeSort]) -> SortKey:
        s = sort_request or DEFAULT_SORT
        return SortKey(s.field, SortOrder(s.order))
