from __future__ import annotations

import threading
from dataclasses import replace
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..common.datetime_utils import now_utc
from ..core.exceptions import DuplicateKeyError, NotFound, VersionConflict
from ..query.predicate import Predicate
from ..query.spec import PositionKey, SortKey, compare_positions, position_of
from .model import Employee
from .repository import EmployeeRepository

UNIQUE_FIELDS = ("employeeId",)


class InMemoryEmployeeRepository(EmployeeRepository):
    """Dict-backed store used by tests and the ``memory`` backend.

    Ids come from a counter so they are unique and increasing. A single lock
    serializes access; reads return frozen snapshots.
    """

    def __init__(self, *, clock: Callable[[], Any] = now_utc):
        self._rows: Dict[int, Employee] = {}
        self._next_id = 1
        self._clock = clock
        self._lock = threading.RLock()

    def _matching(self, predicate: Predicate) -> List[Employee]:
        return [e for e in self._rows.values() if predicate.matches(e)]

    def find(
        self,
        predicate: Predicate,
        order: Sequence[SortKey],
        *,
        limit: Optional[int],
        after: Optional[PositionKey] = None,
    ) -> Sequence[Employee]:
        order = tuple(order)
        with self._lock:
            rows = self._matching(predicate)
            # Resolve every key up front so unknown sort fields fail even on empty sets.
            keyed = [(position_of(order, e), e) for e in rows]
            if not keyed:
                position_of(order, _PROBE)

        if after is not None:
            keyed = [(k, e) for k, e in keyed if compare_positions(order, k, after) > 0]
        keyed.sort(key=cmp_to_key(lambda a, b: compare_positions(order, a[0], b[0])))
        out = [e for _, e in keyed]
        return out if limit is None else out[:limit]

    def count(self, predicate: Predicate) -> int:
        with self._lock:
            return len(self._matching(predicate))

    def aggregate_group_by(self, field: str, predicate: Predicate) -> Sequence[Tuple[Any, int]]:
        counts: Dict[Any, int] = {}
        with self._lock:
            _PROBE.field_value(field)
            for e in self._matching(predicate):
                key = e.field_value(field)
                counts[key] = counts.get(key, 0) + 1
        return list(counts.items())

    def aggregate_average(self, field: str, predicate: Predicate) -> Optional[float]:
        with self._lock:
            _PROBE.field_value(field)
            values = [v for v in (e.field_value(field) for e in self._matching(predicate)) if v is not None]
        if not values:
            return None
        return sum(values) / len(values)

    def get_by_id(self, record_id: int) -> Optional[Employee]:
        with self._lock:
            return self._rows.get(int(record_id))

    def get_by_ids(self, record_ids: Sequence[int]) -> List[Optional[Employee]]:
        with self._lock:
            return [self._rows.get(int(i)) for i in record_ids]

    def get_by_unique_field(self, field: str, value: Any) -> Optional[Employee]:
        with self._lock:
            for e in self._rows.values():
                if e.field_value(field) == value:
                    return e
        return None

    def persist(self, employee: Employee, *, expected_version: Optional[int] = None) -> Employee:
        with self._lock:
            self._check_unique(employee)
            now = self._clock()
            if employee.id is None:
                stored = replace(employee, id=self._next_id, created_at=now, updated_at=now, version=1)
                self._next_id += 1
            else:
                current = self._rows.get(employee.id)
                if current is None:
                    raise NotFound(f"Employee {employee.id} no longer exists")
                if expected_version is not None and current.version != expected_version:
                    raise VersionConflict(
                        f"Employee {employee.id} is at version {current.version}, expected {expected_version}"
                    )
                stored = replace(employee, created_at=current.created_at, updated_at=now, version=current.version + 1)
            self._rows[stored.id] = stored
            return stored

    def delete_by_id(self, record_id: int) -> bool:
        with self._lock:
            return self._rows.pop(int(record_id), None) is not None

    def _check_unique(self, employee: Employee) -> None:
        for field in UNIQUE_FIELDS:
            value = employee.field_value(field)
            for other in self._rows.values():
                if other.id != employee.id and other.field_value(field) == value:
                    raise DuplicateKeyError(f"duplicate key: {field}={value!r}")


# Sample record for field-name checks: lets empty collections still reject unknown field names.
_PROBE = Employee(employee_id="", name="", age=0, employee_class="", created_by=0)
