from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence, Tuple

from ..query.predicate import Predicate
from ..query.spec import PositionKey, SortKey
from .model import Employee


class EmployeeRepository(Protocol):
    """Record store interface for Employee documents.

    Note (DIP): the query engine and services depend on this interface, not on
    a concrete database. Field names are the public ones (see FIELD_ATTRS); an
    unmappable name raises UnknownFieldError.
    """

    def find(
        self,
        predicate: Predicate,
        order: Sequence[SortKey],
        *,
        limit: Optional[int],
        after: Optional[PositionKey] = None,
    ) -> Sequence[Employee]:
        """Rows matching ``predicate`` in ``order``, strictly after ``after``."""
        raise NotImplementedError

    def count(self, predicate: Predicate) -> int:
        raise NotImplementedError

    def aggregate_group_by(self, field: str, predicate: Predicate) -> Sequence[Tuple[Any, int]]:
        raise NotImplementedError

    def aggregate_average(self, field: str, predicate: Predicate) -> Optional[float]:
        raise NotImplementedError

    def get_by_id(self, record_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_ids(self, record_ids: Sequence[int]) -> List[Optional[Employee]]:
        raise NotImplementedError

    def get_by_unique_field(self, field: str, value: Any) -> Optional[Employee]:
        raise NotImplementedError

    def persist(self, employee: Employee, *, expected_version: Optional[int] = None) -> Employee:
        """Insert (id is None) or update; returns the stored record.

        With ``expected_version`` set, an update only succeeds if the stored
        version still matches (VersionConflict otherwise).
        """
        raise NotImplementedError

    def delete_by_id(self, record_id: int) -> bool:
        raise NotImplementedError
