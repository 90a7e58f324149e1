"""Store-agnostic filter predicates.

A Predicate is a conjunction of field constraints. Field names are the public
(API) names, e.g. ``class`` or ``isActive``; each store maps them to its own
columns/attributes and fails with UnknownFieldError on a name it cannot map.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple, Union


class Filterable(Protocol):
    def field_value(self, field: str) -> Any:
        ...


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def matches(self, record: Filterable) -> bool:
        return record.field_value(self.field) == self.value


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match."""

    field: str
    text: str

    def matches(self, record: Filterable) -> bool:
        value = record.field_value(self.field)
        if value is None:
            return False
        return self.text.lower() in str(value).lower()


@dataclass(frozen=True)
class Range:
    """Inclusive numeric range; either bound may be omitted."""

    field: str
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    def matches(self, record: Filterable) -> bool:
        value = record.field_value(self.field)
        if value is None:
            return False
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


@dataclass(frozen=True)
class AnyOf:
    """Disjunction of constraints (used by free-text search)."""

    constraints: Tuple["Constraint", ...]

    def matches(self, record: Filterable) -> bool:
        return any(c.matches(record) for c in self.constraints)


Constraint = Union[Equals, Contains, Range, AnyOf]


@dataclass(frozen=True)
class Predicate:
    constraints: Tuple[Constraint, ...] = ()

    @classmethod
    def universal(cls) -> "Predicate":
        return cls(())

    @classmethod
    def of(cls, *constraints: Constraint) -> "Predicate":
        return cls(tuple(constraints))

    @property
    def is_universal(self) -> bool:
        return not self.constraints

    def and_(self, *constraints: Constraint) -> "Predicate":
        return Predicate(self.constraints + tuple(constraints))

    def matches(self, record: Filterable) -> bool:
        return all(c.matches(record) for c in self.constraints)
