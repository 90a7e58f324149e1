"""Row-level authorization as query rewriting.

One table keyed by (role, operation kind) says whether an operation is
allowed as-is, allowed with an extra predicate constraint, or denied. The
decision function is pure; ``authorize`` is the raising convenience wrapper.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from ..common.logging import get_logger
from ..core.enums import Operation, OperationKind, Role
from ..core.exceptions import AccessDenied, AuthenticationRequired, DomainError, InsufficientRole
from ..query.predicate import Constraint, Equals, Predicate
from .model import Actor

log = get_logger(__name__)

ACTIVE_ONLY = Equals("isActive", True)


class Rule(str, Enum):
    ALLOW = "ALLOW"
    RESTRICT = "RESTRICT"
    DENY = "DENY"


@dataclass(frozen=True)
class PolicyEntry:
    rule: Rule
    constraints: Tuple[Constraint, ...] = ()


DEFAULT_TABLE: Mapping[Tuple[Role, OperationKind], PolicyEntry] = {
    (Role.ADMIN, OperationKind.SELF): PolicyEntry(Rule.ALLOW),
    (Role.ADMIN, OperationKind.READ): PolicyEntry(Rule.ALLOW),
    (Role.ADMIN, OperationKind.ADMIN_READ): PolicyEntry(Rule.ALLOW),
    (Role.ADMIN, OperationKind.WRITE): PolicyEntry(Rule.ALLOW),
    (Role.EMPLOYEE, OperationKind.SELF): PolicyEntry(Rule.ALLOW),
    (Role.EMPLOYEE, OperationKind.READ): PolicyEntry(Rule.RESTRICT, (ACTIVE_ONLY,)),
    (Role.EMPLOYEE, OperationKind.ADMIN_READ): PolicyEntry(Rule.DENY),
    (Role.EMPLOYEE, OperationKind.WRITE): PolicyEntry(Rule.DENY),
}


@dataclass(frozen=True)
class Decision:
    predicate: Optional[Predicate] = None
    denial: Optional[DomainError] = None

    @property
    def allowed(self) -> bool:
        return self.denial is None


class AuthorizationPolicy:
    def __init__(self, table: Mapping[Tuple[Role, OperationKind], PolicyEntry] = DEFAULT_TABLE):
        self._table = dict(table)

    def decide(self, actor: Optional[Actor], operation: Operation, predicate: Optional[Predicate] = None) -> Decision:
        predicate = predicate or Predicate.universal()

        if actor is None or not actor.is_active:
            return Decision(denial=AuthenticationRequired("Authentication required"))

        entry = self._table.get((actor.role, operation.kind), PolicyEntry(Rule.DENY))
        if entry.rule is Rule.DENY:
            message = "Admin access required" if operation.kind is not OperationKind.SELF else "Access denied"
            return Decision(denial=InsufficientRole(message))
        if entry.rule is Rule.RESTRICT:
            return Decision(predicate=predicate.and_(*entry.constraints))
        return Decision(predicate=predicate)

    def authorize(self, actor: Optional[Actor], operation: Operation, predicate: Optional[Predicate] = None) -> Predicate:
        decision = self.decide(actor, operation, predicate)
        if decision.denial is not None:
            log.info(
                "Denied %s for actor=%s: %s",
                operation.value,
                actor.id if actor else None,
                decision.denial.code,
            )
            raise decision.denial
        return decision.predicate

    def check_visible(self, actor: Actor, operation: Operation, record: Any) -> Any:
        """Post-fetch check for single-record reads.

        A lookup by identifier cannot be narrowed by predicate, so the fetched
        record is matched against the same restriction. A hidden hit becomes
        AccessDenied, keeping it distinct from NotFound.
        """
        restricted = self.authorize(actor, operation)
        if not restricted.matches(record):
            log.info("Access denied to %s %s for actor=%s", operation.value, record.id, actor.id)
            raise AccessDenied("Access denied")
        return record
