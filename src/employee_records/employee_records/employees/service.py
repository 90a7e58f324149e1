from __future__ import annotations

from dataclasses import replace
from typing import Any, List, Mapping, Optional

from ..auth.policy import AuthorizationPolicy
from ..common.logging import get_logger
from ..core.constants import DEFAULT_SEARCH_LIMIT
from ..core.enums import Operation
from ..core.exceptions import AlreadyExists, DuplicateKeyError, NotFound, ValidationError
from ..query.aggregation import AggregationEngine, EmployeeStats
from ..query.builder import EmployeeFilter, EmployeeSort, QuerySpecBuilder
from ..query.context import RequestContext
from ..query.pagination import Connection, PageWindow, PaginationEngine
from .hours import HoursCalculator, StandardHoursCalculator
from .model import Employee
from .repository import EmployeeRepository
from .validation import (
    parse_attendance_input,
    parse_attendance_update,
    parse_employee_input,
    parse_employee_update,
)

log = get_logger(__name__)


class EmployeeService:
    """Employee read and write use cases.

    Every method takes the request's RequestContext. Authorization runs before
    any store call; reads get the actor's restriction folded into their
    predicate, single-record reads are checked after the fetch.
    """

    def __init__(
        self,
        employees: EmployeeRepository,
        *,
        policy: Optional[AuthorizationPolicy] = None,
        builder: Optional[QuerySpecBuilder] = None,
        pagination: Optional[PaginationEngine] = None,
        aggregation: Optional[AggregationEngine] = None,
        hours: Optional[HoursCalculator] = None,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
    ):
        self._employees = employees
        self._policy = policy or AuthorizationPolicy()
        self._builder = builder or QuerySpecBuilder()
        self._pagination = pagination or PaginationEngine(employees)
        self._aggregation = aggregation or AggregationEngine(employees)
        self._hours = hours or StandardHoursCalculator()
        self._search_limit = int(search_limit)

    # ---- reads ----

    def list_employees(
        self,
        ctx: RequestContext,
        *,
        filter_request: Optional[EmployeeFilter] = None,
        sort_request: Optional[EmployeeSort] = None,
        window: Optional[PageWindow] = None,
    ) -> Connection:
        spec = self._builder.build(filter_request, sort_request)
        restricted = self._policy.authorize(ctx.actor, Operation.LIST_EMPLOYEES, spec.predicate)
        return self._pagination.paginate(spec.with_predicate(restricted), window or PageWindow(), context=ctx)

    def get_employee(self, ctx: RequestContext, employee_pk: int) -> Employee:
        self._policy.authorize(ctx.actor, Operation.GET_EMPLOYEE)
        employee = ctx.employees.load(int(employee_pk))
        if employee is None:
            raise NotFound("Employee not found")
        return self._policy.check_visible(ctx.actor, Operation.GET_EMPLOYEE, employee)

    def get_by_employee_id(self, ctx: RequestContext, employee_id: str) -> Employee:
        self._policy.authorize(ctx.actor, Operation.GET_EMPLOYEE_BY_EMPLOYEE_ID)
        employee = self._employees.get_by_unique_field("employeeId", (employee_id or "").strip())
        if employee is None:
            raise NotFound("Employee not found")
        ctx.employees.prime(employee.id, employee)
        return self._policy.check_visible(ctx.actor, Operation.GET_EMPLOYEE_BY_EMPLOYEE_ID, employee)

    def search_employees(self, ctx: RequestContext, text: str, *, limit: Optional[int] = None) -> List[Employee]:
        spec = self._builder.build_search(text)
        restricted = self._policy.authorize(ctx.actor, Operation.SEARCH_EMPLOYEES, spec.predicate)
        if limit is None:
            limit = self._search_limit
        return self._pagination.fetch(spec.with_predicate(restricted), limit=limit, context=ctx)

    def employee_stats(self, ctx: RequestContext) -> EmployeeStats:
        predicate = self._policy.authorize(ctx.actor, Operation.EMPLOYEE_STATS)
        log.debug("Computing employee stats for user %s", ctx.actor.id)
        return self._aggregation.stats(predicate)

    # ---- writes ----

    def create_employee(self, ctx: RequestContext, payload: Mapping[str, Any]) -> Employee:
        self._policy.authorize(ctx.actor, Operation.CREATE_EMPLOYEE)
        data = parse_employee_input(payload)

        if self._employees.get_by_unique_field("employeeId", data.employee_id) is not None:
            raise AlreadyExists("Employee with this ID already exists")

        employee = Employee(
            employee_id=data.employee_id,
            name=data.name,
            age=data.age,
            employee_class=data.employee_class,
            subjects=data.subjects,
            salary=data.salary,
            department=data.department,
            position=data.position,
            hire_date=data.hire_date,
            contact_info=data.contact_info,
            created_by=ctx.actor.id,
        )
        try:
            stored = self._employees.persist(employee)
        except DuplicateKeyError:
            raise AlreadyExists("Employee with this ID already exists")

        ctx.employees.prime(stored.id, stored)
        log.info("Employee %s (%s) created by user %s", stored.id, stored.employee_id, ctx.actor.id)
        return stored

    def update_employee(
        self,
        ctx: RequestContext,
        employee_pk: int,
        payload: Mapping[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> Employee:
        self._policy.authorize(ctx.actor, Operation.UPDATE_EMPLOYEE)
        changes = parse_employee_update(payload)
        current = self._require(employee_pk)

        stored = self._save(ctx, replace(current, updated_by=ctx.actor.id, **changes), expected_version)
        log.info("Employee %s updated by user %s (fields=%s)", stored.id, ctx.actor.id, sorted(changes))
        return stored

    def delete_employee(self, ctx: RequestContext, employee_pk: int) -> bool:
        self._policy.authorize(ctx.actor, Operation.DELETE_EMPLOYEE)
        if not self._employees.delete_by_id(int(employee_pk)):
            raise NotFound("Employee not found")
        ctx.employees.clear(int(employee_pk))
        log.info("Employee %s deleted by user %s", employee_pk, ctx.actor.id)
        return True

    def add_attendance(
        self,
        ctx: RequestContext,
        employee_pk: int,
        payload: Mapping[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> Employee:
        self._policy.authorize(ctx.actor, Operation.ADD_ATTENDANCE)
        entry = parse_attendance_input(payload)
        current = self._require(employee_pk)

        entry = self._hours.fill(replace(entry, attendance_id=current.next_attendance_id()))
        updated = replace(current, attendance=current.attendance + (entry,), updated_by=ctx.actor.id)
        stored = self._save(ctx, updated, expected_version)
        log.info("Attendance %s added to employee %s", entry.attendance_id, stored.id)
        return stored

    def update_attendance(
        self,
        ctx: RequestContext,
        employee_pk: int,
        attendance_id: int,
        payload: Mapping[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> Employee:
        self._policy.authorize(ctx.actor, Operation.UPDATE_ATTENDANCE)
        changes = parse_attendance_update(payload)
        current = self._require(employee_pk)

        existing = current.find_attendance(int(attendance_id))
        if existing is None:
            raise NotFound("Attendance record not found")

        merged = replace(existing, **changes)
        if merged.check_in and merged.check_out and merged.check_out < merged.check_in:
            raise ValidationError("Validation failed", ["checkOut must not be before checkIn"])
        if "hours_worked" not in changes and ("check_in" in changes or "check_out" in changes):
            merged = self._hours.fill(replace(merged, hours_worked=None))

        attendance = tuple(merged if a.attendance_id == existing.attendance_id else a for a in current.attendance)
        stored = self._save(ctx, replace(current, attendance=attendance, updated_by=ctx.actor.id), expected_version)
        log.info("Attendance %s of employee %s updated", existing.attendance_id, stored.id)
        return stored

    # ---- helpers ----

    def _require(self, employee_pk: int) -> Employee:
        current = self._employees.get_by_id(int(employee_pk))
        if current is None:
            raise NotFound("Employee not found")
        return current

    def _save(self, ctx: RequestContext, employee: Employee, expected_version: Optional[int]) -> Employee:
        stored = self._employees.persist(employee, expected_version=expected_version)
        ctx.employees.prime(stored.id, stored)
        return stored
