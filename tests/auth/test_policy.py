import pytest

from employee_records.auth.model import Actor
from employee_records.auth.policy import ACTIVE_ONLY, AuthorizationPolicy
from employee_records.core.enums import Operation, Role
from employee_records.core.exceptions import AccessDenied, AuthenticationRequired, InsufficientRole
from employee_records.employees.model import Employee
from employee_records.query.predicate import Contains, Predicate

READS = [Operation.LIST_EMPLOYEES, Operation.GET_EMPLOYEE, Operation.GET_EMPLOYEE_BY_EMPLOYEE_ID, Operation.SEARCH_EMPLOYEES]
WRITES = [
    Operation.CREATE_EMPLOYEE,
    Operation.UPDATE_EMPLOYEE,
    Operation.DELETE_EMPLOYEE,
    Operation.ADD_ATTENDANCE,
    Operation.UPDATE_ATTENDANCE,
]


def _record(is_active):
    return Employee(id=3, employee_id="E3", name="Cam", age=33, employee_class="A1", created_by=1, is_active=is_active)


@pytest.mark.parametrize("operation", list(Operation))
def test_missing_actor_requires_authentication(operation):
    decision = AuthorizationPolicy().decide(None, operation)
    assert isinstance(decision.denial, AuthenticationRequired)


def test_inactive_actor_is_treated_as_unauthenticated(admin):
    inactive = Actor(id=admin.id, role=Role.ADMIN, is_active=False)
    with pytest.raises(AuthenticationRequired):
        AuthorizationPolicy().authorize(inactive, Operation.LIST_EMPLOYEES)


@pytest.mark.parametrize("operation", list(Operation))
def test_admin_predicate_is_unchanged(admin, operation):
    predicate = Predicate.of(Contains("name", "a"))
    assert AuthorizationPolicy().authorize(admin, operation, predicate) == predicate


@pytest.mark.parametrize("operation", READS)
def test_employee_reads_are_restricted_to_active_records(staff, operation):
    predicate = Predicate.of(Contains("name", "a"))
    restricted = AuthorizationPolicy().authorize(staff, operation, predicate)
    assert restricted.constraints == (Contains("name", "a"), ACTIVE_ONLY)


@pytest.mark.parametrize("operation", WRITES + [Operation.EMPLOYEE_STATS])
def test_employee_writes_and_stats_are_denied(staff, operation):
    with pytest.raises(InsufficientRole):
        AuthorizationPolicy().authorize(staff, operation)


def test_decide_is_pure_and_does_not_raise(staff):
    decision = AuthorizationPolicy().decide(staff, Operation.DELETE_EMPLOYEE)
    assert not decision.allowed
    assert decision.predicate is None


def test_employee_may_read_own_account(staff):
    assert AuthorizationPolicy().authorize(staff, Operation.ME).is_universal


def test_hidden_record_is_access_denied_not_not_found(staff):
    with pytest.raises(AccessDenied):
        AuthorizationPolicy().check_visible(staff, Operation.GET_EMPLOYEE, _record(is_active=False))


def test_visible_record_passes_the_post_fetch_check(staff, admin):
    record = _record(is_active=True)
    assert AuthorizationPolicy().check_visible(staff, Operation.GET_EMPLOYEE, record) is record
    assert AuthorizationPolicy().check_visible(admin, Operation.GET_EMPLOYEE, _record(is_active=False)).id == 3
