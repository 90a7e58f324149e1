from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from employee_records.auth.model import Actor
from employee_records.core.enums import Role
from employee_records.employees.memory_repository import InMemoryEmployeeRepository
from employee_records.employees.model import Employee
from employee_records.employees.service import EmployeeService
from employee_records.query.context import RequestContext
from employee_records.users.memory_user_repository import InMemoryUserRepository

ADMIN = Actor(id=1, role=Role.ADMIN)
EMPLOYEE = Actor(id=2, role=Role.EMPLOYEE)


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 9, 0, 0)):
        self._now = start

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def employee_repo(clock):
    return InMemoryEmployeeRepository(clock=clock)


@pytest.fixture
def user_repo():
    repo = InMemoryUserRepository()
    repo.create_user(username="admin", email="admin@example.com", password_hash="x", role=Role.ADMIN)
    repo.create_user(username="staff", email="staff@example.com", password_hash="x", role=Role.EMPLOYEE)
    return repo


@pytest.fixture
def make_context(employee_repo, user_repo):
    def _make(actor=ADMIN):
        return RequestContext.create(actor, employee_store=employee_repo, user_store=user_repo)

    return _make


@pytest.fixture
def service(employee_repo):
    return EmployeeService(employee_repo)


@pytest.fixture
def add_employee(employee_repo):
    """Persist an Employee straight into the store (no policy, no validation)."""

    counter = {"n": 0}

    def _add(**overrides) -> Employee:
        counter["n"] += 1
        n = counter["n"]
        fields = dict(
            employee_id=f"E{n:03d}",
            name=f"Employee {n}",
            age=30,
            employee_class="A1",
            subjects=("Math",),
            department="Engineering",
            created_by=ADMIN.id,
        )
        fields.update(overrides)
        return employee_repo.persist(Employee(**fields))

    return _add


@pytest.fixture
def admin():
    return ADMIN


@pytest.fixture
def staff():
    return EMPLOYEE
