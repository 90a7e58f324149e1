from datetime import date, datetime

import pytest

from employee_records.core.exceptions import (
    AccessDenied,
    AlreadyExists,
    AuthenticationRequired,
    InsufficientRole,
    NotFound,
    ValidationError,
    VersionConflict,
)
from employee_records.query.builder import EmployeeFilter
from employee_records.query.pagination import PageWindow


def _payload(**overrides):
    payload = {
        "employeeId": "E1",
        "name": "Ada Lovelace",
        "age": 30,
        "class": "A1",
        "subjects": ["Math"],
        "department": "Engineering",
        "contactInfo": {"email": "ADA@Example.com"},
    }
    payload.update(overrides)
    return payload


def test_inactivated_record_disappears_for_employees_only(service, make_context, admin, staff):
    created = service.create_employee(make_context(admin), _payload(employeeId="E1", age=30))

    listed = service.list_employees(make_context(staff), filter_request=EmployeeFilter(), window=PageWindow(first=10))
    assert created.id in [n.id for n in listed.nodes]

    service.update_employee(make_context(admin), created.id, {"isActive": False})

    as_staff = service.list_employees(make_context(staff), window=PageWindow(first=10))
    as_admin = service.list_employees(make_context(admin), window=PageWindow(first=10))
    assert created.id not in [n.id for n in as_staff.nodes]
    assert as_staff.total_count == 0
    assert created.id in [n.id for n in as_admin.nodes]


def test_create_stamps_creator_and_normalizes_input(service, make_context, admin):
    employee = service.create_employee(make_context(admin), _payload())

    assert employee.id is not None
    assert employee.created_by == admin.id
    assert employee.updated_by is None
    assert employee.contact_info.email == "ada@example.com"
    assert employee.version == 1


def test_create_rejects_duplicate_employee_id(service, make_context, admin):
    service.create_employee(make_context(admin), _payload(employeeId="E9"))
    with pytest.raises(AlreadyExists):
        service.create_employee(make_context(admin), _payload(employeeId="E9", name="Other Person"))


def test_create_collects_all_validation_errors(service, make_context, admin):
    with pytest.raises(ValidationError) as exc:
        service.create_employee(make_context(admin), {"employeeId": "", "name": "A", "age": 12, "subjects": []})

    assert len(exc.value.details) == 5


def test_authorization_runs_before_validation(service, make_context, staff):
    with pytest.raises(InsufficientRole):
        service.create_employee(make_context(staff), {})


def test_anonymous_caller_is_rejected(service, make_context):
    with pytest.raises(AuthenticationRequired):
        service.list_employees(make_context(None))


def test_get_employee_distinguishes_hidden_from_missing(service, make_context, add_employee, staff):
    hidden = add_employee(is_active=False)

    with pytest.raises(AccessDenied):
        service.get_employee(make_context(staff), hidden.id)
    with pytest.raises(NotFound):
        service.get_employee(make_context(staff), 999)


def test_get_by_employee_id(service, make_context, add_employee, staff):
    stored = add_employee(employee_id="X-7")

    assert service.get_by_employee_id(make_context(staff), "X-7").id == stored.id
    with pytest.raises(NotFound):
        service.get_by_employee_id(make_context(staff), "nope")


def test_search_matches_any_search_field_and_respects_limit(service, make_context, add_employee, admin, staff):
    add_employee(name="Maria Smith", department="HR")
    add_employee(name="John Doe", department="Smithing")
    add_employee(name="Ann Smithers", is_active=False)
    add_employee(name="Nobody", department="Ops")

    assert len(service.search_employees(make_context(admin), "smith")) == 3
    assert len(service.search_employees(make_context(staff), "SMITH")) == 2
    assert len(service.search_employees(make_context(admin), "smith", limit=1)) == 1


def test_stats_are_admin_only(service, make_context, add_employee, admin, staff):
    add_employee(age=40)

    assert service.employee_stats(make_context(admin)).average_age == 40.0
    with pytest.raises(InsufficientRole):
        service.employee_stats(make_context(staff))


def test_update_stamps_updater_and_bumps_version(service, make_context, add_employee, admin):
    stored = add_employee()

    updated = service.update_employee(make_context(admin), stored.id, {"name": "Renamed", "salary": 1200})

    assert updated.name == "Renamed"
    assert updated.salary == 1200.0
    assert updated.updated_by == admin.id
    assert updated.version == stored.version + 1
    assert updated.created_at == stored.created_at


def test_update_rejects_read_only_fields(service, make_context, add_employee, admin):
    stored = add_employee()
    with pytest.raises(ValidationError):
        service.update_employee(make_context(admin), stored.id, {"employeeId": "NEW"})


def test_version_checked_update_detects_lost_update(service, make_context, add_employee, admin):
    stored = add_employee()
    service.update_employee(make_context(admin), stored.id, {"name": "First Writer"})

    with pytest.raises(VersionConflict):
        service.update_employee(make_context(admin), stored.id, {"name": "Second Writer"}, expected_version=stored.version)


def test_update_missing_employee(service, make_context, admin):
    with pytest.raises(NotFound):
        service.update_employee(make_context(admin), 404, {"name": "Ghost"})


def test_delete(service, make_context, add_employee, admin, employee_repo):
    stored = add_employee()

    assert service.delete_employee(make_context(admin), stored.id) is True
    assert employee_repo.get_by_id(stored.id) is None
    with pytest.raises(NotFound):
        service.delete_employee(make_context(admin), stored.id)


def test_add_attendance_computes_hours_worked(service, make_context, add_employee, admin):
    stored = add_employee()

    updated = service.add_attendance(
        make_context(admin),
        stored.id,
        {"date": "2025-03-03", "status": "PRESENT", "checkIn": "2025-03-03T08:00:00Z", "checkOut": "2025-03-03T16:30:00Z"},
    )

    (entry,) = updated.attendance
    assert entry.attendance_id == 1
    assert entry.date == date(2025, 3, 3)
    assert entry.check_in == datetime(2025, 3, 3, 8, 0)
    assert entry.hours_worked == 8.5
    assert updated.updated_by == admin.id


def test_attendance_ids_are_per_employee(service, make_context, add_employee, admin):
    first = add_employee()
    second = add_employee()
    ctx = make_context(admin)

    service.add_attendance(ctx, first.id, {"date": "2025-03-03", "status": "PRESENT"})
    after = service.add_attendance(ctx, first.id, {"date": "2025-03-04", "status": "LATE"})
    other = service.add_attendance(ctx, second.id, {"date": "2025-03-04", "status": "ABSENT"})

    assert [a.attendance_id for a in after.attendance] == [1, 2]
    assert [a.attendance_id for a in other.attendance] == [1]


def test_update_attendance_recomputes_hours_when_times_change(service, make_context, add_employee, admin):
    stored = add_employee()
    ctx = make_context(admin)
    service.add_attendance(
        ctx,
        stored.id,
        {"date": "2025-03-03", "status": "PRESENT", "checkIn": "2025-03-03T08:00:00", "checkOut": "2025-03-03T12:00:00"},
    )

    updated = service.update_attendance(ctx, stored.id, 1, {"checkOut": "2025-03-03T17:15:00"})

    assert updated.attendance[0].hours_worked == 9.25
    assert updated.attendance[0].status.value == "PRESENT"


def test_update_attendance_keeps_explicit_hours(service, make_context, add_employee, admin):
    stored = add_employee()
    ctx = make_context(admin)
    service.add_attendance(ctx, stored.id, {"date": "2025-03-03", "status": "HALF_DAY", "hoursWorked": 4})

    updated = service.update_attendance(ctx, stored.id, 1, {"status": "PRESENT", "hoursWorked": 7.5})

    assert updated.attendance[0].hours_worked == 7.5


def test_update_attendance_rejects_inverted_times(service, make_context, add_employee, admin):
    stored = add_employee()
    ctx = make_context(admin)
    service.add_attendance(ctx, stored.id, {"date": "2025-03-03", "status": "PRESENT", "checkIn": "2025-03-03T10:00:00"})

    with pytest.raises(ValidationError):
        service.update_attendance(ctx, stored.id, 1, {"checkOut": "2025-03-03T09:00:00"})


def test_update_unknown_attendance(service, make_context, add_employee, admin):
    stored = add_employee()
    with pytest.raises(NotFound):
        service.update_attendance(make_context(admin), stored.id, 5, {"status": "LATE"})


def test_writes_refresh_the_request_loader(service, make_context, add_employee, admin):
    stored = add_employee(name="Before")
    ctx = make_context(admin)
    assert service.get_employee(ctx, stored.id).name == "Before"

    service.update_employee(ctx, stored.id, {"name": "After"})

    assert service.get_employee(ctx, stored.id).name == "After"
