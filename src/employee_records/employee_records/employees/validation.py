"""Input shape validation for employee and attendance payloads.

Payloads arrive as decoded JSON objects using the public field names. All
problems in one payload are collected and raised together as a single
ValidationError whose ``details`` lists each message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..common.datetime_utils import parse_date_field, parse_iso_datetime
from ..common.validators import is_valid_email
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from .model import Attendance, ContactInfo

MIN_AGE = 18
MAX_AGE = 100
MAX_NAME_LENGTH = 100

_UPDATABLE = {"name", "age", "class", "subjects", "salary", "department", "position", "contactInfo", "isActive"}
_ATTENDANCE_FIELDS = {"date", "status", "checkIn", "checkOut", "hoursWorked"}


@dataclass(frozen=True)
class NewEmployee:
    employee_id: str
    name: str
    age: int
    employee_class: str
    subjects: Tuple[str, ...]
    salary: Optional[float] = None
    department: Optional[str] = None
    position: Optional[str] = None
    hire_date: Optional[date] = None
    contact_info: ContactInfo = field(default_factory=ContactInfo)


class _Errors:
    def __init__(self) -> None:
        self.messages: List[str] = []

    def add(self, message: str) -> None:
        self.messages.append(message)

    def raise_if_any(self) -> None:
        if self.messages:
            raise ValidationError("Validation failed", self.messages)


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_name(value: Any, errors: _Errors) -> Optional[str]:
    name = _clean_str(value)
    if not name or len(name) < 2:
        errors.add("Name must be at least 2 characters long")
    elif len(name) > MAX_NAME_LENGTH:
        errors.add(f"Name must be at most {MAX_NAME_LENGTH} characters long")
    return name


def _check_age(value: Any, errors: _Errors) -> Optional[int]:
    if not _is_int(value) or not MIN_AGE <= value <= MAX_AGE:
        errors.add(f"Age must be between {MIN_AGE} and {MAX_AGE}")
        return None
    return value


def _check_class(value: Any, errors: _Errors) -> Optional[str]:
    class_name = _clean_str(value)
    if not class_name:
        errors.add("Class is required")
    return class_name


def _check_subjects(value: Any, errors: _Errors) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)) or not value:
        errors.add("At least one subject is required")
        return ()
    return tuple(s for s in (_clean_str(v) for v in value) if s)


def _check_salary(value: Any, errors: _Errors) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        errors.add("Salary must be a non-negative number")
        return None
    return float(value)


def _check_contact(value: Any, errors: _Errors) -> ContactInfo:
    if value is None:
        return ContactInfo()
    if not isinstance(value, Mapping):
        errors.add("contactInfo must be an object")
        return ContactInfo()
    email = _clean_str(value.get("email"))
    if email:
        email = email.lower()
        if not is_valid_email(email):
            errors.add("Valid email is required")
    return ContactInfo(
        email=email or None,
        phone=_clean_str(value.get("phone")) or None,
        address=_clean_str(value.get("address")) or None,
    )


def _check_date(value: Any, field_name: str, errors: _Errors) -> Optional[date]:
    try:
        return parse_date_field(value, field_name)
    except ValidationError as e:
        errors.add(str(e))
        return None


def parse_employee_input(payload: Mapping[str, Any]) -> NewEmployee:
    errors = _Errors()

    employee_id = _clean_str(payload.get("employeeId"))
    if not employee_id:
        errors.add("Employee ID is required")
    name = _check_name(payload.get("name"), errors)
    age = _check_age(payload.get("age"), errors)
    class_name = _check_class(payload.get("class"), errors)
    subjects = _check_subjects(payload.get("subjects"), errors)
    salary = _check_salary(payload.get("salary"), errors)
    contact = _check_contact(payload.get("contactInfo"), errors)
    hire_date = _check_date(payload.get("hireDate"), "hireDate", errors)

    errors.raise_if_any()
    return NewEmployee(
        employee_id=employee_id,
        name=name,
        age=age,
        employee_class=class_name,
        subjects=subjects,
        salary=salary,
        department=_clean_str(payload.get("department")) or None,
        position=_clean_str(payload.get("position")) or None,
        hire_date=hire_date,
        contact_info=contact,
    )


def parse_employee_update(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Return Employee attribute changes for a partial update."""
    errors = _Errors()
    unknown = sorted(set(payload) - _UPDATABLE)
    if unknown:
        errors.add(f"Unknown or read-only fields: {', '.join(unknown)}")

    changes: Dict[str, Any] = {}
    if "name" in payload:
        changes["name"] = _check_name(payload["name"], errors)
    if "age" in payload:
        changes["age"] = _check_age(payload["age"], errors)
    if "class" in payload:
        changes["employee_class"] = _check_class(payload["class"], errors)
    if "subjects" in payload:
        changes["subjects"] = _check_subjects(payload["subjects"], errors)
    if "salary" in payload:
        changes["salary"] = _check_salary(payload["salary"], errors)
    if "department" in payload:
        changes["department"] = _clean_str(payload["department"]) or None
    if "position" in payload:
        changes["position"] = _clean_str(payload["position"]) or None
    if "contactInfo" in payload:
        changes["contact_info"] = _check_contact(payload["contactInfo"], errors)
    if "isActive" in payload:
        if not isinstance(payload["isActive"], bool):
            errors.add("isActive must be a boolean")
        changes["is_active"] = payload["isActive"]

    errors.raise_if_any()
    return changes


def _check_status(value: Any, errors: _Errors) -> Optional[AttendanceStatus]:
    try:
        return AttendanceStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        errors.add(f"Status must be one of {allowed}")
        return None


def _check_timestamp(value: Any, field_name: str, errors: _Errors):
    try:
        return parse_iso_datetime(value, field_name)
    except ValidationError as e:
        errors.add(str(e))
        return None


def _check_hours(value: Any, errors: _Errors) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        errors.add("hoursWorked must be a non-negative number")
        return None
    return float(value)


def _check_order(check_in, check_out, errors: _Errors) -> None:
    if check_in and check_out and check_out < check_in:
        errors.add("checkOut must not be before checkIn")


def parse_attendance_input(payload: Mapping[str, Any]) -> Attendance:
    errors = _Errors()

    if payload.get("date") in (None, ""):
        errors.add("date is required")
    work_date = _check_date(payload.get("date"), "date", errors)
    status = _check_status(payload.get("status"), errors)
    check_in = _check_timestamp(payload.get("checkIn"), "checkIn", errors)
    check_out = _check_timestamp(payload.get("checkOut"), "checkOut", errors)
    hours = _check_hours(payload.get("hoursWorked"), errors)
    _check_order(check_in, check_out, errors)

    errors.raise_if_any()
    return Attendance(date=work_date, status=status, check_in=check_in, check_out=check_out, hours_worked=hours)


def parse_attendance_update(payload: Mapping[str, Any]) -> Dict[str, Any]:
    errors = _Errors()
    unknown = sorted(set(payload) - _ATTENDANCE_FIELDS)
    if unknown:
        errors.add(f"Unknown fields: {', '.join(unknown)}")

    changes: Dict[str, Any] = {}
    if "date" in payload:
        if payload["date"] in (None, ""):
            errors.add("date is required")
        changes["date"] = _check_date(payload["date"], "date", errors)
    if "status" in payload:
        changes["status"] = _check_status(payload["status"], errors)
    if "checkIn" in payload:
        changes["check_in"] = _check_timestamp(payload["checkIn"], "checkIn", errors)
    if "checkOut" in payload:
        changes["check_out"] = _check_timestamp(payload["checkOut"], "checkOut", errors)
    if "hoursWorked" in payload:
        changes["hours_worked"] = _check_hours(payload["hoursWorked"], errors)

    errors.raise_if_any()
    return changes
