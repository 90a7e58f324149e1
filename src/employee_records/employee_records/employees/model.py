from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Tuple

from ..core.enums import AttendanceStatus
from ..core.exceptions import UnknownFieldError

# Public field name -> Employee attribute. Used for filtering, sorting and
# grouping; the MySQL store keeps its own column map with the same keys.
FIELD_ATTRS = {
    "id": "id",
    "employeeId": "employee_id",
    "name": "name",
    "age": "age",
    "class": "employee_class",
    "salary": "salary",
    "department": "department",
    "position": "position",
    "hireDate": "hire_date",
    "isActive": "is_active",
    "createdBy": "created_by",
    "updatedBy": "updated_by",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


@dataclass(frozen=True)
class ContactInfo:
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class Attendance:
    """Attendance entry owned by one Employee; its id is unique only within it."""

    date: date
    status: AttendanceStatus
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    hours_worked: Optional[float] = None
    attendance_id: Optional[int] = None


@dataclass(frozen=True)
class Employee:
    """Domain entity: Employee record.

    Note: Plain data object; persistence lives in the repositories. ``id`` is
    None until the store assigns one.
    """

    employee_id: str
    name: str
    age: int
    employee_class: str
    created_by: int
    subjects: Tuple[str, ...] = ()
    attendance: Tuple[Attendance, ...] = ()
    salary: Optional[float] = None
    department: Optional[str] = None
    position: Optional[str] = None
    hire_date: Optional[date] = None
    contact_info: ContactInfo = field(default_factory=ContactInfo)
    is_active: bool = True
    updated_by: Optional[int] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    def field_value(self, name: str) -> Any:
        attr = FIELD_ATTRS.get(name)
        if attr is None:
            raise UnknownFieldError(f"Unknown employee field: {name}")
        return getattr(self, attr)

    def find_attendance(self, attendance_id: int) -> Optional[Attendance]:
        for a in self.attendance:
            if a.attendance_id == attendance_id:
                return a
        return None

    def next_attendance_id(self) -> int:
        return max((a.attendance_id or 0 for a in self.attendance), default=0) + 1
