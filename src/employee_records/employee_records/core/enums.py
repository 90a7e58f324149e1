from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller role used by the authorization policy."""

    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    HALF_DAY = "HALF_DAY"


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    def flipped(self) -> "SortOrder":
        return SortOrder.DESC if self is SortOrder.ASC else SortOrder.ASC


class OperationKind(str, Enum):
    """Coarse grouping of operations the policy table is keyed by."""

    READ = "READ"
    WRITE = "WRITE"
    ADMIN_READ = "ADMIN_READ"
    SELF = "SELF"


class Operation(str, Enum):
    ME = "me"
    LIST_EMPLOYEES = "employees"
    GET_EMPLOYEE = "employee"
    GET_EMPLOYEE_BY_EMPLOYEE_ID = "employeeByEmployeeId"
    SEARCH_EMPLOYEES = "searchEmployees"
    EMPLOYEE_STATS = "employeeStats"
    CREATE_EMPLOYEE = "createEmployee"
    UPDATE_EMPLOYEE = "updateEmployee"
    DELETE_EMPLOYEE = "deleteEmployee"
    ADD_ATTENDANCE = "addAttendance"
    UPDATE_ATTENDANCE = "updateAttendance"

    @property
    def kind(self) -> OperationKind:
        return _OPERATION_KINDS[self]


_OPERATION_KINDS = {
    Operation.ME: OperationKind.SELF,
    Operation.LIST_EMPLOYEES: OperationKind.READ,
    Operation.GET_EMPLOYEE: OperationKind.READ,
    Operation.GET_EMPLOYEE_BY_EMPLOYEE_ID: OperationKind.READ,
    Operation.SEARCH_EMPLOYEES: OperationKind.READ,
    Operation.EMPLOYEE_STATS: OperationKind.ADMIN_READ,
    Operation.CREATE_EMPLOYEE: OperationKind.WRITE,
    Operation.UPDATE_EMPLOYEE: OperationKind.WRITE,
    Operation.DELETE_EMPLOYEE: OperationKind.WRITE,
    Operation.ADD_ATTENDANCE: OperationKind.WRITE,
    Operation.UPDATE_ATTENDANCE: OperationKind.WRITE,
}
