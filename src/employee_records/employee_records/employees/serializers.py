"""JSON shapes for the HTTP layer (public camelCase field names)."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..common.datetime_utils import isoformat
from ..query.aggregation import EmployeeStats
from ..query.context import RequestContext
from ..query.pagination import Connection
from ..users.model import User
from .model import Attendance, Employee


def user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.user_id,
        "username": user.username,
        "email": user.email,
        "role": user.role.value,
        "isActive": user.is_active,
        "lastLogin": isoformat(user.last_login),
        "createdAt": isoformat(user.created_at),
    }


def _user_ref(ctx: RequestContext, user_id: Optional[int]) -> Optional[Dict[str, Any]]:
    if user_id is None:
        return None
    user = ctx.users.load(user_id)
    if user is None:
        return {"id": user_id}
    return {"id": user.user_id, "username": user.username}


def attendance_to_dict(entry: Attendance) -> Dict[str, Any]:
    return {
        "id": entry.attendance_id,
        "date": isoformat(entry.date),
        "status": entry.status.value,
        "checkIn": isoformat(entry.check_in),
        "checkOut": isoformat(entry.check_out),
        "hoursWorked": entry.hours_worked,
    }


def employee_to_dict(employee: Employee, ctx: RequestContext) -> Dict[str, Any]:
    # Batch the creator/updater lookups of this record into one loader call.
    ctx.users.load_many([u for u in (employee.created_by, employee.updated_by) if u is not None])
    return {
        "id": employee.id,
        "employeeId": employee.employee_id,
        "name": employee.name,
        "age": employee.age,
        "class": employee.employee_class,
        "subjects": list(employee.subjects),
        "attendance": [attendance_to_dict(a) for a in employee.attendance],
        "salary": employee.salary,
        "department": employee.department,
        "position": employee.position,
        "hireDate": isoformat(employee.hire_date),
        "contactInfo": {
            "email": employee.contact_info.email,
            "phone": employee.contact_info.phone,
            "address": employee.contact_info.address,
        },
        "isActive": employee.is_active,
        "createdBy": _user_ref(ctx, employee.created_by),
        "updatedBy": _user_ref(ctx, employee.updated_by),
        "createdAt": isoformat(employee.created_at),
        "updatedAt": isoformat(employee.updated_at),
        "version": employee.version,
    }


def connection_to_dict(connection: Connection, ctx: RequestContext) -> Dict[str, Any]:
    # One batched users load for the whole page.
    ctx.users.load_many(
        [u for e in connection.nodes for u in (e.created_by, e.updated_by) if u is not None]
    )
    info = connection.page_info
    return {
        "edges": [{"node": employee_to_dict(e.node, ctx), "cursor": e.cursor} for e in connection.edges],
        "pageInfo": {
            "hasNextPage": info.has_next_page,
            "hasPreviousPage": info.has_previous_page,
            "startCursor": info.start_cursor,
            "endCursor": info.end_cursor,
        },
        "totalCount": connection.total_count,
    }


def stats_to_dict(stats: EmployeeStats) -> Dict[str, Any]:
    return {
        "totalEmployees": stats.total_count,
        "activeEmployees": stats.active_count,
        "inactiveEmployees": stats.inactive_count,
        "departmentCounts": [{"department": g.key, "count": g.count} for g in stats.department_counts],
        "classCounts": [{"class": g.key, "count": g.count} for g in stats.class_counts],
        "averageAge": stats.average_age,
    }
