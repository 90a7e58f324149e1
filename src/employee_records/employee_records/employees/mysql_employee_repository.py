from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..common.datetime_utils import now_utc
from ..core.enums import AttendanceStatus, SortOrder
from ..core.exceptions import NotFound, UnknownFieldError, VersionConflict
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, store_errors
from ..query.predicate import AnyOf, Constraint, Contains, Equals, Predicate, Range
from ..query.spec import PositionKey, SortKey
from .model import Attendance, ContactInfo, Employee
from .repository import EmployeeRepository

# Public field name -> column of the employees table.
COLUMNS = {
    "id": "id",
    "employeeId": "employee_id",
    "name": "name",
    "age": "age",
    "class": "class_name",
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

# Text columns compare and sort byte-wise so MySQL agrees with the in-memory store.
CASE_SENSITIVE_COLUMNS = frozenset({"employee_id", "name", "class_name", "department", "position"})

_SELECT = """
    SELECT id, employee_id, name, age, class_name, subjects, salary, department, position,
           hire_date, contact_email, contact_phone, contact_address, is_active,
           created_by, updated_by, created_at, updated_at, version
    FROM employees
"""

SqlFragment = Tuple[str, List[Any]]


def column(field: str) -> str:
    col = COLUMNS.get(field)
    if col is None:
        raise UnknownFieldError(f"Unknown employee field: {field}")
    return col


def _exact(col: str) -> str:
    if col in CASE_SENSITIVE_COLUMNS:
        return f"{col} COLLATE utf8mb4_bin"
    return col


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def compile_constraint(constraint: Constraint) -> SqlFragment:
    if isinstance(constraint, Equals):
        col = column(constraint.field)
        if constraint.value is None:
            return f"{col} IS NULL", []
        return f"{_exact(col)} = %s", [constraint.value]

    if isinstance(constraint, Contains):
        return f"LOWER({column(constraint.field)}) LIKE %s", [f"%{_escape_like(constraint.text.lower())}%"]

    if isinstance(constraint, Range):
        col = column(constraint.field)
        parts, params = [], []
        if constraint.minimum is not None:
            parts.append(f"{col} >= %s")
            params.append(constraint.minimum)
        if constraint.maximum is not None:
            parts.append(f"{col} <= %s")
            params.append(constraint.maximum)
        return (" AND ".join(parts) or "1=1"), params

    if isinstance(constraint, AnyOf):
        parts, params = [], []
        for inner in constraint.constraints:
            sql, inner_params = compile_constraint(inner)
            parts.append(f"({sql})")
            params.extend(inner_params)
        return "(" + (" OR ".join(parts) or "1=0") + ")", params

    raise TypeError(f"Unsupported constraint: {constraint!r}")


def compile_predicate(predicate: Predicate) -> SqlFragment:
    parts, params = [], []
    for constraint in predicate.constraints:
        sql, constraint_params = compile_constraint(constraint)
        parts.append(sql)
        params.extend(constraint_params)
    return (" AND ".join(parts) or "1=1"), params


def compile_order(order: Sequence[SortKey]) -> str:
    # MySQL sorts NULL first ascending / last descending, matching the in-memory order.
    return ", ".join(f"{_exact(column(k.field))} {'DESC' if k.order is SortOrder.DESC else 'ASC'}" for k in order)


def _strictly_after(key: SortKey, value: Any) -> SqlFragment:
    col = column(key.field)
    if key.order is SortOrder.ASC:
        if value is None:
            return f"{col} IS NOT NULL", []
        return f"{_exact(col)} > %s", [value]
    if value is None:
        return "1=0", []
    return f"({_exact(col)} < %s OR {col} IS NULL)", [value]


def _equal_to(key: SortKey, value: Any) -> SqlFragment:
    col = column(key.field)
    if value is None:
        return f"{col} IS NULL", []
    return f"{_exact(col)} = %s", [value]


def compile_after(order: Sequence[SortKey], after: PositionKey) -> SqlFragment:
    """Keyset condition: rows strictly after ``after`` in ``order``."""
    branches, params = [], []
    for i, key in enumerate(order):
        parts, branch_params = [], []
        for prev_key, prev_value in zip(order[:i], after.values[:i]):
            sql, p = _equal_to(prev_key, prev_value)
            parts.append(sql)
            branch_params.extend(p)
        sql, p = _strictly_after(key, after.values[i])
        parts.append(sql)
        branch_params.extend(p)
        branches.append("(" + " AND ".join(parts) + ")")
        params.extend(branch_params)
    return "(" + " OR ".join(branches) + ")", params


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, clock=now_utc):
        self._conn_factory = conn_factory
        self._clock = clock

    def find(
        self,
        predicate: Predicate,
        order: Sequence[SortKey],
        *,
        limit: Optional[int],
        after: Optional[PositionKey] = None,
    ) -> Sequence[Employee]:
        order = tuple(order)
        where, params = compile_predicate(predicate)
        if after is not None:
            bound, bound_params = compile_after(order, after)
            where = f"{where} AND {bound}"
            params = params + bound_params
        sql = f"{_SELECT} WHERE {where} ORDER BY {compile_order(order)}"
        if limit is not None:
            sql += " LIMIT %s"
            params = params + [int(limit)]

        with store_errors("find employees"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)
            return self._hydrate(cur, rows)

    def count(self, predicate: Predicate) -> int:
        where, params = compile_predicate(predicate)
        with store_errors("count employees"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM employees WHERE {where}", tuple(params))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def aggregate_group_by(self, field: str, predicate: Predicate) -> Sequence[Tuple[Any, int]]:
        col = column(field)
        where, params = compile_predicate(predicate)
        with store_errors("group employees"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_exact(col)} AS k, COUNT(*) AS n FROM employees WHERE {where} GROUP BY k",
                tuple(params),
            )
            return [(r["k"], int(r["n"])) for r in fetchall(cur)]

    def aggregate_average(self, field: str, predicate: Predicate) -> Optional[float]:
        col = column(field)
        where, params = compile_predicate(predicate)
        with store_errors("average employees"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT AVG({col}) AS v FROM employees WHERE {where}", tuple(params))
            row = fetchone(cur)
            if not row or row["v"] is None:
                return None
            return float(row["v"])

    def get_by_id(self, record_id: int) -> Optional[Employee]:
        return self.get_by_ids([record_id])[0]

    def get_by_ids(self, record_ids: Sequence[int]) -> List[Optional[Employee]]:
        ids = [int(i) for i in record_ids]
        if not ids:
            return []
        placeholders = ", ".join(["%s"] * len(ids))
        with store_errors("load employees"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE id IN ({placeholders})", tuple(ids))
            by_id = {e.id: e for e in self._hydrate(cur, fetchall(cur))}
        return [by_id.get(i) for i in ids]

    def get_by_unique_field(self, field: str, value: Any) -> Optional[Employee]:
        col = column(field)
        with store_errors("load employee"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {_exact(col)} = %s LIMIT 1", (value,))
            rows = self._hydrate(cur, fetchall(cur))
            return rows[0] if rows else None

    def persist(self, employee: Employee, *, expected_version: Optional[int] = None) -> Employee:
        now = self._clock()
        with store_errors("persist employee"), db_cursor(self._conn_factory) as (_, cur):
            if employee.id is None:
                record_id = self._insert(cur, employee, now)
            else:
                record_id = employee.id
                self._update(cur, employee, now, expected_version)
            self._save_attendance(cur, record_id, employee.attendance)
            cur.execute(f"{_SELECT} WHERE id = %s", (record_id,))
            return self._hydrate(cur, fetchall(cur))[0]

    def delete_by_id(self, record_id: int) -> bool:
        with store_errors("delete employee"), db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employee_attendance WHERE employee_pk=%s", (int(record_id),))
            cur.execute("DELETE FROM employees WHERE id=%s", (int(record_id),))
            return cur.rowcount > 0

    @staticmethod
    def _row_values(employee: Employee) -> List[Any]:
        contact = employee.contact_info
        return [
            employee.employee_id,
            employee.name,
            employee.age,
            employee.employee_class,
            json.dumps(list(employee.subjects)),
            employee.salary,
            employee.department,
            employee.position,
            employee.hire_date,
            contact.email,
            contact.phone,
            contact.address,
            1 if employee.is_active else 0,
        ]

    def _insert(self, cur, employee: Employee, now) -> int:
        cur.execute(
            """
            INSERT INTO employees(employee_id, name, age, class_name, subjects, salary, department, position,
                                  hire_date, contact_email, contact_phone, contact_address, is_active,
                                  created_by, updated_by, created_at, updated_at, version)
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
            """,
            tuple(self._row_values(employee) + [employee.created_by, employee.updated_by, now, now]),
        )
        return int(cur.lastrowid)

    def _update(self, cur, employee: Employee, now, expected_version: Optional[int]) -> None:
        sql = """
            UPDATE employees
            SET employee_id=%s, name=%s, age=%s, class_name=%s, subjects=%s, salary=%s, department=%s,
                position=%s, hire_date=%s, contact_email=%s, contact_phone=%s, contact_address=%s,
                is_active=%s, updated_by=%s, updated_at=%s, version=version + 1
            WHERE id=%s
        """
        params = self._row_values(employee) + [employee.updated_by, now, employee.id]
        if expected_version is not None:
            sql += " AND version=%s"
            params.append(int(expected_version))
        cur.execute(sql, tuple(params))
        if cur.rowcount > 0:
            return

        cur.execute("SELECT version FROM employees WHERE id=%s", (employee.id,))
        row = fetchone(cur)
        if not row:
            raise NotFound(f"Employee {employee.id} no longer exists")
        raise VersionConflict(f"Employee {employee.id} is at version {row['version']}, expected {expected_version}")

    @staticmethod
    def _save_attendance(cur, record_id: int, entries: Sequence[Attendance]) -> None:
        for a in entries:
            cur.execute(
                """
                INSERT INTO employee_attendance(employee_pk, attendance_id, work_date, status, check_in, check_out, hours_worked)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE work_date=VALUES(work_date), status=VALUES(status), check_in=VALUES(check_in),
                                        check_out=VALUES(check_out), hours_worked=VALUES(hours_worked)
                """,
                (record_id, a.attendance_id, a.date, a.status.value, a.check_in, a.check_out, a.hours_worked),
            )

    @staticmethod
    def _hydrate(cur, rows: List[Dict[str, Any]]) -> List[Employee]:
        if not rows:
            return []

        ids = [int(r["id"]) for r in rows]
        placeholders = ", ".join(["%s"] * len(ids))
        cur.execute(
            f"""
            SELECT employee_pk, attendance_id, work_date, status, check_in, check_out, hours_worked
            FROM employee_attendance
            WHERE employee_pk IN ({placeholders})
            ORDER BY employee_pk, attendance_id
            """,
            tuple(ids),
        )
        attendance: Dict[int, List[Attendance]] = {}
        for a in fetchall(cur):
            attendance.setdefault(int(a["employee_pk"]), []).append(
                Attendance(
                    attendance_id=int(a["attendance_id"]),
                    date=a["work_date"],
                    status=AttendanceStatus(a["status"]),
                    check_in=a.get("check_in"),
                    check_out=a.get("check_out"),
                    hours_worked=float(a["hours_worked"]) if a.get("hours_worked") is not None else None,
                )
            )

        out: List[Employee] = []
        for r in rows:
            out.append(
                Employee(
                    id=int(r["id"]),
                    employee_id=r["employee_id"],
                    name=r["name"],
                    age=int(r["age"]),
                    employee_class=r["class_name"],
                    subjects=tuple(json.loads(r["subjects"] or "[]")),
                    attendance=tuple(attendance.get(int(r["id"]), ())),
                    salary=float(r["salary"]) if r.get("salary") is not None else None,
                    department=r.get("department"),
                    position=r.get("position"),
                    hire_date=r.get("hire_date"),
                    contact_info=ContactInfo(
                        email=r.get("contact_email"),
                        phone=r.get("contact_phone"),
                        address=r.get("contact_address"),
                    ),
                    is_active=bool(r.get("is_active", True)),
                    created_by=int(r["created_by"]),
                    updated_by=int(r["updated_by"]) if r.get("updated_by") is not None else None,
                    created_at=r.get("created_at"),
                    updated_at=r.get("updated_at"),
                    version=int(r.get("version") or 1),
                )
            )
        return out
