from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from flask import Flask, g, jsonify, request

from ..common.validators import parse_bool, parse_optional_int
from ..core.enums import SortOrder
from ..core.exceptions import ValidationError
from ..container import Container
from ..query.builder import DEFAULT_SORT, EmployeeFilter, EmployeeSort
from ..query.pagination import PageWindow
from .serializers import connection_to_dict, employee_to_dict, stats_to_dict


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _split_version(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[int]]:
    """Pull the optional ``expectedVersion`` out of a write payload."""
    payload = dict(body)
    version = payload.pop("expectedVersion", None)
    if version is not None and (isinstance(version, bool) or not isinstance(version, int)):
        raise ValidationError("expectedVersion must be an integer")
    return payload, version


def _filter_from_args(args) -> EmployeeFilter:
    return EmployeeFilter(
        name=args.get("name") or None,
        class_name=args.get("class") or None,
        department=args.get("department") or None,
        is_active=parse_bool(args.get("isActive"), "isActive"),
        age_min=parse_optional_int(args.get("ageMin"), "ageMin"),
        age_max=parse_optional_int(args.get("ageMax"), "ageMax"),
    )


def _sort_from_args(args) -> EmployeeSort:
    field = args.get("sortField") or DEFAULT_SORT.field
    order_s = (args.get("sortOrder") or "").upper()
    if not order_s:
        return EmployeeSort(field, DEFAULT_SORT.order)
    try:
        return EmployeeSort(field, SortOrder(order_s))
    except ValueError:
        raise ValidationError("sortOrder must be ASC or DESC")


def _window_from_args(args) -> PageWindow:
    return PageWindow(
        first=parse_optional_int(args.get("first"), "first"),
        after=args.get("after") or None,
        last=parse_optional_int(args.get("last"), "last"),
        before=args.get("before") or None,
    )


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    @app.get("/api/employees", endpoint="list_employees")
    def list_employees():
        ctx = g.request_context
        connection = service.list_employees(
            ctx,
            filter_request=_filter_from_args(request.args),
            sort_request=_sort_from_args(request.args),
            window=_window_from_args(request.args),
        )
        return jsonify({"success": True, "data": connection_to_dict(connection, ctx)})

    @app.get("/api/employees/search", endpoint="search_employees")
    def search_employees():
        ctx = g.request_context
        limit = parse_optional_int(request.args.get("limit"), "limit")
        rows = service.search_employees(ctx, request.args.get("q", ""), limit=limit)
        return jsonify({"success": True, "data": [employee_to_dict(e, ctx) for e in rows]})

    @app.get("/api/employees/stats", endpoint="employee_stats")
    def employee_stats():
        stats = service.employee_stats(g.request_context)
        return jsonify({"success": True, "data": stats_to_dict(stats)})

    @app.get("/api/employees/<int:employee_pk>", endpoint="get_employee")
    def get_employee(employee_pk: int):
        ctx = g.request_context
        employee = service.get_employee(ctx, employee_pk)
        return jsonify({"success": True, "data": employee_to_dict(employee, ctx)})

    @app.get("/api/employees/by-employee-id/<employee_id>", endpoint="get_employee_by_employee_id")
    def get_employee_by_employee_id(employee_id: str):
        ctx = g.request_context
        employee = service.get_by_employee_id(ctx, employee_id)
        return jsonify({"success": True, "data": employee_to_dict(employee, ctx)})

    @app.post("/api/employees", endpoint="create_employee")
    def create_employee():
        ctx = g.request_context
        employee = service.create_employee(ctx, _json_body())
        return jsonify({"success": True, "data": employee_to_dict(employee, ctx)}), 201

    @app.patch("/api/employees/<int:employee_pk>", endpoint="update_employee")
    def update_employee(employee_pk: int):
        ctx = g.request_context
        payload, version = _split_version(_json_body())
        employee = service.update_employee(ctx, employee_pk, payload, expected_version=version)
        return jsonify({"success": True, "data": employee_to_dict(employee, ctx)})

    @app.delete("/api/employees/<int:employee_pk>", endpoint="delete_employee")
    def delete_employee(employee_pk: int):
        deleted = service.delete_employee(g.request_context, employee_pk)
        return jsonify({"success": deleted, "message": "Employee deleted"})

    @app.post("/api/employees/<int:employee_pk>/attendance", endpoint="add_attendance")
    def add_attendance(employee_pk: int):
        ctx = g.request_context
        payload, version = _split_version(_json_body())
        employee = service.add_attendance(ctx, employee_pk, payload, expected_version=version)
        return jsonify({"success": True, "data": employee_to_dict(employee, ctx)}), 201

    @app.patch("/api/employees/<int:employee_pk>/attendance/<int:attendance_id>", endpoint="update_attendance")
    def update_attendance(employee_pk: int, attendance_id: int):
        ctx = g.request_context
        payload, version = _split_version(_json_body())
        employee = service.update_attendance(ctx, employee_pk, attendance_id, payload, expected_version=version)
        return jsonify({"success": True, "data": employee_to_dict(employee, ctx)})
