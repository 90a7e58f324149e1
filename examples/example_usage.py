"""Example: drive the service layer directly (no Flask), on the in-memory store.

Controllers are a thin layer; everything below is what a request handler does.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src" / "employee_records"))

from employee_records.container import build_container
from employee_records.core.enums import Role
from employee_records.query.context import RequestContext
from employee_records.query.pagination import PageWindow


def main():
    container = build_container(secret_key="example", backend="memory")
    admin_id = container.users_repo.create_user(
        username="admin", email="admin@example.com", password_hash="-", role=Role.ADMIN
    )
    actor = container.auth_service.actor_for_user_id(admin_id)

    def context():
        return RequestContext.create(actor, employee_store=container.employees_repo, user_store=container.users_repo)

    service = container.employee_service
    for i, dept in enumerate(["HR", "Engineering", "Engineering", None, "Sales"], start=1):
        service.create_employee(
            context(),
            {"employeeId": f"E{i}", "name": f"Person {i}", "age": 25 + i, "class": "A1", "subjects": ["Math"], "department": dept},
        )

    after = None
    while True:
        page = service.list_employees(context(), window=PageWindow(first=2, after=after))
        print([e.employee_id for e in page.nodes], "of", page.total_count)
        if not page.page_info.has_next_page:
            break
        after = page.page_info.end_cursor

    print(service.employee_stats(context()))


if __name__ == "__main__":
    main()
