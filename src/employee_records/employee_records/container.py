from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .auth.policy import AuthorizationPolicy
from .core.constants import DEFAULT_PAGE_SIZE, DEFAULT_SEARCH_LIMIT, DEFAULT_TOKEN_MAX_AGE_SECONDS, MAX_PAGE_SIZE
from .database.connection import DBConfig, DatabaseConnection
from .employees.memory_repository import InMemoryEmployeeRepository
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService
from .query.aggregation import AggregationEngine
from .query.pagination import PaginationEngine
from .users.memory_user_repository import InMemoryUserRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, TokenService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    employees_repo: EmployeeRepository

    policy: AuthorizationPolicy
    tokens: TokenService
    auth_service: AuthService
    employee_service: EmployeeService


def build_container(
    *,
    secret_key: str,
    db_config: Optional[dict] = None,
    backend: str = "mysql",
    token_max_age: int = DEFAULT_TOKEN_MAX_AGE_SECONDS,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
    search_limit: int = DEFAULT_SEARCH_LIMIT,
) -> Container:
    backend = (backend or "mysql").lower()
    if backend == "memory":
        conn = None
        users_repo = InMemoryUserRepository()
        employees_repo = InMemoryEmployeeRepository()
    elif backend == "mysql":
        if db_config is None:
            raise ValueError("db_config is required for the mysql backend")
        conn = DatabaseConnection(DBConfig.from_dict(db_config))
        users_repo = MySQLUserRepository(conn)
        employees_repo = MySQLEmployeeRepository(conn)
    else:
        raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")

    policy = AuthorizationPolicy()
    tokens = TokenService(secret_key, max_age_seconds=token_max_age)
    auth_service = AuthService(users_repo, tokens, policy=policy)
    employee_service = EmployeeService(
        employees_repo,
        policy=policy,
        pagination=PaginationEngine(
            employees_repo,
            default_page_size=default_page_size,
            max_page_size=max_page_size,
        ),
        aggregation=AggregationEngine(employees_repo),
        search_limit=search_limit,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        employees_repo=employees_repo,
        policy=policy,
        tokens=tokens,
        auth_service=auth_service,
        employee_service=employee_service,
    )
