from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request, session

from .common.logging import configure_logging, get_logger
from .config import get_settings_module
from .container import Container, build_container
from .core.constants import DEFAULT_PAGE_SIZE, DEFAULT_SEARCH_LIMIT, DEFAULT_TOKEN_MAX_AGE_SECONDS, MAX_PAGE_SIZE
from .core.exceptions import (
    AlreadyExists,
    AuthenticationError,
    AuthorizationError,
    DomainError,
    DuplicateKeyError,
    NotFound,
    StoreFailure,
    UnknownFieldError,
    ValidationError,
    VersionConflict,
)
from .database.bootstrap import apply_schema, ensure_demo_data, list_tables
from .employees.controller import register as register_employees
from .query.context import RequestContext
from .users.controller import register as register_users

log = get_logger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"

# First match wins; subclasses come before their bases.
_STATUS_BY_ERROR = (
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFound, 404),
    (ValidationError, 400),
    (UnknownFieldError, 400),
    (AlreadyExists, 409),
    (DuplicateKeyError, 409),
    (VersionConflict, 409),
    (StoreFailure, 500),
)


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def _register_request_context(app: Flask, container: Container) -> None:
    auth = container.auth_service

    @app.before_request
    def build_request_context():
        token = _bearer_token()
        if token is not None:
            actor = auth.actor_for_token(token)
        else:
            actor = auth.actor_for_user_id(session.get("user_id"))
        g.request_context = RequestContext.create(
            actor,
            employee_store=container.employees_repo,
            user_store=container.users_repo,
        )


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        status = status_for(error)
        code = error.code
        message = str(error)

        if isinstance(error, DuplicateKeyError):
            message = "Resource already exists"
        elif status >= 500:
            log.error("Store failure on %s %s", request.method, request.path, exc_info=error)
            if not app.config.get("DEBUG", False):
                message = "Internal server error"

        body = {"success": False, "error": {"code": code, "message": message}}
        details = getattr(error, "details", None)
        if details:
            body["error"]["details"] = list(details)
        return jsonify(body), status

    @app.errorhandler(404)
    def handle_not_found(_error):
        return jsonify({"success": False, "error": {"code": "NOT_FOUND", "message": "Route not found"}}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(_error):
        return jsonify({"success": False, "error": {"code": "METHOD_NOT_ALLOWED", "message": "Method not allowed"}}), 405


def create_app(settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)

    configure_logging(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")),
        json_logs=bool(getattr(settings, "LOG_JSON", False)),
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    backend = str(getattr(settings, "STORE_BACKEND", "mysql")).lower()
    db_config = dict(getattr(settings, "DB_CONFIG", {}))

    log.info(
        "Starting employee-records settings=%s backend=%s db=%s@%s:%s/%s",
        settings_module,
        backend,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if backend == "mysql":
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            log.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_data(db_config)
            log.info("Demo data ready")

    container = build_container(
        secret_key=app.secret_key,
        db_config=db_config,
        backend=backend,
        token_max_age=int(getattr(settings, "TOKEN_MAX_AGE_SECONDS", DEFAULT_TOKEN_MAX_AGE_SECONDS)),
        default_page_size=int(getattr(settings, "DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE)),
        max_page_size=int(getattr(settings, "MAX_PAGE_SIZE", MAX_PAGE_SIZE)),
        search_limit=int(getattr(settings, "DEFAULT_SEARCH_LIMIT", DEFAULT_SEARCH_LIMIT)),
    )
    app.extensions["employee_records"] = container

    _register_request_context(app, container)
    _register_error_handlers(app)

    register_users(app, container)
    register_employees(app, container)

    return app
