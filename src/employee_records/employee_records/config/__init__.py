import os


def get_settings_module() -> str:
    # APP_ENV selects the settings module; defaults to development
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "employee_records.config.production"

    if env in {"test", "testing"}:
        return "employee_records.config.testing"

    return "employee_records.config.development"
