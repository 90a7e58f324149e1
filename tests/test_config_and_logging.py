import json
import logging

import pytest

from employee_records.common.logging import JsonFormatter
from employee_records.config import get_settings_module


@pytest.mark.parametrize(
    "env, expected",
    [
        ("production", "employee_records.config.production"),
        ("prod", "employee_records.config.production"),
        ("Testing", "employee_records.config.testing"),
        ("anything-else", "employee_records.config.development"),
    ],
)
def test_settings_module_follows_app_env(monkeypatch, env, expected):
    monkeypatch.setenv("APP_ENV", env)
    assert get_settings_module() == expected


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("employee_records.test", logging.INFO, __file__, 1, "created %s", ("E1",), None)
    record.employee_id = "E1"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "created E1"
    assert payload["level"] == "INFO"
    assert payload["employee_id"] == "E1"
