import base64

import pytest

from employee_records.core.enums import SortOrder
from employee_records.core.exceptions import ValidationError
from employee_records.employees.model import Employee
from employee_records.query.cursor import CursorCodec
from employee_records.query.predicate import Predicate
from employee_records.query.spec import PositionKey, QuerySpec, SortKey


class DictLoader:
    def __init__(self, records):
        self._records = {r.id: r for r in records}
        self.calls = []

    def load(self, record_id):
        self.calls.append(record_id)
        return self._records.get(record_id)


def _employee(pk, name):
    return Employee(id=pk, employee_id=f"E{pk}", name=name, age=30, employee_class="A1", created_by=1)


def test_cursor_is_opaque_base64_of_the_identifier():
    cursor = CursorCodec().encode(_employee(42, "Ann"))

    assert base64.urlsafe_b64decode(cursor).decode() == "employee:42"
    assert CursorCodec().decode_id(cursor) == 42


@pytest.mark.parametrize("garbage", ["not-a-cursor!!", base64.urlsafe_b64encode(b"user:1").decode(), "ZW1wbG95ZWU6eA=="])
def test_malformed_cursor_is_a_validation_error(garbage):
    with pytest.raises(ValidationError):
        CursorCodec().decode_id(garbage)


def test_decode_resolves_position_under_the_given_order():
    record = _employee(7, "Zed")
    spec = QuerySpec(Predicate.universal(), SortKey("name", SortOrder.DESC))
    loader = DictLoader([record])

    position = CursorCodec().decode(CursorCodec().encode(record), spec, loader)

    assert position == PositionKey(("Zed", 7))
    assert loader.calls == [7]


def test_decode_returns_none_for_deleted_record():
    spec = QuerySpec(Predicate.universal(), SortKey("name"))
    cursor = CursorCodec().encode(_employee(9, "Gone"))

    assert CursorCodec().decode(cursor, spec, DictLoader([])) is None
