from employee_records.core.enums import SortOrder
from employee_records.query.builder import EmployeeFilter, EmployeeSort, QuerySpecBuilder
from employee_records.query.predicate import AnyOf, Contains, Equals, Predicate, Range
from employee_records.query.spec import SortKey


def test_empty_request_gives_universal_predicate_and_default_order():
    spec = QuerySpecBuilder().build()

    assert spec.predicate.is_universal
    assert spec.order == (SortKey("createdAt", SortOrder.DESC), SortKey("id", SortOrder.ASC))


def test_filter_fields_map_to_constraints():
    spec = QuerySpecBuilder().build(
        EmployeeFilter(name="ali", class_name="A1", department="HR", is_active=False, age_min=20, age_max=40)
    )

    assert spec.predicate == Predicate.of(
        Contains("name", "ali"),
        Equals("class", "A1"),
        Equals("department", "HR"),
        Equals("isActive", False),
        Range("age", 20, 40),
    )


def test_empty_strings_count_as_absent():
    predicate = QuerySpecBuilder.predicate_for(EmployeeFilter(name="", class_name="", department=""))
    assert predicate.is_universal


def test_single_age_bound_builds_open_range():
    predicate = QuerySpecBuilder.predicate_for(EmployeeFilter(age_min=50))
    assert predicate.constraints == (Range("age", 50, None),)


def test_tie_break_is_appended_to_any_sort():
    spec = QuerySpecBuilder().build(sort_request=EmployeeSort("name", SortOrder.ASC))
    assert spec.order[-1] == SortKey("id", SortOrder.ASC)


def test_unknown_sort_field_is_forwarded_unchanged():
    spec = QuerySpecBuilder().build(sort_request=EmployeeSort("shoeSize"))
    assert spec.sort.field == "shoeSize"


def test_search_text_becomes_disjunction_over_search_fields():
    spec = QuerySpecBuilder().build_search("  smith ")

    (constraint,) = spec.predicate.constraints
    assert isinstance(constraint, AnyOf)
    assert [c.field for c in constraint.constraints] == ["name", "employeeId", "department", "class"]
    assert all(c.text == "smith" for c in constraint.constraints)


def test_blank_search_matches_everything():
    assert QuerySpecBuilder().build_search("   ").predicate.is_universal
