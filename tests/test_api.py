import pytest
from werkzeug.security import generate_password_hash

from employee_records.core.enums import Role
from employee_records.main import create_app, status_for
from employee_records.core.exceptions import DuplicateKeyError, StoreFailure, UnknownFieldError, VersionConflict


@pytest.fixture
def app():
    app = create_app("employee_records.config.testing")
    container = app.extensions["employee_records"]
    container.users_repo.create_user(
        username="boss",
        email="boss@example.com",
        password_hash=generate_password_hash("boss-pass"),
        role=Role.ADMIN,
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def _login(client, username, password):
    resp = client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200
    return resp.get_json()["data"]["token"]


@pytest.fixture
def admin_headers(client):
    return {"Authorization": f"Bearer {_login(client, 'boss', 'boss-pass')}"}


@pytest.fixture
def staff_headers(client):
    resp = client.post(
        "/api/auth/register",
        json={"username": "staffer", "email": "staffer@example.com", "password": "staff-pass"},
    )
    assert resp.status_code == 201
    return {"Authorization": f"Bearer {resp.get_json()['data']['token']}"}


def _create(client, headers, **overrides):
    payload = {"employeeId": "E1", "name": "Ada Lovelace", "age": 30, "class": "A1", "subjects": ["Math"]}
    payload.update(overrides)
    return client.post("/api/employees", json=payload, headers=headers)


def test_requests_without_credentials_are_401(client):
    resp = client.get("/api/employees")
    assert resp.status_code == 401
    assert resp.get_json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


def test_me_with_token_and_with_session(client, admin_headers):
    assert client.get("/api/auth/me", headers=admin_headers).get_json()["data"]["username"] == "boss"
    # The login above also filled the session cookie.
    assert client.get("/api/auth/me").get_json()["data"]["role"] == "ADMIN"

    client.post("/api/auth/logout")
    assert client.get("/api/auth/me").status_code == 401


def test_create_and_fetch_employee(client, admin_headers):
    resp = _create(client, admin_headers)
    assert resp.status_code == 201
    created = resp.get_json()["data"]
    assert created["createdBy"] == {"id": 1, "username": "boss"}
    assert created["version"] == 1

    by_pk = client.get(f"/api/employees/{created['id']}", headers=admin_headers).get_json()["data"]
    by_business_id = client.get("/api/employees/by-employee-id/E1", headers=admin_headers).get_json()["data"]
    assert by_pk == by_business_id


def test_duplicate_employee_id_is_409(client, admin_headers):
    _create(client, admin_headers)
    resp = _create(client, admin_headers, name="Someone Else")
    assert resp.status_code == 409
    assert resp.get_json()["error"]["code"] == "ALREADY_EXISTS"


def test_validation_errors_are_400_with_details(client, admin_headers):
    resp = _create(client, admin_headers, age=5, subjects=[])
    body = resp.get_json()
    assert resp.status_code == 400
    assert body["success"] is False
    assert len(body["error"]["details"]) == 2


def test_staff_cannot_write_or_see_stats(client, admin_headers, staff_headers):
    assert _create(client, staff_headers).status_code == 403
    assert client.get("/api/employees/stats", headers=staff_headers).status_code == 403
    assert client.get("/api/employees/stats", headers=admin_headers).status_code == 200



def test_stats_payload_uses_count_group_names(client, admin_headers):
    _create(client, admin_headers, employeeId="K1", age=30)
    _create(client, admin_headers, employeeId="K2", age=40, department="HR")
    _create(client, admin_headers, employeeId="K3", age=50, **{"class": "B2"})

    data = client.get("/api/employees/stats", headers=admin_headers).get_json()["data"]

    assert data["totalEmployees"] == 3
    assert data["averageAge"] == 40.0
    assert data["classCounts"] == [{"class": "A1", "count": 2}, {"class": "B2", "count": 1}]
    assert data["departmentCounts"] == [{"department": "Unknown", "count": 2}, {"department": "HR", "count": 1}]
    assert "classStats" not in data and "departmentStats" not in data

def test_staff_gets_403_for_inactive_record_and_404_for_missing(client, admin_headers, staff_headers):
    created = _create(client, admin_headers).get_json()["data"]
    client.patch(f"/api/employees/{created['id']}", json={"isActive": False}, headers=admin_headers)

    hidden = client.get(f"/api/employees/{created['id']}", headers=staff_headers)
    missing = client.get("/api/employees/9999", headers=staff_headers)

    assert hidden.status_code == 403
    assert hidden.get_json()["error"]["code"] == "ACCESS_DENIED"
    assert missing.status_code == 404


def test_list_pages_with_cursors(client, admin_headers):
    for i in range(5):
        _create(client, admin_headers, employeeId=f"E{i}", name=f"Person {i}", age=20 + i)

    first = client.get("/api/employees?first=2&sortField=age&sortOrder=asc", headers=admin_headers).get_json()["data"]
    after = first["pageInfo"]["endCursor"]
    second = client.get(
        f"/api/employees?first=2&sortField=age&sortOrder=ASC&after={after}", headers=admin_headers
    ).get_json()["data"]

    assert [e["node"]["age"] for e in first["edges"]] == [20, 21]
    assert [e["node"]["age"] for e in second["edges"]] == [22, 23]
    assert first["totalCount"] == second["totalCount"] == 5
    assert second["pageInfo"] == {
        "hasNextPage": True,
        "hasPreviousPage": True,
        "startCursor": second["edges"][0]["cursor"],
        "endCursor": second["edges"][1]["cursor"],
    }


def test_list_filters_from_query_args(client, admin_headers):
    _create(client, admin_headers, employeeId="A", name="Young", age=20, department="HR")
    _create(client, admin_headers, employeeId="B", name="Old", age=60, department="HR")

    data = client.get("/api/employees?department=HR&ageMin=50", headers=admin_headers).get_json()["data"]

    assert [e["node"]["employeeId"] for e in data["edges"]] == ["B"]


@pytest.mark.parametrize(
    "query",
    ["first=-1", "first=abc", "sortOrder=sideways", "isActive=maybe", "after=!!!", "sortField=shoeSize"],
)
def test_bad_list_arguments_are_400(client, admin_headers, query):
    assert client.get(f"/api/employees?{query}", headers=admin_headers).status_code == 400


def test_search_endpoint(client, admin_headers):
    _create(client, admin_headers, employeeId="S1", name="Maria Smith")
    _create(client, admin_headers, employeeId="S2", name="Bob Jones")

    data = client.get("/api/employees/search?q=smith", headers=admin_headers).get_json()["data"]

    assert [e["employeeId"] for e in data] == ["S1"]


def test_attendance_endpoints(client, admin_headers):
    created = _create(client, admin_headers).get_json()["data"]
    base = f"/api/employees/{created['id']}/attendance"

    added = client.post(
        base,
        json={"date": "2025-02-03", "status": "PRESENT", "checkIn": "2025-02-03T08:00:00", "checkOut": "2025-02-03T12:00:00"},
        headers=admin_headers,
    )
    assert added.status_code == 201
    assert added.get_json()["data"]["attendance"][0]["hoursWorked"] == 4.0

    patched = client.patch(f"{base}/1", json={"status": "LATE"}, headers=admin_headers)
    assert patched.get_json()["data"]["attendance"][0]["status"] == "LATE"
    assert client.patch(f"{base}/7", json={"status": "LATE"}, headers=admin_headers).status_code == 404


def test_version_conflict_is_409(client, admin_headers):
    created = _create(client, admin_headers).get_json()["data"]
    url = f"/api/employees/{created['id']}"
    client.patch(url, json={"name": "First Edit"}, headers=admin_headers)

    resp = client.patch(url, json={"name": "Late Edit", "expectedVersion": created["version"]}, headers=admin_headers)

    assert resp.status_code == 409
    assert resp.get_json()["error"]["code"] == "VERSION_CONFLICT"


def test_delete_endpoint(client, admin_headers):
    created = _create(client, admin_headers).get_json()["data"]
    url = f"/api/employees/{created['id']}"

    assert client.delete(url, headers=admin_headers).status_code == 200
    assert client.delete(url, headers=admin_headers).status_code == 404


def test_bad_credentials_are_401(client):
    resp = client.post("/api/auth/login", json={"username": "boss", "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["error"]["message"] == "Invalid credentials"


def test_store_failure_details_are_hidden(app, client, admin_headers, monkeypatch):
    container = app.extensions["employee_records"]

    def broken(*args, **kwargs):
        raise StoreFailure("connection refused by 10.0.0.5")

    monkeypatch.setattr(container.employees_repo, "count", broken)
    resp = client.get("/api/employees", headers=admin_headers)

    assert resp.status_code == 500
    assert resp.get_json()["error"]["message"] == "Internal server error"


def test_status_mapping():
    assert status_for(VersionConflict("x")) == 409
    assert status_for(DuplicateKeyError("x")) == 409
    assert status_for(UnknownFieldError("x")) == 400
    assert status_for(StoreFailure("x")) == 500


@pytest.mark.parametrize("role", ["ADMIN", "manager"])
def test_register_rejects_a_non_employee_role(client, role):
    resp = client.post(
        "/api/auth/register",
        json={"username": "climber", "email": "climber@example.com", "password": "climb-pass", "role": role},
    )

    assert resp.status_code == 400
    assert resp.get_json()["error"]["details"] == ["Self-registration can only create EMPLOYEE accounts"]
    assert client.post("/api/auth/login", json={"username": "climber", "password": "climb-pass"}).status_code == 401


def test_register_accepts_an_explicit_employee_role(client):
    resp = client.post(
        "/api/auth/register",
        json={"username": "worker", "email": "worker@example.com", "password": "work-pass", "role": "EMPLOYEE"},
    )

    assert resp.status_code == 201
    assert resp.get_json()["data"]["user"]["role"] == "EMPLOYEE"
