"""Admin bootstrap, profile and faculty management endpoints."""
import pytest
from bson import ObjectId

from placement_portal.core.errors import PermissionDenied
from placement_portal.services.user_service import new_user_doc
from tests.conftest import PASSWORD

ADMIN = {
    "name": "Placement Officer",
    "email": "officer@nsec.ac.in",
    "phone": "+919471531830",
    "password": PASSWORD,
}

FACULTY = {
    "name": "Dr. Sen",
    "email": "sen@nsec.ac.in",
    "phone": "+919000000001",
    "password": PASSWORD,
    "specialization": "Data Science",
}


def admin_headers(client, email=ADMIN["email"]):
    token = client.post(
        "/api/auth/login", json={"email": email, "password": PASSWORD}
    ).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def test_first_admin_bootstrap_only_once(client):
    assert client.get("/api/admin/exists").json() == {"exists": False}

    resp = client.post("/api/admin/create-first-admin", json=ADMIN)
    assert resp.status_code == 201
    assert resp.json()["role"] == "admin"
    assert client.get("/api/admin/exists").json() == {"exists": True}

    again = client.post(
        "/api/admin/create-first-admin", json=dict(ADMIN, email="other@nsec.ac.in")
    )
    assert again.status_code == 403
    assert again.json()["error"] == "PermissionDenied"


def test_admin_creates_admin(client):
    client.post("/api/admin/create-first-admin", json=ADMIN)
    headers = admin_headers(client)

    resp = client.post(
        "/api/admin/create-admin", json=dict(ADMIN, email="second@nsec.ac.in"), headers=headers
    )
    assert resp.status_code == 201

    anonymous = client.post("/api/admin/create-admin", json=dict(ADMIN, email="third@nsec.ac.in"))
    assert anonymous.status_code == 401


def test_profile_update(client):
    client.post("/api/admin/create-first-admin", json=ADMIN)
    headers = admin_headers(client)

    resp = client.put("/api/admin/profile", json={"name": "Chief Officer"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Chief Officer"
    assert client.get("/api/admin/profile", headers=headers).json()["name"] == "Chief Officer"

    empty = client.put("/api/admin/profile", json={}, headers=headers)
    assert empty.status_code == 422
    assert empty.json()["error"] == "ValidationError"


def test_faculty_is_scoped_to_creating_admin(client, make_user):
    client.post("/api/admin/create-first-admin", json=ADMIN)
    make_user(role="admin", email="second@nsec.ac.in")
    owner = admin_headers(client)
    other = admin_headers(client, "second@nsec.ac.in")

    created = client.post("/api/admin/faculty", json=FACULTY, headers=owner)
    assert created.status_code == 201
    faculty = created.json()
    owner_id = client.get("/api/admin/profile", headers=owner).json()["id"]
    assert faculty["created_by"] == owner_id
    assert faculty["specialization"] == "Data Science"

    assert [f["email"] for f in client.get("/api/admin/faculty", headers=owner).json()] == [FACULTY["email"]]
    assert client.get("/api/admin/faculty", headers=other).json() == []

    denied = client.delete(f"/api/admin/faculty/{faculty['id']}", headers=other)
    assert denied.status_code == 404

    deleted = client.delete(f"/api/admin/faculty/{faculty['id']}", headers=owner)
    assert deleted.status_code == 200
    assert client.get("/api/admin/faculty", headers=owner).json() == []


def test_faculty_email_must_be_unique_across_roles(client, make_user):
    client.post("/api/admin/create-first-admin", json=ADMIN)
    make_user(email=FACULTY["email"])

    resp = client.post("/api/admin/faculty", json=FACULTY, headers=admin_headers(client))
    assert resp.status_code == 409
    assert resp.json()["error"] == "DuplicateEmail"


def test_faculty_login_and_admin_routes_forbidden(client):
    client.post("/api/admin/create-first-admin", json=ADMIN)
    client.post("/api/admin/faculty", json=FACULTY, headers=admin_headers(client))

    login = client.post("/api/auth/login", json={"email": FACULTY["email"], "password": PASSWORD})
    assert login.json()["role"] == "faculty"

    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
    resp = client.get("/api/admin/students", headers=headers)
    assert resp.status_code == 403


def test_students_lists_verified_only(client, make_user):
    client.post("/api/admin/create-first-admin", json=ADMIN)
    make_user(email="verified@nsec.ac.in", is_verified=True)
    make_user(email="pending@nsec.ac.in", is_verified=False)

    students = client.get("/api/admin/students", headers=admin_headers(client)).json()
    assert [s["email"] for s in students] == ["verified@nsec.ac.in"]
    assert students[0]["course"] == "BTech"


def test_racing_bootstrap_loses_on_unique_index(users, monkeypatch):
    # Both requests saw no admin before inserting
    monkeypatch.setattr(users, "admin_exists", lambda: False)
    first = new_user_doc("admin", "One", "one@nsec.ac.in", "+919000000002", "x", is_verified=True)
    second = new_user_doc("admin", "Two", "two@nsec.ac.in", "+919000000003", "x", is_verified=True)

    users.insert_first_admin(first)
    with pytest.raises(PermissionDenied):
        users.insert_first_admin(second)
    assert users.get_by_email("two@nsec.ac.in") is None


def test_first_admin_email_taken_by_student(client, make_user):
    make_user(email=ADMIN["email"])

    resp = client.post("/api/admin/create-first-admin", json=ADMIN)
    assert resp.status_code == 409
    assert resp.json()["error"] == "DuplicateEmail"
    assert client.get("/api/admin/exists").json() == {"exists": False}


def test_first_admin_lookup(client, make_user):
    client.post("/api/admin/create-first-admin", json=ADMIN)
    make_user(role="admin", email="second@nsec.ac.in")
    make_user(email="student@nsec.ac.in")

    assert client.get("/api/admin/first").status_code == 401

    student = admin_headers(client, "student@nsec.ac.in")
    resp = client.get("/api/admin/first", headers=student)
    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == ADMIN["email"]
    assert body["name"] == ADMIN["name"]
    assert set(body) == {"id", "name", "email"}


def test_delete_admin(client, make_user):
    client.post("/api/admin/create-first-admin", json=ADMIN)
    second = make_user(role="admin", email="second@nsec.ac.in")
    owner = admin_headers(client)
    owner_id = client.get("/api/admin/profile", headers=owner).json()["id"]

    own = client.delete(f"/api/admin/{owner_id}", headers=owner)
    assert own.status_code == 403
    assert own.json()["error"] == "PermissionDenied"

    missing = client.delete(f"/api/admin/{ObjectId()}", headers=owner)
    assert missing.status_code == 404
    assert client.delete("/api/admin/not-an-id", headers=owner).status_code == 404

    resp = client.delete(f"/api/admin/{second['_id']}", headers=owner)
    assert resp.status_code == 200
    login = client.post(
        "/api/auth/login", json={"email": "second@nsec.ac.in", "password": PASSWORD}
    )
    assert login.status_code == 401


def test_delete_admin_ignores_non_admin_accounts(client, users, make_user):
    client.post("/api/admin/create-first-admin", json=ADMIN)
    student = make_user(email="student@nsec.ac.in")

    resp = client.delete(f"/api/admin/{student['_id']}", headers=admin_headers(client))
    assert resp.status_code == 404
    assert users.get_by_email("student@nsec.ac.in") is not None


def test_last_admin_is_never_deleted(users, make_user):
    only = make_user(role="admin", email="only@nsec.ac.in")

    with pytest.raises(PermissionDenied):
        users.delete_admin(str(only["_id"]))
    assert users.admin_exists()
