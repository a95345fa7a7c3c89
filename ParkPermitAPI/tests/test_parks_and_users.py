import uuid

from ParkPermitAPI.models import User
from ParkPermitAPI.tests.conftest import (
    TestingSessionLocal, auth_headers, create_admin, create_application, create_park, create_user,
)
from ParkPermitAPI.utils import hash_password


def test_login_returns_token(test_client):
    db = TestingSessionLocal()
    try:
        email = f"{uuid.uuid4().hex[:8]}@parks.example.com"
        user = User(email=email, encrypted_password=hash_password("s3cret!"), role="staff")
        db.add(user)
        db.commit()

        resp = test_client.post("/login", data={"username": email.upper(), "password": "s3cret!"})
        assert resp.status_code == 200, resp.text
        token = resp.json()["access_token"]

        me = test_client.get("/user", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == email

        bad = test_client.post("/login", data={"username": email, "password": "wrong"})
        assert bad.status_code == 401
    finally:
        db.close()


def test_invalid_token_rejected(test_client):
    resp = test_client.get("/user", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


def test_admin_creates_staff_and_assigns_park(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        headers = auth_headers(admin)
        park = create_park(db)
        email = f"{uuid.uuid4().hex[:8]}@parks.example.com"

        resp = test_client.post(
            "/users/", json={"email": email, "name": "Ranger Kim", "password": "pw12345", "role": "staff"}, headers=headers
        )
        assert resp.status_code == 201, resp.text
        user_id = resp.json()["id"]

        dup = test_client.post("/users/", json={"email": email, "password": "pw12345"}, headers=headers)
        assert dup.status_code == 409

        resp = test_client.post(f"/users/{user_id}/parks/{park.id}", headers=headers)
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json()] == [park.id]

        resp = test_client.delete(f"/users/{user_id}/parks/{park.id}", headers=headers)
        assert resp.status_code == 204
        assert test_client.get(f"/users/{user_id}/parks", headers=headers).json() == []
    finally:
        db.close()


def test_staff_cannot_manage_users_or_parks(test_client):
    db = TestingSessionLocal()
    try:
        staff = create_user(db)
        headers = auth_headers(staff)
        assert test_client.get("/users/", headers=headers).status_code == 403
        assert test_client.post("/parks/", json={"name": "X", "location": "Y"}, headers=headers).status_code == 403
    finally:
        db.close()


def test_park_crud_and_locations(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        headers = auth_headers(admin)

        resp = test_client.post("/parks/", json={"name": "Antelope Island", "location": "Syracuse"}, headers=headers)
        assert resp.status_code == 201, resp.text
        park_id = resp.json()["id"]
        assert resp.json()["status"] == "active"

        resp = test_client.patch(f"/parks/{park_id}", json={"status": "maintenance"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["status"] == "maintenance"

        bad = test_client.patch(f"/parks/{park_id}", json={"status": "flooded"}, headers=headers)
        assert bad.status_code == 422

        resp = test_client.post(f"/parks/{park_id}/locations", json={"name": "Beach Pavilion"}, headers=headers)
        assert resp.status_code == 201
        locations = test_client.get(f"/parks/{park_id}/locations", headers=headers).json()
        assert [loc["name"] for loc in locations] == ["Beach Pavilion"]

        assert test_client.get("/parks/999999", headers=headers).status_code == 404
    finally:
        db.close()


def test_park_with_applications_cannot_be_deleted(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        headers = auth_headers(admin)
        busy = create_park(db)
        create_application(db, park=busy)
        empty = create_park(db)

        assert test_client.delete(f"/parks/{busy.id}", headers=headers).status_code == 400
        assert test_client.delete(f"/parks/{empty.id}", headers=headers).status_code == 204
    finally:
        db.close()


def test_dashboard_stats_for_staff(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        park = create_park(db)
        staff = create_user(db, parks=[park])
        create_application(db, park=park)
        approved = create_application(db, park=park, permit_fee=40)
        create_application(db, park=park, status="disapproved", disapproval_reason="no")
        create_application(db)

        invoice = test_client.patch(f"/applications/{approved.id}/approve", headers=auth_headers(admin)).json()["invoice"]
        test_client.patch(f"/invoices/{invoice['id']}/paid", headers=auth_headers(admin))

        resp = test_client.get("/dashboard/stats", headers=auth_headers(staff))
        assert resp.status_code == 200
        assert resp.json() == {
            "pending_applications": 1,
            "approved_applications": 1,
            "disapproved_applications": 1,
            "total_invoices": 1,
            "pending_invoices": 0,
            "revenue": 4000,
        }
    finally:
        db.close()


def test_dashboard_stats_for_unassigned_staff(test_client):
    db = TestingSessionLocal()
    try:
        staff = create_user(db)
        resp = test_client.get("/dashboard/stats", headers=auth_headers(staff))
        assert resp.status_code == 200
        assert resp.json()["pending_applications"] == 0
    finally:
        db.close()
