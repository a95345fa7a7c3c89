from ParkPermitAPI.tests.conftest import (
    TestingSessionLocal, auth_headers, create_admin, create_application, create_park, create_user,
)


def _approve(test_client, application, headers):
    resp = test_client.patch(f"/applications/{application.id}/approve", headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["invoice"]


def test_mark_invoice_paid_twice(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        headers = auth_headers(admin)
        invoice = _approve(test_client, create_application(db, permit_fee=100), headers)

        first = test_client.patch(f"/invoices/{invoice['id']}/paid", headers=headers)
        assert first.status_code == 200
        assert first.json()["status"] == "paid"
        assert first.json()["paid_at"] is not None

        second = test_client.patch(f"/invoices/{invoice['id']}/paid", headers=headers)
        assert second.status_code == 200
        assert second.json()["status"] == "paid"
        assert second.json()["paid_at"] == first.json()["paid_at"]
    finally:
        db.close()


def test_mark_missing_invoice_paid(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        resp = test_client.patch("/invoices/999999/paid", headers=auth_headers(admin))
        assert resp.status_code == 404
    finally:
        db.close()


def test_list_invoices_filters(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        headers = auth_headers(admin)
        application = create_application(db, permit_fee=25)
        invoice = _approve(test_client, application, headers)

        resp = test_client.get("/invoices/", params={"application_id": application.id}, headers=headers)
        assert resp.status_code == 200
        assert [i["id"] for i in resp.json()] == [invoice["id"]]
        assert resp.json()[0]["amount"] == 2500

        pending = test_client.get("/invoices/", params={"status": "pending"}, headers=headers)
        assert invoice["id"] in [i["id"] for i in pending.json()]

        bad = test_client.get("/invoices/", params={"status": "void"}, headers=headers)
        assert bad.status_code == 400
    finally:
        db.close()


def test_application_shows_invoice_status(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        headers = auth_headers(admin)
        application = create_application(db)
        invoice = _approve(test_client, application, headers)

        assert test_client.get(f"/applications/{application.id}", headers=headers).json()["invoice_status"] == "pending"
        test_client.patch(f"/invoices/{invoice['id']}/paid", headers=headers)
        assert test_client.get(f"/applications/{application.id}", headers=headers).json()["invoice_status"] == "paid"
    finally:
        db.close()


def test_recent_invoices_are_scoped_to_staff_parks(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        own_park = create_park(db)
        other_park = create_park(db)
        staff = create_user(db, parks=[own_park])
        mine = _approve(test_client, create_application(db, park=own_park), auth_headers(admin))
        theirs = _approve(test_client, create_application(db, park=other_park), auth_headers(admin))

        resp = test_client.get("/invoices/recent", params={"limit": 100}, headers=auth_headers(staff))
        assert resp.status_code == 200
        ids = [i["id"] for i in resp.json()]
        assert mine["id"] in ids
        assert theirs["id"] not in ids

        assert test_client.get(f"/invoices/{theirs['id']}", headers=auth_headers(staff)).status_code == 403
        assert test_client.patch(f"/invoices/{theirs['id']}/paid", headers=auth_headers(staff)).status_code == 403
    finally:
        db.close()


def test_invoices_cannot_be_deleted(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        invoice = _approve(test_client, create_application(db), auth_headers(admin))

        resp = test_client.delete(f"/invoices/{invoice['id']}", headers=auth_headers(admin))
        assert resp.status_code == 405
    finally:
        db.close()
