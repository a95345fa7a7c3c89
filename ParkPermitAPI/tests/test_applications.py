from decimal import Decimal

from ParkPermitAPI.models import Application, Invoice
from ParkPermitAPI.schemas import ApplicationUpdate
from ParkPermitAPI.tests.conftest import (
    TestingSessionLocal, auth_headers, create_admin, create_application, create_park, create_user,
)


def test_applications_require_login(test_client):
    resp = test_client.get("/applications/")
    assert resp.status_code == 401


def test_create_application_via_api(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        park = create_park(db)
        payload = {
            "park_id": park.id,
            "applicant_type": "individual",
            "first_name": "Lee",
            "last_name": "Park",
            "email": "lee@example.com",
            "event_title": "Birthday Picnic",
            "event_dates": ["2026-06-20"],
            "application_fee": 10,
            "permit_fee": 35,
            "agreed_to_terms": True,
        }
        resp = test_client.post("/applications/", json=payload, headers=auth_headers(admin))
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["status"] == "pending"
        assert data["is_paid"] is False
        assert Decimal(data["total_fee"]) == Decimal("45")
        assert data["park_name"] == park.name
        assert data["application_number"].startswith("APP-")
        assert data["invoice_status"] is None
    finally:
        db.close()


def test_create_application_rejects_unlisted_permit_fee(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        park = create_park(db)
        payload = {"park_id": park.id, "event_dates": ["2026-06-20"], "permit_fee": 33}
        resp = test_client.post("/applications/", json=payload, headers=auth_headers(admin))
        assert resp.status_code == 422
    finally:
        db.close()


def test_create_application_requires_event_dates(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        park = create_park(db)
        resp = test_client.post(
            "/applications/", json={"park_id": park.id, "event_dates": []}, headers=auth_headers(admin)
        )
        assert resp.status_code == 422
    finally:
        db.close()


def test_approve_endpoint_returns_invoice(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        application = create_application(db, permit_fee=100)

        resp = test_client.patch(f"/applications/{application.id}/approve", headers=auth_headers(admin))
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["application"]["status"] == "approved"
        assert data["application"]["reviewed_by"] == admin.id
        assert data["invoice"]["amount"] == 10000
        assert data["invoice"]["status"] == "pending"
        assert data["invoice"]["application_id"] == application.id

        again = test_client.patch(f"/applications/{application.id}/approve", headers=auth_headers(admin))
        assert again.status_code == 409
        assert db.query(Invoice).filter(Invoice.application_id == application.id).count() == 1
    finally:
        db.close()


def test_approve_endpoint_without_permit_fee(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        application = create_application(db, permit_fee=0)

        resp = test_client.patch(f"/applications/{application.id}/approve", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["invoice"] is None
    finally:
        db.close()


def test_disapprove_endpoint(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        application = create_application(db)

        resp = test_client.patch(
            f"/applications/{application.id}/disapprove",
            json={"reason": "Event conflicts with park closure", "notify_method": "both"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["status"] == "disapproved"
        assert data["disapproval_reason"] == "Event conflicts with park closure"
    finally:
        db.close()


def test_disapprove_endpoint_validation(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        no_phone = create_application(db, phone=None)
        headers = auth_headers(admin)

        blank = test_client.patch(
            f"/applications/{no_phone.id}/disapprove", json={"reason": "   "}, headers=headers
        )
        assert blank.status_code == 400

        sms = test_client.patch(
            f"/applications/{no_phone.id}/disapprove",
            json={"reason": "missing insurance", "notify_method": "sms"},
            headers=headers,
        )
        assert sms.status_code == 400

        fax = test_client.patch(
            f"/applications/{no_phone.id}/disapprove",
            json={"reason": "missing insurance", "notify_method": "fax"},
            headers=headers,
        )
        assert fax.status_code == 422

        db.expire_all()
        assert db.get(Application, no_phone.id).status == "pending"
    finally:
        db.close()


def test_delete_endpoint_rules(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        headers = auth_headers(admin)
        unpaid = create_application(db)
        paid = create_application(db, is_paid=True)

        resp = test_client.delete(f"/applications/{unpaid.id}", headers=headers)
        assert resp.status_code == 204

        resp = test_client.delete(f"/applications/{paid.id}", headers=headers)
        assert resp.status_code == 409

        resp = test_client.get(f"/applications/{unpaid.id}", headers=headers)
        assert resp.status_code == 404
    finally:
        db.close()


def test_staff_only_see_assigned_parks(test_client):
    db = TestingSessionLocal()
    try:
        own_park = create_park(db)
        other_park = create_park(db)
        staff = create_user(db, parks=[own_park])
        mine = create_application(db, park=own_park)
        theirs = create_application(db, park=other_park)
        headers = auth_headers(staff)

        resp = test_client.get("/applications/", headers=headers)
        assert resp.status_code == 200
        ids = [a["id"] for a in resp.json()]
        assert mine.id in ids
        assert theirs.id not in ids

        assert test_client.get(f"/applications/{theirs.id}", headers=headers).status_code == 403
        assert test_client.patch(f"/applications/{theirs.id}/approve", headers=headers).status_code == 403
    finally:
        db.close()


def test_list_applications_by_status(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        park = create_park(db)
        create_application(db, park=park)
        create_application(db, park=park, status="disapproved", disapproval_reason="no")

        resp = test_client.get(
            "/applications/", params={"status": "disapproved", "park_id": park.id}, headers=auth_headers(admin)
        )
        assert resp.status_code == 200
        data = resp.json()
        assert len(data) == 1
        assert data[0]["status"] == "disapproved"

        bad = test_client.get("/applications/", params={"status": "archived"}, headers=auth_headers(admin))
        assert bad.status_code == 400
    finally:
        db.close()


def test_update_application_endpoint(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        application = create_application(db)

        resp = test_client.put(
            f"/applications/{application.id}", json={"attendees": 40, "permit_fee": 20}, headers=auth_headers(admin)
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["attendees"] == 40
        assert Decimal(resp.json()["total_fee"]) == Decimal("30")

        approved = create_application(db, status="approved")
        resp = test_client.put(f"/applications/{approved.id}", json={"attendees": 5}, headers=auth_headers(admin))
        assert resp.status_code == 409
    finally:
        db.close()


def test_payment_status_endpoint(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        headers = auth_headers(admin)
        application = create_application(db, application_fee=15, permit_fee=35)

        assert test_client.patch(f"/applications/{application.id}/paid", headers=headers).status_code == 200
        approve = test_client.patch(f"/applications/{application.id}/approve", headers=headers)
        invoice_id = approve.json()["invoice"]["id"]

        resp = test_client.get(f"/applications/{application.id}/payment-status", headers=headers)
        assert resp.status_code == 200
        data = resp.json()
        assert {f["category"]: f["paid"] for f in data["fees"]} == {"Application Fee": True, "Permit Fee": False}
        assert data["fully_paid"] is False
        assert data["application_product_id"] == f"application_{application.park_id}_15"
        assert data["permit_product_id"] == f"permit_{application.park_id}_35"

        test_client.patch(f"/invoices/{invoice_id}/paid", headers=headers)
        resp = test_client.get(f"/applications/{application.id}/payment-status", headers=headers)
        assert resp.json()["fully_paid"] is True
    finally:
        db.close()


def test_location_fee_endpoint(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        headers = auth_headers(admin)
        with_fee = create_application(db, has_location_fee=True, location_fee=75)
        without_fee = create_application(db)

        resp = test_client.patch(f"/applications/{with_fee.id}/location-fee/paid", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["location_fee_paid"] is True

        resp = test_client.patch(f"/applications/{without_fee.id}/location-fee/paid", headers=headers)
        assert resp.status_code == 409
    finally:
        db.close()


def test_update_rejects_null_location_fee_flag(test_client):
    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        application = create_application(db)

        resp = test_client.put(
            f"/applications/{application.id}", json={"has_location_fee": None}, headers=auth_headers(admin)
        )
        assert resp.status_code == 400
        assert "has_location_fee" in resp.json()["detail"]

        db.refresh(application)
        assert application.has_location_fee is False
    finally:
        db.close()


def test_fee_amounts_keep_cents(test_client):
    assert ApplicationUpdate(location_fee="12.35").location_fee == Decimal("12.35")

    db = TestingSessionLocal()
    try:
        admin = create_admin(db)
        application = create_application(db)

        resp = test_client.put(
            f"/applications/{application.id}",
            json={"has_location_fee": True, "location_fee": "12.35"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200, resp.text
        assert Decimal(resp.json()["location_fee"]) == Decimal("12.35")
        assert Decimal(resp.json()["total_fee"]) == Decimal("57.35")
    finally:
        db.close()
