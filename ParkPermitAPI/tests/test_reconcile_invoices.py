from decimal import Decimal

from ParkPermitAPI.maintenance.reconcile_invoices import reconcile_invoices
from ParkPermitAPI.models import Invoice
from ParkPermitAPI.tests.conftest import TestingSessionLocal, create_application


def test_dry_run_reports_without_writing():
    db = TestingSessionLocal()
    try:
        application = create_application(db, status="approved", permit_fee=Decimal("30.00"))

        assert reconcile_invoices(apply=False, db=db) >= 1
        assert db.query(Invoice).filter(Invoice.application_id == application.id).count() == 0
    finally:
        db.close()


def test_apply_issues_missing_invoices():
    db = TestingSessionLocal()
    try:
        application = create_application(db, status="approved", permit_fee=Decimal("30.00"))

        reconcile_invoices(apply=True, db=db)

        invoice = db.query(Invoice).filter(Invoice.application_id == application.id).one()
        assert invoice.amount == 3000
        assert invoice.status == "pending"
        assert reconcile_invoices(apply=False, db=db) == 0
    finally:
        db.close()
