from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from ParkPermitAPI import lifecycle
from ParkPermitAPI.constants import INVOICE_STATUSES
from ParkPermitAPI.database import get_db
from ParkPermitAPI.errors import LifecycleError, to_http_exception
from ParkPermitAPI.models import Application, Invoice, User
from ParkPermitAPI.schemas import InvoiceResponse
from ParkPermitAPI.routes.auth import get_current_user, accessible_park_ids, ensure_park_access

router = APIRouter()

# Invoices are never deleted; a paid invoice is the record of the permit fee.


def _scoped_invoices(db: Session, user: User):
    q = db.query(Invoice)
    allowed = accessible_park_ids(user)
    if allowed is not None:
        q = q.join(Application, Application.id == Invoice.application_id).filter(Application.park_id.in_(allowed))
    return q


def _get_accessible_invoice(db: Session, invoice_id: int, user: User) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    if invoice.application is not None:
        ensure_park_access(user, invoice.application.park_id)
    return invoice


@router.get("/invoices/", response_model=List[InvoiceResponse])
def get_invoices(
    status: Optional[str] = None,
    application_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Get invoices, newest first.

    Args:
        status (str, optional): "pending" or "paid".
        application_id (int, optional): Filter by application ID.
        db (Session): The database session.
        current_user (User): The authenticated user.

    Returns:
        list[InvoiceResponse]: A list of invoices.
    """
    if status is not None and status not in INVOICE_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
    q = _scoped_invoices(db, current_user)
    if status is not None:
        q = q.filter(Invoice.status == status)
    if application_id is not None:
        q = q.filter(Invoice.application_id == application_id)
    return q.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


@router.get("/invoices/recent", response_model=List[InvoiceResponse])
def get_recent_invoices(limit: int = 10, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    limit = max(1, min(limit, 100))
    return _scoped_invoices(db, current_user).order_by(Invoice.created_at.desc(), Invoice.id.desc()).limit(limit).all()


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_accessible_invoice(db, invoice_id, current_user)


@router.patch("/invoices/{invoice_id}/paid", response_model=InvoiceResponse)
def mark_invoice_paid(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Mark an invoice paid.

    Calling this on an invoice that is already paid returns it unchanged.

    Raises:
        HTTPException: 404 if the invoice does not exist.
    """
    _get_accessible_invoice(db, invoice_id, current_user)
    try:
        return lifecycle.mark_invoice_paid(db, invoice_id)
    except LifecycleError as exc:
        raise to_http_exception(exc)
