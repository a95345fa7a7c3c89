from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ParkPermitAPI import lifecycle
from ParkPermitAPI.constants import APPLICATION_STATUSES
from ParkPermitAPI.database import get_db
from ParkPermitAPI.errors import LifecycleError, to_http_exception
from ParkPermitAPI.fee_catalog import product_info_for
from ParkPermitAPI.models import Application, User
from ParkPermitAPI.schemas import (
    ApplicationCreate, ApplicationUpdate, ApplicationResponse, ApprovalResponse, DisapprovalRequest,
    InvoiceResponse, PaymentStatusResponse,
)
from ParkPermitAPI.routes.auth import get_current_user, accessible_park_ids, ensure_park_access

router = APIRouter()


def serialize_application(application: Application) -> ApplicationResponse:
    """Attach park name and invoice status like the review screens expect."""
    out = ApplicationResponse.model_validate(application)
    out.park_name = application.park.name if application.park else None
    out.invoice_status = application.invoice.status if application.invoice else None
    return out


def _get_accessible_application(db: Session, application_id: int, user: User) -> Application:
    application = db.query(Application).filter(Application.id == application_id).first()
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")
    ensure_park_access(user, application.park_id)
    return application


@router.get("/applications/", response_model=List[ApplicationResponse])
def get_applications(
    status_filter: Optional[str] = Query(None, alias="status"),
    park_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Get applications, newest first, optionally filtered by status and park.

    Staff only see applications for parks assigned to them.

    Args:
        status_filter (str, optional): "pending", "approved" or "disapproved".
        park_id (int, optional): Filter by park ID.
        db (Session): The database session.
        current_user (User): The authenticated user.

    Returns:
        list[ApplicationResponse]: A list of applications.
    """
    if status_filter is not None and status_filter not in APPLICATION_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status: {status_filter}")
    q = db.query(Application)
    if status_filter is not None:
        q = q.filter(Application.status == status_filter)
    if park_id is not None:
        q = q.filter(Application.park_id == park_id)
    allowed = accessible_park_ids(current_user)
    if allowed is not None:
        q = q.filter(Application.park_id.in_(allowed))
    applications = q.order_by(Application.created_at.desc(), Application.id.desc()).all()
    return [serialize_application(a) for a in applications]


@router.post("/applications/", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
def create_application(
    application_in: ApplicationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_park_access(current_user, application_in.park_id)
    try:
        application = lifecycle.create_application(db, application_in.dict())
    except LifecycleError as exc:
        raise to_http_exception(exc)
    return serialize_application(application)


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return serialize_application(_get_accessible_application(db, application_id, current_user))


@router.put("/applications/{application_id}", response_model=ApplicationResponse)
def update_application(
    application_id: int,
    application_in: ApplicationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Update intake fields of a pending application.

    Status and payment flags cannot be changed here; use the approve,
    disapprove and payment endpoints.
    """
    _get_accessible_application(db, application_id, current_user)
    try:
        application = lifecycle.update_application(db, application_id, application_in.dict(exclude_unset=True))
    except LifecycleError as exc:
        raise to_http_exception(exc)
    return serialize_application(application)


@router.delete("/applications/{application_id}", status_code=204)
def delete_application(application_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Delete an unpaid pending or a disapproved application.

    Raises:
        HTTPException: 404 if missing, 409 if approved or already paid.
    """
    _get_accessible_application(db, application_id, current_user)
    try:
        lifecycle.delete_application(db, application_id)
    except LifecycleError as exc:
        raise to_http_exception(exc)


@router.patch("/applications/{application_id}/approve", response_model=ApprovalResponse)
def approve_application(
    application_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Approve a pending application.

    Creates the permit-fee invoice when a permit fee is owed and emails the
    applicant in the background.

    Returns:
        ApprovalResponse: The application and the invoice, if any.
    """
    _get_accessible_application(db, application_id, current_user)
    try:
        result = lifecycle.approve(db, application_id, approved_by=current_user.id, background_tasks=background_tasks)
    except LifecycleError as exc:
        raise to_http_exception(exc)
    return ApprovalResponse(
        application=serialize_application(result.application),
        invoice=InvoiceResponse.model_validate(result.invoice) if result.invoice else None,
    )


@router.patch("/applications/{application_id}/disapprove", response_model=ApplicationResponse)
def disapprove_application(
    application_id: int,
    payload: DisapprovalRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _get_accessible_application(db, application_id, current_user)
    try:
        application = lifecycle.disapprove(
            db,
            application_id,
            payload.reason,
            payload.notify_method,
            disapproved_by=current_user.id,
            background_tasks=background_tasks,
        )
    except LifecycleError as exc:
        raise to_http_exception(exc)
    return serialize_application(application)


@router.patch("/applications/{application_id}/paid", response_model=ApplicationResponse)
def mark_application_fee_paid(application_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Record that the application fee payment completed."""
    _get_accessible_application(db, application_id, current_user)
    try:
        application = lifecycle.mark_application_fee_paid(db, application_id)
    except LifecycleError as exc:
        raise to_http_exception(exc)
    return serialize_application(application)


@router.patch("/applications/{application_id}/location-fee/paid", response_model=ApplicationResponse)
def mark_location_fee_paid(application_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    _get_accessible_application(db, application_id, current_user)
    try:
        application = lifecycle.mark_location_fee_paid(db, application_id)
    except LifecycleError as exc:
        raise to_http_exception(exc)
    return serialize_application(application)


@router.get("/applications/{application_id}/payment-status", response_model=PaymentStatusResponse)
def get_payment_status(application_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Per-category payment breakdown for an application.

    Returns:
        PaymentStatusResponse: Fee categories with their paid flags, whether
        every category is paid, and the payment product ids.
    """
    application = _get_accessible_application(db, application_id, current_user)
    products = product_info_for(application.park_id, application.application_fee, application.permit_fee)
    fees = [{"category": s.category, "amount": s.amount, "paid": s.paid} for s in lifecycle.payment_statuses(application)]
    return {
        "application_id": application.id,
        "fees": fees,
        "fully_paid": lifecycle.is_fully_paid(application),
        "application_product_id": products["application_product_id"],
        "permit_product_id": products["permit_product_id"],
    }
