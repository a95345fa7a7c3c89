"""
Application lifecycle and its fee/invoice coupling.

An application starts ``pending`` and moves once, to ``approved`` or
``disapproved``. Approving an application with a permit fee issues exactly one
invoice for that fee; the status flip and the invoice insert are committed
together. Every operation here commits or rolls back its own work and raises a
:class:`~ParkPermitAPI.errors.LifecycleError` subclass when it refuses.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ParkPermitAPI.config import INVOICE_DUE_DAYS
from ParkPermitAPI.constants import (
    APPLICATION_APPROVED,
    APPLICATION_DISAPPROVED,
    APPLICATION_NUMBER_PREFIX,
    APPLICATION_PENDING,
    INVOICE_NUMBER_ATTEMPTS,
    INVOICE_NUMBER_PREFIX,
    INVOICE_PAID,
    INVOICE_PENDING,
    NOTIFY_BOTH,
    NOTIFY_METHODS,
    NOTIFY_SMS,
)
from ParkPermitAPI.errors import InvalidOperation, InvalidTransition, LifecycleError, NotFound, ValidationError
from ParkPermitAPI.fee_catalog import APPLICATION_FEE, PERMIT_FEE, is_allowed_amount
from ParkPermitAPI.insurance_tiers import tier_for
from ParkPermitAPI.models import Application, Invoice, Park, ParkLocation
from ParkPermitAPI.notification_service import send_approval_notice, send_disapproval_notice
from ParkPermitAPI.utils import agency_today, dollars_to_cents, next_sequence_number, to_decimal

logger = logging.getLogger(__name__)

# Fields staff may edit on an application while it is still pending
EDITABLE_FIELDS = (
    "location_id", "custom_location", "applicant_type", "organization_name", "first_name", "last_name",
    "email", "phone", "address", "city", "state", "zip_code", "event_title", "event_dates",
    "event_description", "attendees", "setup_time", "start_time", "end_time", "special_requests",
    "application_fee", "permit_fee", "has_location_fee", "location_fee", "activity",
    "insurance_carrier", "insurance_tier", "insurance_document",
)


@dataclass
class ApprovalResult:
    """
    Outcome of :func:`approve`.

    Attributes:
        application (Application): The approved application.
        invoice (Invoice): The permit-fee invoice, or None when no fee is owed.
        invoice_created (bool): False when an invoice already existed.
    """
    application: Application
    invoice: Optional[Invoice] = None
    invoice_created: bool = False


@dataclass(frozen=True)
class FeeStatus:
    category: str
    amount: Decimal
    paid: bool


def _utcnow() -> datetime:
    return datetime.utcnow()


def _get_application(db: Session, application_id: int, for_update: bool = False) -> Application:
    q = db.query(Application).filter(Application.id == application_id)
    if for_update:
        q = q.with_for_update()
    application = q.first()
    if application is None:
        raise NotFound(f"Application {application_id} not found")
    return application


def _get_invoice(db: Session, invoice_id: int, for_update: bool = False) -> Invoice:
    q = db.query(Invoice).filter(Invoice.id == invoice_id)
    if for_update:
        q = q.with_for_update()
    invoice = q.first()
    if invoice is None:
        raise NotFound(f"Invoice {invoice_id} not found")
    return invoice


def _commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def _applicant_name(application: Application) -> str:
    return f"{application.first_name or ''} {application.last_name or ''}".strip() or (application.organization_name or "")


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------

def total_fee_for(application_fee, permit_fee, has_location_fee: bool = False, location_fee=None) -> Decimal:
    total = to_decimal(application_fee) + to_decimal(permit_fee)
    if has_location_fee:
        total += to_decimal(location_fee)
    return total


def _apply_fields(db: Session, application: Application, data: dict) -> None:
    """Validate and copy intake fields onto an application."""
    for category, field in ((APPLICATION_FEE, "application_fee"), (PERMIT_FEE, "permit_fee")):
        if field in data and not is_allowed_amount(category, data[field]):
            raise ValidationError(f"{data[field]} is not an allowed {category} amount")
    if "has_location_fee" in data and data["has_location_fee"] is None:
        raise ValidationError("has_location_fee must be true or false")

    for field in EDITABLE_FIELDS:
        if field in data:
            setattr(application, field, data[field])

    if application.event_dates:
        application.event_dates = sorted(
            d.isoformat() if hasattr(d, "isoformat") else str(d) for d in application.event_dates
        )

    if application.location_id is not None:
        location = db.query(ParkLocation).filter(ParkLocation.id == application.location_id).first()
        if location is None or location.park_id != application.park_id:
            raise ValidationError("Location does not belong to the selected park")

    if application.has_location_fee and to_decimal(application.location_fee) <= 0:
        raise ValidationError("A location fee amount is required when the location fee applies")

    if application.activity and data.get("insurance_tier") is None and "activity" in data:
        try:
            application.insurance_tier = tier_for(application.activity).tier
        except NotFound:
            raise ValidationError(f"Unknown activity: {application.activity}")

    application.total_fee = total_fee_for(
        application.application_fee, application.permit_fee, application.has_location_fee, application.location_fee
    )


def create_application(db: Session, data: dict) -> Application:
    """
    Record a new intake submission.

    The application starts pending and unpaid regardless of the input; the
    application fee is marked paid separately when the payment step completes.

    Args:
        db (Session): The database session.
        data (dict): Intake fields, including ``park_id``.

    Returns:
        Application: The persisted application.

    Raises:
        NotFound: If the park does not exist.
        ValidationError: If a fee, location or activity is invalid.
    """
    park = db.query(Park).filter(Park.id == data.get("park_id")).first()
    if park is None:
        raise NotFound(f"Park {data.get('park_id')} not found")

    application = Application(park_id=park.id, status=APPLICATION_PENDING, is_paid=False, location_fee_paid=False)
    _apply_fields(db, application, data)
    application.agreed_to_terms = bool(data.get("agreed_to_terms"))
    application.application_number = next_sequence_number(db, Application.application_number, APPLICATION_NUMBER_PREFIX)

    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidOperation("Could not assign an application number; please retry")
    db.refresh(application)
    logger.info("Created application %s for park %s", application.application_number, park.id)
    return application


def update_application(db: Session, application_id: int, changes: dict) -> Application:
    """
    Edit intake fields of a pending application.

    Raises:
        NotFound: If the application does not exist.
        InvalidOperation: If the application has already been reviewed.
    """
    application = _get_application(db, application_id)
    if application.status != APPLICATION_PENDING:
        raise InvalidOperation(f"Cannot edit an application that is {application.status}")
    try:
        _apply_fields(db, application, changes)
    except LifecycleError:
        db.rollback()
        raise
    _commit(db)
    db.refresh(application)
    return application


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------

def _build_invoice(db: Session, application: Application, created_by: Optional[int]) -> Invoice:
    today = agency_today()
    return Invoice(
        invoice_number=next_sequence_number(db, Invoice.invoice_number, INVOICE_NUMBER_PREFIX, today.year),
        application_id=application.id,
        amount=dollars_to_cents(application.permit_fee),
        status=INVOICE_PENDING,
        issue_date=today,
        due_date=today + timedelta(days=INVOICE_DUE_DAYS),
        created_by=created_by,
    )


def _is_invoice_number_collision(exc: IntegrityError) -> bool:
    # The one-invoice-per-application constraint is uq_invoices_application_id
    return "invoice_number" in str(getattr(exc, "orig", exc))


def approve(
    db: Session,
    application_id: int,
    approved_by: Optional[int] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> ApprovalResult:
    """
    Approve a pending application and invoice its permit fee.

    When ``permit_fee > 0`` an invoice for ``round(permit_fee * 100)`` cents is
    inserted in the same transaction as the status change. No payment is
    collected here.

    Args:
        db (Session): The database session.
        application_id (int): The application to approve.
        approved_by (int, optional): Staff user id recorded as reviewer and invoice creator.
        background_tasks (BackgroundTasks, optional): Queue for the approval email;
            sent inline when omitted.

    Returns:
        ApprovalResult: The application and its invoice, if any.

    Raises:
        NotFound: If the application does not exist.
        InvalidTransition: If the application is not pending.
        InvalidOperation: If no unique invoice number could be assigned.
    """
    for attempt in range(1, INVOICE_NUMBER_ATTEMPTS + 1):
        invoice = None
        invoice_created = False
        try:
            application = _get_application(db, application_id, for_update=True)
            if application.status != APPLICATION_PENDING:
                raise InvalidTransition(
                    f"Application {application.application_number or application_id} is already {application.status}",
                    current_status=application.status,
                )

            if to_decimal(application.permit_fee) > 0:
                invoice = db.query(Invoice).filter(Invoice.application_id == application.id).first()
                if invoice is not None:
                    logger.error(
                        "Pending application %s already has invoice %s; not issuing another",
                        application.id, invoice.invoice_number,
                    )
                else:
                    invoice = _build_invoice(db, application, approved_by)
                    db.add(invoice)
                    # Insert the invoice before flipping status
                    db.flush()
                    invoice_created = True

            application.status = APPLICATION_APPROVED
            application.reviewed_by = approved_by
            application.reviewed_at = _utcnow()
            db.commit()
            break
        except LifecycleError:
            db.rollback()
            raise
        except IntegrityError as exc:
            db.rollback()
            if not _is_invoice_number_collision(exc):
                raise InvalidTransition(f"Application {application_id} was approved concurrently")
            logger.warning(
                "Invoice number %s taken while approving application %s (attempt %d)",
                invoice.invoice_number if invoice else "?", application_id, attempt,
            )
    else:
        raise InvalidOperation(f"Could not assign a unique invoice number to application {application_id}; please retry")

    db.refresh(application)
    if invoice is not None:
        db.refresh(invoice)
    logger.info(
        "Approved application %s (invoice %s)",
        application.application_number, invoice.invoice_number if invoice else "none",
    )

    notice_args = (
        application.application_number,
        _applicant_name(application),
        application.email,
        application.event_title,
        application.park.name if application.park else None,
        invoice.amount if invoice else None,
    )
    if background_tasks is not None:
        background_tasks.add_task(send_approval_notice, *notice_args)
    else:
        send_approval_notice(*notice_args)

    return ApprovalResult(application=application, invoice=invoice, invoice_created=invoice_created)


def disapprove(
    db: Session,
    application_id: int,
    reason: str,
    notify_method: str,
    disapproved_by: Optional[int] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Application:
    """
    Disapprove a pending application and notify the applicant.

    The notice is handed off after the status change commits; a delivery
    failure does not undo the disapproval.

    Args:
        db (Session): The database session.
        application_id (int): The application to disapprove.
        reason (str): Non-blank reason shown to the applicant.
        notify_method (str): "email", "sms" or "both".
        disapproved_by (int, optional): Staff user id recorded as reviewer.
        background_tasks (BackgroundTasks, optional): Queue for the notice.

    Returns:
        Application: The disapproved application.

    Raises:
        ValidationError: Blank reason, unknown method, or SMS without a phone.
        NotFound: If the application does not exist.
        InvalidTransition: If the application is not pending.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A disapproval reason is required")
    if notify_method not in NOTIFY_METHODS:
        raise ValidationError(f"Unknown notification method: {notify_method!r}")

    try:
        application = _get_application(db, application_id, for_update=True)
        if application.status != APPLICATION_PENDING:
            raise InvalidTransition(
                f"Application {application.application_number or application_id} is already {application.status}",
                current_status=application.status,
            )
        if notify_method in (NOTIFY_SMS, NOTIFY_BOTH) and not (application.phone or "").strip():
            raise ValidationError("Cannot notify by SMS: the application has no phone number")

        application.status = APPLICATION_DISAPPROVED
        application.disapproval_reason = reason
        application.reviewed_by = disapproved_by
        application.reviewed_at = _utcnow()
        db.commit()
    except LifecycleError:
        db.rollback()
        raise

    db.refresh(application)
    logger.info("Disapproved application %s", application.application_number)

    notice_args = (
        application.application_number,
        application.event_title,
        application.email,
        application.phone,
        reason,
        notify_method,
    )
    if background_tasks is not None:
        background_tasks.add_task(send_disapproval_notice, *notice_args)
    else:
        send_disapproval_notice(*notice_args)
    return application


def can_delete(application: Application) -> bool:
    if application.status == APPLICATION_DISAPPROVED:
        return True
    return application.status == APPLICATION_PENDING and not application.is_paid


def delete_application(db: Session, application_id: int) -> None:
    """
    Delete an unpaid pending or a disapproved application.

    Raises:
        NotFound: If the application does not exist.
        InvalidOperation: If the application is approved or its fee is paid.
    """
    application = _get_application(db, application_id, for_update=True)
    if not can_delete(application):
        db.rollback()
        state = "paid pending" if application.status == APPLICATION_PENDING else application.status
        raise InvalidOperation(f"Cannot delete a {state} application")
    db.delete(application)
    _commit(db)
    logger.info("Deleted application %s", application_id)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

def mark_invoice_paid(db: Session, invoice_id: int) -> Invoice:
    """
    Mark an invoice paid. Marking a paid invoice again is a no-op.

    Raises:
        NotFound: If the invoice does not exist.
    """
    invoice = _get_invoice(db, invoice_id, for_update=True)
    if invoice.status == INVOICE_PAID:
        db.rollback()
        logger.info("Invoice %s is already paid", invoice.invoice_number)
        return invoice
    invoice.status = INVOICE_PAID
    invoice.paid_at = _utcnow()
    _commit(db)
    db.refresh(invoice)
    logger.info("Invoice %s marked paid", invoice.invoice_number)
    return invoice


def mark_application_fee_paid(db: Session, application_id: int) -> Application:
    """
    Record that the applicant paid the application fee. Idempotent.

    Raises:
        NotFound: If the application does not exist.
        InvalidOperation: If the application is no longer pending.
    """
    application = _get_application(db, application_id, for_update=True)
    if application.is_paid:
        db.rollback()
        return application
    if application.status != APPLICATION_PENDING:
        db.rollback()
        raise InvalidOperation(f"Cannot record an application fee on a {application.status} application")
    application.is_paid = True
    _commit(db)
    db.refresh(application)
    logger.info("Application fee paid for %s", application.application_number)
    return application


def mark_location_fee_paid(db: Session, application_id: int) -> Application:
    """
    Record that the separate location fee was paid. Idempotent.

    Raises:
        NotFound: If the application does not exist.
        InvalidOperation: If no location fee applies.
    """
    application = _get_application(db, application_id, for_update=True)
    if not application.has_location_fee or to_decimal(application.location_fee) <= 0:
        db.rollback()
        raise InvalidOperation("This application has no location fee")
    if not application.location_fee_paid:
        application.location_fee_paid = True
        _commit(db)
        db.refresh(application)
        logger.info("Location fee paid for %s", application.application_number)
    return application


def payment_statuses(application: Application) -> List[FeeStatus]:
    """
    Break an application's charges down by category.

    Only categories with a nonzero amount are listed. The permit fee counts as
    paid once its invoice is paid.
    """
    statuses = []
    if to_decimal(application.application_fee) > 0:
        statuses.append(FeeStatus("Application Fee", to_decimal(application.application_fee), bool(application.is_paid)))
    if to_decimal(application.permit_fee) > 0:
        invoice = application.invoice
        statuses.append(FeeStatus(
            "Permit Fee", to_decimal(application.permit_fee), invoice is not None and invoice.status == INVOICE_PAID
        ))
    if application.has_location_fee and to_decimal(application.location_fee) > 0:
        statuses.append(FeeStatus("Location Fee", to_decimal(application.location_fee), bool(application.location_fee_paid)))
    return statuses


def is_fully_paid(application: Application) -> bool:
    statuses = payment_statuses(application)
    return bool(statuses) and all(s.paid for s in statuses)


# ---------------------------------------------------------------------------
# Consistency
# ---------------------------------------------------------------------------

def find_missing_invoices(db: Session) -> List[Application]:
    """Approved applications that owe a permit fee but have no invoice."""
    candidates = (
        db.query(Application)
        .outerjoin(Invoice, Invoice.application_id == Application.id)
        .filter(Application.status == APPLICATION_APPROVED, Invoice.id.is_(None))
        .order_by(Application.id)
        .all()
    )
    return [a for a in candidates if to_decimal(a.permit_fee) > 0]


def issue_missing_invoice(db: Session, application: Application, created_by: Optional[int] = None) -> Invoice:
    """
    Create the invoice an approved application should already have.

    Raises:
        InvalidOperation: If the application is not approved, owes nothing, or
            already has an invoice.
    """
    if application.status != APPLICATION_APPROVED or to_decimal(application.permit_fee) <= 0:
        raise InvalidOperation(f"Application {application.id} does not need an invoice")
    application_id = application.id
    for attempt in range(1, INVOICE_NUMBER_ATTEMPTS + 1):
        if db.query(Invoice).filter(Invoice.application_id == application_id).first() is not None:
            raise InvalidOperation(f"Application {application_id} already has an invoice")
        invoice = _build_invoice(db, application, created_by)
        db.add(invoice)
        try:
            db.commit()
            break
        except IntegrityError as exc:
            db.rollback()
            if not _is_invoice_number_collision(exc):
                raise InvalidOperation(f"Application {application_id} already has an invoice")
            logger.warning("Invoice number %s taken (attempt %d)", invoice.invoice_number, attempt)
    else:
        raise InvalidOperation(f"Could not assign a unique invoice number to application {application_id}; please retry")
    db.refresh(invoice)
    logger.info("Issued missing invoice %s for application %s", invoice.invoice_number, application_id)
    return invoice
