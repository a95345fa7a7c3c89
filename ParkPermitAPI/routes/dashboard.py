from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func

from ParkPermitAPI.constants import (
    APPLICATION_APPROVED, APPLICATION_DISAPPROVED, APPLICATION_PENDING, INVOICE_PAID, INVOICE_PENDING,
)
from ParkPermitAPI.database import get_db
from ParkPermitAPI.models import Application, Invoice, User
from ParkPermitAPI.schemas import DashboardStatsResponse
from ParkPermitAPI.routes.auth import get_current_user, accessible_park_ids

router = APIRouter()


def _build_condition(column, park_ids):
    if park_ids is None:
        return None
    if len(park_ids) == 1:
        return column == park_ids[0]
    return column.in_(park_ids)


def _apply_condition(query, condition):
    return query.filter(condition) if condition is not None else query


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
def get_dashboard_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Application and invoice counts plus collected revenue for the dashboard.

    Staff counts cover only their assigned parks. Revenue is the sum of paid
    invoices in cents.

    Returns:
        DashboardStatsResponse: The statistics.
    """
    park_ids = accessible_park_ids(current_user)
    if park_ids is not None and not park_ids:
        return DashboardStatsResponse()

    park_condition = _build_condition(Application.park_id, park_ids)

    status_counts = dict(
        _apply_condition(db.query(Application.status, func.count(Application.id)), park_condition)
        .group_by(Application.status)
        .all()
    )

    invoice_query = db.query(Invoice.status, func.count(Invoice.id), func.coalesce(func.sum(Invoice.amount), 0))
    if park_condition is not None:
        invoice_query = invoice_query.join(Application, Application.id == Invoice.application_id).filter(park_condition)
    invoice_rows = invoice_query.group_by(Invoice.status).all()
    invoice_counts = {row[0]: row[1] for row in invoice_rows}
    invoice_sums = {row[0]: row[2] for row in invoice_rows}

    return DashboardStatsResponse(
        pending_applications=status_counts.get(APPLICATION_PENDING, 0),
        approved_applications=status_counts.get(APPLICATION_APPROVED, 0),
        disapproved_applications=status_counts.get(APPLICATION_DISAPPROVED, 0),
        total_invoices=sum(invoice_counts.values()),
        pending_invoices=invoice_counts.get(INVOICE_PENDING, 0),
        revenue=int(invoice_sums.get(INVOICE_PAID, 0) or 0),
    )
