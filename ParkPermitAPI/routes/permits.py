import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional

from ParkPermitAPI.constants import (
    PERMIT_APPROVED, PERMIT_NUMBER_PREFIX, PERMIT_STATUSES, PERMIT_TEMPLATE_STATUS, TEMPLATE_NUMBER_PREFIX,
)
from ParkPermitAPI.database import get_db
from ParkPermitAPI.models import Park, Permit, User
from ParkPermitAPI.schemas import PermitCreate, PermitResponse, PermitTemplateIn, PermitUpdate
from ParkPermitAPI.routes.auth import get_current_user, accessible_park_ids, ensure_park_access
from ParkPermitAPI.utils import agency_today, next_sequence_number

logger = logging.getLogger(__name__)

router = APIRouter()

NUMBER_ATTEMPTS = 3


def _scoped(db: Session, user: User, templates: bool):
    q = db.query(Permit).filter(Permit.is_template == templates)
    allowed = accessible_park_ids(user)
    if allowed is not None:
        q = q.filter(Permit.park_id.in_(allowed))
    return q


def _get_accessible(db: Session, permit_id: int, user: User, templates: bool) -> Permit:
    permit = db.query(Permit).filter(Permit.id == permit_id, Permit.is_template == templates).first()
    if not permit:
        raise HTTPException(status_code=404, detail="Template not found" if templates else "Permit not found")
    ensure_park_access(user, permit.park_id)
    return permit


def _require_park(db: Session, park_id: int, user: User) -> None:
    if not db.query(Park.id).filter(Park.id == park_id).first():
        raise HTTPException(status_code=404, detail="Park not found")
    ensure_park_access(user, park_id)


def _save_numbered(db: Session, record: Permit, prefix: str) -> Permit:
    """Insert a permit or template under the next free number for its prefix."""
    for attempt in range(1, NUMBER_ATTEMPTS + 1):
        record.permit_number = next_sequence_number(db, Permit.permit_number, prefix)
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning("Number %s already taken (attempt %d)", record.permit_number, attempt)
            continue
        db.refresh(record)
        return record
    raise HTTPException(status_code=409, detail="Could not assign a permit number; please retry")


def _template_fields(form: PermitTemplateIn) -> dict:
    first = form.locations[0] if form.locations else None
    return {
        "permit_type": form.name or "Unnamed Template",
        "park_id": form.park_id,
        "location": (first.name if first and first.name else None) or "No location specified",
        "activity": (first.description if first and first.description else None) or "General Activity",
        "description": first.description if first else None,
        "template_data": form.dict(),
    }


# Permits
@router.get("/permits/", response_model=List[PermitResponse])
def get_permits(
    status_filter: Optional[str] = Query(None, alias="status"),
    park_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Get issued permits, newest first.

    Staff only see permits for their assigned parks. Templates are listed
    under /permit-templates.
    """
    if status_filter is not None and status_filter not in PERMIT_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status: {status_filter}")
    q = _scoped(db, current_user, templates=False)
    if status_filter is not None:
        q = q.filter(Permit.status == status_filter)
    if park_id is not None:
        q = q.filter(Permit.park_id == park_id)
    return q.order_by(Permit.created_at.desc(), Permit.id.desc()).all()


@router.get("/permits/recent", response_model=List[PermitResponse])
def get_recent_permits(limit: int = 10, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    limit = max(1, min(limit, 100))
    return _scoped(db, current_user, templates=False).order_by(Permit.created_at.desc(), Permit.id.desc()).limit(limit).all()


@router.get("/permits/{permit_id}", response_model=PermitResponse)
def get_permit(permit_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_accessible(db, permit_id, current_user, templates=False)


@router.post("/permits/", response_model=PermitResponse, status_code=status.HTTP_201_CREATED)
def create_permit(permit_in: PermitCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """
    Issue a permit record.

    The permit number is assigned here. Creating it already approved stamps
    today's issue date.
    """
    _require_park(db, permit_in.park_id, current_user)
    permit = Permit(**permit_in.dict(), created_by=current_user.id, updated_by=current_user.id)
    if permit.status == PERMIT_APPROVED:
        permit.issue_date = agency_today()
    permit = _save_numbered(db, permit, PERMIT_NUMBER_PREFIX)
    logger.info("Created permit %s for park %s", permit.permit_number, permit.park_id)
    return permit


@router.patch("/permits/{permit_id}", response_model=PermitResponse)
def update_permit(
    permit_id: int,
    permit_in: PermitUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    permit = _get_accessible(db, permit_id, current_user, templates=False)
    changes = permit_in.dict(exclude_unset=True)
    if changes.get("park_id") not in (None, permit.park_id):
        _require_park(db, changes["park_id"], current_user)
    for field, val in changes.items():
        if val is not None:
            setattr(permit, field, val)
    if permit.end_date < permit.start_date:
        db.rollback()
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    if permit.status == PERMIT_APPROVED and permit.issue_date is None:
        permit.issue_date = agency_today()
    permit.updated_by = current_user.id
    db.commit()
    db.refresh(permit)
    return permit


@router.delete("/permits/{permit_id}", status_code=204)
def delete_permit(permit_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    permit = _get_accessible(db, permit_id, current_user, templates=False)
    db.delete(permit)
    db.commit()
    logger.info("Deleted permit %s", permit_id)


# Permit templates
@router.get("/permit-templates/", response_model=List[PermitResponse])
def get_permit_templates(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _scoped(db, current_user, templates=True).order_by(Permit.permit_type).all()


@router.get("/permit-templates/{template_id}", response_model=PermitResponse)
def get_permit_template(template_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_accessible(db, template_id, current_user, templates=True)


@router.post("/permit-templates/", response_model=PermitResponse, status_code=status.HTTP_201_CREATED)
def create_permit_template(
    template_in: PermitTemplateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Save a reusable permit template.

    The first location supplies the template's location and activity; the
    full form is kept in ``template_data``. Permittee and date columns get
    placeholders since a template has no permittee.
    """
    _require_park(db, template_in.park_id, current_user)
    today = agency_today()
    template = Permit(
        **_template_fields(template_in),
        permittee_name="Template Permittee",
        permittee_email="template@parkspass.org",
        participant_count=1,
        start_date=today,
        end_date=today + timedelta(days=1),
        status=PERMIT_TEMPLATE_STATUS,
        is_template=True,
        created_by=current_user.id,
        updated_by=current_user.id,
    )
    return _save_numbered(db, template, TEMPLATE_NUMBER_PREFIX)


@router.put("/permit-templates/{template_id}", response_model=PermitResponse)
def update_permit_template(
    template_id: int,
    template_in: PermitTemplateIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    template = _get_accessible(db, template_id, current_user, templates=True)
    if template_in.park_id != template.park_id:
        _require_park(db, template_in.park_id, current_user)
    for field, val in _template_fields(template_in).items():
        setattr(template, field, val)
    template.updated_by = current_user.id
    db.commit()
    db.refresh(template)
    return template


@router.delete("/permit-templates/{template_id}", status_code=204)
def delete_permit_template(template_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    template = _get_accessible(db, template_id, current_user, templates=True)
    db.delete(template)
    db.commit()
