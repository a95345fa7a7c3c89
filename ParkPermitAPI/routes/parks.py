from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from ParkPermitAPI.database import get_db
from ParkPermitAPI.models import Park, ParkLocation, Application, Permit, User
from ParkPermitAPI.schemas import (
    ParkCreate, ParkUpdate, ParkResponse, ParkStatusResponse, ParkLocationCreate, ParkLocationResponse,
)
from ParkPermitAPI.routes.auth import get_current_user, require_admin

router = APIRouter()


def _get_park(db: Session, park_id: int) -> Park:
    park = db.query(Park).filter(Park.id == park_id).first()
    if not park:
        raise HTTPException(status_code=404, detail="Park not found")
    return park


# Show all the parks
@router.get("/parks/", response_model=List[ParkResponse])
def get_parks(db: Session = Depends(get_db), _user: User = Depends(get_current_user)):
    return db.query(Park).order_by(Park.name).all()


@router.get("/parks/status", response_model=List[ParkStatusResponse])
def get_park_status(db: Session = Depends(get_db), _user: User = Depends(get_current_user)):
    """
    Compact park status overview for the dashboard.

    Returns:
        list[ParkStatusResponse]: id, name, status and location of each park.
    """
    return db.query(Park).order_by(Park.name).all()


@router.get("/parks/{park_id}", response_model=ParkResponse)
def get_park(park_id: int, db: Session = Depends(get_db), _user: User = Depends(get_current_user)):
    return _get_park(db, park_id)


@router.post("/parks/", response_model=ParkResponse, status_code=201)
def create_park(park_in: ParkCreate, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    park = Park(**park_in.dict())
    db.add(park)
    db.commit()
    db.refresh(park)
    return park


@router.patch("/parks/{park_id}", response_model=ParkResponse)
def update_park(park_id: int, park_in: ParkUpdate, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    """
    Update a park.

    Args:
        park_id (int): The ID of the park.
        park_in (ParkUpdate): Fields to change; omitted fields are left as-is.
        db (Session): The database session.

    Returns:
        ParkResponse: The updated park.
    """
    park = _get_park(db, park_id)
    for field, val in park_in.dict(exclude_unset=True).items():
        # Normalize empty strings to None so frontend can send empty values from inputs
        if isinstance(val, str) and val.strip() == "":
            val = None
        if val is not None:
            setattr(park, field, val)
    db.commit()
    db.refresh(park)
    return park


@router.delete("/parks/{park_id}", status_code=204)
def delete_park(park_id: int, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    park = _get_park(db, park_id)
    if db.query(Application.id).filter(Application.park_id == park_id).first():
        raise HTTPException(status_code=400, detail="Cannot delete park with applications")
    if db.query(Permit.id).filter(Permit.park_id == park_id).first():
        raise HTTPException(status_code=400, detail="Cannot delete park with permits")
    try:
        db.delete(park)
        db.commit()
    except Exception:
        db.rollback()
        raise HTTPException(status_code=400, detail="Unable to delete park due to related records")


# Named locations within a park
@router.get("/parks/{park_id}/locations", response_model=List[ParkLocationResponse])
def get_park_locations(park_id: int, db: Session = Depends(get_db), _user: User = Depends(get_current_user)):
    _get_park(db, park_id)
    return db.query(ParkLocation).filter(ParkLocation.park_id == park_id).order_by(ParkLocation.name).all()


@router.post("/parks/{park_id}/locations", response_model=ParkLocationResponse, status_code=201)
def create_park_location(
    park_id: int,
    location_in: ParkLocationCreate,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    _get_park(db, park_id)
    location = ParkLocation(park_id=park_id, **location_in.dict())
    db.add(location)
    db.commit()
    db.refresh(location)
    return location
