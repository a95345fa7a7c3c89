from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List
from datetime import timedelta
import logging

from ParkPermitAPI.config import ACCESS_TOKEN_EXPIRE_MINUTES
from ParkPermitAPI.database import get_db
from ParkPermitAPI.models import User, Park
from ParkPermitAPI.schemas import UserCreate, UserResponse, TokenResponse, ParkResponse
from ParkPermitAPI.utils import verify_password, hash_password
from ParkPermitAPI.routes.auth import create_access_token, get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter()


# login
@router.post("/login", response_model=TokenResponse)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    Authenticate a staff user and return an access token.

    Args:
        form_data (OAuth2PasswordRequestForm): Login credentials (username is the email).
        db (Session): The database session.

    Returns:
        TokenResponse: Access token and type.

    Raises:
        HTTPException: If authentication fails.
    """
    user = db.query(User).filter(func.lower(User.email) == form_data.username.strip().lower()).first()
    if not user or not verify_password(form_data.password, user.encrypted_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = create_access_token(
        data={"sub": str(user.id)}, expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": token, "token_type": "bearer"}


# Get the current user
@router.get("/user", response_model=UserResponse)
def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user


# Show all the staff accounts
@router.get("/users/", response_model=List[UserResponse])
def get_users(db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    return db.query(User).order_by(User.created_at.desc()).all()


@router.post("/users/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(user_in: UserCreate, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    """
    Create a staff account (admin only).

    Raises:
        HTTPException: 409 if the email is already registered.
    """
    email = user_in.email.strip().lower()
    if db.query(User).filter(func.lower(User.email) == email).first():
        raise HTTPException(status_code=409, detail="Email already registered")
    user = User(
        email=email,
        name=user_in.name,
        phone=user_in.phone,
        role=user_in.role,
        encrypted_password=hash_password(user_in.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created %s account %s", user.role, user.email)
    return user


def _get_user_and_park(db: Session, user_id: int, park_id: int):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    park = db.query(Park).filter(Park.id == park_id).first()
    if not park:
        raise HTTPException(status_code=404, detail="Park not found")
    return user, park


# Park assignments
@router.get("/users/{user_id}/parks", response_model=List[ParkResponse])
def get_user_parks(user_id: int, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user.parks


@router.post("/users/{user_id}/parks/{park_id}", response_model=List[ParkResponse])
def assign_park(user_id: int, park_id: int, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    user, park = _get_user_and_park(db, user_id, park_id)
    if park not in user.parks:
        user.parks.append(park)
        db.commit()
        db.refresh(user)
    return user.parks


@router.delete("/users/{user_id}/parks/{park_id}", status_code=204)
def unassign_park(user_id: int, park_id: int, db: Session = Depends(get_db), _admin: User = Depends(require_admin)):
    user, park = _get_user_and_park(db, user_id, park_id)
    if park in user.parks:
        user.parks.remove(park)
        db.commit()
