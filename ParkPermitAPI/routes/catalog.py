from fastapi import APIRouter
from typing import List, Optional

from ParkPermitAPI.errors import LifecycleError, to_http_exception
from ParkPermitAPI.fee_catalog import fee_options_for
from ParkPermitAPI.insurance_tiers import ACTIVITIES, activities_for_tier, tier_for
from ParkPermitAPI.schemas import FeeOptionResponse, InsuranceActivityResponse

router = APIRouter()


@router.get("/fees/{category}", response_model=List[FeeOptionResponse])
def get_fee_options(category: str, park_id: Optional[int] = None):
    """
    Allowed amounts for a fee category with their payment product ids.

    Args:
        category (str): "applicationFee" or "permitFee".
        park_id (int, optional): Return park-scoped product ids.

    Returns:
        list[FeeOptionResponse]: The fee options.
    """
    try:
        return list(fee_options_for(category, park_id))
    except LifecycleError as exc:
        raise to_http_exception(exc)


@router.get("/insurance/activities", response_model=List[InsuranceActivityResponse])
def get_insurance_activities():
    return list(ACTIVITIES)


@router.get("/insurance/activities/lookup", response_model=InsuranceActivityResponse)
def lookup_insurance_activity(activity: str):
    try:
        return tier_for(activity)
    except LifecycleError as exc:
        raise to_http_exception(exc)


@router.get("/insurance/tiers/{tier}", response_model=List[InsuranceActivityResponse])
def get_tier_activities(tier: int):
    try:
        return list(activities_for_tier(tier))
    except LifecycleError as exc:
        raise to_http_exception(exc)
