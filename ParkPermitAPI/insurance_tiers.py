"""
Insurance requirements by activity.

Each activity a permit can cover belongs to a risk tier (0-3) and each tier
carries the liability limits the applicant's insurance must meet. The table is
reference data; changing it is an administrative edit to this module.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Tuple

from ParkPermitAPI.errors import ConfigurationError, NotFound

TIER_LIMITS = MappingProxyType({
    3: "$1M Per Person/$3M Per Occurrence",
    2: "$1M Per Person/$2M Per Occurrence",
    1: "$500K Per Person/$1M Per Occurrence",
    0: "Personal Insurance",
})
"""Mapping[int, str]: Required insurance limits per tier."""


@dataclass(frozen=True)
class InsuranceActivity:
    tier: int
    activity: str
    insurance_limits: str


def _tier(tier: int, *activities: str) -> Tuple[InsuranceActivity, ...]:
    return tuple(InsuranceActivity(tier, name, TIER_LIMITS[tier]) for name in activities)


ACTIVITIES: Tuple[InsuranceActivity, ...] = (
    _tier(
        3,
        "Zip-Lines",
        "Rock climbing guides",
        "On-Park concerts",
        "Full-scale park concession contracts involving boat rentals, off-road and snowmobile rentals, "
        "food service, general stores, waterski/wakeboard instruction, etc",
        "Hang gliding and paragliding instructors",
        "Floating campgrounds and cabins",
        "Flyboard rentals / instruction",
        "Triathlons and other large sporting events including obstacle courses",
        "Cage fighting exhibitions",
        "Parasailing guides",
        "ATV / motocross races",
        "Music festivals",
        "Fireworks displays",
    )
    + _tier(
        2,
        "Inflatable / Floating waterpark",
        "Wakeboard parks",
        "Large fishing tournaments with more than 20 boats",
        "Guided horse rides, hiking tours, biking tours, atv tours, guided cross-country ski tours",
        "Wedding ceremonies and receptions",
        "Marathon and running races",
        "Cycling events and races",
        "Group party/gathering with alcohol",
    )
    + _tier(
        1,
        "Fishing guides that guide customers without the use of vessels",
        "Small-scale park concessions such as coffee shops, food carts",
        "Long-term camping agreements",
        "Commercial filming with drones or advanced equipment",
        "Art exhibitions or outdoor art installations",
    )
    + _tier(
        0,
        "Small fishing tournaments with less than 20 boats",
        "Commercial photography or filming (basic)",
        "Recreational drone use",
        "Metal detecting in State Parks",
        "Group party/gathering without alcohol",
        "Educational tours and school field trips",
        "Religious ceremonies or group worship",
    )
)


def _key(name: str) -> str:
    return " ".join((name or "").split()).lower()


# First entry wins when the same activity name appears in more than one tier
_BY_NAME = {}
for _entry in ACTIVITIES:
    _BY_NAME.setdefault(_key(_entry.activity), _entry)
_BY_NAME = MappingProxyType(_BY_NAME)


def tier_for(activity_name: str) -> InsuranceActivity:
    """
    Look up the insurance tier for an activity.

    Matching ignores case and repeated whitespace.

    Args:
        activity_name (str): The activity description.

    Returns:
        InsuranceActivity: Tier and limit text for the activity.

    Raises:
        NotFound: If the activity is not in the table.
    """
    entry = _BY_NAME.get(_key(activity_name))
    if entry is None:
        raise NotFound(f"Unknown activity: {activity_name!r}")
    return entry


def activities_for_tier(tier: int) -> Tuple[InsuranceActivity, ...]:
    """
    List every activity in a tier, in table order.

    Raises:
        ConfigurationError: If the tier is not 0-3.
    """
    if tier not in TIER_LIMITS:
        raise ConfigurationError(f"Unknown insurance tier: {tier}")
    return tuple(a for a in ACTIVITIES if a.tier == tier)
