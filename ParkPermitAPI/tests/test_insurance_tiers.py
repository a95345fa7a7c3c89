import pytest

from ParkPermitAPI.errors import ConfigurationError, NotFound
from ParkPermitAPI.insurance_tiers import ACTIVITIES, TIER_LIMITS, activities_for_tier, tier_for


def test_tier_for_known_activity():
    entry = tier_for("Wedding ceremonies and receptions")
    assert entry.tier == 2
    assert entry.insurance_limits == TIER_LIMITS[2]


def test_tier_for_ignores_case_and_spacing():
    assert tier_for("  zip-LINES ").tier == 3


def test_tier_for_unknown_activity():
    with pytest.raises(NotFound):
        tier_for("Hot air balloon jousting")


def test_activities_for_tier_covers_table():
    listed = sum(len(activities_for_tier(t)) for t in TIER_LIMITS)
    assert listed == len(ACTIVITIES)
    assert all(a.tier == 0 for a in activities_for_tier(0))
    assert activities_for_tier(0)[0].insurance_limits == "Personal Insurance"


@pytest.mark.parametrize("tier", [-1, 4])
def test_activities_for_unknown_tier(tier):
    with pytest.raises(ConfigurationError):
        activities_for_tier(tier)


def test_insurance_endpoints(test_client):
    resp = test_client.get("/insurance/activities/lookup", params={"activity": "zip-lines"})
    assert resp.status_code == 200
    assert resp.json()["tier"] == 3

    assert test_client.get("/insurance/activities/lookup", params={"activity": "nope"}).status_code == 404
    assert test_client.get("/insurance/tiers/9").status_code == 400
    assert len(test_client.get("/insurance/activities").json()) == len(ACTIVITIES)
