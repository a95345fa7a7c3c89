from decimal import Decimal

import pytest

from ParkPermitAPI.models import Invoice
from ParkPermitAPI.tests.conftest import TestingSessionLocal
from ParkPermitAPI.utils import dollars_to_cents, next_sequence_number


@pytest.mark.parametrize("dollars, cents", [
    (100, 10000),
    (Decimal("35.00"), 3500),
    (19.99, 1999),
    ("0.29", 29),
    (Decimal("12.345"), 1235),
    (None, 0),
])
def test_dollars_to_cents(dollars, cents):
    assert dollars_to_cents(dollars) == cents


def test_next_sequence_number_ignores_other_years_and_junk():
    db = TestingSessionLocal()
    try:
        assert next_sequence_number(db, Invoice.invoice_number, "INV", 1999) == "INV-1999-0001"
    finally:
        db.close()
