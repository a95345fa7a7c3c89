from datetime import datetime, date
from decimal import Decimal, ROUND_HALF_UP

from passlib.context import CryptContext
from pytz import timezone

from ParkPermitAPI.config import AGENCY_TIMEZONE

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def verify_password(plain_password, encrypted_password):
    """
    Verify a password against its hash.

    Args:
        plain_password (str): The plain text password.
        encrypted_password (str): The hashed password.

    Returns:
        bool: True if the password matches, False otherwise.
    """
    return pwd_context.verify(plain_password, encrypted_password)

def hash_password(password):
    """
    Hash a password.

    Args:
        password (str): The password to hash.

    Returns:
        str: The hashed password.
    """
    return pwd_context.hash(password)

def agency_now() -> datetime:
    """Current time in the agency's timezone."""
    return datetime.now(timezone(AGENCY_TIMEZONE))

def agency_today() -> date:
    return agency_now().date()

def to_decimal(value) -> Decimal:
    """Coerce a fee value (None, float, str or Decimal) to Decimal dollars."""
    if value is None:
        return Decimal("0")
    return Decimal(str(value))

def dollars_to_cents(value) -> int:
    """
    Convert a dollar amount to whole cents, rounding half up.

    Args:
        value (Decimal | float | str): Amount in dollars.

    Returns:
        int: Amount in cents.
    """
    return int((to_decimal(value) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def next_sequence_number(db, column, prefix: str, year: int = None) -> str:
    """
    Generate the next `<prefix>-<year>-<NNNN>` number for a column.

    Numbering restarts each year. The highest numeric suffix already stored
    for the year is incremented.

    Args:
        db (Session): The database session.
        column: The mapped column holding the numbers.
        prefix (str): "APP" or "INV".
        year (int, optional): Defaults to the agency's current year.

    Returns:
        str: The next number, zero-padded to four digits.
    """
    year = year or agency_today().year
    stem = f"{prefix}-{year}-"
    highest = 0
    for (value,) in db.query(column).filter(column.like(f"{stem}%")).all():
        suffix = (value or "")[len(stem):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{stem}{highest + 1:04d}"
