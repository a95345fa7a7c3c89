"""
Fixed fee options offered on the intake form and their payment products.

The payment processor identifies each chargeable amount by a product id. Ids
are derived from the fee kind and amount, optionally scoped to a park, so the
same catalog serves every park without per-park configuration.
"""

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Optional, Tuple

from ParkPermitAPI.errors import ConfigurationError

APPLICATION_FEE = "applicationFee"
PERMIT_FEE = "permitFee"

DEFAULT_APPLICATION_FEE = 10
DEFAULT_PERMIT_FEE = 35


@dataclass(frozen=True)
class FeeOption:
    """
    One selectable fee amount.

    Attributes:
        amount (int): Whole-dollar amount.
        label (str): Display label, e.g. "$35.00".
        product_id (str): Payment-processor product identifier.
    """
    amount: int
    label: str
    product_id: str


def product_id_for(kind: str, amount, park_id: Optional[int] = None) -> str:
    """
    Build the payment product id for a fee.

    Args:
        kind (str): "application" or "permit".
        amount (int | Decimal): Fee amount in dollars.
        park_id (int, optional): Scope the product to a park.

    Returns:
        str: `<kind>_<amount>` or `<kind>_<park_id>_<amount>`.
    """
    value = Decimal(str(amount))
    amount_text = str(int(value)) if value == value.to_integral_value() else str(value)
    if park_id is None:
        return f"{kind}_{amount_text}"
    return f"{kind}_{park_id}_{amount_text}"


def _options(kind: str, amounts) -> Tuple[FeeOption, ...]:
    return tuple(FeeOption(amount=a, label=f"${a:.2f}", product_id=product_id_for(kind, a)) for a in amounts)


_CATALOG = MappingProxyType({
    APPLICATION_FEE: ("application", _options("application", (10, 15, 20))),
    PERMIT_FEE: ("permit", _options("permit", (15, 20, 25, 30, 35, 40))),
})

_ALIASES = MappingProxyType({
    "applicationfee": APPLICATION_FEE,
    "application_fee": APPLICATION_FEE,
    "application": APPLICATION_FEE,
    "permitfee": PERMIT_FEE,
    "permit_fee": PERMIT_FEE,
    "permit": PERMIT_FEE,
})


def normalize_category(category: str) -> str:
    """
    Resolve a category name or alias to its canonical form.

    Raises:
        ConfigurationError: If the category is not in the catalog.
    """
    key = (category or "").strip()
    canonical = _ALIASES.get(key.lower())
    if canonical is None:
        raise ConfigurationError(f"Unknown fee category: {category!r}")
    return canonical


def fee_options_for(category: str, park_id: Optional[int] = None) -> Tuple[FeeOption, ...]:
    """
    Return the allowed amounts for a fee category.

    Args:
        category (str): `applicationFee` or `permitFee` (snake_case accepted).
        park_id (int, optional): When given, product ids are park-scoped.

    Returns:
        tuple[FeeOption]: The fixed options, lowest amount first.

    Raises:
        ConfigurationError: If the category is unknown.
    """
    kind, options = _CATALOG[normalize_category(category)]
    if park_id is None:
        return options
    return tuple(
        FeeOption(amount=o.amount, label=o.label, product_id=product_id_for(kind, o.amount, park_id))
        for o in options
    )


def allowed_amounts(category: str) -> Tuple[int, ...]:
    return tuple(o.amount for o in fee_options_for(category))


def is_allowed_amount(category: str, amount) -> bool:
    """True when the amount is zero or one of the category's catalog amounts."""
    if amount is None:
        return True
    value = Decimal(str(amount))
    if value == 0:
        return True
    return any(value == Decimal(a) for a in allowed_amounts(category))


def product_info_for(park_id: int, application_fee, permit_fee) -> dict:
    """
    Product ids and combined total for an application's two catalog fees.

    Returns:
        dict: `application_product_id`, `permit_product_id` and `total`.
    """
    application_fee = Decimal(str(application_fee or 0))
    permit_fee = Decimal(str(permit_fee or 0))
    return {
        "application_product_id": product_id_for("application", application_fee, park_id),
        "permit_product_id": product_id_for("permit", permit_fee, park_id),
        "total": application_fee + permit_fee,
    }
