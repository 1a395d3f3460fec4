"""
Entry domain rules - field validation and line total
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict

from activity_ledger.domain.errors import ValidationError
from activity_ledger.utils.money import round_cents
from activity_ledger.utils.validation import parse_decimal, parse_int, parse_date, validate_text

DESCRIPTION_MAX_LENGTH = 500

# Free granularity (0.25, 0.5, 1, 2 ...), at most 2 decimal places
QUANTITY_DECIMAL_PLACES = 2

# Upper bounds keep values inside Numeric(10,2) / BigInteger columns
QUANTITY_MAX = Decimal("365")
UNIT_PRICE_MAX_CENTS = 100_000_000

ENTRY_FIELDS = ("date", "quantity", "unit_price_cents", "description")


def validate_quantity(value) -> Decimal:
    quantity = parse_decimal(value, "quantity", QUANTITY_DECIMAL_PLACES)
    if quantity <= 0:
        raise ValidationError("Quantity must be greater than 0", field="quantity")
    if quantity > QUANTITY_MAX:
        raise ValidationError(f"Quantity cannot exceed {QUANTITY_MAX} days", field="quantity")
    return quantity


def validate_unit_price_cents(value) -> int:
    unit_price = parse_int(value, "unit_price_cents")
    if unit_price <= 0:
        raise ValidationError("Unit price must be greater than 0", field="unit_price_cents")
    if unit_price > UNIT_PRICE_MAX_CENTS:
        raise ValidationError(
            f"Unit price cannot exceed {UNIT_PRICE_MAX_CENTS} cents", field="unit_price_cents"
        )
    return unit_price


def validate_entry_date(value) -> date:
    if value is None:
        raise ValidationError("Date is required", field="date")
    return parse_date(value, "date")


def validate_entry_fields(attrs: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validate entry attributes field by field.

    Args:
        attrs: raw attributes
        partial: True for updates (only supplied fields are checked)

    Returns:
        Normalized attributes

    Raises:
        ValidationError: first invalid field
    """
    unknown = set(attrs) - set(ENTRY_FIELDS)
    if unknown:
        field = sorted(unknown)[0]
        raise ValidationError(f"Unknown entry field: {field}", field=field)

    if not partial:
        for required in ("date", "quantity", "unit_price_cents"):
            if attrs.get(required) is None:
                raise ValidationError(f"{required} is required", field=required)

    normalized: Dict[str, Any] = {}
    if "date" in attrs:
        normalized["date"] = validate_entry_date(attrs["date"])
    if "quantity" in attrs:
        normalized["quantity"] = validate_quantity(attrs["quantity"])
    if "unit_price_cents" in attrs:
        normalized["unit_price_cents"] = validate_unit_price_cents(attrs["unit_price_cents"])
    if "description" in attrs:
        normalized["description"] = validate_text(
            attrs["description"], "description", DESCRIPTION_MAX_LENGTH
        )
    return normalized


def line_total_cents(quantity, unit_price_cents: int) -> int:
    """
    Line total rounded half-up to the nearest cent.

    >>> line_total_cents(Decimal("1.5"), 60000)
    90000
    """
    if not isinstance(quantity, Decimal):
        quantity = Decimal(str(quantity))
    return round_cents(quantity * Decimal(unit_price_cents))
