"""
Money helpers: amounts are stored as integer cents everywhere.

Usage:
    from activity_ledger.utils.money import round_cents, format_cents

    round_cents(Decimal("1.5") * 60000)   -> 90000
    round_cents(Decimal("0.5") * 25001)   -> 12501   (half-up)
    format_cents(130000)                   -> "1300.00"
"""
from decimal import Decimal, ROUND_HALF_UP

_ONE_CENT = Decimal("1")
_HUNDRED = Decimal("100")


def round_cents(amount) -> int:
    """
    Округлить сумму в центах до целого цента (half-up, .5 всегда вверх).

    Args:
        amount: Decimal / int / str (в центах, может быть дробным)

    Returns:
        Целое количество центов
    """
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return int(amount.quantize(_ONE_CENT, rounding=ROUND_HALF_UP))


def format_cents(cents: int) -> str:
    """
    Cents -> decimal currency units with two places ("1234.50").
    """
    units = (Decimal(int(cents)) / _HUNDRED).quantize(Decimal("0.01"))
    return f"{units:.2f}"


def format_quantity(quantity) -> str:
    """Quantity with two decimal places ("1.50")."""
    if not isinstance(quantity, Decimal):
        quantity = Decimal(str(quantity))
    return f"{quantity.quantize(Decimal('0.01')):.2f}"
