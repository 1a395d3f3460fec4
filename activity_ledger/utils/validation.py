"""
Validation utilities
"""
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from activity_ledger.domain.errors import ValidationError

CURRENCY_RE = re.compile(r"[A-Z]{3}")


def normalize_decimal_input(value: str) -> str:
    """
    Нормализовать ввод: заменить запятую на точку

    Example:
        >>> normalize_decimal_input("0,25")
        "0.25"
    """
    return value.strip().replace(",", ".")


def parse_decimal(value, field: str, max_decimal_places: int = 2) -> Decimal:
    """
    Разобрать десятичное число (Decimal / int / str), не float.

    Raises:
        ValidationError: если значение не число или слишком много знаков
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, float):
        value = repr(value)
    if isinstance(value, str):
        value = normalize_decimal_input(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number", field=field)

    if not result.is_finite():
        raise ValidationError(f"{field} must be a number", field=field)
    # Trailing zeros do not count ("1.500" == 1.5)
    if result.normalize().as_tuple().exponent < -max_decimal_places:
        raise ValidationError(
            f"{field} accepts at most {max_decimal_places} decimal places", field=field
        )
    return result


def parse_int(value, field: str) -> int:
    """Integer input; integral strings and Decimals are accepted."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, int):
        return value
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)
    if not result.is_finite() or result != result.to_integral_value():
        raise ValidationError(f"{field} must be an integer", field=field)
    return int(result)


def parse_date(value, field: str = "date") -> date:
    """
    Разобрать дату: date или строка ISO YYYY-MM-DD.

    Raises:
        ValidationError: если дата некорректна
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{field} must be a valid date (YYYY-MM-DD)", field=field)


def validate_currency(value, field: str = "currency") -> str:
    """ISO 4217: строго 3 заглавные латинские буквы."""
    if not isinstance(value, str) or not CURRENCY_RE.fullmatch(value):
        raise ValidationError("Currency must be a valid ISO 4217 code", field=field)
    return value


def validate_text(value, field: str, max_length: int) -> str | None:
    """Optional free text; blank becomes None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(
            f"{field.capitalize()} cannot exceed {max_length} characters", field=field
        )
    return value or None
