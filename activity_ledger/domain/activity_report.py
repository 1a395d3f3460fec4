"""
Activity report domain rules - lifecycle states and field validation
"""
from datetime import date
from typing import Any, Dict

from activity_ledger.domain.errors import (
    ValidationError, InvalidTransitionError, ReportSubmittedError, ReportLockedError,
)
from activity_ledger.utils.validation import parse_int, validate_currency, validate_text

# Lifecycle: draft -> submitted -> locked (terminal)
STATUS_DRAFT = "draft"
STATUS_SUBMITTED = "submitted"
STATUS_LOCKED = "locked"

VALID_STATUSES = (STATUS_DRAFT, STATUS_SUBMITTED, STATUS_LOCKED)

# Allowed forward transitions, keyed by target status
_TRANSITIONS = {
    STATUS_SUBMITTED: STATUS_DRAFT,
    STATUS_LOCKED: STATUS_SUBMITTED,
}

MIN_YEAR = 2000
DESCRIPTION_MAX_LENGTH = 2000


def can_transition(current: str, target: str) -> bool:
    """Только вперёд и только на один шаг"""
    return _TRANSITIONS.get(target) == current


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)


def ensure_draft(status: str) -> None:
    """
    Report content (entries, fields) is mutable only while draft.

    Raises:
        ReportSubmittedError / ReportLockedError
    """
    if status == STATUS_SUBMITTED:
        raise ReportSubmittedError()
    if status == STATUS_LOCKED:
        raise ReportLockedError()


def validate_status(value) -> str:
    if value not in VALID_STATUSES:
        raise ValidationError(
            f"Status must be one of: {', '.join(VALID_STATUSES)}", field="status"
        )
    return value


def validate_month(value) -> int:
    month = parse_int(value, "month")
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12", field="month")
    return month


def validate_year(value, max_years_ahead: int | None = None, today: date | None = None) -> int:
    year = parse_int(value, "year")
    if year < MIN_YEAR:
        raise ValidationError(f"Year must be {MIN_YEAR} or later", field="year")
    if max_years_ahead is not None:
        today = today or date.today()
        if year > today.year + max_years_ahead:
            raise ValidationError(
                f"Year cannot be more than {max_years_ahead} years in the future", field="year"
            )
    return year


def validate_report_fields(changes: Dict[str, Any], max_years_ahead: int | None = None) -> Dict[str, Any]:
    """
    Validate each supplied report field independently.

    Returns the normalized subset of ``changes`` (unknown keys rejected).
    """
    normalized: Dict[str, Any] = {}
    for field, value in changes.items():
        if field == "month":
            normalized["month"] = validate_month(value)
        elif field == "year":
            normalized["year"] = validate_year(value, max_years_ahead)
        elif field == "currency":
            normalized["currency"] = validate_currency(value)
        elif field == "description":
            normalized["description"] = validate_text(value, "description", DESCRIPTION_MAX_LENGTH)
        else:
            raise ValidationError(f"Unknown report field: {field}", field=field)
    return normalized


def display_name(month: int, year: int, status: str) -> str:
    return f"{month:02d}/{year} ({status.capitalize()})"
