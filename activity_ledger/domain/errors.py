"""
Business errors of the activity ledger

Every error carries a machine-readable code and the HTTP status the API
boundary maps it to. Raised at the point of detection, never swallowed.
"""
from datetime import datetime, timezone
from typing import Any, Dict


class LedgerError(Exception):
    """Base class for all ledger business errors"""

    code = "ledger_error"
    http_status = 500
    default_message = "An error occurred with the activity ledger"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


# ============================================================================
# 422 - validation
# ============================================================================


class ValidationError(LedgerError, ValueError):
    """Malformed or out-of-range input, scoped to one field"""

    code = "invalid_payload"
    http_status = 422
    default_message = "Invalid payload"

    def __init__(self, message: str | None = None, field: str | None = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.field:
            payload["field"] = self.field
        return payload


# ============================================================================
# 403 - authorization
# ============================================================================


class AuthorizationError(LedgerError):
    code = "unauthorized"
    http_status = 403
    default_message = "User is not authorized to perform this action"


class ForbiddenError(AuthorizationError):
    code = "insufficient_permissions"
    default_message = "Only the report owner can perform this action"


# ============================================================================
# 409 - lifecycle state
# ============================================================================


class StateError(LedgerError):
    """Operation disallowed by the current lifecycle status"""

    code = "invalid_state"
    http_status = 409
    default_message = "Operation not allowed in the current report state"


class InvalidTransitionError(StateError):
    code = "invalid_transition"

    def __init__(self, from_status: str | None = None, to_status: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        if from_status and to_status:
            message = f"Invalid transition from '{from_status}' to '{to_status}'"
        else:
            message = "Invalid status transition"
        super().__init__(message)


class ReportSubmittedError(StateError):
    code = "report_submitted"
    default_message = "Report is submitted and cannot be modified"


class ReportLockedError(StateError):
    code = "report_locked"
    default_message = "Report is locked and cannot be modified"


class EmptyReportError(StateError):
    code = "report_has_no_entries"
    default_message = "Report must have at least one entry to be submitted"


class NotEmptyError(StateError):
    code = "report_not_empty"
    default_message = "Report still has active entries"


class AlreadyDeletedError(StateError):
    code = "already_deleted"
    default_message = "Entry is already deleted"


# ============================================================================
# 409 - conflicts
# ============================================================================


class ConflictError(LedgerError):
    code = "conflict"
    http_status = 409
    default_message = "Conflicting resource"


class DuplicateEntryError(ConflictError):
    code = "duplicate_entry"
    default_message = "An entry already exists for this mission and date"


class DuplicateReportError(ConflictError):
    code = "report_already_exists"
    default_message = "A report already exists for this user, month, and year"


# ============================================================================
# 404 - not found
# ============================================================================


class NotFoundError(LedgerError):
    code = "not_found"
    http_status = 404
    default_message = "Resource not found"


class ReportNotFoundError(NotFoundError):
    default_message = "Report not found"


class EntryNotFoundError(NotFoundError):
    default_message = "Entry not found"


class MissionNotFoundError(NotFoundError):
    code = "mission_not_found"
    default_message = "Mission not found or not accessible"


# ============================================================================
# 500 - unexpected
# ============================================================================


class InternalError(LedgerError):
    code = "internal_error"
    http_status = 500
    default_message = "An unexpected error occurred"
