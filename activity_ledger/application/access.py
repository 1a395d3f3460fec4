"""
Report access policy

Ownership is the base rule. Company-role style delegation is plugged in as a
callable returning the ids of reports shared with an actor; the ledger only
consumes the resulting decision.
"""
from typing import Callable, Iterable, Optional

from activity_ledger.domain.errors import ForbiddenError
from activity_ledger.infrastructure.db.models import ActivityReport

SharedReportIds = Callable[[int], Iterable[int]]


class ReportAccessPolicy:

    def __init__(self, shared_report_ids: Optional[SharedReportIds] = None):
        self._shared_report_ids = shared_report_ids

    def shared_ids(self, actor_id: int) -> set[int]:
        """IDs of reports the actor reaches through delegation (not ownership)."""
        if self._shared_report_ids is None:
            return set()
        return set(self._shared_report_ids(actor_id))

    def can_access(self, actor_id: int, report: ActivityReport) -> bool:
        if report.owner_id == actor_id:
            return True
        return report.id in self.shared_ids(actor_id)

    def ensure_can_access(self, actor_id: int, report: ActivityReport) -> None:
        if not self.can_access(actor_id, report):
            raise ForbiddenError("User cannot access this report")

    def ensure_owner(self, actor_id: int, report: ActivityReport) -> None:
        """Mutations are reserved to the owner, delegated readers included."""
        if report.owner_id != actor_id:
            raise ForbiddenError()
