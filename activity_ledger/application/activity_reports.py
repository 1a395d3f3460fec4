"""
Activity report use cases - create, edit, lifecycle transitions, deletion
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy.orm import Session

from activity_ledger.application.access import ReportAccessPolicy
from activity_ledger.application.totals import TotalsRecalculator
from activity_ledger.config import get_settings
from activity_ledger.domain.activity_report import (
    STATUS_DRAFT, STATUS_SUBMITTED, STATUS_LOCKED,
    ensure_draft, ensure_transition, validate_report_fields, display_name,
)
from activity_ledger.domain.errors import (
    ValidationError, InvalidTransitionError, EmptyReportError, NotEmptyError,
    DuplicateReportError, ReportNotFoundError,
)
from activity_ledger.infrastructure.db.models import ActivityReport
from activity_ledger.infrastructure.db.repository import ReportRepository, EntryRepository
from activity_ledger.infrastructure.db.session import atomic

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class GetReportUseCase:
    """Read-only: load an active report the actor may access"""

    def __init__(self, db: Session, access_policy: ReportAccessPolicy | None = None):
        self.db = db
        self.access = access_policy or ReportAccessPolicy()
        self.reports = ReportRepository(db)

    def execute(self, report_id: int, actor_id: int) -> ActivityReport:
        report = self.reports.get(report_id)
        if report is None:
            raise ReportNotFoundError()
        self.access.ensure_can_access(actor_id, report)
        return report


class CreateReportUseCase:
    """
    Use case: Создать отчёт за месяц (всегда draft, итоги = 0)

    Один активный отчёт на (owner, month, year).
    """

    def __init__(self, db: Session):
        self.db = db
        self.reports = ReportRepository(db)

    def execute(
        self,
        owner_id: int,
        month,
        year,
        currency: str | None = None,
        description: str | None = None,
    ) -> ActivityReport:
        settings = get_settings()
        fields = validate_report_fields(
            {
                "month": month,
                "year": year,
                "currency": currency or settings.DEFAULT_CURRENCY,
                "description": description,
            },
            max_years_ahead=settings.MAX_YEARS_AHEAD,
        )

        with atomic(self.db):
            if self.reports.exists_for_period(owner_id, fields["month"], fields["year"]):
                raise DuplicateReportError()

            report = ActivityReport(
                owner_id=owner_id,
                status=STATUS_DRAFT,
                total_days=0,
                total_amount_cents=0,
                **fields,
            )
            self.db.add(report)
            self.db.flush()

        logger.info(
            "Report %s created for owner %s (%02d/%s)",
            report.id, owner_id, report.month, report.year,
        )
        return report


class UpdateReportUseCase:
    """Use case: Изменить поля черновика (month, year, currency, description)"""

    def __init__(self, db: Session, access_policy: ReportAccessPolicy | None = None):
        self.db = db
        self.access = access_policy or ReportAccessPolicy()
        self.reports = ReportRepository(db)

    def execute(self, report_id: int, actor_id: int, changes: Dict[str, Any]) -> ActivityReport:
        if not changes:
            raise ValidationError("No fields to update")

        with atomic(self.db):
            report = self.reports.get(report_id, for_update=True)
            if report is None:
                raise ReportNotFoundError()
            self.access.ensure_owner(actor_id, report)
            ensure_draft(report.status)

            fields = validate_report_fields(changes, max_years_ahead=get_settings().MAX_YEARS_AHEAD)
            month = fields.get("month", report.month)
            year = fields.get("year", report.year)
            if (month, year) != (report.month, report.year):
                if self.reports.exists_for_period(report.owner_id, month, year, exclude_id=report.id):
                    raise DuplicateReportError()

            for field, value in fields.items():
                setattr(report, field, value)
            self.db.flush()

        logger.info("Report %s updated (fields=%s)", report_id, sorted(fields))
        return report


class _TransitionUseCase:
    """Shared wiring for submit / lock"""

    target_status: str = ""

    def __init__(self, db: Session, access_policy: ReportAccessPolicy | None = None):
        self.db = db
        self.access = access_policy or ReportAccessPolicy()
        self.reports = ReportRepository(db)
        self.entries = EntryRepository(db)
        self.recalculator = TotalsRecalculator(db)

    def _load(self, report_id: int, actor_id: int) -> ActivityReport:
        report = self.reports.get(report_id, for_update=True)
        if report is None:
            raise ReportNotFoundError()
        self.access.ensure_owner(actor_id, report)
        try:
            ensure_transition(report.status, self.target_status)
        except InvalidTransitionError:
            logger.warning(
                "Rejected transition of report %s: %s -> %s",
                report.id, report.status, self.target_status,
            )
            raise
        return report


class SubmitReportUseCase(_TransitionUseCase):
    """
    Use case: draft -> submitted

    Требуется хотя бы одна активная строка. Итоги пересчитываются в той же
    транзакции.
    """

    target_status = STATUS_SUBMITTED

    def execute(self, report_id: int, actor_id: int) -> ActivityReport:
        with atomic(self.db):
            report = self._load(report_id, actor_id)
            if self.entries.count_active(report.id) == 0:
                raise EmptyReportError()

            self.recalculator.recalculate(report)
            report.status = STATUS_SUBMITTED
            report.submitted_at = _now()
            self.db.flush()

        logger.info(
            "Report %s submitted: %s",
            report_id, display_name(report.month, report.year, report.status),
        )
        return report


class LockReportUseCase(_TransitionUseCase):
    """Use case: submitted -> locked (terminal). Повторный lock - ошибка."""

    target_status = STATUS_LOCKED

    def execute(self, report_id: int, actor_id: int) -> ActivityReport:
        with atomic(self.db):
            report = self._load(report_id, actor_id)

            self.recalculator.recalculate(report)
            report.status = STATUS_LOCKED
            report.locked_at = _now()
            self.db.flush()

        logger.info(
            "Report %s locked: %s",
            report_id, display_name(report.month, report.year, report.status),
        )
        return report


class DestroyReportUseCase:
    """Use case: Мягко удалить пустой черновик"""

    def __init__(self, db: Session, access_policy: ReportAccessPolicy | None = None):
        self.db = db
        self.access = access_policy or ReportAccessPolicy()
        self.reports = ReportRepository(db)
        self.entries = EntryRepository(db)

    def execute(self, report_id: int, actor_id: int) -> None:
        with atomic(self.db):
            report = self.reports.get(report_id, for_update=True)
            if report is None:
                raise ReportNotFoundError()
            self.access.ensure_owner(actor_id, report)
            ensure_draft(report.status)
            if self.entries.count_active(report.id) > 0:
                raise NotEmptyError("Cannot delete a report that still has entries")

            report.deleted_at = _now()
            self.db.flush()

        logger.info("Report %s deleted", report_id)
