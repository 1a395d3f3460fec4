"""
Entry ledger use cases - create / update / destroy / list entries of a report

Every mutation runs one explicit sequence inside one transaction:
validate -> mutate -> relink -> recalculate -> commit.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from activity_ledger.application.access import ReportAccessPolicy
from activity_ledger.application.mission_links import MissionLinkCounter
from activity_ledger.application.pagination import Page, normalize_pagination
from activity_ledger.application.totals import TotalsRecalculator
from activity_ledger.domain.activity_report import ensure_draft
from activity_ledger.domain.entry import validate_entry_fields, line_total_cents
from activity_ledger.domain.errors import (
    ValidationError, DuplicateEntryError, AlreadyDeletedError,
    EntryNotFoundError, ReportNotFoundError, MissionNotFoundError,
)
from activity_ledger.infrastructure.db.models import ActivityReport, Entry, EntryReport, EntryMission
from activity_ledger.infrastructure.db.repository import (
    EntryRepository, MissionRepository, ReportRepository, entry_is_active,
)
from activity_ledger.infrastructure.db.session import atomic
from activity_ledger.utils.validation import parse_date, parse_int

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# "mission not supplied" (keep current) vs None (detach from mission)
UNSET: Any = _Unset()


@dataclass
class EntryView:
    """Entry with its mission relation resolved"""
    id: int
    report_id: int
    mission_id: int | None
    date: date
    quantity: Decimal
    unit_price_cents: int
    line_total_cents: int
    description: str | None

    @classmethod
    def build(cls, entry: Entry, report_id: int, mission_id: int | None) -> "EntryView":
        return cls(
            id=entry.id,
            report_id=report_id,
            mission_id=mission_id,
            date=entry.date,
            quantity=entry.quantity,
            unit_price_cents=entry.unit_price_cents,
            line_total_cents=line_total_cents(entry.quantity, entry.unit_price_cents),
            description=entry.description,
        )


class _EntryUseCase:
    """Shared wiring for ledger mutations"""

    def __init__(self, db: Session, access_policy: ReportAccessPolicy | None = None):
        self.db = db
        self.access = access_policy or ReportAccessPolicy()
        self.reports = ReportRepository(db)
        self.entries = EntryRepository(db)
        self.missions = MissionRepository(db)
        self.links = MissionLinkCounter(db)
        self.recalculator = TotalsRecalculator(db)

    def _load_report(self, report_id: int) -> ActivityReport:
        # Row lock serializes concurrent mutations of one report (PostgreSQL)
        report = self.reports.get(report_id, for_update=True)
        if report is None:
            raise ReportNotFoundError()
        return report

    def _load_entry(self, entry_id: int) -> tuple[Entry, ActivityReport]:
        entry = self.entries.get(entry_id)
        if entry is None:
            raise EntryNotFoundError()
        report_id = self.entries.report_id_of(entry.id)
        if report_id is None:
            raise EntryNotFoundError()
        return entry, self._load_report(report_id)

    def _ensure_mission_exists(self, mission_id: int | None) -> None:
        if mission_id is None:
            return
        if self.missions.get_active(mission_id) is None:
            raise MissionNotFoundError()

    def _ensure_no_duplicate(
        self,
        report: ActivityReport,
        mission_id: int | None,
        entry_date: date,
        exclude_id: int | None = None,
    ) -> None:
        duplicate = self.entries.find_duplicate(report.id, mission_id, entry_date, exclude_id)
        if duplicate is not None:
            raise DuplicateEntryError()


class CreateEntryUseCase(_EntryUseCase):
    """
    Use case: Добавить строку в черновик отчёта

    Процесс:
    1. Проверить владельца и статус draft
    2. Валидировать поля и уникальность (mission, date)
    3. Создать entry + связи (report, mission)
    4. ensure_linked для миссии, пересчитать итоги отчёта
    """

    def execute(
        self,
        report_id: int,
        actor_id: int,
        attrs: Dict[str, Any],
        mission_id: int | None = None,
    ) -> EntryView:
        """
        Args:
            report_id: ID отчёта
            actor_id: кто создаёт
            attrs: date, quantity, unit_price_cents, description
            mission_id: ID миссии (опционально)

        Returns:
            EntryView созданной строки
        """
        with atomic(self.db):
            report = self._load_report(report_id)
            self.access.ensure_owner(actor_id, report)
            ensure_draft(report.status)

            fields = validate_entry_fields(attrs)
            if mission_id is not None:
                mission_id = parse_int(mission_id, "mission_id")
            self._ensure_mission_exists(mission_id)
            self._ensure_no_duplicate(report, mission_id, fields["date"])

            entry = Entry(**fields)
            self.db.add(entry)
            self.db.flush()

            self.entries.attach(entry.id, report.id, mission_id)
            self.links.ensure_linked(report, mission_id)
            self.recalculator.recalculate(report)

            view = EntryView.build(entry, report.id, mission_id)

        logger.info(
            "Entry %s created on report %s (mission=%s, date=%s)",
            view.id, report_id, mission_id, view.date,
        )
        return view


class UpdateEntryUseCase(_EntryUseCase):
    """
    Use case: Изменить строку черновика

    Смена миссии переписывает связь entry -> mission, затем пересчитывает
    ссылки для старой и новой миссии.
    """

    def execute(
        self,
        entry_id: int,
        actor_id: int,
        changes: Dict[str, Any] | None = None,
        mission_id: Any = UNSET,
    ) -> EntryView:
        changes = changes or {}
        with atomic(self.db):
            entry, report = self._load_entry(entry_id)
            self.access.ensure_owner(actor_id, report)
            ensure_draft(report.status)
            if entry.deleted_at is not None:
                raise AlreadyDeletedError("Entry has been deleted and cannot be updated")

            fields = validate_entry_fields(changes, partial=True)

            old_mission_id = self.entries.mission_id_of(entry.id)
            new_mission_id = old_mission_id
            if mission_id is not UNSET:
                new_mission_id = None if mission_id is None else parse_int(mission_id, "mission_id")
            mission_changed = new_mission_id != old_mission_id
            if mission_changed:
                self._ensure_mission_exists(new_mission_id)

            new_date = fields.get("date", entry.date)
            if mission_changed or new_date != entry.date:
                self._ensure_no_duplicate(report, new_mission_id, new_date, exclude_id=entry.id)

            for field, value in fields.items():
                setattr(entry, field, value)

            if mission_changed:
                self.entries.set_mission(entry.id, new_mission_id)
                self.links.ensure_unlinked_if_empty(report, old_mission_id)
                self.links.ensure_linked(report, new_mission_id)

            self.recalculator.recalculate(report)
            view = EntryView.build(entry, report.id, new_mission_id)

        logger.info(
            "Entry %s updated on report %s (fields=%s, mission %s -> %s)",
            entry_id, view.report_id, sorted(fields), old_mission_id, new_mission_id,
        )
        return view


class DestroyEntryUseCase(_EntryUseCase):
    """Use case: Мягко удалить строку черновика"""

    def execute(self, entry_id: int, actor_id: int) -> None:
        with atomic(self.db):
            entry, report = self._load_entry(entry_id)
            self.access.ensure_owner(actor_id, report)
            ensure_draft(report.status)
            if entry.deleted_at is not None:
                raise AlreadyDeletedError()

            entry.deleted_at = datetime.now(timezone.utc)
            self.db.flush()

            mission_id = self.entries.mission_id_of(entry.id)
            self.links.ensure_unlinked_if_empty(report, mission_id)
            self.recalculator.recalculate(report)
            report_id = report.id

        logger.info("Entry %s deleted from report %s", entry_id, report_id)


class ListEntriesUseCase:
    """
    Read-only: active entries of one report, ordered by date.

    Filters: start_date, end_date (start <= end), mission_id.
    """

    def __init__(self, db: Session, access_policy: ReportAccessPolicy | None = None):
        self.db = db
        self.access = access_policy or ReportAccessPolicy()
        self.reports = ReportRepository(db)

    def execute(
        self,
        report_id: int,
        actor_id: int,
        page=None,
        per_page=None,
        start_date=None,
        end_date=None,
        mission_id=None,
    ) -> Page[EntryView]:
        report = self.reports.get(report_id)
        if report is None:
            raise ReportNotFoundError()
        self.access.ensure_can_access(actor_id, report)

        page, per_page = normalize_pagination(page, per_page)
        start = parse_date(start_date, "start_date") if start_date is not None else None
        end = parse_date(end_date, "end_date") if end_date is not None else None
        if start and end and start > end:
            raise ValidationError("Start date cannot be after end date", field="start_date")

        query = (
            select(Entry, EntryMission.mission_id)
            .join(EntryReport, EntryReport.entry_id == Entry.id)
            .outerjoin(EntryMission, EntryMission.entry_id == Entry.id)
            .where(EntryReport.report_id == report.id, entry_is_active())
        )
        if start:
            query = query.where(Entry.date >= start)
        if end:
            query = query.where(Entry.date <= end)
        if mission_id is not None:
            query = query.where(EntryMission.mission_id == parse_int(mission_id, "mission_id"))

        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar_one()

        rows = self.db.execute(
            query.order_by(Entry.date, Entry.id)
            .offset((page - 1) * per_page)
            .limit(per_page)
        ).all()

        return Page(
            items=[EntryView.build(entry, report.id, mission) for entry, mission in rows],
            total=total,
            page=page,
            per_page=per_page,
        )
