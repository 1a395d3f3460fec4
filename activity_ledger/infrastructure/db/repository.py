"""
Ledger repositories - the single home of the "active" predicate

Active = deleted_at IS NULL. Recalculation, duplicate detection, link
counting, listing and export all go through these queries.
"""
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from activity_ledger.infrastructure.db.models import (
    ActivityReport, Entry, EntryReport, EntryMission, Mission, ReportMission,
)


def entry_is_active():
    return Entry.deleted_at.is_(None)


def report_is_active():
    return ActivityReport.deleted_at.is_(None)


class ReportRepository:
    """Activity reports (soft-deleted rows are invisible)"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, report_id: int, for_update: bool = False) -> Optional[ActivityReport]:
        """
        Получить активный отчёт

        Args:
            report_id: ID отчёта
            for_update: взять row lock (SELECT ... FOR UPDATE) на время транзакции
        """
        stmt = select(ActivityReport).where(
            ActivityReport.id == report_id,
            report_is_active(),
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def exists_for_period(
        self,
        owner_id: int,
        month: int,
        year: int,
        exclude_id: int | None = None,
    ) -> bool:
        stmt = select(ActivityReport.id).where(
            ActivityReport.owner_id == owner_id,
            ActivityReport.month == month,
            ActivityReport.year == year,
            report_is_active(),
        )
        if exclude_id is not None:
            stmt = stmt.where(ActivityReport.id != exclude_id)
        return self.db.execute(stmt.limit(1)).first() is not None


class EntryRepository:
    """Entries and their relation rows"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, entry_id: int) -> Optional[Entry]:
        """Entry by id, including soft-deleted ones."""
        return self.db.get(Entry, entry_id)

    def report_id_of(self, entry_id: int) -> Optional[int]:
        return self.db.execute(
            select(EntryReport.report_id).where(EntryReport.entry_id == entry_id)
        ).scalar_one_or_none()

    def mission_id_of(self, entry_id: int) -> Optional[int]:
        return self.db.execute(
            select(EntryMission.mission_id).where(EntryMission.entry_id == entry_id)
        ).scalar_one_or_none()

    def _active_for_report(self, report_id: int):
        return (
            select(Entry)
            .join(EntryReport, EntryReport.entry_id == Entry.id)
            .where(EntryReport.report_id == report_id, entry_is_active())
        )

    def active_for_report(self, report_id: int) -> List[Entry]:
        stmt = self._active_for_report(report_id).order_by(Entry.date, Entry.id)
        return list(self.db.execute(stmt).scalars())

    def active_with_missions(self, report_id: int) -> List[Tuple[Entry, Optional[int]]]:
        """Active entries with their mission id (None when detached), ordered by date."""
        stmt = (
            select(Entry, EntryMission.mission_id)
            .join(EntryReport, EntryReport.entry_id == Entry.id)
            .outerjoin(EntryMission, EntryMission.entry_id == Entry.id)
            .where(EntryReport.report_id == report_id, entry_is_active())
            .order_by(Entry.date, Entry.id)
        )
        return [(entry, mission_id) for entry, mission_id in self.db.execute(stmt).all()]

    def count_active(self, report_id: int) -> int:
        stmt = (
            select(func.count(Entry.id))
            .join(EntryReport, EntryReport.entry_id == Entry.id)
            .where(EntryReport.report_id == report_id, entry_is_active())
        )
        return self.db.execute(stmt).scalar_one()

    def count_active_for_mission(self, report_id: int, mission_id: int) -> int:
        stmt = (
            select(func.count(Entry.id))
            .join(EntryReport, EntryReport.entry_id == Entry.id)
            .join(EntryMission, EntryMission.entry_id == Entry.id)
            .where(
                EntryReport.report_id == report_id,
                EntryMission.mission_id == mission_id,
                entry_is_active(),
            )
        )
        return self.db.execute(stmt).scalar_one()

    def active_mission_ids(self, report_id: int) -> set[int]:
        """Missions referenced by at least one active entry of the report."""
        stmt = (
            select(EntryMission.mission_id)
            .join(Entry, Entry.id == EntryMission.entry_id)
            .join(EntryReport, EntryReport.entry_id == Entry.id)
            .where(EntryReport.report_id == report_id, entry_is_active())
            .distinct()
        )
        return set(self.db.execute(stmt).scalars())

    def find_duplicate(
        self,
        report_id: int,
        mission_id: int | None,
        entry_date: date,
        exclude_id: int | None = None,
    ) -> Optional[Entry]:
        """
        Active entry of the report with the same (mission-or-null, date).
        """
        stmt = (
            self._active_for_report(report_id)
            .outerjoin(EntryMission, EntryMission.entry_id == Entry.id)
            .where(Entry.date == entry_date)
        )
        if mission_id is None:
            stmt = stmt.where(EntryMission.id.is_(None))
        else:
            stmt = stmt.where(EntryMission.mission_id == mission_id)
        if exclude_id is not None:
            stmt = stmt.where(Entry.id != exclude_id)
        return self.db.execute(stmt.limit(1)).scalars().first()

    def attach(self, entry_id: int, report_id: int, mission_id: int | None) -> None:
        self.db.add(EntryReport(entry_id=entry_id, report_id=report_id))
        if mission_id is not None:
            self.db.add(EntryMission(entry_id=entry_id, mission_id=mission_id))

    def set_mission(self, entry_id: int, mission_id: int | None) -> None:
        """Rewrite the entry -> mission relation (None detaches)."""
        relation = self.db.execute(
            select(EntryMission).where(EntryMission.entry_id == entry_id)
        ).scalar_one_or_none()
        if mission_id is None:
            if relation is not None:
                self.db.delete(relation)
        elif relation is None:
            self.db.add(EntryMission(entry_id=entry_id, mission_id=mission_id))
        else:
            relation.mission_id = mission_id


class MissionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_active(self, mission_id: int) -> Optional[Mission]:
        return self.db.execute(
            select(Mission).where(Mission.id == mission_id, Mission.deleted_at.is_(None))
        ).scalar_one_or_none()

    def names_by_id(self, mission_ids) -> dict[int, str]:
        ids = list(mission_ids)
        if not ids:
            return {}
        rows = self.db.execute(select(Mission.id, Mission.name).where(Mission.id.in_(ids)))
        return {row.id: row.name for row in rows}


class ReportMissionRepository:
    """Raw access to the derived (report, mission) link table"""

    def __init__(self, db: Session):
        self.db = db

    def find(self, report_id: int, mission_id: int) -> Optional[ReportMission]:
        return self.db.execute(
            select(ReportMission).where(
                ReportMission.report_id == report_id,
                ReportMission.mission_id == mission_id,
            )
        ).scalar_one_or_none()

    def mission_ids(self, report_id: int) -> set[int]:
        return set(self.db.execute(
            select(ReportMission.mission_id).where(ReportMission.report_id == report_id)
        ).scalars())
