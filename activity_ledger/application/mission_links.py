"""
Mission link reference counter

A (report, mission) link exists iff at least one active entry of the report
references the mission. The link table is a cache rebuilt from entries;
only the entry ledger calls into this module.
"""
import logging

from sqlalchemy.orm import Session

from activity_ledger.infrastructure.db.models import ActivityReport, ReportMission
from activity_ledger.infrastructure.db.repository import EntryRepository, ReportMissionRepository

logger = logging.getLogger(__name__)


class MissionLinkCounter:

    def __init__(self, db: Session):
        self.db = db
        self.entries = EntryRepository(db)
        self.links = ReportMissionRepository(db)

    def ensure_linked(self, report: ActivityReport, mission_id: int | None) -> bool:
        """
        Idempotent insert of the (report, mission) link.

        Returns:
            True если связь создана, False если уже была
        """
        if mission_id is None:
            return False
        self.db.flush()
        if self.links.find(report.id, mission_id) is not None:
            return False

        self.db.add(ReportMission(report_id=report.id, mission_id=mission_id))
        self.db.flush()
        logger.info("Linked mission %s to report %s", mission_id, report.id)
        return True

    def ensure_unlinked_if_empty(self, report: ActivityReport, mission_id: int | None) -> bool:
        """
        Remove the link when no active entry of the report references the mission.

        Returns:
            True если связь удалена; no-op (False) если связи нет или она ещё нужна
        """
        if mission_id is None:
            return False
        self.db.flush()
        if self.entries.count_active_for_mission(report.id, mission_id) > 0:
            return False

        link = self.links.find(report.id, mission_id)
        if link is None:
            return False

        self.db.delete(link)
        self.db.flush()
        logger.info("Unlinked mission %s from report %s", mission_id, report.id)
        return True

    def linked_mission_ids(self, report: ActivityReport) -> set[int]:
        return self.links.mission_ids(report.id)

    def rebuild(self, report: ActivityReport) -> set[int]:
        """
        Rebuild the report's link set from its active entries.

        Returns:
            mission ids linked after the rebuild
        """
        self.db.flush()
        expected = self.entries.active_mission_ids(report.id)
        current = self.links.mission_ids(report.id)

        for mission_id in current - expected:
            self.db.delete(self.links.find(report.id, mission_id))
        for mission_id in expected - current:
            self.db.add(ReportMission(report_id=report.id, mission_id=mission_id))
        self.db.flush()

        if current != expected:
            logger.warning(
                "Rebuilt mission links for report %s: +%s -%s",
                report.id, sorted(expected - current), sorted(current - expected),
            )
        return expected
