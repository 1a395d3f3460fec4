"""
Report export - CSV rendering of a submitted or locked report

Output: UTF-8 with a byte-order mark (spreadsheet compatibility), one row
per active entry and a trailing TOTAL row. Amounts in currency units with
two decimals.
"""
import csv
import io
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from activity_ledger.application.access import ReportAccessPolicy
from activity_ledger.application.totals import compute_totals
from activity_ledger.domain.activity_report import STATUS_SUBMITTED, STATUS_LOCKED
from activity_ledger.domain.entry import line_total_cents
from activity_ledger.domain.errors import StateError, ValidationError, ReportNotFoundError
from activity_ledger.infrastructure.db.repository import EntryRepository, MissionRepository, ReportRepository
from activity_ledger.utils.money import format_cents, format_quantity

logger = logging.getLogger(__name__)

UTF8_BOM = "\ufeff"
SUPPORTED_FORMATS = ("csv",)
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
UNNAMED_MISSION = "Mission sans nom"

CSV_HEADERS = ["date", "mission_name", "quantity", "unit_price", "line_total", "description"]


@dataclass(frozen=True)
class ExportResult:
    content: bytes
    media_type: str
    filename: str


def export_filename(year: int, month: int, fmt: str = "csv") -> str:
    return f"activity_report_{year}_{month:02d}.{fmt}"


class ExportReportUseCase:
    """Use case: Экспорт отчёта (только submitted / locked)"""

    def __init__(self, db: Session, access_policy: ReportAccessPolicy | None = None):
        self.db = db
        self.access = access_policy or ReportAccessPolicy()
        self.reports = ReportRepository(db)
        self.entries = EntryRepository(db)
        self.missions = MissionRepository(db)

    def execute(self, report_id: int, actor_id: int, fmt: str = "csv") -> ExportResult:
        fmt = (fmt or "").lower()
        if fmt not in SUPPORTED_FORMATS:
            raise ValidationError(
                f"Export format '{fmt}' is not supported. Supported formats: {', '.join(SUPPORTED_FORMATS)}",
                field="format",
            )

        report = self.reports.get(report_id)
        if report is None:
            raise ReportNotFoundError()
        self.access.ensure_can_access(actor_id, report)
        if report.status not in (STATUS_SUBMITTED, STATUS_LOCKED):
            raise StateError("Report must be submitted or locked to be exported")

        rows = self.entries.active_with_missions(report.id)
        names = self.missions.names_by_id({m for _, m in rows if m is not None})

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for entry, mission_id in rows:
            writer.writerow([
                entry.date.isoformat(),
                names.get(mission_id, UNNAMED_MISSION) if mission_id is not None else UNNAMED_MISSION,
                format_quantity(entry.quantity),
                format_cents(entry.unit_price_cents),
                format_cents(line_total_cents(entry.quantity, entry.unit_price_cents)),
                entry.description or "",
            ])

        totals = compute_totals(entry for entry, _ in rows)
        writer.writerow(["TOTAL", "", format_quantity(totals.total_days), "", format_cents(totals.total_amount_cents), ""])

        logger.info("Report %s exported as %s (%d entries)", report.id, fmt, len(rows))
        return ExportResult(
            content=(UTF8_BOM + buffer.getvalue()).encode("utf-8"),
            media_type=CSV_MEDIA_TYPE,
            filename=export_filename(report.year, report.month, fmt),
        )
