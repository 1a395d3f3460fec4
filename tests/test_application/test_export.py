"""
Tests for CSV export of submitted / locked reports
"""
import csv
import io

import pytest
from sqlalchemy import event

from activity_ledger.application.access import ReportAccessPolicy
from activity_ledger.application.activity_reports import SubmitReportUseCase, LockReportUseCase
from activity_ledger.application.entries import CreateEntryUseCase, DestroyEntryUseCase
from activity_ledger.application.export import (
    ExportReportUseCase, CSV_HEADERS, CSV_MEDIA_TYPE, UNNAMED_MISSION, export_filename,
)
from activity_ledger.domain.errors import ValidationError, StateError, ForbiddenError, ReportNotFoundError
from activity_ledger.infrastructure.db.models import Mission


def _rows(result):
    text = result.content.decode("utf-8")
    assert text.startswith("\ufeff")
    return list(csv.reader(io.StringIO(text[1:])))


@pytest.fixture
def submitted_report(db_session, report, owner_id, missions):
    create = CreateEntryUseCase(db_session)
    create.execute(
        report.id, owner_id,
        {"date": "2024-03-04", "quantity": "0.5", "unit_price_cents": 80000, "description": "Review, follow-up"},
        mission_id=missions[1].id,
    )
    create.execute(
        report.id, owner_id,
        {"date": "2024-03-01", "quantity": "1.5", "unit_price_cents": 60000, "description": "Design"},
        mission_id=missions[0].id,
    )
    removed = create.execute(
        report.id, owner_id,
        {"date": "2024-03-02", "quantity": "3", "unit_price_cents": 10000},
    )
    DestroyEntryUseCase(db_session).execute(removed.id, owner_id)
    create.execute(
        report.id, owner_id,
        {"date": "2024-03-05", "quantity": "0.25", "unit_price_cents": 40000},
    )
    SubmitReportUseCase(db_session).execute(report.id, owner_id)
    return report


def test_csv_content(db_session, submitted_report, owner_id):
    result = ExportReportUseCase(db_session).execute(submitted_report.id, owner_id)

    assert result.media_type == CSV_MEDIA_TYPE
    assert result.filename == "activity_report_2024_03.csv"
    assert _rows(result) == [
        CSV_HEADERS,
        ["2024-03-01", "ACME Platform", "1.50", "600.00", "900.00", "Design"],
        ["2024-03-04", "Globex Audit", "0.50", "800.00", "400.00", "Review, follow-up"],
        ["2024-03-05", UNNAMED_MISSION, "0.25", "400.00", "100.00", ""],
        ["TOTAL", "", "2.25", "", "1400.00", ""],
    ]


def test_soft_deleted_mission_keeps_its_name(db_session, submitted_report, owner_id, missions):
    from datetime import datetime, timezone

    mission = db_session.get(Mission, missions[0].id)
    mission.deleted_at = datetime.now(timezone.utc)
    db_session.commit()

    rows = _rows(ExportReportUseCase(db_session).execute(submitted_report.id, owner_id))
    assert rows[1][1] == "ACME Platform"


def test_locked_report_is_exportable(db_session, submitted_report, owner_id):
    LockReportUseCase(db_session).execute(submitted_report.id, owner_id)
    rows = _rows(ExportReportUseCase(db_session).execute(submitted_report.id, owner_id))
    assert rows[-1][0] == "TOTAL"


def test_draft_report_cannot_be_exported(db_session, report, owner_id):
    with pytest.raises(StateError):
        ExportReportUseCase(db_session).execute(report.id, owner_id)


def test_unsupported_format(db_session, submitted_report, owner_id):
    with pytest.raises(ValidationError) as exc_info:
        ExportReportUseCase(db_session).execute(submitted_report.id, owner_id, fmt="pdf")
    assert exc_info.value.field == "format"


def test_format_is_case_insensitive(db_session, submitted_report, owner_id):
    result = ExportReportUseCase(db_session).execute(submitted_report.id, owner_id, fmt="CSV")
    assert result.filename.endswith(".csv")


def test_access_rules(db_session, submitted_report, other_user_id):
    with pytest.raises(ForbiddenError):
        ExportReportUseCase(db_session).execute(submitted_report.id, other_user_id)

    policy = ReportAccessPolicy(shared_report_ids=lambda actor: {submitted_report.id})
    result = ExportReportUseCase(db_session, policy).execute(submitted_report.id, other_user_id)
    assert len(_rows(result)) == 5


def test_unknown_report(db_session, owner_id):
    with pytest.raises(ReportNotFoundError):
        ExportReportUseCase(db_session).execute(404, owner_id)


def test_export_filename_pads_month():
    assert export_filename(2025, 1) == "activity_report_2025_01.csv"


def test_mission_ids_are_loaded_in_one_query(db_session, db_engine, submitted_report, owner_id):
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(db_engine, "before_cursor_execute", record)
    try:
        ExportReportUseCase(db_session).execute(submitted_report.id, owner_id)
    finally:
        event.remove(db_engine, "before_cursor_execute", record)

    assert len([s for s in statements if "entry_missions" in s]) == 1
