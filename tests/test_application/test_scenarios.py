"""
End-to-end ledger scenarios: totals and mission links through a month of edits
"""
import pytest
from decimal import Decimal

from activity_ledger.application.activity_reports import SubmitReportUseCase, LockReportUseCase
from activity_ledger.application.entries import CreateEntryUseCase, DestroyEntryUseCase
from activity_ledger.application.mission_links import MissionLinkCounter
from activity_ledger.application.totals import compute_totals
from activity_ledger.domain.errors import EmptyReportError, StateError, ConflictError
from activity_ledger.infrastructure.db.models import ActivityReport, Entry
from activity_ledger.infrastructure.db.repository import EntryRepository


def _stored(db_session, report_id):
    db_session.expire_all()
    return db_session.get(ActivityReport, report_id)


def _assert_consistent(db_session, report):
    """Stored totals equal a fresh aggregation, links equal a fresh scan"""
    stored = _stored(db_session, report.id)
    fresh = compute_totals(EntryRepository(db_session).active_for_report(report.id))
    assert stored.total_days == fresh.total_days
    assert stored.total_amount_cents == fresh.total_amount_cents

    counter = MissionLinkCounter(db_session)
    assert counter.linked_mission_ids(stored) == EntryRepository(db_session).active_mission_ids(report.id)


def test_totals_and_links_follow_entries(db_session, report, owner_id, missions):
    create = CreateEntryUseCase(db_session)
    a, b = missions[0].id, missions[1].id

    first = create.execute(
        report.id, owner_id,
        {"date": "2024-03-15", "quantity": "1.5", "unit_price_cents": 60000}, mission_id=a,
    )
    stored = _stored(db_session, report.id)
    assert (stored.total_days, stored.total_amount_cents) == (Decimal("1.5"), 90000)
    _assert_consistent(db_session, report)

    create.execute(
        report.id, owner_id,
        {"date": "2024-03-16", "quantity": "0.5", "unit_price_cents": 80000}, mission_id=b,
    )
    stored = _stored(db_session, report.id)
    assert (stored.total_days, stored.total_amount_cents) == (Decimal("2.0"), 130000)
    assert MissionLinkCounter(db_session).linked_mission_ids(stored) == {a, b}
    _assert_consistent(db_session, report)

    DestroyEntryUseCase(db_session).execute(first.id, owner_id)
    stored = _stored(db_session, report.id)
    assert (stored.total_days, stored.total_amount_cents) == (Decimal("0.5"), 40000)
    assert MissionLinkCounter(db_session).linked_mission_ids(stored) == {b}
    _assert_consistent(db_session, report)


def test_submit_requires_an_active_entry(db_session, report, owner_id):
    with pytest.raises(EmptyReportError):
        SubmitReportUseCase(db_session).execute(report.id, owner_id)

    CreateEntryUseCase(db_session).execute(
        report.id, owner_id, {"date": "2024-03-15", "quantity": "1", "unit_price_cents": 50000},
    )
    submitted = SubmitReportUseCase(db_session).execute(report.id, owner_id)

    assert submitted.status == "submitted"


def test_locked_report_rejects_new_entries(db_session, report, owner_id):
    CreateEntryUseCase(db_session).execute(
        report.id, owner_id, {"date": "2024-03-15", "quantity": "1", "unit_price_cents": 50000},
    )
    SubmitReportUseCase(db_session).execute(report.id, owner_id)
    LockReportUseCase(db_session).execute(report.id, owner_id)

    with pytest.raises(StateError):
        CreateEntryUseCase(db_session).execute(
            report.id, owner_id, {"date": "2024-03-16", "quantity": "1", "unit_price_cents": 50000},
        )

    stored = _stored(db_session, report.id)
    assert (stored.total_days, stored.total_amount_cents) == (Decimal("1"), 50000)
    assert db_session.query(Entry).count() == 1


def test_duplicate_entry_leaves_ledger_untouched(db_session, report, owner_id, missions):
    create = CreateEntryUseCase(db_session)
    original = create.execute(
        report.id, owner_id,
        {"date": "2024-03-15", "quantity": "1", "unit_price_cents": 50000, "description": "kickoff"},
        mission_id=missions[0].id,
    )

    with pytest.raises(ConflictError):
        create.execute(
            report.id, owner_id,
            {"date": "2024-03-15", "quantity": "2", "unit_price_cents": 70000},
            mission_id=missions[0].id,
        )

    stored = _stored(db_session, report.id)
    assert (stored.total_days, stored.total_amount_cents) == (Decimal("1"), 50000)
    kept = db_session.get(Entry, original.id)
    assert kept.description == "kickoff"
    assert kept.deleted_at is None
    _assert_consistent(db_session, report)
