"""
Tests for the mission link reference counter
"""
from activity_ledger.application.entries import CreateEntryUseCase, DestroyEntryUseCase, UpdateEntryUseCase
from activity_ledger.application.mission_links import MissionLinkCounter
from activity_ledger.infrastructure.db.models import ReportMission


def _entry(db_session, report, owner_id, day, mission_id=None):
    return CreateEntryUseCase(db_session).execute(
        report.id, owner_id,
        {"date": f"2024-03-{day:02d}", "quantity": "1", "unit_price_cents": 10000},
        mission_id=mission_id,
    )


def test_ensure_linked_is_idempotent(db_session, report, missions):
    counter = MissionLinkCounter(db_session)

    assert counter.ensure_linked(report, missions[0].id) is True
    assert counter.ensure_linked(report, missions[0].id) is False

    assert db_session.query(ReportMission).count() == 1


def test_ensure_unlinked_when_already_absent_is_noop(db_session, report, missions):
    counter = MissionLinkCounter(db_session)

    assert counter.ensure_unlinked_if_empty(report, missions[0].id) is False
    assert counter.ensure_unlinked_if_empty(report, None) is False
    assert counter.linked_mission_ids(report) == set()


def test_link_kept_while_an_active_entry_references_mission(db_session, report, owner_id, missions):
    mission_id = missions[0].id
    first = _entry(db_session, report, owner_id, 1, mission_id)
    second = _entry(db_session, report, owner_id, 2, mission_id)
    counter = MissionLinkCounter(db_session)

    DestroyEntryUseCase(db_session).execute(first.id, owner_id)
    assert counter.linked_mission_ids(report) == {mission_id}

    DestroyEntryUseCase(db_session).execute(second.id, owner_id)
    assert counter.linked_mission_ids(report) == set()


def test_entry_without_mission_creates_no_link(db_session, report, owner_id):
    _entry(db_session, report, owner_id, 1)
    assert MissionLinkCounter(db_session).linked_mission_ids(report) == set()


def test_rebuild_matches_maintained_links(db_session, report, owner_id, missions):
    """The link table must be reproducible by scanning active entries"""
    a, b = missions[0].id, missions[1].id
    e1 = _entry(db_session, report, owner_id, 1, a)
    _entry(db_session, report, owner_id, 2, b)
    e3 = _entry(db_session, report, owner_id, 3, a)
    UpdateEntryUseCase(db_session).execute(e3.id, owner_id, mission_id=b)
    DestroyEntryUseCase(db_session).execute(e1.id, owner_id)

    counter = MissionLinkCounter(db_session)
    maintained = counter.linked_mission_ids(report)
    rebuilt = counter.rebuild(report)

    assert maintained == rebuilt == {b}


def test_rebuild_repairs_a_drifted_cache(db_session, report, owner_id, missions):
    a, b = missions[0].id, missions[1].id
    _entry(db_session, report, owner_id, 1, a)

    # Simulate drift: stale link for b, missing link for a
    db_session.query(ReportMission).delete()
    db_session.add(ReportMission(report_id=report.id, mission_id=b))
    db_session.flush()

    counter = MissionLinkCounter(db_session)
    assert counter.rebuild(report) == {a}
    assert counter.linked_mission_ids(report) == {a}
