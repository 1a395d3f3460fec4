"""
Tests for the total recalculation engine
"""
from dataclasses import dataclass
from decimal import Decimal

from activity_ledger.application.entries import CreateEntryUseCase, DestroyEntryUseCase
from activity_ledger.application.totals import compute_totals, TotalsRecalculator
from activity_ledger.infrastructure.db.models import ActivityReport


@dataclass
class _Line:
    quantity: Decimal
    unit_price_cents: int


def test_compute_totals_empty():
    totals = compute_totals([])
    assert totals.total_days == Decimal("0")
    assert totals.total_amount_cents == 0


def test_compute_totals_sums_rounded_lines():
    totals = compute_totals([
        _Line(Decimal("0.25"), 2),    # 0.5 -> 1
        _Line(Decimal("0.25"), 10),   # 2.5 -> 3
        _Line(Decimal("1.5"), 60000), # 90000
    ])
    assert totals.total_days == Decimal("2.00")
    # summing first and rounding once would give 90003
    assert totals.total_amount_cents == 90004


def test_round_each_line_before_summing():
    totals = compute_totals([_Line(Decimal("0.25"), 2), _Line(Decimal("0.25"), 2)])
    # 1 + 1, not round(0.5 + 0.5) = 1
    assert totals.total_amount_cents == 2


def test_recalculate_ignores_deleted_entries(db_session, report, owner_id):
    first = CreateEntryUseCase(db_session).execute(
        report.id, owner_id, {"date": "2024-03-01", "quantity": "1", "unit_price_cents": 50000},
    )
    CreateEntryUseCase(db_session).execute(
        report.id, owner_id, {"date": "2024-03-02", "quantity": "0.5", "unit_price_cents": 50000},
    )
    DestroyEntryUseCase(db_session).execute(first.id, owner_id)

    # Corrupt the stored totals, then recompute from scratch
    stored = db_session.get(ActivityReport, report.id)
    stored.total_days = Decimal("99")
    stored.total_amount_cents = 1

    totals = TotalsRecalculator(db_session).recalculate(stored)

    assert totals.total_days == Decimal("0.5")
    assert totals.total_amount_cents == 25000
    assert stored.total_amount_cents == 25000
