"""
Total recalculation engine

totals = (Σ quantity, Σ round_half_up(quantity × unit_price_cents)) over the
active entries of one report. Always called inside the caller's transaction.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sqlalchemy.orm import Session

from activity_ledger.domain.entry import line_total_cents
from activity_ledger.infrastructure.db.models import ActivityReport
from activity_ledger.infrastructure.db.repository import EntryRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportTotals:
    total_days: Decimal
    total_amount_cents: int


def compute_totals(entries: Iterable) -> ReportTotals:
    """
    Pure aggregation. Each line is rounded to the cent before summing.

    Args:
        entries: objects with ``quantity`` and ``unit_price_cents``
    """
    total_days = Decimal("0")
    total_amount_cents = 0
    for entry in entries:
        quantity = entry.quantity if isinstance(entry.quantity, Decimal) else Decimal(str(entry.quantity))
        total_days += quantity
        total_amount_cents += line_total_cents(quantity, entry.unit_price_cents)
    return ReportTotals(total_days=total_days, total_amount_cents=total_amount_cents)


class TotalsRecalculator:
    """Recompute totals from active entries and write them on the report"""

    def __init__(self, db: Session):
        self.db = db
        self.entries = EntryRepository(db)

    def recalculate(self, report: ActivityReport) -> ReportTotals:
        # Pending entry writes must be visible to the aggregate query
        self.db.flush()
        totals = compute_totals(self.entries.active_for_report(report.id))
        report.total_days = totals.total_days
        report.total_amount_cents = totals.total_amount_cents
        self.db.flush()

        logger.info(
            "Recalculated totals for report %s: %s days, %s cents",
            report.id, totals.total_days, totals.total_amount_cents,
        )
        return totals
