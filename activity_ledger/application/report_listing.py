"""
Report listing - ownership-scoped search with filters and pagination
"""
from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from activity_ledger.application.access import ReportAccessPolicy
from activity_ledger.application.pagination import Page, normalize_pagination
from activity_ledger.domain.activity_report import validate_status, validate_month, validate_year
from activity_ledger.domain.errors import ValidationError
from activity_ledger.infrastructure.db.models import ActivityReport
from activity_ledger.infrastructure.db.repository import report_is_active
from activity_ledger.utils.validation import validate_currency

QUERY_MAX_LENGTH = 255


@dataclass
class ReportFilters:
    status: str | None = None
    year: int | None = None
    month: int | None = None
    currency: str | None = None
    q: str | None = None

    @classmethod
    def parse(cls, raw: Dict[str, Any] | None) -> "ReportFilters":
        """
        Validate raw filter values; empty strings count as absent.

        Raises:
            ValidationError: invalid value, or month without year
        """
        raw = {k: v for k, v in (raw or {}).items() if v not in (None, "")}
        unknown = set(raw) - {"status", "year", "month", "currency", "q"}
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationError(f"Unknown filter: {field}", field=field)

        if "month" in raw and "year" not in raw:
            raise ValidationError("year is required when month is specified", field="year")

        filters = cls()
        if "status" in raw:
            filters.status = validate_status(raw["status"])
        if "year" in raw:
            filters.year = validate_year(raw["year"])
        if "month" in raw:
            filters.month = validate_month(raw["month"])
        if "currency" in raw:
            filters.currency = validate_currency(raw["currency"])
        if "q" in raw:
            q = str(raw["q"]).strip()
            if len(q) > QUERY_MAX_LENGTH:
                raise ValidationError("Search text is too long", field="q")
            filters.q = q or None
        return filters


class ListReportsUseCase:
    """
    Read-only listing of reports visible to the actor.

    Order: newest period first (year desc, month desc, id desc).
    """

    def __init__(self, db: Session, access_policy: ReportAccessPolicy | None = None):
        self.db = db
        self.access = access_policy or ReportAccessPolicy()

    def execute(
        self,
        actor_id: int,
        filters: ReportFilters | Dict[str, Any] | None = None,
        page=None,
        per_page=None,
    ) -> Page[ActivityReport]:
        if not isinstance(filters, ReportFilters):
            filters = ReportFilters.parse(filters)
        page, per_page = normalize_pagination(page, per_page)

        query = select(ActivityReport).where(report_is_active())

        shared = self.access.shared_ids(actor_id)
        if shared:
            query = query.where(or_(
                ActivityReport.owner_id == actor_id,
                ActivityReport.id.in_(shared),
            ))
        else:
            query = query.where(ActivityReport.owner_id == actor_id)

        if filters.status:
            query = query.where(ActivityReport.status == filters.status)
        if filters.year is not None:
            query = query.where(ActivityReport.year == filters.year)
        if filters.month is not None:
            query = query.where(ActivityReport.month == filters.month)
        if filters.currency:
            query = query.where(ActivityReport.currency == filters.currency)
        if filters.q:
            pattern = filters.q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            query = query.where(ActivityReport.description.ilike(f"%{pattern}%", escape="\\"))

        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar_one()

        items = list(self.db.execute(
            query.order_by(
                ActivityReport.year.desc(),
                ActivityReport.month.desc(),
                ActivityReport.id.desc(),
            )
            .offset((page - 1) * per_page)
            .limit(per_page)
        ).scalars())

        return Page(items=items, total=total, page=page, per_page=per_page)
