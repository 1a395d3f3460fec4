"""
Tests for report listing (filters, ordering, pagination, visibility)
"""
import pytest

from activity_ledger.application.access import ReportAccessPolicy
from activity_ledger.application.activity_reports import CreateReportUseCase, DestroyReportUseCase
from activity_ledger.application.report_listing import ListReportsUseCase, ReportFilters
from activity_ledger.domain.errors import ValidationError


@pytest.fixture
def reports(db_session, owner_id, other_user_id):
    create = CreateReportUseCase(db_session)
    mine = [
        create.execute(owner_id, 1, 2024, description="January retainer"),
        create.execute(owner_id, 2, 2024, currency="USD", description="100% remote"),
        create.execute(owner_id, 12, 2023, description="December audit"),
        create.execute(owner_id, 11, 2024),
    ]
    foreign = create.execute(other_user_id, 5, 2024, description="Someone else")
    return mine, foreign


def _periods(page):
    return [(r.year, r.month) for r in page.items]


class TestReportFilters:
    def test_empty_values_are_ignored(self):
        filters = ReportFilters.parse({"status": "", "year": None, "q": ""})
        assert filters == ReportFilters()

    def test_month_requires_year(self):
        with pytest.raises(ValidationError) as exc_info:
            ReportFilters.parse({"month": "3"})
        assert exc_info.value.field == "year"

    @pytest.mark.parametrize("raw,field", [
        ({"status": "archived"}, "status"),
        ({"year": "abc"}, "year"),
        ({"year": "2024", "month": "13"}, "month"),
        ({"currency": "euro"}, "currency"),
        ({"q": "x" * 256}, "q"),
        ({"owner_id": "3"}, "owner_id"),
    ])
    def test_invalid_filter(self, raw, field):
        with pytest.raises(ValidationError) as exc_info:
            ReportFilters.parse(raw)
        assert exc_info.value.field == field

    def test_string_values_are_coerced(self):
        filters = ReportFilters.parse({"year": "2024", "month": "03", "q": "  audit "})
        assert filters.year == 2024
        assert filters.month == 3
        assert filters.q == "audit"


class TestListReports:
    def test_only_own_reports_newest_first(self, db_session, owner_id, reports):
        page = ListReportsUseCase(db_session).execute(owner_id)

        assert _periods(page) == [(2024, 11), (2024, 2), (2024, 1), (2023, 12)]
        assert page.total == 4

    def test_filters_combine(self, db_session, owner_id, reports):
        page = ListReportsUseCase(db_session).execute(owner_id, {"year": 2024, "currency": "EUR"})
        assert _periods(page) == [(2024, 11), (2024, 1)]

        page = ListReportsUseCase(db_session).execute(owner_id, {"year": "2024", "month": "2"})
        assert _periods(page) == [(2024, 2)]

    def test_status_filter(self, db_session, owner_id, reports):
        page = ListReportsUseCase(db_session).execute(owner_id, {"status": "submitted"})
        assert page.total == 0
        assert page.items == []

    def test_text_search_is_case_insensitive(self, db_session, owner_id, reports):
        page = ListReportsUseCase(db_session).execute(owner_id, {"q": "AUDIT"})
        assert _periods(page) == [(2023, 12)]

    def test_text_search_treats_wildcards_literally(self, db_session, owner_id, reports):
        page = ListReportsUseCase(db_session).execute(owner_id, {"q": "100%"})
        assert _periods(page) == [(2024, 2)]

        page = ListReportsUseCase(db_session).execute(owner_id, {"q": "%"})
        assert page.total == 1

    def test_deleted_reports_hidden(self, db_session, owner_id, reports):
        mine, _ = reports
        DestroyReportUseCase(db_session).execute(mine[0].id, owner_id)

        page = ListReportsUseCase(db_session).execute(owner_id)
        assert (2024, 1) not in _periods(page)
        assert page.total == 3

    def test_pagination(self, db_session, owner_id, reports):
        page = ListReportsUseCase(db_session).execute(owner_id, page=2, per_page=3)

        assert _periods(page) == [(2023, 12)]
        assert page.meta() == {"total": 4, "page": 2, "per_page": 3, "page_count": 2}

    def test_per_page_is_clamped(self, db_session, owner_id, reports):
        assert ListReportsUseCase(db_session).execute(owner_id, per_page=1000).per_page == 100
        assert ListReportsUseCase(db_session).execute(owner_id, per_page=0).per_page == 1

    @pytest.mark.parametrize("page", [0, -3, "0"])
    def test_page_below_one_is_clamped(self, db_session, owner_id, reports, page):
        result = ListReportsUseCase(db_session).execute(owner_id, page=page, per_page=2)

        assert result.page == 1
        assert _periods(result) == [(2024, 11), (2024, 2)]

    def test_non_numeric_page(self, db_session, owner_id, reports):
        with pytest.raises(ValidationError):
            ListReportsUseCase(db_session).execute(owner_id, page="abc")

    def test_delegated_reports_are_listed(self, db_session, other_user_id, reports):
        mine, foreign = reports
        policy = ReportAccessPolicy(shared_report_ids=lambda actor: [mine[2].id])

        page = ListReportsUseCase(db_session, policy).execute(other_user_id)

        assert {r.id for r in page.items} == {mine[2].id, foreign.id}
