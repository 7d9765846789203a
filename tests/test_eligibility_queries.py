"""Tests for eligibility listing and summary queries."""

from datetime import date

import pytest

from salary_progression.errors import InvalidInputError
from salary_progression.services import (
    EligibilityFilter,
    EligibilityQueryService,
    EligibilityScanner,
    EligibilityStatus,
    SalaryProgressionService,
)

from tests.conftest import make_employee

ACTOR = "hr.officer@example.org"


class TestEligibilityQueries:
    """Test eligibility listing and summary."""

    async def seed(self, session, tenant, constable, sergeant):
        a = await make_employee(session, tenant, constable, number="E001")
        b = await make_employee(session, tenant, sergeant, number="E002")
        c = await make_employee(
            session, tenant, constable, number="E003", employment_date=date(2016, 1, 1)
        )
        await EligibilityScanner(session).run_eligibility_scan(tenant.tenant_id, date(2018, 6, 1))
        return a, b, c

    async def test_list_with_filters_and_sort(self, session, tenant, constable, sergeant):
        a, b, c = await self.seed(session, tenant, constable, sergeant)
        queries = EligibilityQueryService(session)

        everything = await queries.list_eligibilities(tenant.tenant_id)
        assert everything.meta.total == 3
        assert [r.eligibility_date for r in everything.data] == [
            date(2017, 1, 1),
            date(2017, 1, 1),
            date(2018, 1, 1),
        ]
        assert everything.data[0].employee.employee_number in ("E001", "E002")

        by_rank = await queries.list_eligibilities(
            tenant.tenant_id, EligibilityFilter(rank_id=sergeant.rank_id)
        )
        assert [r.employee_id for r in by_rank.data] == [b.employee_id]

        by_date = await queries.list_eligibilities(
            tenant.tenant_id,
            EligibilityFilter(eligibility_date_from=date(2017, 6, 1)),
        )
        assert [r.employee_id for r in by_date.data] == [c.employee_id]

        by_search = await queries.list_eligibilities(
            tenant.tenant_id, EligibilityFilter(search="e003")
        )
        assert [r.employee_id for r in by_search.data] == [c.employee_id]

        newest_first = await queries.list_eligibilities(
            tenant.tenant_id, sort_by="eligibility_date", sort_order="desc", limit=1
        )
        assert newest_first.data[0].employee_id == c.employee_id
        assert newest_first.meta.total_pages == 3
        assert newest_first.meta.has_next_page is True

    async def test_status_filter(self, session, tenant, constable, sergeant):
        a, _, _ = await self.seed(session, tenant, constable, sergeant)
        queries = EligibilityQueryService(session)
        [record] = (
            await queries.list_eligibilities(
                tenant.tenant_id, EligibilityFilter(rank_id=constable.rank_id, search="E001")
            )
        ).data
        await SalaryProgressionService(session).reject(
            tenant.tenant_id, record.eligibility_id, "Suspended", ACTOR
        )

        rejected = await queries.list_eligibilities(
            tenant.tenant_id, EligibilityFilter(status=EligibilityStatus.REJECTED)
        )
        pending = await queries.list_eligibilities(
            tenant.tenant_id, EligibilityFilter(status=EligibilityStatus.PENDING)
        )

        assert [r.employee_id for r in rejected.data] == [a.employee_id]
        assert pending.meta.total == 2

    async def test_unknown_sort_field(self, session, tenant):
        with pytest.raises(InvalidInputError):
            await EligibilityQueryService(session).list_eligibilities(
                tenant.tenant_id, sort_by="salary; DROP TABLE employee"
            )

    async def test_due_today(self, session, tenant, constable, sergeant):
        await self.seed(session, tenant, constable, sergeant)
        queries = EligibilityQueryService(session)

        assert len(await queries.list_due_today(tenant.tenant_id, date(2017, 1, 1))) == 2
        assert len(await queries.list_due_today(tenant.tenant_id, date(2018, 1, 1))) == 1
        assert await queries.list_due_today(tenant.tenant_id, date(2018, 1, 2)) == []

    async def test_summary(self, session, tenant, constable, sergeant):
        await make_employee(session, tenant, constable, number="E001")
        await make_employee(
            session, tenant, sergeant, number="E002", employment_date=date(2015, 1, 20)
        )
        await EligibilityScanner(session).run_eligibility_scan(tenant.tenant_id, date(2017, 1, 25))
        queries = EligibilityQueryService(session)

        summary = await queries.get_eligibility_summary(tenant.tenant_id, date(2017, 1, 10))

        assert summary.pending == 2
        assert summary.upcoming_next_30_days == 1
        assert summary.approved_this_month == 0
        assert {r.rank_code: r.count for r in summary.by_rank} == {
            "CONSTABLE": 1,
            "SERGEANT": 1,
        }
