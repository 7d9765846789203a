"""Tests for the salary history ledger."""

from datetime import date
from decimal import Decimal

import pytest

from salary_progression.errors import ImmutabilityViolationError, InvalidInputError
from salary_progression.services import (
    HistoryFilter,
    SalaryChangeType,
    SalaryHistoryService,
    SalaryProgressionService,
)

from tests.conftest import make_employee

ACTOR = "hr.officer@example.org"


async def build_history(session, tenant, constable, sergeant, employee):
    """Jump 0 -> 1 in 2017, then promote into sergeant in 2019."""
    service = SalaryProgressionService(session)
    await service.manual_jump(
        tenant.tenant_id, employee.employee_id, 1, "CO/1", "Merit", date(2017, 1, 1), ACTOR
    )
    await service.promote(
        tenant.tenant_id, employee.employee_id, sergeant.rank_id, date(2019, 1, 1), ACTOR
    )


class TestAppendOnly:
    """History entries can never be changed once written."""

    async def test_update_is_refused(self, session, tenant, constable, employee):
        entry = await SalaryHistoryService(session).append_entry(
            tenant_id=tenant.tenant_id,
            employee_id=employee.employee_id,
            rank_id=constable.rank_id,
            change_type=SalaryChangeType.MANUAL_JUMP,
            from_step=0,
            to_step=1,
            from_salary=Decimal("1000"),
            to_salary=Decimal("1200"),
            effective_date=date(2017, 1, 1),
            is_automatic=False,
        )

        entry.to_salary = Decimal("9999")
        with pytest.raises(ImmutabilityViolationError):
            await session.flush()

    async def test_delete_is_refused(self, session, tenant, constable, employee):
        entry = await SalaryHistoryService(session).append_entry(
            tenant_id=tenant.tenant_id,
            employee_id=employee.employee_id,
            rank_id=constable.rank_id,
            change_type=SalaryChangeType.MANUAL_JUMP,
            to_step=1,
            to_salary=Decimal("1200"),
            effective_date=date(2017, 1, 1),
            is_automatic=False,
        )

        await session.delete(entry)
        with pytest.raises(ImmutabilityViolationError):
            await session.flush()

    async def test_approved_at_set_with_approver(self, session, tenant, constable, employee):
        entry = await SalaryHistoryService(session).append_entry(
            tenant_id=tenant.tenant_id,
            employee_id=employee.employee_id,
            rank_id=constable.rank_id,
            change_type=SalaryChangeType.STEP_INCREMENT,
            to_step=1,
            to_salary=Decimal("1200"),
            effective_date=date(2017, 1, 1),
            is_automatic=True,
            approved_by=ACTOR,
        )

        assert entry.approved_at is not None


class TestHistoryQueries:
    """Test reading the ledger."""

    async def test_employee_history_newest_first(
        self, session, tenant, constable, sergeant, employee
    ):
        await build_history(session, tenant, constable, sergeant, employee)

        page = await SalaryHistoryService(session).get_employee_history(
            tenant.tenant_id, employee.employee_id
        )

        assert [e.change_type for e in page.data] == ["PROMOTION", "MANUAL_JUMP"]
        assert page.data[0].previous_rank.code == "CONSTABLE"
        assert page.data[0].rank.code == "SERGEANT"
        assert page.meta.total == 2
        assert page.meta.total_pages == 1
        assert page.meta.has_next_page is False

    async def test_filters(self, session, tenant, constable, sergeant, employee):
        await build_history(session, tenant, constable, sergeant, employee)
        service = SalaryHistoryService(session)

        by_type = await service.get_employee_history(
            tenant.tenant_id,
            employee.employee_id,
            HistoryFilter(change_type=SalaryChangeType.MANUAL_JUMP),
        )
        by_date = await service.get_employee_history(
            tenant.tenant_id,
            employee.employee_id,
            HistoryFilter(date_from=date(2018, 1, 1), date_to=date(2019, 12, 31)),
        )
        by_rank = await service.get_employee_history(
            tenant.tenant_id,
            employee.employee_id,
            HistoryFilter(rank_id=constable.rank_id),
        )

        assert [e.to_step for e in by_type.data] == [1]
        assert [e.change_type for e in by_date.data] == ["PROMOTION"]
        assert [e.change_type for e in by_rank.data] == ["MANUAL_JUMP"]

    async def test_pagination(self, session, tenant, sergeant):
        emp = await make_employee(session, tenant, sergeant)
        service = SalaryProgressionService(session)
        for step in (1, 2, 3):
            await service.manual_jump(
                tenant.tenant_id, emp.employee_id, step, f"CO/{step}", "Merit",
                date(2016 + step, 1, 1), ACTOR,
            )

        page = await SalaryHistoryService(session).get_employee_history(
            tenant.tenant_id, emp.employee_id, page=2, limit=2
        )

        assert [e.to_step for e in page.data] == [1]
        assert page.meta.total == 3
        assert page.meta.total_pages == 2
        assert page.meta.has_next_page is False
        assert page.meta.has_previous_page is True

    async def test_invalid_page(self, session, tenant, employee):
        with pytest.raises(InvalidInputError):
            await SalaryHistoryService(session).get_employee_history(
                tenant.tenant_id, employee.employee_id, page=0
            )

    async def test_latest_change(self, session, tenant, constable, sergeant, employee):
        service = SalaryHistoryService(session)
        assert await service.get_latest_change(tenant.tenant_id, employee.employee_id) is None

        await build_history(session, tenant, constable, sergeant, employee)

        latest = await service.get_latest_change(tenant.tenant_id, employee.employee_id)
        assert latest.change_type == "PROMOTION"

    async def test_changes_by_type(self, session, tenant, constable, sergeant, employee):
        await build_history(session, tenant, constable, sergeant, employee)

        page = await SalaryHistoryService(session).get_changes_by_type(
            tenant.tenant_id, SalaryChangeType.PROMOTION
        )

        assert len(page.data) == 1
        assert page.data[0].employee_id == employee.employee_id

    async def test_change_summary(self, session, tenant, constable, sergeant, employee):
        await build_history(session, tenant, constable, sergeant, employee)

        summary = await SalaryHistoryService(session).get_change_summary(tenant.tenant_id)

        assert summary.total_changes == 2
        assert summary.by_change_type["MANUAL_JUMP"] == 1
        assert summary.by_change_type["PROMOTION"] == 1
        assert summary.by_change_type["STEP_INCREMENT"] == 0
        # 1000 -> 1200, then 1200 -> 1300 (first sergeant step >= 1200)
        assert summary.total_salary_increase == Decimal("300")
        assert summary.average_increase == Decimal("150")

    async def test_count_changes_by_employee(
        self, session, tenant, constable, sergeant, employee
    ):
        await build_history(session, tenant, constable, sergeant, employee)

        counts = await SalaryHistoryService(session).count_changes_by_employee(
            tenant.tenant_id, employee.employee_id
        )

        assert counts == {
            "STEP_INCREMENT": 0,
            "MANUAL_JUMP": 1,
            "MASS_RAISE": 0,
            "PROMOTION": 1,
        }
