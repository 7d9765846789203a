"""Unit tests for SalaryCalculator.

Pure functions over RankSchedule snapshots; no database needed.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from salary_progression.calculators import RankSchedule, SalaryCalculator, SalaryStep, add_years
from salary_progression.errors import ScheduleGapError, StepNotFoundError


def schedule(amounts, step_period_years=2, missing=(), name="Constable"):
    return RankSchedule(
        rank_id=uuid4(),
        code=name.upper(),
        name=name,
        base_salary=Decimal(str(amounts[0])),
        ceiling_salary=Decimal(str(amounts[-1])),
        step_count=len(amounts),
        step_period_years=step_period_years,
        steps=tuple(
            SalaryStep(step_number=n, salary_amount=Decimal(str(a)))
            for n, a in enumerate(amounts)
            if n not in missing
        ),
    )


class TestAddYears:
    """Test anniversary arithmetic."""

    def test_plain_date(self):
        assert add_years(date(2015, 3, 14), 2) == date(2017, 3, 14)

    def test_leap_day_rolls_to_march_first(self):
        assert add_years(date(2016, 2, 29), 1) == date(2017, 3, 1)

    def test_leap_day_kept_in_leap_year(self):
        assert add_years(date(2016, 2, 29), 4) == date(2020, 2, 29)


class TestSalaryForStep:
    """Test step lookup."""

    def test_returns_amount(self):
        s = schedule([1000, 1200, 1500])
        assert SalaryCalculator.salary_for_step(s, 1) == Decimal("1200")

    def test_missing_step_raises_schedule_gap(self):
        s = schedule([1000, 1200, 1500], missing=(1,))
        with pytest.raises(StepNotFoundError) as exc_info:
            SalaryCalculator.salary_for_step(s, 1)

        assert isinstance(exc_info.value, ScheduleGapError)
        assert exc_info.value.step_number == 1
        assert exc_info.value.code == "SCHEDULE_GAP"

    def test_step_beyond_ladder_raises(self):
        with pytest.raises(StepNotFoundError):
            SalaryCalculator.salary_for_step(schedule([1000, 1200]), 5)


class TestNextEligibility:
    """Test eligibility date computation."""

    def test_anchored_to_employment_date(self):
        """Step N falls due N * period years after hiring."""
        result = SalaryCalculator.next_eligibility(date(2015, 1, 1), 0, 2, 2)

        assert result.next_step == 1
        assert result.eligibility_date == date(2017, 1, 1)
        assert result.is_at_ceiling is False

    def test_later_step_uses_same_anchor(self):
        result = SalaryCalculator.next_eligibility(date(2015, 1, 1), 1, 2, 2)
        assert result.eligibility_date == date(2019, 1, 1)

    def test_at_ceiling(self):
        result = SalaryCalculator.next_eligibility(date(2015, 1, 1), 2, 2, 2)

        assert result.is_at_ceiling is True
        assert result.next_step == 2
        assert result.eligibility_date is None
        assert result.is_due(date(2100, 1, 1)) is False

    def test_above_ceiling_treated_as_ceiling(self):
        result = SalaryCalculator.next_eligibility(date(2015, 1, 1), 7, 2, 2)
        assert result.is_at_ceiling is True

    def test_is_due_inclusive(self):
        result = SalaryCalculator.next_eligibility(date(2015, 1, 1), 0, 2, 2)

        assert result.is_due(date(2016, 12, 31)) is False
        assert result.is_due(date(2017, 1, 1)) is True
        assert result.is_due(date(2017, 1, 2)) is True


class TestSalaryProjection:
    """Test projection up to the ceiling."""

    def test_projects_remaining_steps(self):
        s = schedule([1000, 1200, 1500])
        points = SalaryCalculator.salary_projection(s, 0, date(2015, 1, 1))

        assert [p.step for p in points] == [1, 2]
        assert [p.salary for p in points] == [Decimal("1200"), Decimal("1500")]
        assert [p.effective_date for p in points] == [date(2017, 1, 1), date(2019, 1, 1)]
        assert [p.year for p in points] == [2017, 2019]
        assert [p.is_ceiling for p in points] == [False, True]

    def test_at_ceiling_projects_nothing(self):
        s = schedule([1000, 1200, 1500])
        assert SalaryCalculator.salary_projection(s, 2, date(2015, 1, 1)) == []

    def test_missing_steps_are_omitted(self):
        s = schedule([1000, 1200, 1300, 1500], missing=(2,))
        points = SalaryCalculator.salary_projection(s, 0, date(2015, 1, 1))

        assert [p.step for p in points] == [1, 3]


class TestPromotionStep:
    """Test placement in a new rank."""

    def test_first_step_not_below_current_salary(self):
        old = schedule([1000, 1200, 1500])
        new = schedule([1300, 1600, 1900, 2200], name="Sergeant")

        result = SalaryCalculator.promotion_step(old, new, Decimal("1500"))

        assert result.new_step == 1
        assert result.new_salary == Decimal("1600")
        assert "Sergeant" in result.explanation

    def test_exact_match_uses_that_step(self):
        old = schedule([1000, 1200, 1600])
        new = schedule([1300, 1600, 1900], name="Sergeant")

        result = SalaryCalculator.promotion_step(old, new, Decimal("1600"))

        assert result.new_step == 1
        assert result.new_salary == Decimal("1600")

    def test_clamped_to_ceiling(self):
        old = schedule([1000, 5000])
        new = schedule([1300, 1600, 1900], name="Sergeant")

        result = SalaryCalculator.promotion_step(old, new, Decimal("5000"))

        assert result.new_step == 2
        assert result.new_salary == Decimal("1900")
        assert "ceiling" in result.explanation

    def test_rank_without_steps_raises(self):
        empty = RankSchedule(
            rank_id=uuid4(),
            code="EMPTY",
            name="Empty",
            base_salary=Decimal("0"),
            ceiling_salary=Decimal("0"),
            step_count=1,
            step_period_years=2,
        )
        with pytest.raises(StepNotFoundError):
            SalaryCalculator.promotion_step(schedule([1000]), empty, Decimal("1000"))


class TestSalaryIncrease:
    """Test increase arithmetic."""

    def test_increase_and_percentage(self):
        result = SalaryCalculator.salary_increase(Decimal("1000"), Decimal("1200"))

        assert result.increase == Decimal("200")
        assert result.percentage_increase == Decimal("20")

    def test_zero_base(self):
        result = SalaryCalculator.salary_increase(Decimal("0"), Decimal("1200"))

        assert result.increase == Decimal("1200")
        assert result.percentage_increase == Decimal("0")


class TestRankScheduleValidation:
    """Test ladder invariant checks."""

    def test_valid_ladder(self):
        assert schedule([1000, 1200, 1500]).validate() == []

    def test_decreasing_step_reported(self):
        errors = schedule([1000, 1300, 1200]).validate()
        assert any("lower than step" in e for e in errors)

    def test_gap_reported(self):
        errors = schedule([1000, 1200, 1500], missing=(1,)).validate()
        assert any("do not cover" in e for e in errors)

    def test_max_step(self):
        s = schedule([1000, 1200, 1500])

        assert s.max_step == 2
        assert s.has_step(2) is True
        assert s.has_step(3) is False
        assert SalaryCalculator.validate_step_number(2, s.max_step) is True
        assert SalaryCalculator.validate_step_number(3, s.max_step) is False
        assert SalaryCalculator.validate_step_number(-1, s.max_step) is False
