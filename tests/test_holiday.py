"""Tests for holiday payout on termination."""

from datetime import date
from decimal import Decimal

import pytest

from dutch_payroll.calculators.holiday import calculate_termination_payout
from dutch_payroll.errors import ValidationError

from .conftest import make_employee


class TestTerminationPayout:
    """Test the what-if termination calculator."""

    def test_full_year_with_used_days(self):
        """25 days accrued over all of 2024, 5 used, 8 hours a day."""
        payout = calculate_termination_payout(make_employee(), "2024-12-31", used_days_ytd=5)
        assert payout.accrued_days == Decimal("25")
        assert payout.remaining_days == Decimal("20")
        assert payout.hours_per_day == Decimal("8")
        # 20 x 8 x (6,000,000 / 2,080) = 461,538.46
        assert payout.payout_cents == 461_538
        assert payout.holiday_allowance_cents == 36_923
        assert payout.total_cents == 461_538 + 36_923

    def test_partial_year(self):
        payout = calculate_termination_payout(make_employee(), date(2025, 3, 31))
        # 25 x 90 / 365 days, 8 hours a day, 6,000,000 / 2,080 an hour
        assert payout.payout_cents == 142_255
        assert payout.holiday_allowance_cents == 11_380
        assert payout.termination_date == date(2025, 3, 31)
        assert payout.name == "Ava Jansen"

    def test_carried_over_days_add_to_accrual(self):
        employee = make_employee(carried_over_holiday_days=Decimal("3"))
        payout = calculate_termination_payout(employee, "2024-12-31")
        assert payout.accrued_days == Decimal("28")

    def test_overridden_entitlement(self):
        payout = calculate_termination_payout(
            make_employee(), "2024-12-31", holiday_days_per_year=20, used_days_ytd=0
        )
        assert payout.holiday_days_per_year == Decimal("20")
        assert payout.remaining_days == Decimal("20")

    def test_used_more_than_accrued_pays_nothing(self):
        payout = calculate_termination_payout(make_employee(), "2025-01-31", used_days_ytd=10)
        assert payout.remaining_days == Decimal("0")
        assert payout.total_cents == 0

    def test_not_eligible_gets_no_allowance(self):
        employee = make_employee(holiday_allowance_eligible=False)
        payout = calculate_termination_payout(employee, "2024-12-31")
        assert payout.payout_cents > 0
        assert payout.holiday_allowance_cents == 0
        assert payout.total_cents == payout.payout_cents

    def test_zero_hours_means_no_payout(self):
        employee = make_employee(hours_per_week=Decimal("0"))
        assert calculate_termination_payout(employee, "2024-12-31").payout_cents == 0

    def test_before_start_date(self):
        with pytest.raises(ValidationError) as exc_info:
            calculate_termination_payout(make_employee(), "2022-12-31")
        assert exc_info.value.field == "termination_date"

    def test_malformed_date(self):
        with pytest.raises(ValidationError):
            calculate_termination_payout(make_employee(), "31/12/2024")
