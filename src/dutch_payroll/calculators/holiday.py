"""Holiday entitlement payout for leavers.

Untaken statutory holiday days are accrued pro rata over the calendar year up
to the termination date, plus any days carried over from earlier years, and
paid out at the employee's hourly rate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from dutch_payroll.calculators.money import round_cents, to_decimal
from dutch_payroll.calculators.periods import days_inclusive, parse_iso_date, year_length
from dutch_payroll.calculators.types import EmployeeSnapshot
from dutch_payroll.errors import ValidationError

HOLIDAY_ALLOWANCE_RATE = Decimal("0.08")
WEEKS_PER_YEAR = 52


@dataclass(frozen=True)
class HolidayPayout:
    accrued_days: Decimal
    remaining_days: Decimal
    hours_per_day: Decimal
    hourly_rate_cents: Decimal
    payout_cents: int


@dataclass(frozen=True)
class TerminationPayout:
    """Breakdown returned by the termination calculator."""

    employee_id: str
    name: str
    termination_date: date
    holiday_days_per_year: Decimal
    used_days_ytd: Decimal
    accrued_days: Decimal
    remaining_days: Decimal
    hours_per_day: Decimal
    hourly_rate_cents: Decimal
    payout_cents: int
    holiday_allowance_cents: int
    total_cents: int


def _hourly_rate_cents(employee: EmployeeSnapshot) -> Decimal:
    if employee.hours_per_week <= 0:
        return Decimal("0")
    return Decimal(employee.annual_salary_cents) / (employee.hours_per_week * WEEKS_PER_YEAR)


def _hours_per_day(employee: EmployeeSnapshot) -> Decimal:
    if employee.working_days_per_week <= 0:
        return Decimal("0")
    return employee.hours_per_week / employee.working_days_per_week


def calculate_outstanding_holiday_payout(
    employee: EmployeeSnapshot,
    termination_date: date,
    holiday_days_per_year: Decimal | None = None,
    used_days_ytd: Decimal | None = None,
) -> HolidayPayout:
    """Money value of untaken holiday days at ``termination_date``."""
    days_per_year = employee.holiday_days_per_year if holiday_days_per_year is None else holiday_days_per_year
    used = employee.used_holiday_days_ytd if used_days_ytd is None else used_days_ytd

    year_start = date(termination_date.year, 1, 1)
    days_elapsed = days_inclusive(year_start, termination_date)
    accrued = (
        days_per_year * Decimal(days_elapsed) / Decimal(year_length(termination_date.year))
        + employee.carried_over_holiday_days
    )
    remaining = max(Decimal("0"), accrued - used)

    hourly_rate = _hourly_rate_cents(employee)
    hours_per_day = _hours_per_day(employee)
    return HolidayPayout(
        accrued_days=accrued,
        remaining_days=remaining,
        hours_per_day=hours_per_day,
        hourly_rate_cents=hourly_rate,
        payout_cents=round_cents(remaining * hours_per_day * hourly_rate),
    )


def calculate_termination_payout(
    employee: EmployeeSnapshot,
    termination_date: date | str,
    holiday_days_per_year: Decimal | int | float | None = None,
    used_days_ytd: Decimal | int | float | None = None,
) -> TerminationPayout:
    """What-if payout of untaken holiday for a prospective termination date.

    Raises:
        ValidationError: If the date is malformed or precedes the contract start.
    """
    term = parse_iso_date(termination_date, "termination_date")
    if term is None:
        raise ValidationError("termination_date is required", field="termination_date")
    if term < employee.start_date:
        raise ValidationError(
            "Termination date must be on or after the start date", field="termination_date"
        )

    days_per_year = (
        employee.holiday_days_per_year if holiday_days_per_year is None else to_decimal(holiday_days_per_year)
    )
    used = employee.used_holiday_days_ytd if used_days_ytd is None else to_decimal(used_days_ytd)
    payout = calculate_outstanding_holiday_payout(employee, term, days_per_year, used)

    allowance = (
        round_cents(payout.payout_cents * HOLIDAY_ALLOWANCE_RATE)
        if employee.holiday_allowance_eligible
        else 0
    )
    return TerminationPayout(
        employee_id=employee.id,
        name=employee.full_name,
        termination_date=term,
        holiday_days_per_year=days_per_year,
        used_days_ytd=used,
        accrued_days=payout.accrued_days,
        remaining_days=payout.remaining_days,
        hours_per_day=payout.hours_per_day,
        hourly_rate_cents=payout.hourly_rate_cents,
        payout_cents=payout.payout_cents,
        holiday_allowance_cents=allowance,
        total_cents=payout.payout_cents + allowance,
    )
