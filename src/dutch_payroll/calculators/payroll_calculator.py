"""Deterministic monthly gross-to-net calculation.

Calculation pipeline (stable order per employee):
1) Month window and employment intersection -> worked days
2) Unpaid leave -> pro-rated factor
3) Gross, 30% ruling and holiday-allowance accrual (pro-rated)
4) Annual taxable base -> wage tax and social security (annual, then pro-rated)
5) Holiday allowance payout and untaken-holiday payout for leavers
6) Statutory late-payment interest
7) Manual adjustments -> net

``calculate_monthly_payroll`` is pure: no I/O, no clock, same inputs give the
same result. ``PayrollCalculator`` binds it to a configuration provider and an
adjustments ledger.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from dutch_payroll.calculators.holiday import (
    HOLIDAY_ALLOWANCE_RATE,
    calculate_outstanding_holiday_payout,
)
from dutch_payroll.calculators.money import round_cents
from dutch_payroll.calculators.periods import (
    falls_in_period,
    intersect_days,
    month_window,
    parse_iso_date,
)
from dutch_payroll.calculators.tax_configuration import (
    TaxConfiguration,
    TaxConfigurationProvider,
    calculate_progressive_tax,
    check_minimum_wage_compliance,
)
from dutch_payroll.calculators.types import (
    AdjustmentAmounts,
    AdjustmentSummary,
    AllowanceAmounts,
    DeductionAmounts,
    EmployeeSnapshot,
    EmploymentFacts,
    PayrollAmounts,
    PayrollMetadata,
    PayrollResult,
)

if TYPE_CHECKING:
    from dutch_payroll.services.adjustments_ledger import AdjustmentsLedger

THIRTY_PERCENT_RULING_RATE = Decimal("0.3")
STATUTORY_INTEREST_RATE = Decimal("0.08")
DAYS_PER_YEAR_FOR_INTEREST = 365


class _Proration:
    """Applies ``effective_days / total_days`` to monthly slices of annual amounts."""

    def __init__(self, effective_days: int, total_days: int):
        self.effective_days = effective_days
        self.total_days = total_days

    @property
    def factor(self) -> Decimal:
        if self.total_days <= 0:
            return Decimal("0")
        factor = Decimal(self.effective_days) / Decimal(self.total_days)
        return min(Decimal("1"), max(Decimal("0"), factor))

    def monthly(self, annual_cents: int) -> int:
        """``round(annual / 12 * factor)``, divided once to avoid drift."""
        if self.total_days <= 0:
            return 0
        return round_cents(
            Decimal(annual_cents) * self.effective_days / (12 * self.total_days)
        )


def calculate_late_payment_fee(
    amount_cents: int,
    due_date: date,
    payment_date: date,
    statutory_rate: Decimal = STATUTORY_INTEREST_RATE,
) -> int:
    """Statutory interest for each whole day ``payment_date`` is after ``due_date``."""
    days_late = max(0, (payment_date - due_date).days)
    if days_late <= 0:
        return 0
    return round_cents(
        Decimal(amount_cents) * statutory_rate * days_late / DAYS_PER_YEAR_FOR_INTEREST
    )


def calculate_monthly_payroll(
    employee: EmployeeSnapshot,
    period: str,
    config: TaxConfiguration,
    adjustments: AdjustmentSummary | None = None,
    payment_date: date | str | None = None,
    due_date: date | str | None = None,
    statutory_interest_rate: Decimal = STATUTORY_INTEREST_RATE,
) -> PayrollResult:
    """Calculate one employee's payroll for ``period`` (``YYYY-MM``).

    Raises:
        ValidationError: If the period or one of the dates is malformed.
    """
    window = month_window(period)
    total_days = window.total_days

    worked_days = intersect_days(window, employee.start_date, employee.end_date)
    unpaid_leave_days = min(max(0, employee.unpaid_leave_days_current_month), worked_days)
    proration = _Proration(worked_days - unpaid_leave_days, total_days)

    annual_salary = employee.annual_salary_cents
    gross_cents = proration.monthly(annual_salary)

    ruling30_annual = (
        round_cents(annual_salary * THIRTY_PERCENT_RULING_RATE)
        if employee.is_thirty_percent_ruling
        else 0
    )
    ruling30_cents = proration.monthly(ruling30_annual)

    holiday_accrual_annual = (
        round_cents(annual_salary * HOLIDAY_ALLOWANCE_RATE)
        if employee.holiday_allowance_eligible
        else 0
    )
    holiday_accrual_cents = proration.monthly(holiday_accrual_annual)

    # Annual figures, independent of proration
    annual_taxable_base = annual_salary + holiday_accrual_annual - ruling30_annual
    wage_tax_cents = proration.monthly(
        calculate_progressive_tax(annual_taxable_base, config.tax_brackets)
    )
    social_security_base = min(annual_taxable_base, config.social_security_ceiling_cents)
    social_security_cents = proration.monthly(
        round_cents(social_security_base * config.social_security_rates.total)
    )

    base_net_cents = gross_cents - wage_tax_cents - social_security_cents

    holiday_allowance_due_cents = max(
        0,
        employee.holiday_allowance_accrued_cents_ytd
        + holiday_accrual_cents
        - employee.holiday_allowance_paid_cents_ytd,
    )
    is_leaver = falls_in_period(employee.end_date, period)
    holiday_allowance_payment_cents = holiday_allowance_due_cents if is_leaver else 0

    outstanding_holiday_payout_cents = 0
    if is_leaver and employee.end_date is not None:
        outstanding_holiday_payout_cents = calculate_outstanding_holiday_payout(
            employee, employee.end_date
        ).payout_cents

    net_before_fee_cents = (
        base_net_cents + holiday_allowance_payment_cents + outstanding_holiday_payout_cents
    )

    resolved_due_date = parse_iso_date(due_date, "due_date") or window.end
    resolved_payment_date = parse_iso_date(payment_date, "payment_date") or resolved_due_date
    late_payment_fee_cents = calculate_late_payment_fee(
        net_before_fee_cents, resolved_due_date, resolved_payment_date, statutory_interest_rate
    )

    manual = adjustments if adjustments is not None else AdjustmentSummary.empty()
    net_cents = net_before_fee_cents + late_payment_fee_cents + manual.net_cents

    # Reporting figure; the tax itself is computed on the annual base above
    taxable_cents = max(
        0,
        gross_cents
        + holiday_allowance_payment_cents
        + outstanding_holiday_payout_cents
        + holiday_accrual_cents
        - ruling30_cents,
    )

    return PayrollResult(
        employee=employee,
        period=period,
        employment=EmploymentFacts(
            pro_rated_factor=proration.factor,
            worked_days=worked_days,
            total_days_in_month=total_days,
            unpaid_leave_days=unpaid_leave_days,
            is_active=worked_days > 0,
            is_leaver=is_leaver,
        ),
        amounts=PayrollAmounts(
            gross_cents=gross_cents,
            taxable_cents=taxable_cents,
            net_cents=net_cents,
            allowances=AllowanceAmounts(
                ruling30_cents=ruling30_cents,
                holiday_accrual_cents=holiday_accrual_cents,
                holiday_allowance_payment_cents=holiday_allowance_payment_cents,
                holiday_allowance_due_cents=holiday_allowance_due_cents,
            ),
            deductions=DeductionAmounts(
                wage_tax_cents=wage_tax_cents,
                social_security_cents=social_security_cents,
            ),
            adjustments=AdjustmentAmounts(
                outstanding_holiday_payout_cents=outstanding_holiday_payout_cents,
                late_payment_fee_cents=late_payment_fee_cents,
                manual_adjustments_cents=manual.net_cents,
                manual_adjustments_taxable_cents=manual.taxable_cents,
                manual_adjustments_breakdown=manual.breakdown,
                manual_adjustment_items=list(manual.items),
            ),
        ),
        metadata=PayrollMetadata(
            payment_due_date=resolved_due_date,
            payment_date=resolved_payment_date,
            statutory_interest_rate=statutory_interest_rate,
            termination_date=employee.end_date,
        ),
        minimum_wage=check_minimum_wage_compliance(
            round_cents(Decimal(annual_salary) / 12), employee.hours_per_week, config
        ),
    )


class PayrollCalculator:
    """Runs ``calculate_monthly_payroll`` against live configuration and adjustments."""

    def __init__(
        self,
        tax_configurations: TaxConfigurationProvider,
        adjustments: AdjustmentsLedger | None = None,
        statutory_interest_rate: Decimal = STATUTORY_INTEREST_RATE,
    ):
        self.tax_configurations = tax_configurations
        self.adjustments = adjustments
        self.statutory_interest_rate = statutory_interest_rate

    def calculate(
        self,
        employee: EmployeeSnapshot,
        period: str,
        payment_date: date | str | None = None,
        due_date: date | str | None = None,
    ) -> PayrollResult:
        config = self.tax_configurations.get_configuration(period)
        summary = (
            self.adjustments.summarize_for_employee_month(employee.id, period)
            if self.adjustments is not None
            else None
        )
        return calculate_monthly_payroll(
            employee,
            period,
            config,
            adjustments=summary,
            payment_date=payment_date,
            due_date=due_date,
            statutory_interest_rate=self.statutory_interest_rate,
        )

    def calculate_all(
        self,
        employees: Iterable[EmployeeSnapshot],
        period: str,
        payment_date: date | str | None = None,
        due_date: date | str | None = None,
    ) -> list[PayrollResult]:
        return [
            self.calculate(employee, period, payment_date, due_date) for employee in employees
        ]
