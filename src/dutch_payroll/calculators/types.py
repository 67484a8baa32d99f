"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from dutch_payroll.calculators.money import to_decimal


class AdjustmentType(str, Enum):
    """Manual pay adjustment types.

    Amounts are always stored positive; the sign is implied by the type.
    """

    ALLOWANCE = "allowance"
    DEDUCTION = "deduction"
    REIMBURSEMENT = "reimbursement"
    RETRO = "retro"


@dataclass(frozen=True)
class AdjustmentRecord:
    """A persisted ad-hoc pay adjustment."""

    id: str
    employee_id: str
    description: str
    type: AdjustmentType
    amount_cents: int
    taxable: bool
    recurring: bool
    effective_month: str
    end_month: str | None
    created_at: str
    created_by: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "description": self.description,
            "type": self.type.value,
            "amountCents": self.amount_cents,
            "taxable": self.taxable,
            "recurring": self.recurring,
            "effectiveMonth": self.effective_month,
            "endMonth": self.end_month,
            "createdAt": self.created_at,
            "createdBy": self.created_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdjustmentRecord:
        return cls(
            id=data["id"],
            employee_id=data["employeeId"],
            description=data["description"],
            type=AdjustmentType(data["type"]),
            amount_cents=int(data["amountCents"]),
            taxable=bool(data.get("taxable", False)),
            recurring=bool(data.get("recurring", False)),
            effective_month=data["effectiveMonth"],
            end_month=data.get("endMonth") or None,
            created_at=data["createdAt"],
            created_by=data.get("createdBy", "system"),
        )


@dataclass
class AdjustmentBreakdown:
    """Adjustment totals per type, all positive."""

    allowances_cents: int = 0
    deductions_cents: int = 0
    reimbursements_cents: int = 0
    retro_cents: int = 0

    @property
    def net_cents(self) -> int:
        return (
            self.allowances_cents
            + self.retro_cents
            + self.reimbursements_cents
            - self.deductions_cents
        )


@dataclass
class AdjustmentSummary:
    """Folded adjustments for one employee in one month."""

    net_cents: int = 0
    taxable_cents: int = 0
    breakdown: AdjustmentBreakdown = field(default_factory=AdjustmentBreakdown)
    items: list[AdjustmentRecord] = field(default_factory=list)

    @classmethod
    def empty(cls) -> AdjustmentSummary:
        return cls()


def _optional_date(value: Any) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


@dataclass(frozen=True)
class EmployeeSnapshot:
    """Read-only view of an employee's contract facts for one calculation."""

    id: str
    first_name: str
    last_name: str
    start_date: date
    annual_salary_cents: int
    hours_per_week: Decimal
    iban: str
    department: str = ""
    end_date: date | None = None
    bic: str | None = None
    working_days_per_week: Decimal = Decimal("5")
    is_thirty_percent_ruling: bool = False
    holiday_allowance_eligible: bool = True
    holiday_days_per_year: Decimal = Decimal("25")
    carried_over_holiday_days: Decimal = Decimal("0")
    used_holiday_days_ytd: Decimal = Decimal("0")
    unpaid_leave_days_current_month: int = 0
    holiday_allowance_accrued_cents_ytd: int = 0
    holiday_allowance_paid_cents_ytd: int = 0

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "department": self.department,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "iban": self.iban,
            "bic": self.bic,
            "annualSalaryCents": self.annual_salary_cents,
            "hoursPerWeek": float(self.hours_per_week),
            "workingDaysPerWeek": float(self.working_days_per_week),
            "isThirtyPercentRuling": self.is_thirty_percent_ruling,
            "holidayAllowanceEligible": self.holiday_allowance_eligible,
            "holidayDaysPerYear": float(self.holiday_days_per_year),
            "carriedOverHolidayDays": float(self.carried_over_holiday_days),
            "usedHolidayDaysYtd": float(self.used_holiday_days_ytd),
            "unpaidLeaveDaysCurrentMonth": self.unpaid_leave_days_current_month,
            "holidayAllowanceAccruedCentsYtd": self.holiday_allowance_accrued_cents_ytd,
            "holidayAllowancePaidCentsYtd": self.holiday_allowance_paid_cents_ytd,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EmployeeSnapshot:
        """Build from the registry's camelCase JSON record."""
        return cls(
            id=data["id"],
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            department=data.get("department", ""),
            start_date=_optional_date(data["startDate"]),
            end_date=_optional_date(data.get("endDate")),
            iban=data.get("iban", ""),
            bic=data.get("bic") or None,
            annual_salary_cents=int(data["annualSalaryCents"]),
            hours_per_week=to_decimal(data["hoursPerWeek"]),
            working_days_per_week=to_decimal(data.get("workingDaysPerWeek", 5)),
            is_thirty_percent_ruling=bool(data.get("isThirtyPercentRuling", False)),
            holiday_allowance_eligible=bool(data.get("holidayAllowanceEligible", True)),
            holiday_days_per_year=to_decimal(data.get("holidayDaysPerYear", 25)),
            carried_over_holiday_days=to_decimal(data.get("carriedOverHolidayDays", 0)),
            used_holiday_days_ytd=to_decimal(data.get("usedHolidayDaysYtd", 0)),
            unpaid_leave_days_current_month=int(data.get("unpaidLeaveDaysCurrentMonth", 0)),
            holiday_allowance_accrued_cents_ytd=int(data.get("holidayAllowanceAccruedCentsYtd", 0)),
            holiday_allowance_paid_cents_ytd=int(data.get("holidayAllowancePaidCentsYtd", 0)),
        )


@dataclass(frozen=True)
class MinimumWageCheck:
    """Outcome of a minimum wage compliance check."""

    compliant: bool
    required_cents: int
    actual_cents: int
    shortfall_cents: int


@dataclass
class EmploymentFacts:
    """Employment window facts for the period."""

    pro_rated_factor: Decimal
    worked_days: int
    total_days_in_month: int
    unpaid_leave_days: int
    is_active: bool
    is_leaver: bool


@dataclass
class AllowanceAmounts:
    ruling30_cents: int = 0
    holiday_accrual_cents: int = 0
    holiday_allowance_payment_cents: int = 0
    holiday_allowance_due_cents: int = 0


@dataclass
class DeductionAmounts:
    wage_tax_cents: int = 0
    social_security_cents: int = 0


@dataclass
class AdjustmentAmounts:
    outstanding_holiday_payout_cents: int = 0
    late_payment_fee_cents: int = 0
    manual_adjustments_cents: int = 0
    manual_adjustments_taxable_cents: int = 0
    manual_adjustments_breakdown: AdjustmentBreakdown = field(default_factory=AdjustmentBreakdown)
    manual_adjustment_items: list[AdjustmentRecord] = field(default_factory=list)


@dataclass
class PayrollAmounts:
    gross_cents: int
    taxable_cents: int
    net_cents: int
    allowances: AllowanceAmounts
    deductions: DeductionAmounts
    adjustments: AdjustmentAmounts


@dataclass
class PayrollMetadata:
    payment_due_date: date
    payment_date: date
    statutory_interest_rate: Decimal
    termination_date: date | None = None


@dataclass
class PayrollResult:
    """One employee's full payroll breakdown for one month."""

    employee: EmployeeSnapshot
    period: str
    employment: EmploymentFacts
    amounts: PayrollAmounts
    metadata: PayrollMetadata
    minimum_wage: MinimumWageCheck

    @property
    def included_in_run(self) -> bool:
        """Whether a payroll run picks up this result."""
        return (
            self.employment.pro_rated_factor > 0
            or self.amounts.allowances.holiday_allowance_payment_cents > 0
            or self.amounts.adjustments.outstanding_holiday_payout_cents > 0
            or self.amounts.adjustments.manual_adjustments_cents != 0
        )
