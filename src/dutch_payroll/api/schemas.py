"""Pydantic schemas for API request/response models.

Money is reported in integer cents, as stored; only adjustment input takes
euros.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from dutch_payroll.calculators.types import AdjustmentType
from dutch_payroll.services.state_machine import PayrollRunStatus


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None


# ============================================================================
# Adjustment schemas
# ============================================================================


class AdjustmentCreate(BaseModel):
    """Schema for adding a manual adjustment; ``amount`` is in euros."""

    employee_id: str
    description: str
    type: str
    amount: Decimal
    taxable: bool = False
    recurring: bool = False
    effective_month: str
    end_month: str | None = None


class AdjustmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_id: str
    description: str
    type: AdjustmentType
    amount_cents: int
    taxable: bool
    recurring: bool
    effective_month: str
    end_month: str | None = None
    created_at: str
    created_by: str


class AdjustmentListResponse(BaseModel):
    items: list[AdjustmentResponse]
    total: int


# ============================================================================
# Payroll calculation schemas
# ============================================================================


class EmploymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    pro_rated_factor: Decimal
    worked_days: int
    total_days_in_month: int
    unpaid_leave_days: int
    is_active: bool
    is_leaver: bool


class AllowancesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ruling30_cents: int
    holiday_accrual_cents: int
    holiday_allowance_payment_cents: int
    holiday_allowance_due_cents: int


class DeductionsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    wage_tax_cents: int
    social_security_cents: int


class AdjustmentBreakdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    allowances_cents: int
    deductions_cents: int
    reimbursements_cents: int
    retro_cents: int


class AdjustmentAmountsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    outstanding_holiday_payout_cents: int
    late_payment_fee_cents: int
    manual_adjustments_cents: int
    manual_adjustments_taxable_cents: int
    manual_adjustments_breakdown: AdjustmentBreakdownResponse
    manual_adjustment_items: list[AdjustmentResponse]


class AmountsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    gross_cents: int
    taxable_cents: int
    net_cents: int
    allowances: AllowancesResponse
    deductions: DeductionsResponse
    adjustments: AdjustmentAmountsResponse


class MetadataResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_due_date: date
    payment_date: date
    statutory_interest_rate: Decimal
    termination_date: date | None = None


class MinimumWageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    compliant: bool
    required_cents: int
    actual_cents: int
    shortfall_cents: int


class EmployeePayrollResponse(BaseModel):
    """One employee's payroll breakdown."""

    employee_id: str
    name: str
    department: str
    employment: EmploymentResponse
    amounts: AmountsResponse
    metadata: MetadataResponse
    minimum_wage: MinimumWageResponse


class PreviewTotals(BaseModel):
    gross_cents: int = 0
    net_cents: int = 0
    wage_tax_cents: int = 0
    social_security_cents: int = 0
    holiday_allowance_payments_cents: int = 0
    holiday_accrual_cents: int = 0
    outstanding_holiday_cents: int = 0
    late_fees_cents: int = 0
    manual_adjustments_cents: int = 0


class PayrollPreviewResponse(BaseModel):
    period: str
    currency: str
    statutory_interest_rate: Decimal
    totals: PreviewTotals
    employees: list[EmployeePayrollResponse]


class SepaRequest(BaseModel):
    payment_date: date | None = None
    due_date: date | None = None
    execution_date: date | None = None


# ============================================================================
# Payroll run schemas
# ============================================================================


class PayrollRunCreate(BaseModel):
    """Schema for creating a new payroll run."""

    period: str
    payment_date: date | None = None
    due_date: date | None = None
    note: str | None = None


class PayrollRunStatusUpdate(BaseModel):
    status: str
    note: str | None = None


class PayrollRunRollback(BaseModel):
    note: str | None = None


class PayrollRunTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    gross_cents: int
    net_cents: int
    wage_tax_cents: int
    social_security_cents: int
    manual_adjustments_cents: int


class PayrollRunEmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    name: str
    department: str
    net_cents: int
    gross_cents: int
    manual_adjustments_cents: int
    is_leaver: bool = False


class PayrollRunHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: PayrollRunStatus
    changed_at: str
    changed_by: str
    note: str | None = None


class PayrollRunResponse(BaseModel):
    """Schema for payroll run response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    period: str
    status: PayrollRunStatus
    created_at: str
    created_by: str
    payment_date: str | None = None
    due_date: str | None = None
    note: str | None = None
    totals: PayrollRunTotalsResponse
    employees: list[PayrollRunEmployeeResponse]
    history: list[PayrollRunHistoryResponse]
    next_statuses: list[PayrollRunStatus] = Field(default_factory=list)


class PayrollRunListResponse(BaseModel):
    items: list[PayrollRunResponse]
    total: int


# ============================================================================
# Tax configuration schemas
# ============================================================================


class TaxBracketSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    limit_cents: int | None = None
    rate: Decimal


class SocialSecurityRatesSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    aow: Decimal
    anw: Decimal
    wlz: Decimal
    ww: Decimal
    wia: Decimal
    total: Decimal


class SocialSecurityRatesUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    aow: Decimal | None = None
    anw: Decimal | None = None
    wlz: Decimal | None = None
    ww: Decimal | None = None
    wia: Decimal | None = None
    total: Decimal | None = None


class TaxConfigurationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period: str
    year: int
    month: int
    tax_brackets: list[TaxBracketSchema]
    social_security_rates: SocialSecurityRatesSchema
    social_security_ceiling_cents: int
    wage_tax_credit_base_cents: int
    wage_tax_credit_rate: Decimal
    wage_tax_credit_max_cents: int
    minimum_wage_full_time_cents: int
    health_insurance_employer_rate: Decimal
    pension_base_rate: Decimal
    last_updated: datetime
    source: str


class TaxConfigurationListResponse(BaseModel):
    items: list[TaxConfigurationResponse]
    total: int


class TaxConfigurationUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""

    model_config = ConfigDict(extra="forbid")

    tax_brackets: list[TaxBracketSchema] | None = None
    social_security_rates: SocialSecurityRatesUpdate | None = None
    social_security_ceiling_cents: int | None = None
    wage_tax_credit_base_cents: int | None = None
    wage_tax_credit_rate: Decimal | None = None
    wage_tax_credit_max_cents: int | None = None
    minimum_wage_full_time_cents: int | None = None
    health_insurance_employer_rate: Decimal | None = None
    pension_base_rate: Decimal | None = None


# ============================================================================
# Calculator schemas
# ============================================================================


class TerminationRequest(BaseModel):
    employee_id: str
    termination_date: date
    holiday_days_per_year: Decimal | None = None
    used_days_ytd: Decimal | None = None


class TerminationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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
