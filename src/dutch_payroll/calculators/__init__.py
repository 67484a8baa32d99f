"""Payroll calculation engine."""

from dutch_payroll.calculators.holiday import calculate_outstanding_holiday_payout, calculate_termination_payout
from dutch_payroll.calculators.payroll_calculator import PayrollCalculator, calculate_monthly_payroll
from dutch_payroll.calculators.tax_configuration import (
    TaxBracket,
    TaxConfiguration,
    TaxConfigurationProvider,
    calculate_progressive_tax,
    calculate_wage_tax_credit,
    check_minimum_wage_compliance,
)
from dutch_payroll.calculators.types import EmployeeSnapshot, PayrollResult

__all__ = [
    "PayrollCalculator",
    "calculate_monthly_payroll",
    "calculate_outstanding_holiday_payout",
    "calculate_termination_payout",
    "TaxBracket",
    "TaxConfiguration",
    "TaxConfigurationProvider",
    "calculate_progressive_tax",
    "calculate_wage_tax_credit",
    "check_minimum_wage_compliance",
    "EmployeeSnapshot",
    "PayrollResult",
]
