"""Payroll ledgers and output services."""

from dutch_payroll.services.adjustments_ledger import AdjustmentDraft, AdjustmentsLedger
from dutch_payroll.services.employee_registry import EmployeeRegistry, InMemoryEmployeeRegistry, JsonEmployeeRegistry
from dutch_payroll.services.payroll_run_ledger import PayrollRun, PayrollRunLedger
from dutch_payroll.services.sepa import Debtor, SepaFileBuilder, SepaPayment, build_pain001
from dutch_payroll.services.state_machine import InvalidTransitionError, PayrollRunStateMachine, PayrollRunStatus

__all__ = [
    "AdjustmentDraft",
    "AdjustmentsLedger",
    "EmployeeRegistry",
    "InMemoryEmployeeRegistry",
    "JsonEmployeeRegistry",
    "PayrollRun",
    "PayrollRunLedger",
    "Debtor",
    "SepaFileBuilder",
    "SepaPayment",
    "build_pain001",
    "InvalidTransitionError",
    "PayrollRunStateMachine",
    "PayrollRunStatus",
]
