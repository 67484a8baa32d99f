"""Pytest fixtures for payroll tests."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from itertools import count

import pytest

from dutch_payroll.calculators.payroll_calculator import PayrollCalculator
from dutch_payroll.calculators.types import EmployeeSnapshot
from dutch_payroll.services.adjustments_ledger import AdjustmentsLedger
from dutch_payroll.services.employee_registry import InMemoryEmployeeRegistry
from dutch_payroll.services.payroll_run_ledger import PayrollRunLedger
from dutch_payroll.store import PayrollStore

FIXED_NOW = datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)

COMPANY_IBAN = "NL91ABNA0417164300"
VALID_IBANS = {
    "DE": "DE89370400440532013000",
    "GB": "GB29NWBK60161331926819",
    "BE": "BE68539007547034",
    "FR": "FR1420041010050500013M02606",
}


def make_employee(**overrides) -> EmployeeSnapshot:
    """Full-time, holiday-eligible employee on EUR 60,000 a year."""
    values = dict(
        id="E-10001",
        first_name="Ava",
        last_name="Jansen",
        department="Engineering",
        start_date=date(2023, 1, 1),
        end_date=None,
        iban=VALID_IBANS["DE"],
        bic="COBADEFFXXX",
        annual_salary_cents=6_000_000,
        hours_per_week=Decimal("40"),
        working_days_per_week=Decimal("5"),
        is_thirty_percent_ruling=False,
        holiday_allowance_eligible=True,
        holiday_days_per_year=Decimal("25"),
    )
    values.update(overrides)
    return EmployeeSnapshot(**values)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def store(tmp_path, clock) -> PayrollStore:
    """Store rooted in a fresh temporary data directory."""
    return PayrollStore(tmp_path / "data", clock=clock)


@pytest.fixture
def adjustments_ledger(store: PayrollStore) -> AdjustmentsLedger:
    ids = count(1)
    return AdjustmentsLedger(
        store.adjustments, clock=store.clock, id_factory=lambda: f"ADJ-{next(ids):03d}"
    )


@pytest.fixture
def employees() -> list[EmployeeSnapshot]:
    return [
        make_employee(),
        make_employee(
            id="E-10002",
            first_name="Noah",
            last_name="de Vries",
            department="Sales",
            start_date=date(2023, 10, 15),
            iban=VALID_IBANS["GB"],
            bic=None,
            annual_salary_cents=8_400_000,
            hours_per_week=Decimal("36"),
            is_thirty_percent_ruling=True,
        ),
        make_employee(
            id="E-10003",
            first_name="Sofie",
            last_name="van Dijk",
            department="Finance",
            start_date=date(2025, 1, 10),
            iban=VALID_IBANS["BE"],
            annual_salary_cents=4_800_000,
            hours_per_week=Decimal("32"),
        ),
    ]


@pytest.fixture
def registry(employees) -> InMemoryEmployeeRegistry:
    return InMemoryEmployeeRegistry(employees)


@pytest.fixture
def calculator(store: PayrollStore, adjustments_ledger: AdjustmentsLedger) -> PayrollCalculator:
    return PayrollCalculator(store.tax_configurations, adjustments_ledger)


@pytest.fixture
def run_ledger(store, calculator, registry) -> PayrollRunLedger:
    ids = count(1)
    return PayrollRunLedger(
        store.payroll_runs,
        calculator,
        registry,
        clock=store.clock,
        id_factory=lambda: f"RUN-{next(ids):04d}",
    )
