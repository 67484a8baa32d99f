"""Seed a data directory with demo employees and adjustments.

Usage:
    python -m scripts.seed_demo_data [--data-dir PATH] [--force]

Writes ``employees.json`` and ``adjustments.json``. Existing files are left
alone unless ``--force`` is given, in which case the store is reset first.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dutch_payroll.config import get_settings
from dutch_payroll.errors import PayrollError
from dutch_payroll.services.adjustments_ledger import AdjustmentDraft, AdjustmentsLedger
from dutch_payroll.store import EMPLOYEES_FILE, JsonFileRepository, PayrollStore

DEMO_EMPLOYEES = [
    {
        "id": "E-10001",
        "firstName": "Ava",
        "lastName": "Jansen",
        "department": "Engineering",
        "startDate": "2024-02-01",
        "endDate": None,
        "iban": "NL91ABNA0417164300",
        "bic": "ABNANL2A",
        "annualSalaryCents": 6000000,
        "hoursPerWeek": 40,
        "isThirtyPercentRuling": False,
        "holidayAllowanceEligible": True,
        "holidayDaysPerYear": 25,
        "usedHolidayDaysYtd": 12,
    },
    {
        "id": "E-10002",
        "firstName": "Noah",
        "lastName": "de Vries",
        "department": "Sales",
        "startDate": "2023-10-15",
        "endDate": None,
        "iban": "NL39RABO0300065264",
        "bic": "RABONL2U",
        "annualSalaryCents": 8400000,
        "hoursPerWeek": 36,
        "isThirtyPercentRuling": True,
        "holidayAllowanceEligible": True,
        "holidayDaysPerYear": 28,
        "usedHolidayDaysYtd": 8,
    },
    {
        "id": "E-10003",
        "firstName": "Sofie",
        "lastName": "van Dijk",
        "department": "Finance",
        "startDate": "2025-01-10",
        "endDate": None,
        "iban": "NL20INGB0001234567",
        "bic": "INGBNL2A",
        "annualSalaryCents": 4800000,
        "hoursPerWeek": 32,
        "isThirtyPercentRuling": False,
        "holidayAllowanceEligible": True,
        "holidayDaysPerYear": 24,
        "usedHolidayDaysYtd": 5,
    },
    {
        "id": "E-10004",
        "firstName": "Lucas",
        "lastName": "Bakker",
        "department": "Operations",
        "startDate": "2022-05-01",
        "endDate": "2025-03-20",
        "iban": "NL69INGB0123456789",
        "bic": "INGBNL2A",
        "annualSalaryCents": 5200000,
        "hoursPerWeek": 40,
        "isThirtyPercentRuling": False,
        "holidayAllowanceEligible": True,
        "holidayDaysPerYear": 25,
        "usedHolidayDaysYtd": 3,
        "holidayAllowanceAccruedCentsYtd": 69334,
    },
]

DEMO_ADJUSTMENTS = [
    AdjustmentDraft(
        employee_id="E-10001",
        description="Commuter allowance",
        type="allowance",
        amount_cents=15000,
        taxable=True,
        recurring=True,
        effective_month="2025-01",
    ),
    AdjustmentDraft(
        employee_id="E-10004",
        description="One-off transition support",
        type="retro",
        amount_cents=450000,
        taxable=True,
        recurring=False,
        effective_month="2025-03",
        end_month="2025-03",
    ),
]


def seed(data_dir: Path, force: bool = False) -> bool:
    """Write demo data; returns False if data already exists and ``force`` is off."""
    store = PayrollStore(data_dir)
    employees = JsonFileRepository(data_dir / EMPLOYEES_FILE)

    if not force and (employees.path.exists() or store.adjustments.path.exists()):
        return False
    if force:
        store.reset()

    employees.save(DEMO_EMPLOYEES, expected_version=employees.current_version())
    ledger = AdjustmentsLedger(store.adjustments, clock=store.clock)
    for draft in DEMO_ADJUSTMENTS:
        ledger.add(draft, actor="system")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed demo payroll data")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Data directory (defaults to PAYROLL_DATA_DIR)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Reset existing data before seeding",
    )
    args = parser.parse_args()

    data_dir = args.data_dir or get_settings().data_dir
    print(f"Seeding demo data into: {data_dir}")
    try:
        seeded = seed(data_dir, force=args.force)
    except PayrollError as e:
        print(f"Error: {e}")
        return 1

    if not seeded:
        print("Data already present; use --force to replace it.")
        return 1
    print(f"Wrote {len(DEMO_EMPLOYEES)} employees and {len(DEMO_ADJUSTMENTS)} adjustments.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
