"""Tests for employee lookups."""

from datetime import date
from decimal import Decimal

import pytest

from dutch_payroll.calculators.types import EmployeeSnapshot
from dutch_payroll.errors import PersistenceError
from dutch_payroll.services.employee_registry import InMemoryEmployeeRegistry, JsonEmployeeRegistry
from dutch_payroll.store import EMPLOYEES_FILE, JsonFileRepository

from .conftest import make_employee


@pytest.fixture
def repository(tmp_path) -> JsonFileRepository:
    return JsonFileRepository(tmp_path / EMPLOYEES_FILE)


class TestInMemoryEmployeeRegistry:
    """Test the fixed-list registry."""

    def test_keeps_order(self, employees):
        registry = InMemoryEmployeeRegistry(employees)
        assert [e.id for e in registry.list_employees()] == ["E-10001", "E-10002", "E-10003"]

    def test_get(self, employees):
        registry = InMemoryEmployeeRegistry(employees)
        assert registry.get("E-10002").last_name == "de Vries"
        assert registry.get("E-404") is None


class TestJsonEmployeeRegistry:
    """Test the employees.json registry."""

    def test_reads_camel_case_records(self, repository):
        repository.save(
            [
                {
                    "id": "E-10004",
                    "firstName": "Lucas",
                    "lastName": "Bakker",
                    "startDate": "2022-05-01",
                    "endDate": "2025-03-20",
                    "iban": "NL69INGB0123456789",
                    "bic": "",
                    "annualSalaryCents": 5200000,
                    "hoursPerWeek": 40,
                    "usedHolidayDaysYtd": 3.5,
                }
            ],
            expected_version="",
        )
        employee = JsonEmployeeRegistry(repository).get("E-10004")
        assert employee.full_name == "Lucas Bakker"
        assert employee.end_date == date(2025, 3, 20)
        assert employee.bic is None
        assert employee.working_days_per_week == Decimal("5")
        assert employee.used_holiday_days_ytd == Decimal("3.5")
        assert employee.holiday_allowance_eligible is True

    def test_snapshot_dict_round_trip(self, repository):
        original = make_employee(end_date=date(2025, 6, 30), carried_over_holiday_days=Decimal("2"))
        repository.save([original.to_dict()], expected_version="")
        assert JsonEmployeeRegistry(repository).list_employees() == [original]

    def test_missing_file_is_empty(self, repository):
        assert JsonEmployeeRegistry(repository).list_employees() == []

    def test_invalid_record(self, repository):
        repository.save([{"id": "E-1", "firstName": "No", "startDate": "not-a-date"}], expected_version="")
        with pytest.raises(PersistenceError):
            JsonEmployeeRegistry(repository).list_employees()

    def test_snapshot_is_immutable(self):
        employee = make_employee()
        with pytest.raises(AttributeError):
            employee.annual_salary_cents = 1
        assert isinstance(employee, EmployeeSnapshot)
