"""Read-only access to employee contract facts.

Employee CRUD lives outside this package; payroll only needs to enumerate
employees and look one up by id.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from dutch_payroll.calculators.types import EmployeeSnapshot
from dutch_payroll.errors import PersistenceError
from dutch_payroll.store import JsonFileRepository


class EmployeeRegistry(Protocol):
    def list_employees(self) -> list[EmployeeSnapshot]: ...

    def get(self, employee_id: str) -> EmployeeSnapshot | None: ...


class InMemoryEmployeeRegistry:
    """Registry over a fixed list of snapshots, in insertion order."""

    def __init__(self, employees: Iterable[EmployeeSnapshot] = ()):
        self._employees = list(employees)

    def list_employees(self) -> list[EmployeeSnapshot]:
        return list(self._employees)

    def get(self, employee_id: str) -> EmployeeSnapshot | None:
        return next((e for e in self._employees if e.id == employee_id), None)


class JsonEmployeeRegistry:
    """Registry reading ``employees.json`` (camelCase records) on every call."""

    def __init__(self, repository: JsonFileRepository):
        self.repository = repository

    def list_employees(self) -> list[EmployeeSnapshot]:
        snapshot = self.repository.load()
        try:
            return [EmployeeSnapshot.from_dict(record) for record in snapshot.records]
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise PersistenceError(str(self.repository.path), "parse", f"invalid employee record: {e}") from e

    def get(self, employee_id: str) -> EmployeeSnapshot | None:
        return next((e for e in self.list_employees() if e.id == employee_id), None)
