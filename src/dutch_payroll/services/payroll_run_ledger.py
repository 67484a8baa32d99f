"""Payroll run ledger: point-in-time run snapshots with a status history.

A run's totals and employee lines are computed once, at ``create``. Status
changes only append to ``history``; adjustments or tax tables edited later
never alter a stored run.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from dutch_payroll.calculators.payroll_calculator import PayrollCalculator
from dutch_payroll.calculators.periods import format_period, format_timestamp, parse_iso_date, parse_period
from dutch_payroll.calculators.tax_configuration import utcnow
from dutch_payroll.calculators.types import PayrollResult
from dutch_payroll.errors import NotFoundError, PersistenceError
from dutch_payroll.services.employee_registry import EmployeeRegistry
from dutch_payroll.services.sepa import SepaPayment
from dutch_payroll.services.state_machine import PayrollRunStateMachine, PayrollRunStatus
from dutch_payroll.store import JsonFileRepository

logger = logging.getLogger(__name__)


@dataclass
class PayrollRunTotals:
    gross_cents: int = 0
    net_cents: int = 0
    wage_tax_cents: int = 0
    social_security_cents: int = 0
    manual_adjustments_cents: int = 0

    def add(self, result: PayrollResult) -> None:
        self.gross_cents += result.amounts.gross_cents
        self.net_cents += result.amounts.net_cents
        self.wage_tax_cents += result.amounts.deductions.wage_tax_cents
        self.social_security_cents += result.amounts.deductions.social_security_cents
        self.manual_adjustments_cents += result.amounts.adjustments.manual_adjustments_cents

    def to_dict(self) -> dict[str, int]:
        return {
            "grossCents": self.gross_cents,
            "netCents": self.net_cents,
            "wageTaxCents": self.wage_tax_cents,
            "socialSecurityCents": self.social_security_cents,
            "manualAdjustmentsCents": self.manual_adjustments_cents,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PayrollRunTotals:
        return cls(
            gross_cents=int(data.get("grossCents", 0)),
            net_cents=int(data.get("netCents", 0)),
            wage_tax_cents=int(data.get("wageTaxCents", 0)),
            social_security_cents=int(data.get("socialSecurityCents", 0)),
            manual_adjustments_cents=int(data.get("manualAdjustmentsCents", 0)),
        )


@dataclass
class PayrollRunEmployee:
    """Frozen per-employee line of a run."""

    employee_id: str
    name: str
    department: str
    net_cents: int
    gross_cents: int
    manual_adjustments_cents: int
    is_leaver: bool = False

    @classmethod
    def from_result(cls, result: PayrollResult) -> PayrollRunEmployee:
        return cls(
            employee_id=result.employee.id,
            name=result.employee.full_name,
            department=result.employee.department,
            net_cents=result.amounts.net_cents,
            gross_cents=result.amounts.gross_cents,
            manual_adjustments_cents=result.amounts.adjustments.manual_adjustments_cents,
            is_leaver=result.employment.is_leaver,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "name": self.name,
            "department": self.department,
            "netCents": self.net_cents,
            "grossCents": self.gross_cents,
            "manualAdjustmentsCents": self.manual_adjustments_cents,
            "isLeaver": self.is_leaver,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PayrollRunEmployee:
        return cls(
            employee_id=data["employeeId"],
            name=data.get("name", ""),
            department=data.get("department", ""),
            net_cents=int(data["netCents"]),
            gross_cents=int(data["grossCents"]),
            manual_adjustments_cents=int(data.get("manualAdjustmentsCents", 0)),
            is_leaver=bool(data.get("isLeaver", False)),
        )


@dataclass
class PayrollRunHistoryEntry:
    status: PayrollRunStatus
    changed_at: str
    changed_by: str
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status.value,
            "changedAt": self.changed_at,
            "changedBy": self.changed_by,
        }
        if self.note is not None:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PayrollRunHistoryEntry:
        return cls(
            status=PayrollRunStatus(data["status"]),
            changed_at=data["changedAt"],
            changed_by=data.get("changedBy", "system"),
            note=data.get("note"),
        )


@dataclass
class PayrollRun:
    id: str
    period: str
    status: PayrollRunStatus
    created_at: str
    created_by: str
    totals: PayrollRunTotals
    employees: list[PayrollRunEmployee] = field(default_factory=list)
    history: list[PayrollRunHistoryEntry] = field(default_factory=list)
    payment_date: str | None = None
    due_date: str | None = None
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "period": self.period,
            "status": self.status.value,
            "createdAt": self.created_at,
            "createdBy": self.created_by,
        }
        for key, value in (
            ("paymentDate", self.payment_date),
            ("dueDate", self.due_date),
            ("note", self.note),
        ):
            if value is not None:
                data[key] = value
        data["totals"] = self.totals.to_dict()
        data["employees"] = [e.to_dict() for e in self.employees]
        data["history"] = [h.to_dict() for h in self.history]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PayrollRun:
        return cls(
            id=data["id"],
            period=data["period"],
            status=PayrollRunStatus(data["status"]),
            created_at=data["createdAt"],
            created_by=data.get("createdBy", "system"),
            payment_date=data.get("paymentDate"),
            due_date=data.get("dueDate"),
            note=data.get("note"),
            totals=PayrollRunTotals.from_dict(data.get("totals", {})),
            employees=[PayrollRunEmployee.from_dict(e) for e in data.get("employees", [])],
            history=[PayrollRunHistoryEntry.from_dict(h) for h in data.get("history", [])],
        )


def _iso(value: date | str | None, field_name: str) -> str | None:
    parsed = parse_iso_date(value, field_name)
    return parsed.isoformat() if parsed else None


def _actor(actor: str | None) -> str:
    return (actor or "").strip() or "system"


class PayrollRunLedger:
    """Persisted payroll runs (``payroll-runs.json``).

    Duplicate runs for one period are allowed; callers that need a single
    run per period enforce it themselves.
    """

    def __init__(
        self,
        repository: JsonFileRepository,
        calculator: PayrollCalculator,
        registry: EmployeeRegistry,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: f"RUN-{uuid.uuid4()}",
    ):
        self.repository = repository
        self.calculator = calculator
        self.registry = registry
        self._clock = clock
        self._id_factory = id_factory

    def _load(self) -> tuple[list[PayrollRun], str]:
        snapshot = self.repository.load()
        try:
            runs = [PayrollRun.from_dict(r) for r in snapshot.records]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(str(self.repository.path), "parse", f"invalid payroll run record: {e}") from e
        return runs, snapshot.version

    def _save(self, runs: list[PayrollRun], version: str) -> None:
        self.repository.save([r.to_dict() for r in runs], expected_version=version)

    def calculate(
        self,
        period: str,
        payment_date: date | str | None = None,
        due_date: date | str | None = None,
    ) -> list[PayrollResult]:
        """Results for every employee a run for ``period`` would include."""
        results = self.calculator.calculate_all(
            self.registry.list_employees(), period, payment_date, due_date
        )
        return [r for r in results if r.included_in_run]

    def create(
        self,
        period: str,
        payment_date: date | str | None = None,
        due_date: date | str | None = None,
        note: str | None = None,
        actor: str = "system",
    ) -> PayrollRun:
        """Calculate, snapshot and persist a new draft run."""
        period = format_period(*parse_period(period))
        payment_iso = _iso(payment_date, "payment_date")
        due_iso = _iso(due_date, "due_date")

        results = self.calculate(period, payment_iso, due_iso)
        totals = PayrollRunTotals()
        for result in results:
            totals.add(result)

        created_at = format_timestamp(self._clock())
        actor = _actor(actor)
        run = PayrollRun(
            id=self._id_factory(),
            period=period,
            status=PayrollRunStatus.DRAFT,
            created_at=created_at,
            created_by=actor,
            payment_date=payment_iso,
            due_date=due_iso,
            note=note,
            totals=totals,
            employees=[PayrollRunEmployee.from_result(r) for r in results],
            history=[
                PayrollRunHistoryEntry(
                    status=PayrollRunStatus.DRAFT, changed_at=created_at, changed_by=actor, note=note
                )
            ],
        )

        runs, version = self._load()
        runs.append(run)
        self._save(runs, version)
        logger.info(
            "Created payroll run %s for %s with %d employee(s), net %d cents",
            run.id,
            period,
            len(run.employees),
            totals.net_cents,
        )
        return run

    def _change_status(
        self,
        run_id: str,
        validate: Callable[[PayrollRun], PayrollRunStatus],
        actor: str,
        note: str | None,
    ) -> PayrollRun:
        runs, version = self._load()
        run = next((r for r in runs if r.id == run_id), None)
        if run is None:
            raise NotFoundError("Payroll run", run_id)

        previous = run.status
        run.status = validate(run)
        if note:
            run.note = note
        run.history.append(
            PayrollRunHistoryEntry(
                status=run.status,
                changed_at=format_timestamp(self._clock()),
                changed_by=_actor(actor),
                note=note,
            )
        )
        self._save(runs, version)
        logger.info("Payroll run %s moved %s -> %s", run_id, previous.value, run.status.value)
        return run

    def update_status(
        self,
        run_id: str,
        status: PayrollRunStatus | str,
        actor: str = "system",
        note: str | None = None,
    ) -> PayrollRun:
        """Move a run along the transition table.

        Raises:
            NotFoundError: If the run does not exist.
            InvalidTransitionError: If the move is not allowed from the current status.
        """
        target = PayrollRunStateMachine.parse_status(status)

        def validate(run: PayrollRun) -> PayrollRunStatus:
            PayrollRunStateMachine.validate_transition(run.status, target)
            return target

        return self._change_status(run_id, validate, actor, note)

    def rollback(self, run_id: str, actor: str = "system", note: str | None = None) -> PayrollRun:
        """Return a reviewed or approved run to draft."""

        def validate(run: PayrollRun) -> PayrollRunStatus:
            PayrollRunStateMachine.validate_rollback(run.status)
            return PayrollRunStatus.DRAFT

        return self._change_status(run_id, validate, actor, note)

    def get(self, run_id: str) -> PayrollRun | None:
        runs, _ = self._load()
        return next((r for r in runs if r.id == run_id), None)

    def list_runs(self) -> list[PayrollRun]:
        """Runs by period descending, newest first within a period."""
        runs, _ = self._load()
        return sorted(runs, key=lambda r: (r.period, r.created_at), reverse=True)

    def sepa_payments(self, run_id: str) -> list[SepaPayment]:
        """Payments for the run's frozen net amounts (positive nets only).

        Raises:
            NotFoundError: If the run or one of its employees does not exist.
        """
        run = self.get(run_id)
        if run is None:
            raise NotFoundError("Payroll run", run_id)

        payments = []
        for line in run.employees:
            if line.net_cents <= 0:
                continue
            employee = self.registry.get(line.employee_id)
            if employee is None:
                raise NotFoundError("Employee", line.employee_id)
            remittance = (
                f"Salary & final payout {run.period}" if line.is_leaver else f"Salary {run.period}"
            )
            payments.append(
                SepaPayment(
                    end_to_end_id=f"SAL-{line.employee_id}-{run.period}",
                    name=line.name,
                    iban=employee.iban,
                    bic=employee.bic,
                    amount_cents=line.net_cents,
                    remittance=remittance,
                )
            )
        return payments
