"""Manual pay adjustments ledger.

Adjustments are append-only: they are added or removed, never edited in
place. An adjustment is active for a month when

    month_key(effective_month) <= month_key(month) <= month_key(end_month ?? +inf)

so an adjustment without an end month recurs for every later month.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from dutch_payroll.calculators.periods import format_period, format_timestamp, month_key, parse_period
from dutch_payroll.calculators.tax_configuration import utcnow
from dutch_payroll.calculators.types import (
    AdjustmentBreakdown,
    AdjustmentRecord,
    AdjustmentSummary,
    AdjustmentType,
)
from dutch_payroll.errors import PersistenceError, ValidationError
from dutch_payroll.store import JsonFileRepository

logger = logging.getLogger(__name__)


@dataclass
class AdjustmentDraft:
    """Caller input for a new adjustment; the ledger assigns id and creation metadata."""

    employee_id: str
    description: str
    type: AdjustmentType | str
    amount_cents: Any
    effective_month: str
    taxable: bool = False
    recurring: bool = False
    end_month: str | None = None


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value.strip()


def _validate_amount(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError("amount_cents must be a whole number of cents", field="amount_cents")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("amount_cents must be a whole number of cents", field="amount_cents")
        value = int(value)
    if not isinstance(value, int):
        try:
            value = int(str(value).strip())
        except ValueError:
            raise ValidationError(f"Invalid amount_cents {value!r}", field="amount_cents")
    if value <= 0:
        raise ValidationError("amount_cents must be positive", field="amount_cents")
    return value


def _validate_type(value: Any) -> AdjustmentType:
    try:
        return AdjustmentType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in AdjustmentType)
        raise ValidationError(f"Unknown adjustment type {value!r} (expected one of {allowed})", field="type")


def _validate_month(value: Any, field: str) -> str:
    text = _require_text(value, field)
    try:
        return format_period(*parse_period(text))
    except ValidationError as e:
        raise ValidationError(str(e), field=field)


def validate_draft(draft: AdjustmentDraft) -> AdjustmentDraft:
    """Return a normalized copy of ``draft``.

    Raises:
        ValidationError: On blank required fields, unknown type, non-positive
            amount, malformed months, or an end month before the effective month.
    """
    employee_id = _require_text(draft.employee_id, "employee_id")
    description = _require_text(draft.description, "description")
    adjustment_type = _validate_type(draft.type)
    amount = _validate_amount(draft.amount_cents)
    effective_month = _validate_month(draft.effective_month, "effective_month")
    end_month = None
    if draft.end_month not in (None, ""):
        end_month = _validate_month(draft.end_month, "end_month")
        if month_key(end_month) < month_key(effective_month):
            raise ValidationError("end_month must not precede effective_month", field="end_month")
    return AdjustmentDraft(
        employee_id=employee_id,
        description=description,
        type=adjustment_type,
        amount_cents=amount,
        effective_month=effective_month,
        taxable=bool(draft.taxable),
        recurring=bool(draft.recurring),
        end_month=end_month,
    )


def is_active_for_month(record: AdjustmentRecord, month: str) -> bool:
    target = month_key(month)
    if target < month_key(record.effective_month):
        return False
    if record.end_month is not None and target > month_key(record.end_month):
        return False
    return True


def summarize(items: list[AdjustmentRecord]) -> AdjustmentSummary:
    """Fold adjustments into net and taxable totals.

    Allowances and retro pay add to net (and to taxable when taxable);
    reimbursements add to net only; deductions subtract from net (and from
    taxable when taxable).
    """
    if not items:
        return AdjustmentSummary.empty()

    breakdown = AdjustmentBreakdown()
    net = 0
    taxable = 0
    for item in items:
        amount = item.amount_cents
        if item.type == AdjustmentType.ALLOWANCE:
            breakdown.allowances_cents += amount
            net += amount
            if item.taxable:
                taxable += amount
        elif item.type == AdjustmentType.RETRO:
            breakdown.retro_cents += amount
            net += amount
            if item.taxable:
                taxable += amount
        elif item.type == AdjustmentType.REIMBURSEMENT:
            breakdown.reimbursements_cents += amount
            net += amount
        elif item.type == AdjustmentType.DEDUCTION:
            breakdown.deductions_cents += amount
            net -= amount
            if item.taxable:
                taxable -= amount
    return AdjustmentSummary(
        net_cents=net, taxable_cents=taxable, breakdown=breakdown, items=list(items)
    )


class AdjustmentsLedger:
    """Persisted ledger of manual adjustments (``adjustments.json``)."""

    def __init__(
        self,
        repository: JsonFileRepository,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        self.repository = repository
        self._clock = clock
        self._id_factory = id_factory

    def _load(self) -> tuple[list[AdjustmentRecord], str]:
        snapshot = self.repository.load()
        try:
            records = [AdjustmentRecord.from_dict(r) for r in snapshot.records]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(str(self.repository.path), "parse", f"invalid adjustment record: {e}") from e
        return records, snapshot.version

    def _save(self, records: list[AdjustmentRecord], version: str) -> None:
        self.repository.save([r.to_dict() for r in records], expected_version=version)

    def add(self, draft: AdjustmentDraft, actor: str = "system") -> AdjustmentRecord:
        """Validate, stamp and persist a new adjustment."""
        clean = validate_draft(draft)
        record = AdjustmentRecord(
            id=self._id_factory(),
            employee_id=clean.employee_id,
            description=clean.description,
            type=clean.type,
            amount_cents=clean.amount_cents,
            taxable=clean.taxable,
            recurring=clean.recurring,
            effective_month=clean.effective_month,
            end_month=clean.end_month,
            created_at=format_timestamp(self._clock()),
            created_by=(actor or "system").strip() or "system",
        )
        records, version = self._load()
        records.append(record)
        self._save(records, version)
        logger.info(
            "Added %s adjustment %s for %s (%d cents from %s)",
            record.type.value,
            record.id,
            record.employee_id,
            record.amount_cents,
            record.effective_month,
        )
        return record

    def remove(self, adjustment_id: str) -> bool:
        """Delete an adjustment; returns False if the id is unknown."""
        records, version = self._load()
        remaining = [r for r in records if r.id != adjustment_id]
        if len(remaining) == len(records):
            return False
        self._save(remaining, version)
        logger.info("Removed adjustment %s", adjustment_id)
        return True

    def get(self, adjustment_id: str) -> AdjustmentRecord | None:
        records, _ = self._load()
        return next((r for r in records if r.id == adjustment_id), None)

    def list_adjustments(self) -> list[AdjustmentRecord]:
        records, _ = self._load()
        return sorted(records, key=lambda r: month_key(r.effective_month))

    def list_for_employee(self, employee_id: str) -> list[AdjustmentRecord]:
        records, _ = self._load()
        return [r for r in records if r.employee_id == employee_id]

    def list_for_month(self, month: str) -> list[AdjustmentRecord]:
        parse_period(month)
        records, _ = self._load()
        return [r for r in records if is_active_for_month(r, month)]

    def summarize_for_employee_month(self, employee_id: str, month: str) -> AdjustmentSummary:
        items = [r for r in self.list_for_month(month) if r.employee_id == employee_id]
        return summarize(items)
