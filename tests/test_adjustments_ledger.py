"""Tests for the manual adjustments ledger."""

import json

import pytest
from hypothesis import given, settings, strategies as st

from dutch_payroll.calculators.types import AdjustmentRecord, AdjustmentType
from dutch_payroll.errors import ConcurrentModificationError, PersistenceError, ValidationError
from dutch_payroll.services.adjustments_ledger import AdjustmentDraft, AdjustmentsLedger, summarize
from dutch_payroll.store import JsonFileRepository


def draft(**overrides) -> AdjustmentDraft:
    values = dict(
        employee_id="E-10001",
        description="Commuter allowance",
        type="allowance",
        amount_cents=15_000,
        taxable=True,
        recurring=True,
        effective_month="2025-01",
        end_month=None,
    )
    values.update(overrides)
    return AdjustmentDraft(**values)


class TestAdd:
    """Test adding adjustments."""

    def test_assigns_id_and_creation_metadata(self, adjustments_ledger):
        record = adjustments_ledger.add(draft(), actor="hr@example.com")
        assert record.id == "ADJ-001"
        assert record.created_at == "2025-01-15T09:30:00.000Z"
        assert record.created_by == "hr@example.com"
        assert record.type == AdjustmentType.ALLOWANCE

    def test_actor_defaults_to_system(self, adjustments_ledger):
        assert adjustments_ledger.add(draft()).created_by == "system"

    def test_persists_camel_case_json(self, adjustments_ledger, store):
        adjustments_ledger.add(draft())
        stored = json.loads(store.adjustments.path.read_text())
        assert stored == [
            {
                "id": "ADJ-001",
                "employeeId": "E-10001",
                "description": "Commuter allowance",
                "type": "allowance",
                "amountCents": 15000,
                "taxable": True,
                "recurring": True,
                "effectiveMonth": "2025-01",
                "endMonth": None,
                "createdAt": "2025-01-15T09:30:00.000Z",
                "createdBy": "system",
            }
        ]

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"amount_cents": 0}, "amount_cents"),
            ({"amount_cents": -100}, "amount_cents"),
            ({"amount_cents": "ten"}, "amount_cents"),
            ({"amount_cents": 10.5}, "amount_cents"),
            ({"type": "bonus"}, "type"),
            ({"employee_id": "  "}, "employee_id"),
            ({"description": ""}, "description"),
            ({"effective_month": None}, "effective_month"),
            ({"effective_month": "2025-13"}, "effective_month"),
            ({"end_month": "2024-12"}, "end_month"),
        ],
    )
    def test_rejects_invalid_input(self, adjustments_ledger, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            adjustments_ledger.add(draft(**overrides))
        assert exc_info.value.field == field
        assert adjustments_ledger.list_adjustments() == []


class TestRemove:
    """Test removing adjustments."""

    def test_remove_existing(self, adjustments_ledger):
        record = adjustments_ledger.add(draft())
        assert adjustments_ledger.remove(record.id) is True
        assert adjustments_ledger.get(record.id) is None

    def test_remove_unknown(self, adjustments_ledger):
        assert adjustments_ledger.remove("ADJ-999") is False


class TestQueries:
    """Test listing and activity windows."""

    def test_list_sorted_by_effective_month(self, adjustments_ledger):
        adjustments_ledger.add(draft(effective_month="2025-03"))
        adjustments_ledger.add(draft(effective_month="2024-11"))
        months = [r.effective_month for r in adjustments_ledger.list_adjustments()]
        assert months == ["2024-11", "2025-03"]

    def test_list_for_employee(self, adjustments_ledger):
        adjustments_ledger.add(draft())
        adjustments_ledger.add(draft(employee_id="E-10002"))
        assert [r.employee_id for r in adjustments_ledger.list_for_employee("E-10002")] == ["E-10002"]

    def test_open_ended_recurs(self, adjustments_ledger):
        adjustments_ledger.add(draft(effective_month="2025-01", end_month=None))
        assert len(adjustments_ledger.list_for_month("2025-06")) == 1
        assert len(adjustments_ledger.list_for_month("2030-01")) == 1
        assert adjustments_ledger.list_for_month("2024-12") == []

    def test_window_is_inclusive(self, adjustments_ledger):
        adjustments_ledger.add(draft(effective_month="2025-03", end_month="2025-05"))
        assert adjustments_ledger.list_for_month("2025-02") == []
        assert len(adjustments_ledger.list_for_month("2025-03")) == 1
        assert len(adjustments_ledger.list_for_month("2025-05")) == 1
        assert adjustments_ledger.list_for_month("2025-06") == []

    def test_window_crosses_year(self, adjustments_ledger):
        adjustments_ledger.add(draft(effective_month="2024-12", end_month="2025-01"))
        assert len(adjustments_ledger.list_for_month("2025-01")) == 1


class TestSummary:
    """Test folding adjustments into a month summary."""

    def test_empty(self, adjustments_ledger):
        summary = adjustments_ledger.summarize_for_employee_month("E-10001", "2025-01")
        assert summary.net_cents == 0
        assert summary.taxable_cents == 0
        assert summary.items == []

    def test_fold_rules(self, adjustments_ledger):
        adjustments_ledger.add(draft(type="allowance", amount_cents=10_000, taxable=True))
        adjustments_ledger.add(draft(type="retro", amount_cents=5_000, taxable=False))
        adjustments_ledger.add(draft(type="reimbursement", amount_cents=2_000, taxable=True))
        adjustments_ledger.add(draft(type="deduction", amount_cents=3_000, taxable=True))
        adjustments_ledger.add(draft(employee_id="E-10002", amount_cents=99_999))

        summary = adjustments_ledger.summarize_for_employee_month("E-10001", "2025-01")
        assert summary.net_cents == 10_000 + 5_000 + 2_000 - 3_000
        # Reimbursements never count as taxable
        assert summary.taxable_cents == 10_000 - 3_000
        assert summary.breakdown.allowances_cents == 10_000
        assert summary.breakdown.retro_cents == 5_000
        assert summary.breakdown.reimbursements_cents == 2_000
        assert summary.breakdown.deductions_cents == 3_000
        assert len(summary.items) == 4

    @pytest.mark.parametrize(
        "record",
        [
            {"id": "ADJ-1", "employeeId": "E-10001"},
            {
                "id": "ADJ-1",
                "employeeId": "E-10001",
                "description": "Unknown kind",
                "type": "bonus",
                "amountCents": 100,
                "effectiveMonth": "2025-01",
                "createdAt": "2025-01-01T00:00:00.000Z",
            },
            ["ADJ-1"],
        ],
    )
    def test_malformed_stored_record(self, adjustments_ledger, store, record):
        store.adjustments.save([record], expected_version="")
        with pytest.raises(PersistenceError) as exc_info:
            adjustments_ledger.summarize_for_employee_month("E-10001", "2025-01")
        assert exc_info.value.operation == "parse"


records = st.builds(
    lambda i, t, amount, taxable: AdjustmentRecord(
        id=f"ADJ-{i}",
        employee_id="E-10001",
        description="generated",
        type=t,
        amount_cents=amount,
        taxable=taxable,
        recurring=False,
        effective_month="2025-01",
        end_month=None,
        created_at="2025-01-01T00:00:00.000Z",
        created_by="system",
    ),
    st.integers(min_value=0, max_value=10_000),
    st.sampled_from(list(AdjustmentType)),
    st.integers(min_value=1, max_value=10_000_000),
    st.booleans(),
)


class TestSummaryProperties:
    """Property tests for the summary fold."""

    @given(items=st.lists(records, max_size=30))
    @settings(max_examples=100)
    def test_breakdown_matches_net(self, items):
        summary = summarize(items)
        assert summary.breakdown.net_cents == summary.net_cents
        assert summary.taxable_cents <= summary.net_cents + summary.breakdown.deductions_cents


class _RacingRepository(JsonFileRepository):
    """Lets another writer land between a ledger's load and its save."""

    def load(self):
        snapshot = super().load()
        JsonFileRepository(self.path).save(
            snapshot.records + [{**RIVAL_RECORD}], expected_version=snapshot.version
        )
        return snapshot


RIVAL_RECORD = {
    "id": "ADJ-RIVAL",
    "employeeId": "E-10002",
    "description": "Written by another process",
    "type": "reimbursement",
    "amountCents": 2500,
    "taxable": False,
    "recurring": False,
    "effectiveMonth": "2025-01",
    "endMonth": "2025-01",
    "createdAt": "2025-01-15T09:29:59.000Z",
    "createdBy": "system",
}


class TestConcurrentWriters:
    """A stale read must not overwrite another writer's update."""

    def test_add_conflicts_instead_of_losing_update(self, tmp_path, clock):
        racing = AdjustmentsLedger(_RacingRepository(tmp_path / "adjustments.json"), clock=clock)
        with pytest.raises(ConcurrentModificationError):
            racing.add(draft())

        plain = AdjustmentsLedger(JsonFileRepository(tmp_path / "adjustments.json"), clock=clock)
        assert [r.id for r in plain.list_adjustments()] == ["ADJ-RIVAL"]
