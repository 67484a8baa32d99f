"""Manual adjustment endpoints."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, status

from dutch_payroll.api.dependencies import Actor, Adjustments
from dutch_payroll.api.schemas import (
    AdjustmentCreate,
    AdjustmentListResponse,
    AdjustmentResponse,
    ErrorResponse,
)
from dutch_payroll.calculators.money import euros_to_cents
from dutch_payroll.services.adjustments_ledger import AdjustmentDraft

router = APIRouter(prefix="/adjustments", tags=["adjustments"])


@router.get("", response_model=AdjustmentListResponse)
def list_adjustments(
    ledger: Adjustments,
    employee_id: Annotated[str | None, Query()] = None,
    month: Annotated[str | None, Query(description="Only adjustments active in YYYY-MM")] = None,
) -> AdjustmentListResponse:
    """List adjustments, optionally for one employee and/or one month."""
    if month:
        records = ledger.list_for_month(month)
    else:
        records = ledger.list_adjustments()
    if employee_id:
        records = [r for r in records if r.employee_id == employee_id]
    items = [AdjustmentResponse.model_validate(r) for r in records]
    return AdjustmentListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=AdjustmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
def create_adjustment(
    ledger: Adjustments,
    actor: Actor,
    payload: AdjustmentCreate,
) -> AdjustmentResponse:
    """Add an adjustment; the euro amount is stored in cents."""
    draft = AdjustmentDraft(
        employee_id=payload.employee_id,
        description=payload.description,
        type=payload.type,
        amount_cents=euros_to_cents(payload.amount),
        taxable=payload.taxable,
        recurring=payload.recurring,
        effective_month=payload.effective_month,
        end_month=payload.end_month,
    )
    record = ledger.add(draft, actor=actor)
    return AdjustmentResponse.model_validate(record)


@router.delete(
    "/{adjustment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
def delete_adjustment(
    ledger: Adjustments,
    adjustment_id: Annotated[str, Path()],
) -> None:
    if not ledger.remove(adjustment_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Adjustment not found",
        )
