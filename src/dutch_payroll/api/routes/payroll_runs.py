"""Payroll run endpoints."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, status
from fastapi.responses import Response

from dutch_payroll.api.dependencies import Actor, Runs, SepaBuilder
from dutch_payroll.api.schemas import (
    ErrorResponse,
    PayrollRunCreate,
    PayrollRunListResponse,
    PayrollRunResponse,
    PayrollRunRollback,
    PayrollRunStatusUpdate,
    SepaRequest,
)
from dutch_payroll.calculators.periods import parse_iso_date
from dutch_payroll.services.payroll_run_ledger import PayrollRun
from dutch_payroll.services.sepa import CONTENT_TYPE
from dutch_payroll.services.state_machine import PayrollRunStateMachine

router = APIRouter(prefix="/payroll-runs", tags=["payroll-runs"])


def _run_response(run: PayrollRun) -> PayrollRunResponse:
    resp = PayrollRunResponse.model_validate(run)
    resp.next_statuses = PayrollRunStateMachine.get_next_statuses(run.status)
    return resp


# ============================================================================
# Payroll Run CRUD
# ============================================================================


@router.get("", response_model=PayrollRunListResponse)
def list_payroll_runs(runs: Runs) -> PayrollRunListResponse:
    """List runs, newest period first."""
    items = [_run_response(run) for run in runs.list_runs()]
    return PayrollRunListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
def create_payroll_run(
    runs: Runs,
    actor: Actor,
    payload: PayrollRunCreate,
) -> PayrollRunResponse:
    """Calculate and store a new run in draft status."""
    run = runs.create(
        payload.period,
        payment_date=payload.payment_date,
        due_date=payload.due_date,
        note=payload.note,
        actor=actor,
    )
    return _run_response(run)


@router.get(
    "/{run_id}",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_payroll_run(
    runs: Runs,
    run_id: Annotated[str, Path()],
) -> PayrollRunResponse:
    run = runs.get(run_id)
    if run is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payroll run not found",
        )
    return _run_response(run)


# ============================================================================
# Payroll Run State Transitions
# ============================================================================


@router.post(
    "/{run_id}/status",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def update_payroll_run_status(
    runs: Runs,
    actor: Actor,
    run_id: Annotated[str, Path()],
    payload: PayrollRunStatusUpdate,
) -> PayrollRunResponse:
    """Move a run to its next status (draft → reviewed → approved)."""
    run = runs.update_status(run_id, payload.status, actor=actor, note=payload.note)
    return _run_response(run)


@router.post(
    "/{run_id}/rollback",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def rollback_payroll_run(
    runs: Runs,
    actor: Actor,
    run_id: Annotated[str, Path()],
    payload: PayrollRunRollback | None = None,
) -> PayrollRunResponse:
    """Return a reviewed or approved run to draft."""
    note = payload.note if payload else None
    run = runs.rollback(run_id, actor=actor, note=note)
    return _run_response(run)


@router.post(
    "/{run_id}/sepa",
    response_class=Response,
    responses={
        200: {"content": {"application/xml": {}}},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
def export_payroll_run_sepa(
    runs: Runs,
    builder: SepaBuilder,
    run_id: Annotated[str, Path()],
    payload: SepaRequest | None = None,
) -> Response:
    """pain.001 for the run's frozen net amounts."""
    run = runs.get(run_id)
    if run is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payroll run not found",
        )
    execution_date = payload.execution_date if payload else None
    if execution_date is None and run.payment_date:
        execution_date = parse_iso_date(run.payment_date, "payment_date")

    xml = builder.build(runs.sepa_payments(run_id), execution_date=execution_date)
    return Response(
        content=xml,
        media_type=CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="sepa-{run.period}.xml"'},
    )
