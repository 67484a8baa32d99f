"""Payroll preview and SEPA export for a period."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Path, Query
from fastapi.responses import Response

from dutch_payroll.api.dependencies import AppSettings, Calculator, Registry, Runs, SepaBuilder
from dutch_payroll.api.schemas import (
    AdjustmentAmountsResponse,
    AllowancesResponse,
    AmountsResponse,
    DeductionsResponse,
    EmployeePayrollResponse,
    EmploymentResponse,
    ErrorResponse,
    MetadataResponse,
    MinimumWageResponse,
    PayrollPreviewResponse,
    PreviewTotals,
    SepaRequest,
)
from dutch_payroll.calculators.types import PayrollResult
from dutch_payroll.services.sepa import CONTENT_TYPE, payments_from_results

router = APIRouter(prefix="/payroll", tags=["payroll"])


def employee_payroll_response(result: PayrollResult) -> EmployeePayrollResponse:
    amounts = result.amounts
    return EmployeePayrollResponse(
        employee_id=result.employee.id,
        name=result.employee.full_name,
        department=result.employee.department,
        employment=EmploymentResponse.model_validate(result.employment),
        amounts=AmountsResponse(
            gross_cents=amounts.gross_cents,
            taxable_cents=amounts.taxable_cents,
            net_cents=amounts.net_cents,
            allowances=AllowancesResponse.model_validate(amounts.allowances),
            deductions=DeductionsResponse.model_validate(amounts.deductions),
            adjustments=AdjustmentAmountsResponse.model_validate(amounts.adjustments),
        ),
        metadata=MetadataResponse.model_validate(result.metadata),
        minimum_wage=MinimumWageResponse.model_validate(result.minimum_wage),
    )


@router.get(
    "/preview/{period}",
    response_model=PayrollPreviewResponse,
    responses={400: {"model": ErrorResponse}},
)
def preview_payroll(
    runs: Runs,
    settings: AppSettings,
    period: Annotated[str, Path(description="YYYY-MM")],
    payment_date: Annotated[date | None, Query()] = None,
    due_date: Annotated[date | None, Query()] = None,
) -> PayrollPreviewResponse:
    """Calculate the period for every employee a run would include. Nothing is stored."""
    results = runs.calculate(period, payment_date, due_date)

    totals = PreviewTotals()
    for r in results:
        totals.gross_cents += r.amounts.gross_cents
        totals.net_cents += r.amounts.net_cents
        totals.wage_tax_cents += r.amounts.deductions.wage_tax_cents
        totals.social_security_cents += r.amounts.deductions.social_security_cents
        totals.holiday_allowance_payments_cents += r.amounts.allowances.holiday_allowance_payment_cents
        totals.holiday_accrual_cents += r.amounts.allowances.holiday_accrual_cents
        totals.outstanding_holiday_cents += r.amounts.adjustments.outstanding_holiday_payout_cents
        totals.late_fees_cents += r.amounts.adjustments.late_payment_fee_cents
        totals.manual_adjustments_cents += r.amounts.adjustments.manual_adjustments_cents

    return PayrollPreviewResponse(
        period=period,
        currency=settings.currency,
        statutory_interest_rate=settings.statutory_interest_rate,
        totals=totals,
        employees=[employee_payroll_response(r) for r in results],
    )


@router.post(
    "/sepa/{period}",
    response_class=Response,
    responses={
        200: {"content": {"application/xml": {}}},
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
def export_sepa(
    calculator: Calculator,
    registry: Registry,
    builder: SepaBuilder,
    period: Annotated[str, Path(description="YYYY-MM")],
    payload: SepaRequest | None = None,
) -> Response:
    """pain.001 salary transfers for every employee with a positive net amount."""
    payload = payload or SepaRequest()
    results = calculator.calculate_all(
        registry.list_employees(), period, payload.payment_date, payload.due_date
    )
    xml = builder.build(
        payments_from_results(results, period),
        execution_date=payload.execution_date or payload.payment_date,
    )
    return Response(
        content=xml,
        media_type=CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="sepa-{period}.xml"'},
    )
