"""Stand-alone calculators."""

from fastapi import APIRouter, HTTPException, status

from dutch_payroll.api.dependencies import Registry
from dutch_payroll.api.schemas import ErrorResponse, TerminationRequest, TerminationResponse
from dutch_payroll.calculators.holiday import calculate_termination_payout

router = APIRouter(prefix="/calculators", tags=["calculators"])


@router.post(
    "/termination",
    response_model=TerminationResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def termination_payout(
    registry: Registry,
    payload: TerminationRequest,
) -> TerminationResponse:
    """What-if payout of untaken holiday for a termination date."""
    employee = registry.get(payload.employee_id)
    if employee is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found",
        )
    payout = calculate_termination_payout(
        employee,
        payload.termination_date,
        holiday_days_per_year=payload.holiday_days_per_year,
        used_days_ytd=payload.used_days_ytd,
    )
    return TerminationResponse.model_validate(payout)
