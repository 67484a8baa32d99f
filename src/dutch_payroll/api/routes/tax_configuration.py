"""Tax configuration endpoints."""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Path, Query

from dutch_payroll.api.dependencies import Store
from dutch_payroll.api.schemas import (
    ErrorResponse,
    MinimumWageResponse,
    TaxConfigurationListResponse,
    TaxConfigurationResponse,
    TaxConfigurationUpdate,
)
from dutch_payroll.calculators.tax_configuration import check_minimum_wage_compliance

router = APIRouter(prefix="/tax-configuration", tags=["tax-configuration"])

Period = Annotated[str, Path(description="YYYY-MM")]


@router.get("", response_model=TaxConfigurationListResponse)
async def list_tax_configurations(store: Store) -> TaxConfigurationListResponse:
    """Configurations accessed so far, newest period first."""
    items = [
        TaxConfigurationResponse.model_validate(c)
        for c in store.tax_configurations.list_configurations()
    ]
    return TaxConfigurationListResponse(items=items, total=len(items))


@router.get(
    "/{period}",
    response_model=TaxConfigurationResponse,
    responses={400: {"model": ErrorResponse}},
)
async def get_tax_configuration(store: Store, period: Period) -> TaxConfigurationResponse:
    return TaxConfigurationResponse.model_validate(store.tax_configurations.get_configuration(period))


@router.patch(
    "/{period}",
    response_model=TaxConfigurationResponse,
    responses={400: {"model": ErrorResponse}},
)
async def update_tax_configuration(
    store: Store,
    period: Period,
    payload: TaxConfigurationUpdate,
) -> TaxConfigurationResponse:
    """Manual edit of the period's rates."""
    config = store.tax_configurations.update(period, payload.model_dump(exclude_none=True))
    return TaxConfigurationResponse.model_validate(config)


@router.post(
    "/{period}/import",
    response_model=TaxConfigurationResponse,
    responses={400: {"model": ErrorResponse}},
)
async def import_tax_configuration(
    store: Store,
    period: Period,
    payload: TaxConfigurationUpdate,
) -> TaxConfigurationResponse:
    """Rate refresh from an external table."""
    config = store.tax_configurations.import_configuration(
        period, payload.model_dump(exclude_none=True)
    )
    return TaxConfigurationResponse.model_validate(config)


@router.get(
    "/{period}/minimum-wage",
    response_model=MinimumWageResponse,
    responses={400: {"model": ErrorResponse}},
)
async def check_minimum_wage(
    store: Store,
    period: Period,
    monthly_salary_cents: Annotated[int, Query(ge=0)],
    hours_per_week: Annotated[Decimal, Query(gt=0)] = Decimal("40"),
) -> MinimumWageResponse:
    config = store.tax_configurations.get_configuration(period)
    check = check_minimum_wage_compliance(monthly_salary_cents, hours_per_week, config)
    return MinimumWageResponse.model_validate(check)
