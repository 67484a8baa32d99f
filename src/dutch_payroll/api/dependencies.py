"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Header, Request

from dutch_payroll.calculators.payroll_calculator import PayrollCalculator
from dutch_payroll.config import Settings
from dutch_payroll.services.adjustments_ledger import AdjustmentsLedger
from dutch_payroll.services.employee_registry import EmployeeRegistry
from dutch_payroll.services.payroll_run_ledger import PayrollRunLedger
from dutch_payroll.services.sepa import Debtor, SepaFileBuilder
from dutch_payroll.store import PayrollStore


def get_store(request: Request) -> PayrollStore:
    return request.app.state.store


def get_registry(request: Request) -> EmployeeRegistry:
    return request.app.state.registry


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_actor(x_actor: Annotated[str | None, Header()] = None) -> str:
    """Acting user from the X-Actor header, ``system`` when absent."""
    if not x_actor or not x_actor.strip():
        return "system"
    return x_actor.strip()


Store = Annotated[PayrollStore, Depends(get_store)]
Registry = Annotated[EmployeeRegistry, Depends(get_registry)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Actor = Annotated[str, Depends(get_actor)]


def get_adjustments_ledger(store: Store) -> AdjustmentsLedger:
    return AdjustmentsLedger(store.adjustments, clock=store.clock)


Adjustments = Annotated[AdjustmentsLedger, Depends(get_adjustments_ledger)]


def get_calculator(store: Store, adjustments: Adjustments, settings: AppSettings) -> PayrollCalculator:
    return PayrollCalculator(
        store.tax_configurations,
        adjustments,
        statutory_interest_rate=settings.statutory_interest_rate,
    )


Calculator = Annotated[PayrollCalculator, Depends(get_calculator)]


def get_run_ledger(store: Store, calculator: Calculator, registry: Registry) -> PayrollRunLedger:
    return PayrollRunLedger(store.payroll_runs, calculator, registry, clock=store.clock)


def get_sepa_builder(settings: AppSettings) -> SepaFileBuilder:
    debtor = Debtor(
        name=settings.company_name,
        iban=settings.company_iban,
        bic=settings.company_bic or None,
    )
    return SepaFileBuilder(debtor, currency=settings.currency)


# Type aliases for cleaner dependency injection
Runs = Annotated[PayrollRunLedger, Depends(get_run_ledger)]
SepaBuilder = Annotated[SepaFileBuilder, Depends(get_sepa_builder)]
