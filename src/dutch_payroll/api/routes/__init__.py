"""API routes."""

from dutch_payroll.api.routes.adjustments import router as adjustments_router
from dutch_payroll.api.routes.calculators import router as calculators_router
from dutch_payroll.api.routes.health import router as health_router
from dutch_payroll.api.routes.payroll import router as payroll_router
from dutch_payroll.api.routes.payroll_runs import router as payroll_runs_router
from dutch_payroll.api.routes.tax_configuration import router as tax_configuration_router

__all__ = [
    "adjustments_router",
    "calculators_router",
    "health_router",
    "payroll_router",
    "payroll_runs_router",
    "tax_configuration_router",
]
