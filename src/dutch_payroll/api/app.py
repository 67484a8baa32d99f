"""FastAPI application factory."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dutch_payroll import __version__
from dutch_payroll.api.routes import (
    adjustments_router,
    calculators_router,
    health_router,
    payroll_router,
    payroll_runs_router,
    tax_configuration_router,
)
from dutch_payroll.config import Settings, get_settings
from dutch_payroll.errors import (
    ConcurrentModificationError,
    IntegrityError,
    NotFoundError,
    PayrollError,
    PersistenceError,
    ValidationError,
)
from dutch_payroll.services.employee_registry import EmployeeRegistry, JsonEmployeeRegistry
from dutch_payroll.services.state_machine import InvalidTransitionError
from dutch_payroll.store import EMPLOYEES_FILE, JsonFileRepository, PayrollStore

logger = logging.getLogger(__name__)

# Most specific first
_ERROR_RESPONSES: list[tuple[type[PayrollError], int, str]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    (IntegrityError, status.HTTP_422_UNPROCESSABLE_ENTITY, "INTEGRITY_ERROR"),
    (InvalidTransitionError, status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
    (ConcurrentModificationError, status.HTTP_409_CONFLICT, "CONCURRENT_MODIFICATION"),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR, "PERSISTENCE_ERROR"),
]


def _error_context(exc: PayrollError) -> dict | None:
    if isinstance(exc, ValidationError) and exc.field:
        return {"field": exc.field}
    if isinstance(exc, IntegrityError) and exc.party:
        return {"party": exc.party}
    if isinstance(exc, InvalidTransitionError):
        return {"from_status": str(exc.from_status), "to_status": str(exc.to_status)}
    if isinstance(exc, NotFoundError):
        return {"entity": exc.entity, "id": exc.entity_id}
    return None


def create_app(
    store: PayrollStore | None = None,
    registry: EmployeeRegistry | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    if store is None:
        store = PayrollStore(settings.data_dir)
    if registry is None:
        registry = JsonEmployeeRegistry(JsonFileRepository(settings.data_dir / EMPLOYEES_FILE))

    app = FastAPI(
        title="Dutch Payroll API",
        description="Monthly gross-to-net payroll, payroll runs and SEPA export",
        version=__version__,
        debug=settings.debug,
    )
    app.state.store = store
    app.state.registry = registry
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollError)
    async def payroll_exception_handler(request: Request, exc: PayrollError) -> JSONResponse:
        """Map domain errors to HTTP responses."""
        status_code, code = status.HTTP_400_BAD_REQUEST, "PAYROLL_ERROR"
        for error_type, error_status, error_code in _ERROR_RESPONSES:
            if isinstance(exc, error_type):
                status_code, code = error_status, error_code
                break
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "code": code, "context": _error_context(exc)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(adjustments_router, prefix="/api/v1")
    app.include_router(payroll_router, prefix="/api/v1")
    app.include_router(payroll_runs_router, prefix="/api/v1")
    app.include_router(tax_configuration_router, prefix="/api/v1")
    app.include_router(calculators_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
