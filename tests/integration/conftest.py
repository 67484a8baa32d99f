"""Integration test fixtures: the FastAPI app over a temporary data directory."""

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dutch_payroll.api.app import create_app
from dutch_payroll.config import Settings

from ..conftest import COMPANY_IBAN


def make_settings(data_dir, **overrides) -> Settings:
    values = dict(
        data_dir=data_dir,
        company_name="Company BV",
        company_iban=COMPANY_IBAN,
        company_bic="ABNANL2A",
        currency="EUR",
        statutory_interest_rate=Decimal("0.08"),
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(store) -> Settings:
    return make_settings(store.data_dir)


@pytest_asyncio.fixture(scope="function")
async def client(store, registry, settings) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client talking to the app in-process."""
    app = create_app(store=store, registry=registry, settings=settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
