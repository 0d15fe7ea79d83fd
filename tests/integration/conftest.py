import pytest
import pytest_asyncio
from decimal import Decimal
from httpx import ASGITransport, AsyncClient

from src.depends import (
    get_event_publisher,
    get_fulfillment_provider,
    get_operator_token,
    get_payment_gateway,
    get_session,
)
from src.domain.account import Account
from tests.fakes import FakeFulfillmentProvider, FakePaymentGateway, RecordingEventPublisher


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def provider():
    return FakeFulfillmentProvider()


@pytest.fixture
def publisher():
    return RecordingEventPublisher()


@pytest.fixture
def seed_account(session_factory):
    """Insert an account and return its id"""

    async def _seed(account_id: str = "acc_1", balance: str = "100.00", email: str = "ama@example.com") -> str:
        async with session_factory() as session:
            session.add(Account(id=account_id, email=email, wallet_balance=Decimal(balance)))
            await session.commit()
        return account_id

    return _seed


@pytest_asyncio.fixture
async def client(session_factory, gateway, provider, publisher):
    """Create test client with database and third-party overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # Each request gets its own session, as in production
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_fulfillment_provider] = lambda: provider
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    app.dependency_overrides[get_operator_token] = lambda: "admin-token"

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
