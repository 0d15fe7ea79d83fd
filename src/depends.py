import hmac
from decimal import Decimal
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.paystack_gateway import PaystackPaymentGateway
from src.adapter.services.hubnet_provider import HubnetFulfillmentProvider
from src.adapter.services.event_publisher import create_event_publisher
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.fulfillment_provider import FulfillmentProvider
from src.app.services.event_publisher import SettlementEventPublisher
from src.api.error import ClientError
from libs.result import Error
from src.domain.errors import ErrorCode

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

_event_publisher = create_event_publisher(ApplicationConfig.SETTLEMENT_EVENTS_WEBHOOK)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_payment_gateway() -> PaymentGateway:
    return PaystackPaymentGateway(
        secret_key=ApplicationConfig.PAYSTACK_SECRET_KEY,
        base_url=ApplicationConfig.PAYSTACK_BASE_URL,
        callback_url=ApplicationConfig.PAYSTACK_CALLBACK_URL,
        timeout=float(ApplicationConfig.PAYSTACK_TIMEOUT_SECONDS),
    )


def get_fulfillment_provider() -> FulfillmentProvider:
    return HubnetFulfillmentProvider(
        api_token=ApplicationConfig.HUBNET_API_TOKEN,
        base_url=ApplicationConfig.HUBNET_BASE_URL,
        webhook_url=ApplicationConfig.HUBNET_WEBHOOK_URL,
        webhook_secret=ApplicationConfig.HUBNET_WEBHOOK_SECRET,
        timeout=float(ApplicationConfig.HUBNET_TIMEOUT_SECONDS),
    )


def get_event_publisher() -> SettlementEventPublisher:
    return _event_publisher


def get_deposit_limits() -> tuple[Decimal, Decimal]:
    return (
        Decimal(ApplicationConfig.DEPOSIT_MIN_AMOUNT),
        Decimal(ApplicationConfig.DEPOSIT_MAX_AMOUNT),
    )


def get_operator_token() -> str:
    return ApplicationConfig.ADMIN_API_TOKEN


def require_operator(
    x_admin_token: Optional[str] = Header(default=None),
    x_operator: Optional[str] = Header(default=None),
    expected: str = Depends(get_operator_token),
) -> str:
    """Admin token check; returns the operator label for the audit trail"""
    if not expected or not x_admin_token or not hmac.compare_digest(
        x_admin_token.encode(), expected.encode()
    ):
        raise ClientError(
            Error(
                code=ErrorCode.OPERATOR_UNAUTHORIZED,
                message="Operator authentication required",
            )
        )
    return x_operator or "operator"
