"""Webhook Routes

Inbound callbacks from the payment gateway and the fulfillment provider.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.routes.wallet import build_confirm_deposit
from src.api.schemas.order_request import FulfillmentWebhookRequestSchema
from src.app.services.ledger_store import LedgerStore
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.fulfillment_provider import FulfillmentProvider
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.use_cases.orders.dtos import FulfillmentWebhookCommandDTO
from src.app.use_cases.orders.reconcile_fulfillment_webhook import ReconcileFulfillmentWebhook
from src.app.use_cases.wallet.handle_payment_webhook import HandlePaymentWebhook
from src.app.use_cases.wallet.record_failed_deposit import RecordFailedDeposit
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.adapter.repositories.wallet_transaction_repository import SqlAlchemyWalletTransactionRepository
from src.adapter.repositories.data_order_repository import SqlAlchemyDataOrderRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import (
    get_event_publisher,
    get_fulfillment_provider,
    get_payment_gateway,
    get_session,
)
from src.api.error import ClientError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Webhooks"])


@router.post(
    "/payment-webhook",
    status_code=status.HTTP_200_OK,
    responses={
        401: {"description": "Invalid signature"},
        400: {"description": "Malformed payload or settlement rejected"},
    }
)
async def payment_webhook(
    request: Request,
    x_paystack_signature: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    publisher: SettlementEventPublisher = Depends(get_event_publisher),
):
    """
    Payment gateway webhook.

    The signature header is checked against the raw body before anything is
    parsed. `charge.success` runs the same idempotent confirmation as
    `/wallet/verify-payment`; `charge.failed` marks the deposit failed.
    """
    raw_body = await request.body()

    account_repo = SqlAlchemyAccountRepository(session)
    transaction_repo = SqlAlchemyWalletTransactionRepository(session)
    uow = SqlAlchemyUnitOfWork(session)

    use_case = HandlePaymentWebhook(
        gateway=gateway,
        confirm_deposit=build_confirm_deposit(session, gateway, publisher),
        record_failed_deposit=RecordFailedDeposit(
            uow=uow,
            ledger=LedgerStore(account_repo, transaction_repo),
            publisher=publisher,
        ),
        publisher=publisher,
    )
    result = await use_case.execute(raw_body, x_paystack_signature)

    if result.is_err():
        raise ClientError(result.error)

    ack = result.value
    return {"received": True, "event": ack.event, "reference": ack.reference, "message": ack.message}


@router.post(
    "/fulfillment-webhook",
    status_code=status.HTTP_200_OK,
    responses={
        401: {"description": "Missing or invalid callback token"},
        404: {"description": "Order not found"},
    }
)
async def fulfillment_webhook(
    request: FulfillmentWebhookRequestSchema,
    token: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
    provider: FulfillmentProvider = Depends(get_fulfillment_provider),
    publisher: SettlementEventPublisher = Depends(get_event_publisher),
):
    """
    Fulfillment provider status callback.

    The `token` query parameter must match the shared callback secret that was
    appended to the webhook URL registered with the provider. A failure report
    refunds the order unless it was already refunded.
    """
    account_repo = SqlAlchemyAccountRepository(session)
    transaction_repo = SqlAlchemyWalletTransactionRepository(session)

    use_case = ReconcileFulfillmentWebhook(
        uow=SqlAlchemyUnitOfWork(session),
        ledger=LedgerStore(account_repo, transaction_repo),
        order_repo=SqlAlchemyDataOrderRepository(session),
        transaction_repo=transaction_repo,
        provider=provider,
        publisher=publisher,
    )
    result = await use_case.execute(
        FulfillmentWebhookCommandDTO(
            reference=request.reference,
            status=request.status,
            message=request.message,
            token=token,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    return {"received": True, "status": result.value.status, "refunded": result.value.refunded}
