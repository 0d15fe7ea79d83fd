"""Admin API Routes

Operator corrections: order status override and manual wallet credit.
Every route requires the X-Admin-Token header.
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.admin_request import (
    ManualCreditRequestSchema,
    ManualCreditResponseSchema,
    OrderStatusOverrideRequestSchema,
    OrderStatusOverrideResponseSchema,
)
from src.app.services.ledger_store import LedgerStore
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.use_cases.orders.dtos import OverrideOrderStatusCommandDTO
from src.app.use_cases.orders.override_order_status import OverrideOrderStatus
from src.app.use_cases.wallet.dtos import ManualCreditCommandDTO
from src.app.use_cases.wallet.credit_wallet import CreditWallet
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.adapter.repositories.wallet_transaction_repository import SqlAlchemyWalletTransactionRepository
from src.adapter.repositories.data_order_repository import SqlAlchemyDataOrderRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_deposit_limits, get_event_publisher, get_session, require_operator
from config import ApplicationConfig
from src.api.error import ClientError

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.put(
    "/orders/{reference}",
    response_model=OrderStatusOverrideResponseSchema,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Invalid status value"},
        401: {"description": "Missing or wrong admin token"},
        404: {"description": "Order not found"},
        409: {
            "description": "Order already failed and refunded, or changed concurrently",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "error": "A failed order has been refunded and cannot be reopened",
                        "code": "ORDER_STATUS_LOCKED"
                    }
                }
            }
        },
    }
)
async def override_order_status(
    reference: str,
    request: OrderStatusOverrideRequestSchema,
    operator: str = Depends(require_operator),
    session: AsyncSession = Depends(get_session),
    publisher: SettlementEventPublisher = Depends(get_event_publisher),
):
    """
    Set an order's status by hand.

    Moving an order to `failed` refunds the wallet unless it was already
    refunded by the provider paths.
    """
    account_repo = SqlAlchemyAccountRepository(session)
    transaction_repo = SqlAlchemyWalletTransactionRepository(session)

    use_case = OverrideOrderStatus(
        uow=SqlAlchemyUnitOfWork(session),
        ledger=LedgerStore(account_repo, transaction_repo),
        order_repo=SqlAlchemyDataOrderRepository(session),
        transaction_repo=transaction_repo,
        publisher=publisher,
    )
    result = await use_case.execute(
        OverrideOrderStatusCommandDTO(
            reference=reference,
            status=request.status,
            reason=request.reason,
            operator=operator,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    changed = result.value
    return OrderStatusOverrideResponseSchema(
        reference=changed.reference,
        previous_status=changed.previous_status,
        status=changed.status,
        refunded=changed.refunded,
    )


@router.post(
    "/accounts/{account_id}/deposit",
    response_model=ManualCreditResponseSchema,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Invalid amount"},
        401: {"description": "Missing or wrong admin token"},
        404: {"description": "Account not found"},
        409: {"description": "Reference already used"},
    }
)
async def credit_wallet(
    account_id: str,
    request: ManualCreditRequestSchema,
    operator: str = Depends(require_operator),
    session: AsyncSession = Depends(get_session),
    publisher: SettlementEventPublisher = Depends(get_event_publisher),
    limits: tuple = Depends(get_deposit_limits),
):
    """Credit a wallet directly; recorded as a completed deposit."""
    account_repo = SqlAlchemyAccountRepository(session)
    transaction_repo = SqlAlchemyWalletTransactionRepository(session)
    _, max_amount = limits

    use_case = CreditWallet(
        uow=SqlAlchemyUnitOfWork(session),
        account_repo=account_repo,
        ledger=LedgerStore(account_repo, transaction_repo),
        publisher=publisher,
        currency=ApplicationConfig.CURRENCY,
        max_amount=max_amount,
    )
    result = await use_case.execute(
        ManualCreditCommandDTO(
            account_id=account_id,
            amount=request.amount,
            description=request.description,
            reference=request.reference,
            operator=operator,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    credited = result.value
    return ManualCreditResponseSchema(
        message="Deposit successful",
        reference=credited.reference,
        amount=credited.amount,
        balance=credited.balance,
    )
