"""Orders API Routes

FastAPI routes for placing and querying data bundle orders.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.order_request import PlaceOrderRequestSchema, PlaceOrderResponseSchema
from src.app.services.ledger_store import LedgerStore
from src.app.services.fulfillment_provider import FulfillmentProvider
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.use_cases.orders.dtos import ListOrdersResponseDTO, OrderDTO, PlaceOrderCommandDTO
from src.app.use_cases.orders.place_order import PlaceDataOrder
from src.app.use_cases.orders.get_order import GetOrder
from src.app.use_cases.orders.list_orders import ListOrders
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.adapter.repositories.wallet_transaction_repository import SqlAlchemyWalletTransactionRepository
from src.adapter.repositories.data_order_repository import SqlAlchemyDataOrderRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_event_publisher, get_fulfillment_provider, get_session
from src.api.error import ClientError

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post(
    "",
    response_model=PlaceOrderResponseSchema,
    status_code=status.HTTP_200_OK,
    responses={
        400: {
            "description": "Invalid bundle",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "error": "Invalid bundle: price mismatch",
                        "code": "INVALID_BUNDLE"
                    }
                }
            }
        },
        402: {"description": "Insufficient wallet balance"},
        409: {"description": "Order reference already used"},
        502: {
            "description": "Provider failed; the wallet was refunded",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "error": "Transaction failed, your wallet has been refunded",
                        "code": "PROVIDER_UNAVAILABLE"
                    }
                }
            }
        },
    }
)
async def place_order(
    request: PlaceOrderRequestSchema,
    session: AsyncSession = Depends(get_session),
    provider: FulfillmentProvider = Depends(get_fulfillment_provider),
    publisher: SettlementEventPublisher = Depends(get_event_publisher),
):
    """
    Buy a data bundle with wallet balance.

    The price is checked against the server catalog and the catalog price is
    debited. If the provider rejects or times out the wallet is refunded
    before the error is returned.

    **Returns:**
    - 200: Order completed
    - 400: Unknown network, size or price
    - 402: Insufficient wallet balance
    - 409: Duplicate reference
    - 502: Provider failure (refunded)
    """
    account_repo = SqlAlchemyAccountRepository(session)
    transaction_repo = SqlAlchemyWalletTransactionRepository(session)

    use_case = PlaceDataOrder(
        uow=SqlAlchemyUnitOfWork(session),
        ledger=LedgerStore(account_repo, transaction_repo),
        order_repo=SqlAlchemyDataOrderRepository(session),
        transaction_repo=transaction_repo,
        provider=provider,
        publisher=publisher,
    )
    result = await use_case.execute(
        PlaceOrderCommandDTO(
            account_id=request.account_id,
            phone_number=request.phone_number,
            network=request.network,
            data_amount_mb=request.data_amount_mb,
            price=request.price,
            reference=request.reference,
        )
    )

    if result.is_err():
        raise ClientError(result.error)

    placed = result.value
    return PlaceOrderResponseSchema(
        message="Data bundle purchased successfully",
        order_id=placed.order.id,
        reference=placed.order.reference,
        status=placed.order.status,
        balance=placed.balance,
    )


@router.get(
    "",
    response_model=ListOrdersResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_orders(
    account_id: str = Query(..., alias="accountId", min_length=1),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """An account's orders, newest first."""
    use_case = ListOrders(SqlAlchemyDataOrderRepository(session))
    result = await use_case.execute(account_id, limit=limit, offset=offset)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{reference}",
    response_model=OrderDTO,
    status_code=status.HTTP_200_OK,
    responses={404: {"description": "Order not found"}}
)
async def get_order(
    reference: str,
    session: AsyncSession = Depends(get_session),
):
    """Order status by reference."""
    use_case = GetOrder(SqlAlchemyDataOrderRepository(session))
    result = await use_case.execute(reference)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
