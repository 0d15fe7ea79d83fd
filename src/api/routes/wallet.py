"""Wallet API Routes

FastAPI routes for wallet funding and balance queries.
"""

from decimal import Decimal
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.wallet_request import (
    AddFundsRequestSchema,
    AddFundsResponseSchema,
    VerifyPaymentResponseSchema,
)
from src.app.services.ledger_store import LedgerStore
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.use_cases.wallet.dtos import (
    BalanceResponseDTO,
    InitiateDepositCommandDTO,
    ListTransactionsResponseDTO,
)
from src.app.use_cases.wallet.initiate_deposit import InitiateDeposit
from src.app.use_cases.wallet.confirm_deposit import ConfirmDeposit
from src.app.use_cases.wallet.get_balance import GetBalance
from src.app.use_cases.wallet.list_transactions import ListTransactions
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.adapter.repositories.wallet_transaction_repository import SqlAlchemyWalletTransactionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import (
    get_deposit_limits,
    get_event_publisher,
    get_payment_gateway,
    get_session,
)
from config import ApplicationConfig
from src.api.error import ClientError

router = APIRouter(prefix="/wallet", tags=["Wallet"])


def build_confirm_deposit(
    session: AsyncSession,
    gateway: PaymentGateway,
    publisher: SettlementEventPublisher,
) -> ConfirmDeposit:
    account_repo = SqlAlchemyAccountRepository(session)
    transaction_repo = SqlAlchemyWalletTransactionRepository(session)
    return ConfirmDeposit(
        uow=SqlAlchemyUnitOfWork(session),
        account_repo=account_repo,
        transaction_repo=transaction_repo,
        ledger=LedgerStore(account_repo, transaction_repo),
        gateway=gateway,
        publisher=publisher,
    )


@router.post(
    "/add-funds",
    response_model=AddFundsResponseSchema,
    status_code=status.HTTP_200_OK,
    responses={
        400: {
            "description": "Invalid amount",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "error": "Deposit amount is too low. Minimum is GH₵1.00",
                        "code": "INVALID_AMOUNT"
                    }
                }
            }
        },
        404: {"description": "Account not found"},
        502: {"description": "Payment gateway unavailable"},
    }
)
async def add_funds(
    request: AddFundsRequestSchema,
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    publisher: SettlementEventPublisher = Depends(get_event_publisher),
    limits: tuple[Decimal, Decimal] = Depends(get_deposit_limits),
):
    """
    Start a wallet deposit.

    Creates a charge session with the payment gateway and records a pending
    deposit keyed by the gateway reference. The client redirects the payer to
    `authorization_url`; the wallet is credited only after verification.

    **Returns:**
    - 200: Charge session created
    - 400: Amount outside limits or malformed
    - 404: Account not found
    - 502: Payment gateway unavailable
    """
    account_repo = SqlAlchemyAccountRepository(session)
    transaction_repo = SqlAlchemyWalletTransactionRepository(session)
    min_amount, max_amount = limits

    use_case = InitiateDeposit(
        uow=SqlAlchemyUnitOfWork(session),
        account_repo=account_repo,
        ledger=LedgerStore(account_repo, transaction_repo),
        gateway=gateway,
        publisher=publisher,
        currency=ApplicationConfig.CURRENCY,
        min_amount=min_amount,
        max_amount=max_amount,
    )
    result = await use_case.execute(
        InitiateDepositCommandDTO(account_id=request.account_id, amount=request.amount)
    )

    if result.is_err():
        raise ClientError(result.error)

    deposit = result.value
    return AddFundsResponseSchema(
        authorization_url=deposit.authorization_url,
        reference=deposit.reference,
        amount=deposit.amount,
        currency=deposit.currency,
    )


@router.get(
    "/verify-payment",
    response_model=VerifyPaymentResponseSchema,
    status_code=status.HTTP_200_OK,
    responses={
        202: {"description": "Payment still pending at the gateway"},
        400: {"description": "Payment not successful or verification failed"},
        404: {"description": "Unknown reference"},
        502: {"description": "Payment gateway unavailable"},
    }
)
async def verify_payment(
    reference: str = Query(..., min_length=1, description="Gateway payment reference"),
    session: AsyncSession = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    publisher: SettlementEventPublisher = Depends(get_event_publisher),
):
    """
    Verify a deposit with the gateway and credit the wallet once.

    Safe to call repeatedly: an already-credited reference returns the current
    balance with `already_processed: true`.
    """
    use_case = build_confirm_deposit(session, gateway, publisher)
    result = await use_case.execute(reference)

    if result.is_err():
        raise ClientError(result.error)

    confirmed = result.value
    return VerifyPaymentResponseSchema(
        message="Payment already processed" if confirmed.already_processed else "Payment verified successfully",
        reference=confirmed.reference,
        amount=confirmed.amount,
        balance=confirmed.balance,
        already_processed=confirmed.already_processed,
    )


@router.get(
    "/balance",
    response_model=BalanceResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={404: {"description": "Account not found"}}
)
async def get_balance(
    account_id: str = Query(..., alias="accountId", min_length=1),
    session: AsyncSession = Depends(get_session),
):
    """Current wallet balance."""
    use_case = GetBalance(SqlAlchemyAccountRepository(session))
    result = await use_case.execute(account_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/transactions",
    response_model=ListTransactionsResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_transactions(
    account_id: str = Query(..., alias="accountId", min_length=1),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """Wallet transaction history, newest first."""
    use_case = ListTransactions(SqlAlchemyWalletTransactionRepository(session))
    result = await use_case.execute(account_id=account_id, limit=limit, offset=offset)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
