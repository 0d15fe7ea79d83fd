"""In-memory collaborators for settlement tests

Every repository method mutates state without awaiting in between, so each
call is atomic on the event loop the same way a single SQL statement is atomic
in the database. The ``asyncio.sleep(0)`` calls placed before those sections
let concurrent tasks interleave.
"""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Union
from sqlalchemy.exc import IntegrityError

from src.app.repositories.account_repository import AccountRepository
from src.app.repositories.data_order_repository import DataOrderRepository
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.services.fulfillment_provider import (
    FulfillmentProvider,
    FulfillmentProviderError,
    FulfillmentReceipt,
    FulfillmentRequest,
)
from src.app.services.ledger_store import LedgerStore
from src.app.services.payment_gateway import (
    ChargeVerification,
    PaymentGateway,
    PaymentGatewayError,
    PaymentSession,
)
from src.app.services.unit_of_work import UnitOfWork
from src.domain.account import Account
from src.domain.data_order import DataOrder, OrderStatus
from src.domain.settlement_event import SettlementEvent, SettlementEventType
from src.domain.wallet_transaction import TransactionStatus, TransactionType, WalletTransaction


def duplicate_key_error(reference: str) -> IntegrityError:
    return IntegrityError("INSERT", {"reference": reference}, Exception("UNIQUE constraint failed"))


class InMemoryStore:
    def __init__(self):
        self.accounts: Dict[str, Account] = {}
        self.transactions: Dict[str, WalletTransaction] = {}
        self.orders: Dict[str, DataOrder] = {}

    def add_account(self, account_id: str, balance: str, email: Optional[str] = "user@example.com") -> Account:
        account = Account(id=account_id, email=email, wallet_balance=Decimal(balance))
        self.accounts[account_id] = account
        return account

    def balance(self, account_id: str) -> Decimal:
        return self.accounts[account_id].wallet_balance

    def transactions_of(self, transaction_type: TransactionType) -> List[WalletTransaction]:
        return [t for t in self.transactions.values() if t.transaction_type == transaction_type]


class FakeAccountRepository(AccountRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, account_id: str, for_update: bool = False) -> Optional[Account]:
        return self.store.accounts.get(account_id)

    async def create(self, account: Account) -> Account:
        self.store.accounts[account.id] = account
        return account

    async def debit(self, account_id: str, amount: Decimal) -> Optional[Decimal]:
        await asyncio.sleep(0)
        account = self.store.accounts.get(account_id)
        if account is None or account.wallet_balance < amount:
            return None
        account.wallet_balance = account.wallet_balance - amount
        return account.wallet_balance

    async def credit(self, account_id: str, amount: Decimal) -> Optional[Decimal]:
        await asyncio.sleep(0)
        account = self.store.accounts.get(account_id)
        if account is None:
            return None
        account.wallet_balance = account.wallet_balance + amount
        return account.wallet_balance


class FakeWalletTransactionRepository(WalletTransactionRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, transaction: WalletTransaction) -> WalletTransaction:
        if transaction.reference in self.store.transactions:
            raise duplicate_key_error(transaction.reference)
        self.store.transactions[transaction.reference] = transaction
        return transaction

    async def get_by_reference(self, reference: str) -> Optional[WalletTransaction]:
        return self.store.transactions.get(reference)

    async def finalize(
        self,
        reference: str,
        expected_status: TransactionStatus,
        new_status: TransactionStatus,
        values: Optional[Dict[str, Any]] = None,
    ) -> Optional[WalletTransaction]:
        await asyncio.sleep(0)
        transaction = self.store.transactions.get(reference)
        if transaction is None or transaction.status != expected_status or transaction.processing:
            return None
        transaction.status = new_status
        for key, value in (values or {}).items():
            setattr(transaction, key, value)
        return transaction

    async def update(self, transaction: WalletTransaction) -> WalletTransaction:
        self.store.transactions[transaction.reference] = transaction
        return transaction

    async def get_by_account_id(
        self, account_id: str, limit: int = 20, offset: int = 0
    ) -> Tuple[List[WalletTransaction], int]:
        matching = sorted(
            (t for t in self.store.transactions.values() if t.account_id == account_id),
            key=lambda t: t.created_at,
            reverse=True,
        )
        return matching[offset:offset + limit], len(matching)

    async def get_pending_deposits(self, created_before: datetime, limit: int = 100) -> List[WalletTransaction]:
        return [
            t for t in self.store.transactions.values()
            if t.transaction_type == TransactionType.DEPOSIT
            and t.status == TransactionStatus.PENDING
            and t.created_at < created_before
        ][:limit]


class FakeDataOrderRepository(DataOrderRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, order: DataOrder) -> DataOrder:
        if order.reference in self.store.orders:
            raise duplicate_key_error(order.reference)
        self.store.orders[order.reference] = order
        return order

    async def get_by_reference(self, reference: str) -> Optional[DataOrder]:
        return self.store.orders.get(reference)

    async def update(self, order: DataOrder) -> DataOrder:
        self.store.orders[order.reference] = order
        return order

    async def transition(
        self,
        reference: str,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        values: Optional[Dict[str, Any]] = None,
    ) -> Optional[DataOrder]:
        await asyncio.sleep(0)
        order = self.store.orders.get(reference)
        if order is None or order.status != expected_status:
            return None
        order.status = new_status
        for key, value in (values or {}).items():
            setattr(order, key, value)
        return order

    async def get_by_account_id(self, account_id: str, limit: int = 50, offset: int = 0) -> List[DataOrder]:
        matching = sorted(
            (o for o in self.store.orders.values() if o.account_id == account_id),
            key=lambda o: o.created_at,
            reverse=True,
        )
        return matching[offset:offset + limit]


class FakeUnitOfWork(UnitOfWork):
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


class FakePaymentGateway(PaymentGateway):
    """Gateway double: scripted verifications, signature equals valid_signature"""

    def __init__(self, valid_signature: str = "valid-signature"):
        self.valid_signature = valid_signature
        self.verifications: Dict[str, Union[ChargeVerification, Exception]] = {}
        self.initialize_error: Optional[Exception] = None
        self.initialized: List[Dict[str, Any]] = []
        self.verify_calls: List[str] = []
        self._counter = 0

    def will_verify(self, reference: str, amount: str, status: str = "success", currency: str = "GHS"):
        self.verifications[reference] = ChargeVerification(
            reference=reference,
            status=status,
            amount=Decimal(amount),
            currency=currency,
        )

    async def initialize(self, email, amount, currency, metadata=None) -> PaymentSession:
        await asyncio.sleep(0)
        if self.initialize_error is not None:
            raise self.initialize_error
        self._counter += 1
        reference = f"PSK-{self._counter:04d}"
        self.initialized.append(
            {"email": email, "amount": amount, "currency": currency, "metadata": metadata, "reference": reference}
        )
        return PaymentSession(
            authorization_url=f"https://checkout.example.com/{reference}",
            reference=reference,
            access_code=f"access-{reference}",
        )

    async def verify(self, reference: str) -> ChargeVerification:
        self.verify_calls.append(reference)
        await asyncio.sleep(0)
        outcome = self.verifications.get(reference)
        if outcome is None:
            raise PaymentGatewayError(f"unknown reference {reference}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def verify_signature(self, raw_body: bytes, signature: Optional[str]) -> bool:
        return signature == self.valid_signature


class FakeFulfillmentProvider(FulfillmentProvider):
    """Provider double: succeeds unless given an error to raise, accepts callback_token"""

    def __init__(
        self,
        error: Optional[Exception] = None,
        transaction_id: Optional[str] = "HN-0001",
        callback_token: str = "valid-token",
    ):
        self.error = error
        self.transaction_id = transaction_id
        self.callback_token = callback_token
        self.requests: List[FulfillmentRequest] = []

    @classmethod
    def timing_out(cls) -> "FakeFulfillmentProvider":
        return cls(error=FulfillmentProviderError("Provider request timed out"))

    async def submit(self, request: FulfillmentRequest) -> FulfillmentReceipt:
        self.requests.append(request)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return FulfillmentReceipt(transaction_id=self.transaction_id, raw={"status": True})

    def verify_callback(self, token: Optional[str]) -> bool:
        return token == self.callback_token


class RecordingEventPublisher(SettlementEventPublisher):
    def __init__(self):
        self.events: List[SettlementEvent] = []

    async def publish(self, event: SettlementEvent) -> bool:
        self.events.append(event)
        return True

    def types(self) -> List[SettlementEventType]:
        return [event.event_type for event in self.events]


class SettlementHarness:
    """Store, repositories and collaborators wired together"""

    def __init__(self):
        self.store = InMemoryStore()
        self.account_repo = FakeAccountRepository(self.store)
        self.transaction_repo = FakeWalletTransactionRepository(self.store)
        self.order_repo = FakeDataOrderRepository(self.store)
        self.uow = FakeUnitOfWork()
        self.ledger = LedgerStore(self.account_repo, self.transaction_repo)
        self.gateway = FakePaymentGateway()
        self.provider = FakeFulfillmentProvider()
        self.publisher = RecordingEventPublisher()
