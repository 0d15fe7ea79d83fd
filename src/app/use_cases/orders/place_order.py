"""PlaceDataOrder Use Case

Buys a data bundle with wallet balance: validate price, debit, submit to the
fulfillment provider, then complete or compensate.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.ledger_store import LedgerStore
from src.app.services.fulfillment_provider import (
    FulfillmentProvider,
    FulfillmentProviderError,
    FulfillmentReceipt,
    FulfillmentRequest,
)
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.repositories.data_order_repository import DataOrderRepository
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.domain.bundle_catalog import validate_bundle
from src.domain.data_order import DataOrder, OrderStatus, generate_order_reference
from src.domain.errors import ErrorCode
from src.domain.network import Network
from src.domain.settlement_event import SettlementEvent, SettlementEventType, EventSeverity
from src.domain.wallet_transaction import WalletTransaction, TransactionType, TransactionStatus
from .compensation import OrderCompensation
from .dtos import PlaceOrderCommandDTO, PlaceOrderResponseDTO, OrderDTO

logger = logging.getLogger(__name__)


class PlaceDataOrder:
    """
    Use Case: Place a data bundle order

    Business Rules:
    1. Price is validated against the catalog before any mutation
    2. The canonical price is debited, never the client's figure
    3. Debit, order and pending purchase record commit together, before the
       provider is called
    4. Provider success -> order completed, purchase completed
    5. Provider failure/timeout/error -> refund, order failed, purchase failed
    6. AFA registrations complete right after the debit (no provider call)
    7. A reused reference is rejected, never reprocessed
    8. Status changes are compare-and-set; a provider status report that
       settles the order while the provider call is in flight wins

    State machine: Validated -> Debited -> Submitted -> Completed | Failed(+Refunded)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        ledger: LedgerStore,
        order_repo: DataOrderRepository,
        transaction_repo: WalletTransactionRepository,
        provider: FulfillmentProvider,
        publisher: SettlementEventPublisher,
        catalog: Optional[dict] = None,
    ):
        self.uow = uow
        self.ledger = ledger
        self.order_repo = order_repo
        self.transaction_repo = transaction_repo
        self.provider = provider
        self.publisher = publisher
        self.catalog = catalog
        self.compensation = OrderCompensation(ledger, transaction_repo)

    async def execute(self, command: PlaceOrderCommandDTO) -> Result[PlaceOrderResponseDTO]:
        """
        Execute order placement

        Args:
            command: PlaceOrderCommandDTO

        Returns:
            Result[PlaceOrderResponseDTO]: Completed order or error. A provider
            failure returns PROVIDER_UNAVAILABLE after the refund is committed.
        """
        # Step 1: Validate against the catalog (no side effects)
        validation = validate_bundle(
            command.network, command.data_amount_mb, command.price, self.catalog
        )
        if not validation.valid:
            logger.warning(
                f"[ORDER] Rejected bundle for account {command.account_id}: {validation.reason} "
                f"(network={command.network}, data_amount_mb={command.data_amount_mb}, "
                f"claimed={validation.claimed_price}, canonical={validation.canonical_price})"
            )
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_BUNDLE,
                    message=f"Invalid bundle: {validation.reason}",
                    reason=f"canonical={validation.canonical_price}, claimed={validation.claimed_price}",
                )
            )

        network: Network = validation.network
        price: Decimal = validation.canonical_price
        reference = command.reference or generate_order_reference()

        # Steps 2-3: Debit and create the order in one commit
        try:
            if await self.order_repo.get_by_reference(reference):
                return Return.err(
                    Error(
                        code=ErrorCode.DUPLICATE_REFERENCE,
                        message="Duplicate order reference",
                        reason=f"reference={reference}",
                    )
                )

            debited = await self.ledger.debit(command.account_id, price)
            if debited.is_err():
                await self.uow.rollback()
                return Return.err(debited.error)
            balance_after_debit = debited.value

            try:
                await self.order_repo.create(
                    DataOrder(
                        account_id=command.account_id,
                        network=network,
                        data_amount_mb=command.data_amount_mb,
                        price=price,
                        phone_number=command.phone_number,
                        reference=reference,
                        status=OrderStatus.PENDING,
                    )
                )
            except IntegrityError as e:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code=ErrorCode.DUPLICATE_REFERENCE,
                        message="Duplicate order reference",
                        reason=str(e),
                    )
                )

            recorded = await self.ledger.record_transaction(
                WalletTransaction(
                    account_id=command.account_id,
                    transaction_type=TransactionType.PURCHASE,
                    amount=price,
                    reference=reference,
                    status=TransactionStatus.PENDING,
                    balance_before=balance_after_debit + price,
                    balance_after=balance_after_debit,
                    description=self._describe(network, command.data_amount_mb, command.phone_number),
                )
            )
            if recorded.is_err():
                await self.uow.rollback()
                return Return.err(recorded.error)

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"[ORDER] Failed to debit and create order {reference}")
            return Return.err(
                Error(
                    code="ORDER_PLACEMENT_FAILED",
                    message="Failed to process data order",
                    reason=str(e),
                )
            )

        logger.info(
            f"[ORDER] Order {reference} created - account={command.account_id}, "
            f"network={network.value}, data_amount_mb={command.data_amount_mb}, price={price}"
        )
        await self.publisher.publish(
            SettlementEvent(
                event_type=SettlementEventType.ORDER_DEBITED,
                reference=reference,
                account_id=command.account_id,
                amount=price,
                data={"balance_after": str(balance_after_debit)},
            )
        )

        # Step 7: Registration products complete on debit
        if not network.requires_fulfillment:
            return await self._complete(
                reference, OrderStatus.PENDING, receipt=None, balance=balance_after_debit
            )

        # Steps 4-6: Submit to the provider
        try:
            submitted = await self.order_repo.transition(
                reference,
                OrderStatus.PENDING,
                OrderStatus.PROCESSING,
                {"updated_at": datetime.utcnow()},
            )
            if submitted is None:
                await self.uow.rollback()
                return await self._settled_elsewhere(reference, balance_after_debit)
            await self.uow.commit()

            await self.publisher.publish(
                SettlementEvent(
                    event_type=SettlementEventType.ORDER_SUBMITTED,
                    reference=reference,
                    account_id=command.account_id,
                    amount=price,
                )
            )

            receipt = await self.provider.submit(
                FulfillmentRequest(
                    network=network,
                    phone_number=command.phone_number,
                    data_amount_mb=command.data_amount_mb,
                    reference=reference,
                )
            )
        except FulfillmentProviderError as e:
            logger.warning(f"[ORDER] Provider rejected order {reference}: {e}")
            return await self._fail(reference, str(e) or "Provider request failed")
        except Exception as e:
            logger.exception(f"[ORDER] Unexpected error submitting order {reference}")
            return await self._fail(reference, f"Submission error: {e}")

        return await self._complete(
            reference, OrderStatus.PROCESSING, receipt=receipt, balance=balance_after_debit
        )

    async def _complete(
        self,
        reference: str,
        expected_status: OrderStatus,
        receipt: Optional[FulfillmentReceipt],
        balance: Decimal,
    ) -> Result[PlaceOrderResponseDTO]:
        """
        Move the order to completed only if it is still in expected_status.
        A status report that settled the order while the provider call was in
        flight wins; the caller gets that outcome instead.
        """
        try:
            now = datetime.utcnow()
            values = {"completed_at": now, "updated_at": now}
            if receipt is not None:
                values["provider_transaction_id"] = receipt.transaction_id

            order = await self.order_repo.transition(
                reference, expected_status, OrderStatus.COMPLETED, values
            )
            if order is None:
                await self.uow.rollback()
                return await self._settled_elsewhere(reference, balance)

            finalized = await self.ledger.finalize_transaction(
                reference,
                TransactionStatus.PENDING,
                TransactionStatus.COMPLETED,
                {"completed_at": now},
            )
            if finalized.is_err():
                await self.uow.rollback()
                logger.warning(
                    f"[ORDER] Purchase record for {reference} not finalized: {finalized.error.message}"
                )
                return await self._settled_elsewhere(reference, balance)

            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"[ORDER] Failed to mark order {reference} completed")
            return Return.err(
                Error(
                    code="ORDER_COMPLETION_FAILED",
                    message="Order was delivered but could not be recorded",
                    reason=str(e),
                )
            )

        logger.info(f"[ORDER] Order {reference} completed")
        await self.publisher.publish(
            SettlementEvent(
                event_type=SettlementEventType.ORDER_COMPLETED,
                reference=reference,
                account_id=order.account_id,
                amount=order.price,
                data={"provider_transaction_id": order.provider_transaction_id},
            )
        )
        return Return.ok(PlaceOrderResponseDTO(order=OrderDTO.from_entity(order), balance=balance))

    async def _settled_elsewhere(
        self, reference: str, balance: Optional[Decimal]
    ) -> Result[PlaceOrderResponseDTO]:
        """Report the state another writer (a provider status report) left the order in"""
        order = await self.order_repo.get_by_reference(reference)
        status = order.status if order else None
        logger.warning(f"[ORDER] Order {reference} was settled concurrently (status={status})")

        if order is not None and order.status == OrderStatus.COMPLETED:
            return Return.ok(PlaceOrderResponseDTO(order=OrderDTO.from_entity(order), balance=balance))

        if order is not None and order.status == OrderStatus.FAILED:
            return Return.err(
                Error(
                    code=ErrorCode.PROVIDER_UNAVAILABLE,
                    message="Transaction failed, your wallet has been refunded",
                    reason=order.failure_reason,
                )
            )

        return Return.err(
            Error(
                code="ORDER_COMPLETION_FAILED",
                message="Order could not be completed",
                reason=f"reference={reference}, status={status}",
            )
        )

    async def _fail(self, reference: str, reason: str) -> Result[PlaceOrderResponseDTO]:
        """Refund and mark the order failed, then surface PROVIDER_UNAVAILABLE"""
        reason = reason[:255]
        try:
            await self.uow.rollback()
            order = await self.order_repo.get_by_reference(reference)
            if order is None:
                return Return.err(
                    Error(
                        code=ErrorCode.ORDER_NOT_FOUND,
                        message="Order not found",
                        reason=f"reference={reference}",
                    )
                )

            if order.status in (OrderStatus.COMPLETED, OrderStatus.FAILED):
                return await self._settled_elsewhere(reference, None)

            failed = await self.order_repo.transition(
                reference,
                order.status,
                OrderStatus.FAILED,
                {"failure_reason": reason, "updated_at": datetime.utcnow()},
            )
            if failed is None:
                await self.uow.rollback()
                return await self._settled_elsewhere(reference, None)
            order = failed

            refunded = await self.compensation.refund(order, reason)
            if refunded.is_err():
                await self.uow.rollback()
                logger.error(
                    f"[ORDER] Refund for {reference} failed: {refunded.error.message} ({refunded.error.reason})"
                )
                return Return.err(
                    Error(
                        code="ORDER_REFUND_FAILED",
                        message="Transaction failed and the refund could not be completed",
                        reason=refunded.error.message,
                    )
                )

            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"[ORDER] Compensation for {reference} failed")
            return Return.err(
                Error(
                    code="ORDER_REFUND_FAILED",
                    message="Transaction failed and the refund could not be completed",
                    reason=str(e),
                )
            )

        await self.publisher.publish(
            SettlementEvent(
                event_type=SettlementEventType.ORDER_FAILED,
                reference=reference,
                account_id=order.account_id,
                amount=order.price,
                severity=EventSeverity.WARNING,
                message=reason,
            )
        )
        if refunded.value is not None:
            await self.publisher.publish(
                SettlementEvent(
                    event_type=SettlementEventType.ORDER_REFUNDED,
                    reference=reference,
                    account_id=order.account_id,
                    amount=order.price,
                    data={"balance_after": str(refunded.value.balance_after)},
                )
            )

        return Return.err(
            Error(
                code=ErrorCode.PROVIDER_UNAVAILABLE,
                message="Transaction failed, your wallet has been refunded",
                reason=reason,
            )
        )

    @staticmethod
    def _describe(network: Network, data_amount_mb: int, phone_number: str) -> str:
        if network is Network.AFA_REGISTRATION:
            return f"AFA registration for {phone_number}"
        return f"{data_amount_mb}MB {network.value} bundle for {phone_number}"
