"""Unit tests for LedgerStore primitives

Tests cover:
- Conditional debit (never overdraws)
- Credit
- Unique references
- Compare-and-set finalize
"""

import asyncio
import pytest
from decimal import Decimal

from src.domain.errors import ErrorCode
from src.domain.wallet_transaction import TransactionStatus, TransactionType, WalletTransaction
from tests.fakes import SettlementHarness


@pytest.fixture
def harness():
    h = SettlementHarness()
    h.store.add_account("acc_1", "100.00")
    return h


def pending_deposit(reference: str, amount: str = "50.00") -> WalletTransaction:
    return WalletTransaction(
        account_id="acc_1",
        transaction_type=TransactionType.DEPOSIT,
        amount=Decimal(amount),
        reference=reference,
        status=TransactionStatus.PENDING,
    )


@pytest.mark.asyncio
class TestDebit:

    async def test_debit_reduces_balance(self, harness):
        result = await harness.ledger.debit("acc_1", Decimal("6.00"))

        assert result.is_ok()
        assert result.value == Decimal("94.00")
        assert harness.store.balance("acc_1") == Decimal("94.00")

    async def test_debit_entire_balance(self, harness):
        result = await harness.ledger.debit("acc_1", Decimal("100.00"))

        assert result.is_ok()
        assert result.value == Decimal("0.00")

    async def test_insufficient_funds_leaves_balance(self, harness):
        result = await harness.ledger.debit("acc_1", Decimal("100.01"))

        assert result.is_err()
        assert result.error.code == ErrorCode.INSUFFICIENT_FUNDS
        assert "balance=100.00" in result.error.reason
        assert harness.store.balance("acc_1") == Decimal("100.00")

    async def test_unknown_account(self, harness):
        result = await harness.ledger.debit("missing", Decimal("1.00"))

        assert result.is_err()
        assert result.error.code == ErrorCode.ACCOUNT_NOT_FOUND

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00"), Decimal("NaN"), 5, "5.00"])
    async def test_rejects_invalid_amounts(self, harness, amount):
        result = await harness.ledger.debit("acc_1", amount)

        assert result.is_err()
        assert result.error.code == ErrorCode.INVALID_AMOUNT
        assert harness.store.balance("acc_1") == Decimal("100.00")

    async def test_concurrent_debits_never_overdraw(self, harness):
        """Twenty concurrent 6.00 debits on 100.00: sixteen succeed"""
        results = await asyncio.gather(
            *(harness.ledger.debit("acc_1", Decimal("6.00")) for _ in range(20))
        )

        succeeded = [r for r in results if r.is_ok()]
        rejected = [r for r in results if r.is_err()]
        assert len(succeeded) == 16
        assert all(r.error.code == ErrorCode.INSUFFICIENT_FUNDS for r in rejected)
        assert harness.store.balance("acc_1") == Decimal("4.00")


@pytest.mark.asyncio
class TestCredit:

    async def test_credit_increases_balance(self, harness):
        result = await harness.ledger.credit("acc_1", Decimal("50.00"))

        assert result.is_ok()
        assert result.value == Decimal("150.00")

    async def test_credit_unknown_account(self, harness):
        result = await harness.ledger.credit("missing", Decimal("50.00"))

        assert result.is_err()
        assert result.error.code == ErrorCode.ACCOUNT_NOT_FOUND

    async def test_credit_rejects_non_positive(self, harness):
        result = await harness.ledger.credit("acc_1", Decimal("0.00"))

        assert result.is_err()
        assert result.error.code == ErrorCode.INVALID_AMOUNT


@pytest.mark.asyncio
class TestRecordTransaction:

    async def test_records_new_reference(self, harness):
        result = await harness.ledger.record_transaction(pending_deposit("T-1"))

        assert result.is_ok()
        assert "T-1" in harness.store.transactions

    async def test_duplicate_reference(self, harness):
        await harness.ledger.record_transaction(pending_deposit("T-1"))

        result = await harness.ledger.record_transaction(pending_deposit("T-1", "75.00"))

        assert result.is_err()
        assert result.error.code == ErrorCode.DUPLICATE_REFERENCE
        assert harness.store.transactions["T-1"].amount == Decimal("50.00")

    async def test_duplicate_detected_by_unique_constraint(self, harness):
        """Insert race: pre-check passes, the insert itself hits the constraint"""
        harness.transaction_repo.get_by_reference = _always_none
        await harness.ledger.record_transaction(pending_deposit("T-1"))

        result = await harness.ledger.record_transaction(pending_deposit("T-1"))

        assert result.is_err()
        assert result.error.code == ErrorCode.DUPLICATE_REFERENCE
        assert result.error.reason is not None


@pytest.mark.asyncio
class TestFinalizeTransaction:

    async def test_pending_to_completed(self, harness):
        await harness.ledger.record_transaction(pending_deposit("T-1"))

        result = await harness.ledger.finalize_transaction(
            "T-1", TransactionStatus.PENDING, TransactionStatus.COMPLETED
        )

        assert result.is_ok()
        assert result.value.status == TransactionStatus.COMPLETED

    async def test_second_finalize_is_already_processed(self, harness):
        await harness.ledger.record_transaction(pending_deposit("T-1"))
        await harness.ledger.finalize_transaction("T-1", TransactionStatus.PENDING, TransactionStatus.COMPLETED)

        result = await harness.ledger.finalize_transaction(
            "T-1", TransactionStatus.PENDING, TransactionStatus.FAILED
        )

        assert result.is_err()
        assert result.error.code == ErrorCode.ALREADY_PROCESSED
        assert harness.store.transactions["T-1"].status == TransactionStatus.COMPLETED

    async def test_processing_flag_blocks_finalize(self, harness):
        transaction = pending_deposit("T-1")
        transaction.processing = True
        await harness.ledger.record_transaction(transaction)

        result = await harness.ledger.finalize_transaction(
            "T-1", TransactionStatus.PENDING, TransactionStatus.COMPLETED
        )

        assert result.is_err()
        assert result.error.code == ErrorCode.ALREADY_PROCESSED

    async def test_unknown_reference(self, harness):
        result = await harness.ledger.finalize_transaction(
            "nope", TransactionStatus.PENDING, TransactionStatus.COMPLETED
        )

        assert result.is_err()
        assert result.error.code == ErrorCode.TRANSACTION_NOT_FOUND

    async def test_concurrent_finalize_has_one_winner(self, harness):
        await harness.ledger.record_transaction(pending_deposit("T-1"))

        results = await asyncio.gather(
            *(
                harness.ledger.finalize_transaction(
                    "T-1", TransactionStatus.PENDING, TransactionStatus.COMPLETED
                )
                for _ in range(10)
            )
        )

        assert sum(1 for r in results if r.is_ok()) == 1
        assert all(r.error.code == ErrorCode.ALREADY_PROCESSED for r in results if r.is_err())


async def _always_none(reference):
    return None
