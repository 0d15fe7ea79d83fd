"""Pending Deposit Verification Background Worker

Deposits are credited when the payer returns through /wallet/verify-payment or
when the gateway webhook arrives. If both are lost the deposit stays pending.
This worker sweeps old pending deposits and runs each through ConfirmDeposit,
which is idempotent, so it can race the webhook safely.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.account_repository import SqlAlchemyAccountRepository
from src.adapter.repositories.wallet_transaction_repository import SqlAlchemyWalletTransactionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.adapter.services.event_publisher import create_event_publisher
from src.app.services.ledger_store import LedgerStore
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.use_cases.wallet.confirm_deposit import ConfirmDeposit
from src.domain.errors import ErrorCode

logger = logging.getLogger(__name__)


class DepositVerificationSummary(BaseModel):
    checked: int = 0
    credited: int = 0
    already_processed: int = 0
    still_pending: int = 0
    failed: int = 0
    errors: int = 0
    references: List[str] = Field(default_factory=list)
    execution_time_ms: int = 0


class DepositVerifierWorker:
    """
    Background worker for pending deposit verification

    Features:
    - Only looks at deposits older than min_age_seconds (gives the payer and
      the webhook time to settle them first)
    - One session per deposit; a failure never blocks the rest of the sweep
    - Can run once or continuously

    Usage:
        worker = DepositVerifierWorker(gateway)
        summary = await worker.run_once()

        await worker.run_forever(interval_seconds=300)
    """

    def __init__(
        self,
        gateway: PaymentGateway,
        publisher: Optional[SettlementEventPublisher] = None,
        db_uri: Optional[str] = None,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
        min_age_seconds: Optional[int] = None,
        batch_size: int = 100,
    ):
        """
        Args:
            gateway: Payment gateway used for verification
            publisher: Settlement event sink (defaults to the configured one)
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            session_factory: Existing session factory; when given no engine is created
            min_age_seconds: Minimum age of a pending deposit before it is checked
            batch_size: Maximum deposits per sweep
        """
        self.gateway = gateway
        self.publisher = publisher or create_event_publisher(ApplicationConfig.SETTLEMENT_EVENTS_WEBHOOK)
        self.min_age_seconds = (
            min_age_seconds
            if min_age_seconds is not None
            else int(ApplicationConfig.DEPOSIT_VERIFIER_MIN_AGE_SECONDS)
        )
        self.batch_size = batch_size

        self.engine = None
        if session_factory is not None:
            self.async_session_factory = session_factory
        else:
            self.engine = create_async_engine(db_uri or ApplicationConfig.DB_URI, echo=False, future=True)
            self.async_session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )

        logger.info("DepositVerifierWorker initialized")

    async def _pending_references(self) -> List[str]:
        cutoff = datetime.utcnow() - timedelta(seconds=self.min_age_seconds)
        async with self.async_session_factory() as session:
            repo = SqlAlchemyWalletTransactionRepository(session)
            deposits = await repo.get_pending_deposits(created_before=cutoff, limit=self.batch_size)
            return [deposit.reference for deposit in deposits]

    async def _verify(self, reference: str, summary: DepositVerificationSummary):
        async with self.async_session_factory() as session:
            account_repo = SqlAlchemyAccountRepository(session)
            transaction_repo = SqlAlchemyWalletTransactionRepository(session)
            use_case = ConfirmDeposit(
                uow=SqlAlchemyUnitOfWork(session),
                account_repo=account_repo,
                transaction_repo=transaction_repo,
                ledger=LedgerStore(account_repo, transaction_repo),
                gateway=self.gateway,
                publisher=self.publisher,
            )
            result = await use_case.execute(reference)

        if result.is_ok():
            if result.value.already_processed:
                summary.already_processed += 1
            else:
                summary.credited += 1
                logger.info(f"[DEPOSIT VERIFIER] Credited {reference} (balance={result.value.balance})")
            return

        code = str(result.error.code)
        if code == ErrorCode.PAYMENT_PENDING:
            summary.still_pending += 1
        elif code in (ErrorCode.PAYMENT_NOT_SUCCESSFUL, ErrorCode.AMOUNT_MISMATCH):
            summary.failed += 1
            logger.warning(f"[DEPOSIT VERIFIER] {reference} settled as failed: {code}")
        else:
            summary.errors += 1
            logger.error(f"[DEPOSIT VERIFIER] {reference} could not be verified: {code} {result.error.message}")

    async def run_once(self) -> DepositVerificationSummary:
        """
        Verify every pending deposit older than the minimum age

        Returns:
            DepositVerificationSummary with per-outcome counts
        """
        started = datetime.utcnow()
        summary = DepositVerificationSummary()

        if not ApplicationConfig.DEPOSIT_VERIFIER_ENABLED:
            logger.info("Deposit verification is disabled, skipping")
            return summary

        references = await self._pending_references()
        summary.checked = len(references)
        summary.references = references

        for reference in references:
            try:
                await self._verify(reference, summary)
            except Exception as e:
                summary.errors += 1
                logger.error(f"[DEPOSIT VERIFIER] Unexpected error verifying {reference}: {e}")

        summary.execution_time_ms = int((datetime.utcnow() - started).total_seconds() * 1000)
        return summary

    async def run_forever(self, interval_seconds: int = 300):
        """
        Run verification continuously at specified interval

        Args:
            interval_seconds: Seconds between sweeps (default: 5 minutes)
        """
        logger.info(f"Starting continuous deposit verification with {interval_seconds}s interval")

        while True:
            try:
                summary = await self.run_once()
                logger.info(
                    f"Deposit verification cycle complete. "
                    f"Checked {summary.checked}, credited {summary.credited}, "
                    f"pending {summary.still_pending}, failed {summary.failed}, "
                    f"errors {summary.errors} in {summary.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Deposit verification cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("DepositVerifierWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.deposit_verifier --once

        # Run continuously (default: ApplicationConfig.DEPOSIT_VERIFIER_INTERVAL_SECONDS)
        python -m src.worker.deposit_verifier --interval 120
    """
    import argparse
    from src.depends import get_payment_gateway

    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Pending Deposit Verification Worker")
    parser.add_argument(
        "--once", action="store_true", help="Run once and exit"
    )
    parser.add_argument(
        "--interval", type=int, default=int(ApplicationConfig.DEPOSIT_VERIFIER_INTERVAL_SECONDS),
        help="Interval between runs in seconds"
    )
    parser.add_argument(
        "--min-age", type=int, default=None,
        help="Only verify deposits pending for at least this many seconds"
    )
    args = parser.parse_args()

    worker = DepositVerifierWorker(get_payment_gateway(), min_age_seconds=args.min_age)

    try:
        if args.once:
            summary = await worker.run_once()
            print("Deposit verification complete:")
            print(f"  Checked: {summary.checked}")
            print(f"  Credited: {summary.credited}")
            print(f"  Already processed: {summary.already_processed}")
            print(f"  Still pending: {summary.still_pending}")
            print(f"  Failed: {summary.failed}")
            print(f"  Errors: {summary.errors}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
