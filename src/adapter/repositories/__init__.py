from .account_repository import SqlAlchemyAccountRepository
from .wallet_transaction_repository import SqlAlchemyWalletTransactionRepository
from .data_order_repository import SqlAlchemyDataOrderRepository

__all__ = [
    "SqlAlchemyAccountRepository",
    "SqlAlchemyWalletTransactionRepository",
    "SqlAlchemyDataOrderRepository",
]
