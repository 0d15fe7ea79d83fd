from .account_repository import AccountRepository
from .wallet_transaction_repository import WalletTransactionRepository
from .data_order_repository import DataOrderRepository

__all__ = [
    "AccountRepository",
    "WalletTransactionRepository",
    "DataOrderRepository",
]
