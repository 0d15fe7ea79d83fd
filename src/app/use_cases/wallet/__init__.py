"""Wallet funding use cases"""
from .initiate_deposit import InitiateDeposit, validate_deposit_amount
from .confirm_deposit import ConfirmDeposit
from .record_failed_deposit import RecordFailedDeposit
from .handle_payment_webhook import HandlePaymentWebhook
from .get_balance import GetBalance
from .list_transactions import ListTransactions
from .credit_wallet import CreditWallet
from .dtos import (
    InitiateDepositCommandDTO,
    DepositInitResponseDTO,
    ConfirmDepositResponseDTO,
    PaymentWebhookAckDTO,
    BalanceResponseDTO,
    TransactionDTO,
    ListTransactionsResponseDTO,
    ManualCreditCommandDTO,
    ManualCreditResponseDTO,
)

__all__ = [
    "InitiateDeposit",
    "validate_deposit_amount",
    "ConfirmDeposit",
    "RecordFailedDeposit",
    "HandlePaymentWebhook",
    "GetBalance",
    "ListTransactions",
    "CreditWallet",
    "InitiateDepositCommandDTO",
    "DepositInitResponseDTO",
    "ConfirmDepositResponseDTO",
    "PaymentWebhookAckDTO",
    "BalanceResponseDTO",
    "TransactionDTO",
    "ListTransactionsResponseDTO",
    "ManualCreditCommandDTO",
    "ManualCreditResponseDTO",
]
