"""Error codes returned by settlement use cases"""

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_BUNDLE = "INVALID_BUNDLE"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    ACCOUNT_EMAIL_MISSING = "ACCOUNT_EMAIL_MISSING"
    DUPLICATE_REFERENCE = "DUPLICATE_REFERENCE"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"  # idempotent no-op, never shown to users
    GATEWAY_UNAVAILABLE = "GATEWAY_UNAVAILABLE"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    AMOUNT_MISMATCH = "AMOUNT_MISMATCH"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    PAYMENT_NOT_SUCCESSFUL = "PAYMENT_NOT_SUCCESSFUL"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    INVALID_STATUS = "INVALID_STATUS"
    ORDER_STATUS_LOCKED = "ORDER_STATUS_LOCKED"
    OPERATOR_UNAUTHORIZED = "OPERATOR_UNAUTHORIZED"

    def __str__(self) -> str:
        return self.value
