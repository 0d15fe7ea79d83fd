"""Background workers for wallet settlement"""
from .deposit_verifier import DepositVerifierWorker, DepositVerificationSummary

__all__ = ["DepositVerifierWorker", "DepositVerificationSummary"]
