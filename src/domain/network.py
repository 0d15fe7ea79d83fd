"""Supported carriers"""

from enum import Enum
from typing import Optional


class Network(str, Enum):
    """Telecom networks (and non-bundle products) sold through the wallet"""
    MTN = "mtn"
    AIRTELTIGO = "at"
    TELECEL = "telecel"
    AFA_REGISTRATION = "afa-registration"

    @property
    def requires_fulfillment(self) -> bool:
        """AFA registrations complete on debit, no provider call"""
        return self is not Network.AFA_REGISTRATION

    @classmethod
    def parse(cls, value: str) -> Optional["Network"]:
        """Resolve user input (case-insensitive, common aliases) to a Network"""
        if isinstance(value, Network):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        normalized = NETWORK_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            return None


NETWORK_ALIASES: dict[str, str] = {
    "airteltigo": "at",
    "airtel-tigo": "at",
    "tigo": "at",
    "airtel": "at",
    "vodafone": "telecel",
    "afa": "afa-registration",
}
