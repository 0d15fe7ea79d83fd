"""Bundle Price Catalog

Server-owned price list and the validator every order path runs before any
wallet mutation. Client-supplied prices are only accepted when they match.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union
from src.domain.network import Network

PRICE_TOLERANCE = Decimal("0.01")

# AFA registration is a fixed-price product outside the bundle tables
AFA_REGISTRATION_PRICE = Decimal("0.50")

# Canonical prices per network: data amount in MB -> price in GHS
BUNDLE_CATALOG: dict[Network, dict[int, Decimal]] = {
    Network.MTN: {
        1000: Decimal("6.00"),
        2000: Decimal("11.00"),
        3000: Decimal("16.00"),
        4000: Decimal("21.00"),
        5000: Decimal("26.00"),
        6000: Decimal("30.00"),
        8000: Decimal("40.00"),
        10000: Decimal("49.00"),
        12000: Decimal("55.50"),
        15000: Decimal("69.00"),
        20000: Decimal("89.00"),
        25000: Decimal("112.00"),
        30000: Decimal("130.00"),
        40000: Decimal("173.00"),
        50000: Decimal("210.00"),
    },
    Network.TELECEL: {
        1000: Decimal("6.00"),
        2000: Decimal("11.00"),
        3000: Decimal("16.00"),
        4000: Decimal("21.00"),
        5000: Decimal("26.00"),
        6000: Decimal("30.00"),
        8000: Decimal("40.00"),
        10000: Decimal("49.00"),
        12000: Decimal("55.50"),
        15000: Decimal("69.00"),
        20000: Decimal("89.00"),
        25000: Decimal("112.00"),
        30000: Decimal("130.00"),
        40000: Decimal("173.00"),
        50000: Decimal("210.00"),
    },
    Network.AIRTELTIGO: {
        2048: Decimal("16.00"),
        3072: Decimal("22.00"),
        5120: Decimal("35.00"),
        10240: Decimal("60.00"),
        15360: Decimal("85.00"),
        20480: Decimal("100.00"),
        25600: Decimal("125.00"),
        40960: Decimal("180.00"),
        51200: Decimal("220.00"),
        102400: Decimal("420.00"),
    },
}


@dataclass(frozen=True)
class BundleValidation:
    """Outcome of a catalog lookup; canonical and claimed prices kept for audit"""
    valid: bool
    network: Optional[Network] = None
    canonical_price: Optional[Decimal] = None
    claimed_price: Optional[Decimal] = None
    reason: Optional[str] = None


def _to_decimal(value: Union[Decimal, int, float, str, None]) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except ArithmeticError:
        return None
    if not amount.is_finite():
        return None
    return amount


def validate_bundle(
    network: Union[Network, str],
    data_amount_mb: int,
    claimed_price: Union[Decimal, int, float, str],
    catalog: Optional[dict[Network, dict[int, Decimal]]] = None,
) -> BundleValidation:
    """
    Check a claimed (network, data amount, price) triple against the catalog

    Pure function, no side effects.

    Args:
        network: Network enum or raw network name (aliases accepted)
        data_amount_mb: Bundle volume in MB
        claimed_price: Price the client says it is paying
        catalog: Optional catalog override. Defaults to BUNDLE_CATALOG.

    Returns:
        BundleValidation with canonical_price when valid, reason otherwise
    """
    catalog = catalog if catalog is not None else BUNDLE_CATALOG
    claimed = _to_decimal(claimed_price)

    resolved = Network.parse(network)
    if resolved is None:
        return BundleValidation(valid=False, claimed_price=claimed, reason="unknown network")

    if claimed is None:
        return BundleValidation(valid=False, network=resolved, reason="invalid price")

    if resolved is Network.AFA_REGISTRATION:
        if claimed != AFA_REGISTRATION_PRICE:
            return BundleValidation(
                valid=False,
                network=resolved,
                canonical_price=AFA_REGISTRATION_PRICE,
                claimed_price=claimed,
                reason="price mismatch",
            )
        return BundleValidation(
            valid=True,
            network=resolved,
            canonical_price=AFA_REGISTRATION_PRICE,
            claimed_price=claimed,
        )

    bundles = catalog.get(resolved)
    if bundles is None:
        return BundleValidation(valid=False, network=resolved, claimed_price=claimed, reason="unknown network")

    canonical = bundles.get(data_amount_mb) if isinstance(data_amount_mb, int) else None
    if canonical is None:
        return BundleValidation(
            valid=False, network=resolved, claimed_price=claimed, reason="invalid data amount"
        )

    if abs(claimed - canonical) > PRICE_TOLERANCE:
        return BundleValidation(
            valid=False,
            network=resolved,
            canonical_price=canonical,
            claimed_price=claimed,
            reason="price mismatch",
        )

    return BundleValidation(
        valid=True, network=resolved, canonical_price=canonical, claimed_price=claimed
    )
