import hashlib
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")
MINOR_UNITS = 100


@dataclass(frozen=True)
class FeeQuote:
    price: Decimal
    fee: Decimal
    total: Decimal

    @property
    def total_minor_units(self) -> int:
        return to_minor_units(self.total)


def to_minor_units(amount: Decimal) -> int:
    """Major currency units to kobo, rounding half up."""
    return int((Decimal(amount) * MINOR_UNITS).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / MINOR_UNITS).quantize(CENTS)


def quote_fees(price, fee_rate: Decimal) -> FeeQuote:
    """fee = price * fee_rate, total = price + fee"""
    price = Decimal(str(price))
    fee = (price * fee_rate).quantize(CENTS, rounding=ROUND_HALF_UP)
    return FeeQuote(price=price, fee=fee, total=price + fee)


def transfer_amount(verified_amount: int, deduction_rate: Decimal) -> int:
    """Amount (kobo) forwarded to the settlement account after the deduction."""
    deduction = (Decimal(verified_amount) * deduction_rate).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(Decimal(verified_amount) - deduction)


def payment_reference(project_id: str, timestamp_ms: int = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"RESEARCHX-{project_id}-{timestamp_ms}"


def transfer_idempotency_key(project_id: str, provider_reference: str) -> str:
    """
    Deterministic transfer reference for one verified payment.

    Lowercase alphanumerics and underscores only, which the payment
    provider accepts as a transfer reference.
    """
    digest = hashlib.sha256(f"{project_id}:{provider_reference}".encode()).hexdigest()
    return f"trf_{digest[:32]}"
