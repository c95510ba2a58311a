"""
VAT and delivery-fee arithmetic.

Both splits round one side half-up to the currency's minor unit and derive
the other side as the remainder, so the parts always add back to the whole
with no one-cent reconciliation gap.

Usage:
    from decimal import Decimal
    from cashbook_engines.vat import compute_vat_breakdown, compute_delivery_fee

    compute_vat_breakdown(Decimal("1200"), Decimal("20"))
    # VatBreakdown(net_amount=Decimal('1000.00'), vat_amount=Decimal('200.00'))

    compute_delivery_fee(Decimal("1000"), Decimal("20"))
    # DeliveryFee(fee_amount=Decimal('200.00'), net_amount=Decimal('800.00'))
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from cashbook_kernel.domain.values import (
    HUNDRED,
    MONEY_DECIMAL_PLACES,
    ZERO,
    percent_of,
    round_money,
)
from cashbook_kernel.logging_config import get_logger

logger = get_logger("engines.vat")


@dataclass(frozen=True)
class VatBreakdown:
    """Gross amount split into net and VAT. ``net_amount + vat_amount == gross``."""

    net_amount: Decimal
    vat_amount: Decimal

    @property
    def gross_amount(self) -> Decimal:
        return self.net_amount + self.vat_amount


@dataclass(frozen=True)
class DeliveryFee:
    """Gross revenue split into platform fee and net. ``fee_amount + net_amount == amount``."""

    fee_amount: Decimal
    net_amount: Decimal

    @property
    def amount(self) -> Decimal:
        return self.fee_amount + self.net_amount


def _check_non_negative(name: str, value: Decimal) -> None:
    if value < ZERO:
        logger.error("negative_input_rejected", extra={"field": name, "value": str(value)})
        raise ValueError(f"{name} cannot be negative: {value}")


def compute_vat_breakdown(
    gross_amount: Decimal,
    vat_percent: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> VatBreakdown:
    """
    Split a VAT-inclusive gross amount into net and VAT.

    Args:
        gross_amount: Amount including VAT, >= 0.
        vat_percent: VAT rate as a percentage (20 for 20%), >= 0.
        decimal_places: Minor-unit precision for rounding the net amount.

    Returns:
        VatBreakdown where ``vat_amount`` is the remainder ``gross - net``.

    Raises:
        ValueError: if either input is negative.
    """
    _check_non_negative("gross_amount", gross_amount)
    _check_non_negative("vat_percent", vat_percent)

    if vat_percent == ZERO:
        return VatBreakdown(net_amount=gross_amount, vat_amount=ZERO)

    divisor = Decimal(1) + vat_percent / HUNDRED
    net_amount = round_money(gross_amount / divisor, decimal_places)
    return VatBreakdown(net_amount=net_amount, vat_amount=gross_amount - net_amount)


def compute_delivery_fee(
    amount: Decimal,
    fee_percent: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> DeliveryFee:
    """
    Split delivery revenue into the platform fee and the net amount kept.

    Raises:
        ValueError: if either input is negative.
    """
    _check_non_negative("amount", amount)
    _check_non_negative("fee_percent", fee_percent)

    fee_amount = round_money(percent_of(amount, fee_percent), decimal_places)
    return DeliveryFee(fee_amount=fee_amount, net_amount=amount - fee_amount)
