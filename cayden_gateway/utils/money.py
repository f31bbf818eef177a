"""Fixed-point money helpers. All ledger arithmetic is done in integer cents."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")

Number = Union[Decimal, int, str]


def to_cents(amount: Number) -> int:
    """Dollars to integer cents, rounding half-up at the cent"""
    return int((Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def to_dollars(cents: int) -> float:
    """Integer cents to a two-decimal number for JSON responses"""
    return float(Decimal(cents) / 100)


def format_usd(cents: int) -> str:
    """12345 -> '$123.45'"""
    return f"${Decimal(cents) / 100:,.2f}"


def divide_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded half-up (non-negative operands)"""
    return (2 * numerator + denominator) // (2 * denominator)


def percent_of(cents: int, rate_percent: int) -> int:
    """rate_percent% of an amount, rounded half-up at the cent"""
    return divide_half_up(cents * rate_percent, 100)


def progress_percent(current_cents: int, target_cents: int) -> float:
    """current / target * 100 rounded half-up to one decimal; not clamped"""
    if target_cents <= 0:
        return 0.0
    ratio = Decimal(current_cents) * 100 / Decimal(target_cents)
    return float(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def round_up_cents(amount_cents: int) -> int:
    """Cents needed to reach the next whole dollar: 1250 -> 50, 1200 -> 0"""
    return (100 - amount_cents % 100) % 100
