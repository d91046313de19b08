"""Display helpers for order summaries."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal

from eth_utils import is_address, to_checksum_address

from models.token import TokenAmount

# Decimal places shown for token amounts
AMOUNT_PRECISION = 4


def format_smart(amount: TokenAmount | Decimal | None, precision: int = AMOUNT_PRECISION) -> str:
    """Human amount: rounded down to ``precision`` places, no trailing zeros.

    Non-zero amounts too small to show become ``"< 0.0001"``.
    """
    if amount is None:
        return ""
    value = amount.to_decimal() if isinstance(amount, TokenAmount) else Decimal(amount)
    if value == 0:
        return "0"

    step = Decimal(1).scaleb(-precision)
    if 0 < value < step:
        return f"< {step:f}"

    rounded = value.quantize(step, rounding=ROUND_DOWN).normalize()
    return f"{rounded:,f}"


def shorten_address(address: str, chars: int = 4) -> str:
    """``0xAbCd...1234`` form of an address.

    Raises ``ValueError`` for anything that is not an address.
    """
    if not is_address(address):
        raise ValueError(f"Invalid 'address' parameter '{address}'.")
    checksummed = to_checksum_address(address)
    return f"{checksummed[:chars + 2]}...{checksummed[42 - chars:]}"


def same_address(a: str, b: str) -> bool:
    if is_address(a) and is_address(b):
        return a.lower() == b.lower()
    return a == b
