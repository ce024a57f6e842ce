"""Smallest-unit integer <-> decimal display conversion. Never goes through float."""

from decimal import Decimal, localcontext


def to_decimal(amount: int, decimals: int = 18) -> Decimal:
    """Exact Decimal value of `amount` smallest units."""
    with localcontext() as ctx:
        # enough digits for the whole integer so scaling never rounds
        ctx.prec = max(len(str(abs(amount))), 1) + decimals + 1
        return Decimal(amount).scaleb(-decimals)


def format_units(amount: int, decimals: int = 18) -> str:
    """Render `amount` with exactly `decimals` fractional digits.

    >>> format_units(123456789012345678)
    '0.123456789012345678'
    """
    value = to_decimal(amount, decimals)
    return f"{value:.{decimals}f}"
