"""Integer arithmetic utilities for order amounts.

All prices, line totals and payments are int paise (1/100 rupee). Major-unit
values only appear at the conversational boundary and are converted once.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


def to_paise(rupees: int | float | str | Decimal) -> int:
    """Convert a major-unit amount to paise, rounding half up: 12.345 -> 1235."""
    try:
        value = Decimal(str(rupees))
    except InvalidOperation:
        raise ValueError(f"Not a monetary amount: {rupees!r}") from None
    if not value.is_finite():
        raise ValueError(f"Not a monetary amount: {rupees!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def paise_to_display(paise: int) -> str:
    """Convert paise to display string: 125000 -> '₹1,250.00', -1200 -> '-₹12.00'."""
    if paise < 0:
        abs_paise = -paise
        return f"-₹{abs_paise // 100:,}.{abs_paise % 100:02d}"
    return f"₹{paise // 100:,}.{paise % 100:02d}"


def line_total(quantity: int, unit_price: int) -> int:
    """Line total in paise; both operands are already validated non-negative ints."""
    return quantity * unit_price
