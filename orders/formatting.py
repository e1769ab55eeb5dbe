"""Currency and number formatting helpers used by pages and templates."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CURRENCY_SYMBOL = "€"
CENTS = Decimal("0.01")
_EURO_NOISE = re.compile(r"[€,\s]")


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return Decimal("0")
    return number if number.is_finite() else Decimal("0")


def format_euro(amount: Any, show_symbol: bool = True) -> str:
    """
    Format an amount the way en-IE renders EUR: ``€1,234.50`` / ``-€3.00``.
    """

    value = to_decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.2f}"
    if not show_symbol:
        return f"{sign}{digits}"
    return f"{sign}{CURRENCY_SYMBOL}{digits}"


def format_euro_amount(amount: Any) -> str:
    return format_euro(amount, show_symbol=False)


def parse_euro(text: str) -> Decimal:
    """Parse ``"€1,234.45"`` or ``"1234.45"`` back into a Decimal (0 when unparsable)."""
    cleaned = _EURO_NOISE.sub("", text or "")
    if not cleaned:
        return Decimal("0")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")


def calculate_percentage(amount: Any, total: Any) -> float:
    total_value = to_decimal(total)
    if total_value == 0:
        return 0.0
    return float(to_decimal(amount) / total_value * 100)


def format_order_number(number: int, prefix: str = "PO", padding: int = 6) -> str:
    return f"{prefix}{str(number).zfill(padding)}"


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length].strip() + "..."
