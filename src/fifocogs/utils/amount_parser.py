"""Amount parsing and rounding utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
import re


def parse_amount(amount_str: str, allow_negative: bool = True) -> Decimal:
    """Parse an amount or quantity string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string
        allow_negative: If False, negative values are rejected

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and thousands separators
    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")

    if is_negative:
        amount = -amount
    if amount < 0 and not allow_negative:
        raise ValueError(f"Amount must not be negative: {amount}")
    return amount


def round_amount(value: Decimal, fraction_digits: int) -> Decimal:
    """Round to a book's decimal precision."""
    return value.quantize(Decimal(1).scaleb(-fraction_digits), rounding=ROUND_HALF_EVEN)


def is_zero(value: Decimal, fraction_digits: int) -> bool:
    """True when ``value`` rounds to zero at a book's decimal precision."""
    return round_amount(value, fraction_digits) == 0
