"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation


def parse_amount(amount_str: str | int | float | Decimal) -> Decimal:
    """Parse a money amount into a Decimal.

    Handles various formats:
    - "12.99"
    - "$12.99", "€12.99", "12.99 EUR"
    - "1,299.00"
    - numbers as read from JSON (converted through ``str`` to avoid
      binary float noise)

    Args:
        amount_str: Amount string or number

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount cannot be parsed
    """
    if isinstance(amount_str, bool):
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if isinstance(amount_str, (int, float, Decimal)):
        amount = amount_str if isinstance(amount_str, Decimal) else Decimal(str(amount_str))
        if not amount.is_finite():
            raise ValueError(f"Could not parse amount '{amount_str}'")
        return amount

    if amount_str is None or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = amount_str.strip()
    # Trailing ISO code, e.g. "12.99 EUR"
    cleaned = re.sub(r"\s*[A-Za-z]{3}$", "", cleaned)
    cleaned = re.sub(r"[$€£¥₹₩]", "", cleaned)
    cleaned = cleaned.replace(",", "").strip()

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return amount


def try_parse_amount(value) -> Decimal | None:
    """Parse an amount, returning None instead of raising.

    Used where a bad amount should surface as a validation message rather
    than an exception.
    """
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError:
        return None
