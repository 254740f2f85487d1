"""Indian Rupee formatting with lakh / crore digit grouping"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from .validators import ValidationResult, build_result

Number = Union[int, float, Decimal]

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

INDIAN_CURRENCY_PATTERN = re.compile(r"^₹?[\d,]+(\.\d{1,2})?$")

# Largest amount a single booking or refund may carry (1 crore)
MAX_AMOUNT = Decimal("10000000")


def _group_indian(digits: str) -> str:
    """12345678 -> 1,23,45,678"""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def _to_decimal(amount: Number) -> Decimal:
    if isinstance(amount, float) and not math.isfinite(amount):
        raise InvalidOperation(amount)
    value = Decimal(str(amount))
    if not value.is_finite():
        raise InvalidOperation(amount)
    return value


def format_indian_number(amount: Number, min_fraction_digits: int = 0, max_fraction_digits: int = 2) -> str:
    """
    Format a number using the Indian numbering system.

    Args:
        amount: Number to format; NaN and infinities render as "0"
        min_fraction_digits: Decimal places always shown
        max_fraction_digits: Decimal places the amount is rounded to
    """
    try:
        value = _to_decimal(amount)
    except (InvalidOperation, ValueError):
        return "0"

    quantum = Decimal(1).scaleb(-max_fraction_digits)
    value = value.quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""

    integer_part, _, fraction = f"{abs(value):f}".partition(".")
    fraction = fraction.rstrip("0")
    if len(fraction) < min_fraction_digits:
        fraction = fraction.ljust(min_fraction_digits, "0")

    grouped = _group_indian(integer_part)
    if not fraction:
        return f"{sign}{grouped}"
    return f"{sign}{grouped}.{fraction}"


def currency_symbol(currency_code: str = "INR") -> str:
    return CURRENCY_SYMBOLS.get((currency_code or "INR").upper(), "₹")


def format_inr(amount: Number, min_fraction_digits: int = 0, max_fraction_digits: int = 2) -> str:
    """₹ amount with Indian grouping, e.g. ₹1,00,000 or -₹1,234.5"""
    formatted = format_indian_number(amount, min_fraction_digits, max_fraction_digits)
    if formatted.startswith("-"):
        return f"-₹{formatted[1:]}"
    return f"₹{formatted}"


def parse_indian_currency(value: str) -> float:
    """Number from a currency string; 0 when it cannot be parsed"""
    if not value:
        return 0.0
    cleaned = re.sub(r"[₹$,\s]", "", str(value))
    try:
        parsed = float(cleaned)
    except ValueError:
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def is_valid_indian_currency(value: str) -> bool:
    if not isinstance(value, str):
        return False
    return bool(INDIAN_CURRENCY_PATTERN.match(value.strip()))


def validate_amount(amount: object, max_amount: Decimal = MAX_AMOUNT) -> ValidationResult:
    """Positive, finite rupee amount with at most two decimal places"""
    if amount is None or amount == "":
        return build_result(["Amount is required"])

    if isinstance(amount, str):
        if not is_valid_indian_currency(amount):
            return build_result(["Please enter a valid amount"])
        amount = parse_indian_currency(amount)

    if isinstance(amount, bool):
        return build_result(["Please enter a valid amount"])

    try:
        value = _to_decimal(amount)
    except (InvalidOperation, ValueError, TypeError):
        return build_result(["Please enter a valid amount"])

    errors = []
    if value <= 0:
        errors.append("Amount must be positive")
    if value > max_amount:
        errors.append(f"Amount must not exceed {format_inr(max_amount)}")
    if value.as_tuple().exponent < -2:
        errors.append("Amount can have at most two decimal places")

    if errors:
        return build_result(errors)
    return build_result([], normalized=f"{value:f}", formatted=format_inr(value))
