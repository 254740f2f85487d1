"""Reusable pydantic field types shared by the domain schemas"""

import math
import re
from typing import Annotated, Any, Callable

from pydantic import AfterValidator, BeforeValidator, TypeAdapter

from .validators import password_rule_violations, validate_email, validate_indian_mobile

TIME_OF_DAY_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
PERSON_NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-'.]+$")
PIN_CODE_DIGITS = re.compile(r"^\d{6}$")


def _indian_phone(value: str) -> str:
    if len(value) < 10:
        raise ValueError("Phone number must be at least 10 digits")
    if len(value) > 15:
        raise ValueError("Phone number is too long")
    return validate_indian_mobile(value)


def _email(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("Please enter a valid email address")
    return validate_email(value)


def _password(value: str) -> str:
    violations = password_rule_violations(value)
    if violations:
        raise ValueError(violations[0])
    return value


def _login_password(value: str) -> str:
    if len(value) < 6:
        raise ValueError("Password must be at least 6 characters")
    if len(value) > 128:
        raise ValueError("Password is too long")
    return value


def _person_name(value: str) -> str:
    value = value.strip()
    if len(value) < 2:
        raise ValueError("Name must be at least 2 characters")
    if len(value) > 100:
        raise ValueError("Name is too long")
    if not PERSON_NAME_PATTERN.match(value):
        raise ValueError("Name can only contain letters, spaces, hyphens, and apostrophes")
    return value


def _pin_code(value: str) -> str:
    value = value.strip()
    if len(value) != 6:
        raise ValueError("PIN code must be exactly 6 digits")
    if not PIN_CODE_DIGITS.match(value):
        raise ValueError("PIN code must contain only digits")
    if value[0] == "0":
        raise ValueError("Invalid PIN code")
    return value


def _time_of_day(value: str) -> str:
    if not TIME_OF_DAY_PATTERN.match(value):
        raise ValueError("Invalid time format")
    return value


def _rating(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("Rating must be a whole number")
    if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
        raise ValueError("Rating must be a whole number")
    value = int(value)
    if value < 1:
        raise ValueError("Rating must be at least 1")
    if value > 5:
        raise ValueError("Rating cannot exceed 5")
    return value


IndianPhone = Annotated[str, AfterValidator(_indian_phone)]
Email = Annotated[str, AfterValidator(_email)]
Password = Annotated[str, AfterValidator(_password)]
LoginPassword = Annotated[str, AfterValidator(_login_password)]
PersonName = Annotated[str, AfterValidator(_person_name)]
PinCode = Annotated[str, AfterValidator(_pin_code)]
TimeOfDay = Annotated[str, AfterValidator(_time_of_day)]
Rating = Annotated[int, BeforeValidator(_rating)]


def required_text(message: str, max_length: int = 0, too_long_message: str = ""):
    """Non-empty string field; `message` is reported when it is blank."""

    def check(value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError(message)
        if max_length and len(value) > max_length:
            raise ValueError(too_long_message or f"Must not exceed {max_length} characters")
        return value

    return Annotated[str, AfterValidator(check)]


def positive_amount(message: str = "Amount must be positive"):
    def check(value: float) -> float:
        if not math.isfinite(value) or value <= 0:
            raise ValueError(message)
        return value

    return Annotated[float, AfterValidator(check)]


def bounded_text(
    max_length: int,
    too_long_message: str,
    sanitizer: Callable[[Any], str],
    min_length: int = 0,
    too_short_message: str = "",
):
    """
    Free-text field: the raw length is bounded, then the value is sanitized.
    The minimum applies to what is left after sanitization.
    """

    def check(value: str) -> str:
        if len(value) > max_length:
            raise ValueError(too_long_message)
        cleaned = sanitizer(value)
        if min_length and len(cleaned) < min_length:
            raise ValueError(too_short_message)
        return cleaned

    return Annotated[str, AfterValidator(check)]


NonEmptyId = required_text("ID is required")

# Bare-value schemas for single form fields
name_schema = TypeAdapter(PersonName)
phone_schema = TypeAdapter(IndianPhone)
email_schema = TypeAdapter(Email)
password_schema = TypeAdapter(Password)
pin_code_schema = TypeAdapter(PinCode)
