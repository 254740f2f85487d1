"""Shared validation utilities"""

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

COUNTRY_CODE = "+91"

PHONE_REQUIRED_MESSAGE = "Phone number is required"
PHONE_INVALID_MESSAGE = "Please enter a valid mobile number"

# Indian mobile numbers start with 6, 7, 8 or 9
MOBILE_PATTERN = re.compile(r"^[6-9][0-9]{9}$")
MOBILE_WITH_COUNTRY_CODE_PATTERN = re.compile(r"^\+91[6-9][0-9]{9}$")
# STD code + subscriber number, optional trunk prefix
LANDLINE_PATTERN = re.compile(r"^0?[1-9][0-9]{9,11}$")

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
EMAIL_MAX_LENGTH = 254

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


class ValidationResult(BaseModel):
    """Outcome of a single validation call. Never mutated after it is returned."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    normalized: Optional[str] = None
    formatted: Optional[str] = None
    kind: Optional[str] = None
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    @property
    def error(self) -> Optional[str]:
        """First error message, for single-field form display"""
        return self.errors[0] if self.errors else None


def build_result(
    errors: list[str],
    warnings: Optional[list[str]] = None,
    suggestions: Optional[list[str]] = None,
    **extra: Any,
) -> ValidationResult:
    """Freeze collected messages into a result; valid iff there are no errors."""
    return ValidationResult(
        valid=not errors,
        errors=tuple(errors),
        warnings=tuple(warnings or ()),
        suggestions=tuple(suggestions or ()),
        **extra,
    )


# ============================================================================
# PHONE NUMBERS
# ============================================================================


def _clean_phone(phone: str) -> str:
    return re.sub(r"[^0-9+]", "", phone.strip())


def _format_mobile(normalized: str) -> str:
    number = normalized[len(COUNTRY_CODE) :]
    return f"{COUNTRY_CODE} {number[:5]} {number[5:]}"


def validate_indian_phone(phone: Any) -> ValidationResult:
    """
    Validate and classify an Indian phone number.

    Accepts 10-digit mobiles (starting 6-9), the same with a +91 prefix
    (spaces, dashes and brackets are ignored) and STD landlines.

    Returns:
        ValidationResult with kind mobile/landline/invalid. Mobiles are
        normalized to +91XXXXXXXXXX and formatted as +91 XXXXX XXXXX.
    """
    if not phone or not isinstance(phone, str):
        return build_result([PHONE_REQUIRED_MESSAGE], kind="invalid")

    cleaned = _clean_phone(phone)

    ten_digit = cleaned[len(COUNTRY_CODE) :] if cleaned.startswith(COUNTRY_CODE) else cleaned

    if MOBILE_PATTERN.match(ten_digit) or MOBILE_WITH_COUNTRY_CODE_PATTERN.match(cleaned):
        normalized = f"{COUNTRY_CODE}{ten_digit}"
        return build_result(
            [], normalized=normalized, formatted=_format_mobile(normalized), kind="mobile"
        )

    if LANDLINE_PATTERN.match(cleaned):
        return build_result([], normalized=cleaned, formatted=cleaned, kind="landline")

    return build_result([PHONE_INVALID_MESSAGE], kind="invalid")


def normalize_indian_phone(phone: Any) -> str:
    """Normalized number for storage, or "" when invalid"""
    result = validate_indian_phone(phone)
    return result.normalized if result.valid else ""


def format_indian_phone(phone: Any) -> str:
    """Human-readable number for display, or "" when invalid"""
    result = validate_indian_phone(phone)
    return result.formatted if result.valid else ""


def is_valid_for_sms(phone: Any) -> bool:
    """Only mobile numbers can receive OTPs and SMS notifications"""
    result = validate_indian_phone(phone)
    return result.valid and result.kind == "mobile"


def validate_indian_mobile(phone: Optional[str]) -> Optional[str]:
    """
    Validate an Indian mobile number for use inside pydantic validators.

    Returns:
        Normalized number in E.164 format (+91XXXXXXXXXX)

    Raises:
        ValueError: If the number is not a valid mobile number
    """
    if not phone:
        return phone

    result = validate_indian_phone(phone)
    if not result.valid or result.kind != "mobile":
        raise ValueError(PHONE_INVALID_MESSAGE)
    return result.normalized


# ============================================================================
# EMAIL
# ============================================================================


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase, trimmed email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if len(email) > EMAIL_MAX_LENGTH:
        raise ValueError("Email address is too long")

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Please enter a valid email address")

    return email


# ============================================================================
# PASSWORDS
# ============================================================================


def password_rule_violations(password: str) -> list[str]:
    """All password policy violations, in the order they are reported"""
    violations = []
    if len(password) < PASSWORD_MIN_LENGTH:
        violations.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        violations.append("Password is too long")
    if not re.search(r"[A-Z]", password):
        violations.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        violations.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        violations.append("Password must contain at least one number")
    return violations


def check_password_strength(password: str) -> dict[str, Any]:
    """
    Check password strength and return detailed feedback

    Returns:
        dict with 'score' (0-4), 'strength' (weak/fair/good/strong),
        'feedback' (list of suggestions), and 'is_valid' (bool)
    """
    score = 0
    feedback = []

    if len(password) < PASSWORD_MIN_LENGTH:
        feedback.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    elif len(password) >= 12:
        score += 2
    else:
        score += 1

    if re.search(r"[a-z]", password):
        score += 1
    else:
        feedback.append("Add lowercase letters")

    if re.search(r"[A-Z]", password):
        score += 1
    else:
        feedback.append("Add uppercase letters")

    if re.search(r"[0-9]", password):
        score += 1
    else:
        feedback.append("Add numbers")

    if re.search(r'[!@#$%^&*(),.?":{}|<>]', password):
        score += 1
    else:
        feedback.append("Add special characters")

    common_passwords = ["password", "123456", "qwerty", "admin", "letmein", "password123"]
    if password.lower() in common_passwords:
        score = 0
        feedback.append("This is a commonly used password - choose something unique")

    if score <= 1:
        strength = "weak"
    elif score == 2:
        strength = "fair"
    elif score == 3:
        strength = "good"
    else:
        strength = "strong"

    return {
        "score": min(score, 4),
        "strength": strength,
        "feedback": feedback,
        "is_valid": not password_rule_violations(password) and score >= 3,
    }
