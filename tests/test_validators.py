"""Tests for phone, email and password validation."""
import pytest

from carebook.shared.validators import (
    check_password_strength,
    format_indian_phone,
    is_valid_for_sms,
    normalize_indian_phone,
    password_rule_violations,
    validate_email,
    validate_indian_mobile,
    validate_indian_phone,
)


@pytest.mark.unit
class TestIndianPhone:
    """Test phone number classification and normalization."""

    @pytest.mark.parametrize(
        "raw",
        ["9876543210", "+919876543210", "+91 98765 43210", "98765-43210", "(987) 654-3210"],
    )
    def test_mobile_formats_normalize_to_e164(self, raw):
        """Test every accepted mobile format normalizes to +91XXXXXXXXXX."""
        result = validate_indian_phone(raw)

        assert result.valid is True
        assert result.kind == "mobile"
        assert result.normalized == "+919876543210"
        assert result.formatted == "+91 98765 43210"

    def test_landline_is_valid_but_not_mobile(self):
        """Test STD landlines are accepted and classified as landline."""
        result = validate_indian_phone("022-23456789")

        assert result.valid is True
        assert result.kind == "landline"
        assert result.normalized == "02223456789"

    def test_missing_phone(self):
        """Test empty and non-string values report the required message."""
        for value in (None, "", 9876543210):
            result = validate_indian_phone(value)
            assert result.valid is False
            assert result.error == "Phone number is required"
            assert result.kind == "invalid"

    def test_invalid_phone(self):
        """Test a too-short number is invalid."""
        result = validate_indian_phone("12345")

        assert result.valid is False
        assert result.errors == ("Please enter a valid mobile number",)

    def test_result_is_frozen(self):
        """Test results cannot be mutated after they are returned."""
        result = validate_indian_phone("9876543210")

        with pytest.raises(Exception):
            result.valid = False

    def test_normalize_and_format_helpers(self):
        """Test helpers return empty strings for invalid input."""
        assert normalize_indian_phone("98765 43210") == "+919876543210"
        assert format_indian_phone("9876543210") == "+91 98765 43210"
        assert normalize_indian_phone("abc") == ""
        assert format_indian_phone(None) == ""

    @pytest.mark.parametrize("formatted", ["+91 98765 43210", "+91 60000 00000", "+91 91234 56789"])
    def test_formatted_mobile_round_trip(self, formatted):
        """Test formatting a normalized mobile gives back the display form."""
        assert format_indian_phone(normalize_indian_phone(formatted)) == formatted

    def test_only_mobiles_receive_sms(self):
        """Test SMS eligibility excludes landlines."""
        assert is_valid_for_sms("9876543210") is True
        assert is_valid_for_sms("022-23456789") is False
        assert is_valid_for_sms(None) is False

    def test_validate_indian_mobile_raises_for_landline(self):
        """Test the schema helper rejects landlines."""
        assert validate_indian_mobile("9876543210") == "+919876543210"
        with pytest.raises(ValueError, match="valid mobile number"):
            validate_indian_mobile("022-23456789")


@pytest.mark.unit
class TestEmailAndPassword:
    """Test e-mail and password rules."""

    def test_email_is_trimmed_and_lowercased(self):
        """Test e-mail normalization."""
        assert validate_email("  Patient@Example.COM ") == "patient@example.com"

    def test_invalid_email(self):
        """Test malformed addresses raise."""
        with pytest.raises(ValueError, match="valid email"):
            validate_email("not-an-email")

    def test_password_violations_are_ordered(self):
        """Test every violated rule is reported in order."""
        assert password_rule_violations("abc") == [
            "Password must be at least 8 characters",
            "Password must contain at least one uppercase letter",
            "Password must contain at least one number",
        ]
        assert password_rule_violations("Str0ngPass") == []

    def test_password_strength(self):
        """Test strength scoring of weak and strong passwords."""
        weak = check_password_strength("password")
        strong = check_password_strength("Str0ng!Password")

        assert weak["strength"] == "weak"
        assert weak["is_valid"] is False
        assert strong["strength"] == "strong"
        assert strong["is_valid"] is True
