"""Tests for Indian name validation and formatting."""
import pytest

from carebook.shared.names import (
    NameRecord,
    display_name,
    format_name,
    parse_name,
    salutation,
    suggest_first_names,
    suggest_surnames,
    validate_name,
    validate_name_part,
)


@pytest.fixture
def full_name():
    return {
        "title": "Dr.",
        "first_name": "Priya",
        "middle_name": "Lakshmi",
        "last_name": "Sharma",
        "preferred_name": "Pri",
    }


@pytest.mark.unit
class TestValidateName:
    """Test structured name validation."""

    def test_common_name_is_clean(self, full_name):
        """Test a common name validates without warnings."""
        result = validate_name(full_name)

        assert result.valid is True
        assert result.warnings == ()
        assert result.formatted == "Dr. Priya Lakshmi Sharma"

    def test_uncommon_name_only_warns(self):
        """Test names outside the curated lists are still valid."""
        result = validate_name({"first_name": "Zubin", "last_name": "Mehta"})

        assert result.valid is True
        assert "First name may not be a common Indian name" in result.warnings
        assert "Last name may not be a common Indian surname" in result.warnings

    def test_required_parts(self):
        """Test first and last name are required."""
        result = validate_name({"first_name": " ", "last_name": None})

        assert result.valid is False
        assert result.errors == ("First name is required", "Last name is required")
        assert result.formatted is None

    def test_length_and_characters_both_reported(self):
        """Test a part breaking two rules reports both."""
        errors = validate_name_part("R", "first_name", required=True)
        assert errors == ["First name must be at least 2 characters"]

        errors = validate_name_part("R" * 51 + "1", "first_name", required=True)
        assert errors == [
            "First name must not exceed 50 characters",
            "First name can only contain letters, spaces, hyphens, and apostrophes",
        ]

    def test_apostrophes_and_hyphens_allowed(self):
        """Test punctuation used in real names."""
        assert validate_name_part("D'Souza", "last_name") == []
        assert validate_name_part("Anne-Marie", "first_name") == []

    def test_unknown_title_warns_with_suggestion(self):
        """Test an unrecognized title is a warning."""
        result = validate_name({"title": "Sir", "first_name": "Rahul", "last_name": "Gupta"})

        assert result.valid is True
        assert result.warnings == ("Title 'Sir' may not be a common Indian title",)
        assert result.suggestions[0].startswith("Consider using: Mr., Mrs.")

    def test_record_model_is_accepted(self):
        """Test NameRecord input."""
        assert validate_name(NameRecord(first_name="Amit", last_name="Patel")).valid is True


@pytest.mark.unit
class TestFormatting:
    """Test name formatting helpers."""

    def test_styles(self, full_name):
        assert format_name(full_name) == "Dr. Priya Lakshmi Sharma"
        assert format_name(full_name, "short") == "Dr. Priya L. Sharma"
        assert format_name(full_name, "formal") == "Dr. Priya Lakshmi Sharma (Pri)"

    def test_display_name_prefers_preferred_name(self, full_name):
        assert display_name(full_name) == "Pri"
        assert display_name({"first_name": "Kavya", "last_name": "Nair"}) == "Kavya"

    def test_salutation(self, full_name):
        assert salutation(full_name) == "Dr. Sharma"
        assert salutation({"first_name": "Kavya", "last_name": "Nair"}) == "Kavya Nair"

    def test_parse_name(self):
        assert parse_name("Smt. Sunita Devi Verma") == {
            "title": "Smt.",
            "first_name": "Sunita",
            "last_name": "Verma",
            "middle_name": "Devi",
        }
        assert parse_name("Arjun") == {"first_name": "Arjun", "last_name": ""}
        assert parse_name("") == {}


@pytest.mark.unit
class TestSuggestions:
    """Test name autocomplete."""

    def test_first_name_suggestions(self):
        assert suggest_first_names("aa", gender="female") == ["Aadhya", "Aaradhya", "Aarohi", "Aanya"]
        assert suggest_first_names("") == []

    def test_surname_suggestions(self):
        assert suggest_surnames("ch", region="east") == ["Chatterjee", "Chakraborty"]
        assert suggest_surnames("Sha", limit=1) == ["Sharma"]
