"""
Indian name validation and formatting.

Every populated name part is checked on its own and every violation is
collected, so a form can show all problems at once. Names missing from the
curated common-name lists only produce warnings.
"""

import re
from typing import Any, Literal, Mapping, NamedTuple, Optional, Union

from pydantic import BaseModel

from .validators import ValidationResult, build_result

NAME_CHARACTERS = re.compile(r"^[a-zA-Z\s\-']+$")

INDIAN_TITLES = (
    "Mr.",
    "Mrs.",
    "Ms.",
    "Dr.",
    "Prof.",
    "Shri",
    "Smt.",
    "Kumari",
    "Late",
    "Advocate",
    "CA",
    "CS",
    "ICWA",
    "Er.",
    "Architect",
)

COMMON_FIRST_NAMES = {
    "male": (
        "Aarav", "Vivaan", "Aditya", "Vihaan", "Arjun", "Sai", "Reyansh", "Mohammed",
        "Ayaan", "Arnav", "Krishna", "Ishaan", "Shaurya", "Atharva", "Dhruv", "Kabir",
        "Rudra", "Aarush", "Advik", "Pranav", "Vedant", "Rahul", "Rohit", "Raj", "Amit",
        "Sanjay", "Vijay", "Ramesh", "Suresh", "Ashok", "Manoj", "Pankaj", "Sanjeev",
        "Ravi", "Sunil", "Anil", "Rajesh", "Mahesh", "Dinesh",
    ),
    "female": (
        "Ananya", "Aadhya", "Saanvi", "Anika", "Pari", "Aaradhya", "Aditi", "Aarohi",
        "Sara", "Ira", "Diya", "Riya", "Kavya", "Siya", "Pihu", "Aanya", "Avni", "Myra",
        "Prisha", "Sneha", "Priya", "Neha", "Pooja", "Ritu", "Sonia", "Kiran", "Meera",
        "Sita", "Gita", "Radha", "Lakshmi", "Saraswati", "Parvati", "Durga", "Anita",
        "Sunita", "Rekha", "Suman", "Kavita",
    ),
    "unisex": (
        "Arya", "Siddharth", "Shiva", "Ganesh", "Rama", "Vishnu", "Lakshman", "Karan",
        "Dev", "Kumar",
    ),
}

COMMON_SURNAMES = {
    "north": ("Sharma", "Verma", "Gupta", "Agarwal", "Jain", "Singh", "Yadav", "Kumar", "Choudhary", "Thakur"),
    "south": ("Reddy", "Rao", "Nair", "Pillai", "Menon", "Iyer", "Naidu", "Gowda", "Raj", "Chowdary"),
    "east": ("Banerjee", "Chatterjee", "Mukherjee", "Das", "Bose", "Sen", "Ghosh", "Mitra", "Roy", "Chakraborty"),
    "west": ("Patel", "Shah", "Desai", "Joshi", "Kulkarni", "Pawar", "Bhosale", "Chavan", "Rane", "Gaikwad"),
    "central": ("Chauhan", "Rathore", "Solanki", "Parmar", "Chandel", "Bundela", "Dixit", "Tiwari", "Pandey"),
}

_FIRST_NAME_LOOKUP = {n.casefold() for names in COMMON_FIRST_NAMES.values() for n in names}
_SURNAME_LOOKUP = {n.casefold() for names in COMMON_SURNAMES.values() for n in names}


class LengthLimit(NamedTuple):
    minimum: int
    maximum: int


NAME_LENGTH_LIMITS = {
    "first_name": LengthLimit(2, 50),
    "middle_name": LengthLimit(0, 50),
    "last_name": LengthLimit(1, 50),
    "title": LengthLimit(0, 10),
    "preferred_name": LengthLimit(0, 50),
}

PART_LABELS = {
    "first_name": "First name",
    "middle_name": "Middle name",
    "last_name": "Last name",
    "title": "Title",
    "preferred_name": "Preferred name",
}

NameFormat = Literal["full", "short", "formal"]


class NameRecord(BaseModel):
    title: Optional[str] = None
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    preferred_name: Optional[str] = None


def _as_mapping(name: Union[NameRecord, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(name, BaseModel):
        return name.model_dump()
    return name or {}


def _part(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def _character(count: int) -> str:
    return "character" if count == 1 else "characters"


def validate_name_part(value: Optional[str], part: str, required: bool = False) -> list[str]:
    """
    Errors for one name part.

    Length and character class are checked independently so a value that
    breaks both rules reports both.
    """
    label = PART_LABELS[part]
    limits = NAME_LENGTH_LIMITS[part]
    text = value.strip() if isinstance(value, str) else ""

    if not text:
        return [f"{label} is required"] if required else []

    errors = []
    if len(text) < limits.minimum:
        errors.append(f"{label} must be at least {limits.minimum} {_character(limits.minimum)}")
    if len(text) > limits.maximum:
        errors.append(f"{label} must not exceed {limits.maximum} characters")
    if not NAME_CHARACTERS.match(text):
        errors.append(f"{label} can only contain letters, spaces, hyphens, and apostrophes")
    return errors


def is_common_first_name(first_name: str) -> bool:
    return first_name.strip().casefold() in _FIRST_NAME_LOOKUP


def is_common_surname(last_name: str) -> bool:
    return last_name.strip().casefold() in _SURNAME_LOOKUP


def validate_name(name: Union[NameRecord, Mapping[str, Any]]) -> ValidationResult:
    """Validate a structured Indian name; uncommon names and titles only warn."""
    data = _as_mapping(name)
    errors = []
    warnings = []
    suggestions = []

    first_name = _part(data, "first_name")
    last_name = _part(data, "last_name")
    title = _part(data, "title")

    errors.extend(validate_name_part(first_name, "first_name", required=True))
    errors.extend(validate_name_part(_part(data, "middle_name"), "middle_name"))
    errors.extend(validate_name_part(last_name, "last_name", required=True))
    errors.extend(validate_name_part(_part(data, "preferred_name"), "preferred_name"))

    if first_name and not is_common_first_name(first_name):
        warnings.append("First name may not be a common Indian name")
    if last_name and not is_common_surname(last_name):
        warnings.append("Last name may not be a common Indian surname")

    if title:
        if len(title) > NAME_LENGTH_LIMITS["title"].maximum:
            errors.append(f"Title must not exceed {NAME_LENGTH_LIMITS['title'].maximum} characters")
        if title not in INDIAN_TITLES:
            warnings.append(f"Title '{title}' may not be a common Indian title")
            suggestions.append(f"Consider using: {', '.join(INDIAN_TITLES)}")

    formatted = format_name(data) if not errors else None
    return build_result(errors, warnings, suggestions, formatted=formatted)


def format_name(name: Union[NameRecord, Mapping[str, Any]], style: NameFormat = "full") -> str:
    """
    Render a name for display.

    "short" abbreviates the middle name to its initial, "formal" appends the
    preferred name in brackets.
    """
    data = _as_mapping(name)
    parts = []

    title = _part(data, "title")
    if title:
        parts.append(title)
    parts.append(_part(data, "first_name"))

    middle_name = _part(data, "middle_name")
    if middle_name:
        parts.append(f"{middle_name[0]}." if style == "short" else middle_name)

    parts.append(_part(data, "last_name"))

    preferred_name = _part(data, "preferred_name")
    if preferred_name and style == "formal":
        parts.append(f"({preferred_name})")

    return " ".join(part for part in parts if part)


def parse_name(full_name: Optional[str]) -> dict[str, str]:
    """Split free text into title / first / middle / last name"""
    words = (full_name or "").split()
    if not words:
        return {}

    parsed = {}
    if words[0] in INDIAN_TITLES:
        parsed["title"] = words.pop(0)
    if not words:
        return parsed

    parsed["first_name"] = words[0]
    parsed["last_name"] = words[-1] if len(words) > 1 else ""
    if len(words) > 2:
        parsed["middle_name"] = " ".join(words[1:-1])
    return parsed


def display_name(name: Union[NameRecord, Mapping[str, Any]]) -> str:
    data = _as_mapping(name)
    return _part(data, "preferred_name") or _part(data, "first_name")


def salutation(name: Union[NameRecord, Mapping[str, Any]]) -> str:
    data = _as_mapping(name)
    title = _part(data, "title")
    lead = title or _part(data, "first_name")
    return f"{lead} {_part(data, 'last_name')}".strip()


def _suggest(partial: str, names: tuple[str, ...], limit: int) -> list[str]:
    prefix = (partial or "").strip().casefold()
    if not prefix:
        return []
    matches = []
    for name in names:
        if name.casefold().startswith(prefix) and name not in matches:
            matches.append(name)
    return matches[:limit]


def suggest_first_names(partial: str, gender: Optional[str] = None, limit: int = 10) -> list[str]:
    if gender:
        names = COMMON_FIRST_NAMES.get(gender, ())
    else:
        names = tuple(n for group in COMMON_FIRST_NAMES.values() for n in group)
    return _suggest(partial, names, limit)


def suggest_surnames(partial: str, region: Optional[str] = None, limit: int = 10) -> list[str]:
    if region:
        names = COMMON_SURNAMES.get(region, ())
    else:
        names = tuple(n for group in COMMON_SURNAMES.values() for n in group)
    return _suggest(partial, names, limit)
