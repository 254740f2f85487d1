"""
Indian Address Validation

Validates PIN codes, states/union territories, cities and complete postal
addresses. Region checks based on the PIN code are heuristic: a PIN code
whose postal zone does not match the supplied state only produces a warning.
"""

import re
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel

from .validators import ValidationResult, build_result

# States and Union Territories with their codes
INDIAN_STATES_AND_UTS = {
    # States
    "Andhra Pradesh": "AP",
    "Arunachal Pradesh": "AR",
    "Assam": "AS",
    "Bihar": "BR",
    "Chhattisgarh": "CG",
    "Goa": "GA",
    "Gujarat": "GJ",
    "Haryana": "HR",
    "Himachal Pradesh": "HP",
    "Jharkhand": "JH",
    "Karnataka": "KA",
    "Kerala": "KL",
    "Madhya Pradesh": "MP",
    "Maharashtra": "MH",
    "Manipur": "MN",
    "Meghalaya": "ML",
    "Mizoram": "MZ",
    "Nagaland": "NL",
    "Odisha": "OR",
    "Punjab": "PB",
    "Rajasthan": "RJ",
    "Sikkim": "SK",
    "Tamil Nadu": "TN",
    "Telangana": "TG",
    "Tripura": "TR",
    "Uttar Pradesh": "UP",
    "Uttarakhand": "UK",
    "West Bengal": "WB",
    # Union Territories
    "Andaman and Nicobar Islands": "AN",
    "Chandigarh": "CH",
    "Dadra and Nagar Haveli and Daman and Diu": "DD",
    "Delhi": "DL",
    "Jammu and Kashmir": "JK",
    "Ladakh": "LA",
    "Lakshadweep": "LD",
    "Puducherry": "PY",
}

# Postal zone (first PIN digit) to the states it serves
PIN_CODE_REGIONS = {
    "1": (
        "Delhi",
        "Haryana",
        "Punjab",
        "Himachal Pradesh",
        "Jammu and Kashmir",
        "Ladakh",
        "Chandigarh",
    ),
    "2": ("Uttar Pradesh", "Uttarakhand"),
    "3": ("Rajasthan", "Gujarat", "Dadra and Nagar Haveli and Daman and Diu"),
    "4": ("Maharashtra", "Goa", "Madhya Pradesh", "Chhattisgarh"),
    "5": ("Karnataka", "Andhra Pradesh", "Telangana"),
    "6": ("Tamil Nadu", "Kerala", "Puducherry", "Lakshadweep"),
    "7": (
        "West Bengal",
        "Odisha",
        "Andaman and Nicobar Islands",
        "Assam",
        "Meghalaya",
        "Manipur",
        "Mizoram",
        "Nagaland",
        "Tripura",
        "Arunachal Pradesh",
        "Sikkim",
    ),
    "8": ("Bihar", "Jharkhand"),
    # Army Postal Service, not tied to a state
    "9": (),
}

PIN_CODE_HINTS = {
    "11": "This appears to be a Delhi NCR PIN code",
    "40": "This appears to be a Mumbai/Maharashtra PIN code",
    "56": "This appears to be a Bengaluru/Karnataka PIN code",
    "60": "This appears to be a Chennai/Tamil Nadu PIN code",
    "70": "This appears to be a Kolkata/West Bengal PIN code",
}

STATE_VARIATIONS = {
    "Andhra Pradesh": ("AP", "A.P.", "Andhra"),
    "Tamil Nadu": ("TN", "T.N.", "TamilNadu"),
    "Uttar Pradesh": ("UP", "U.P.", "UttarPradesh"),
    "West Bengal": ("WB", "W.B.", "WestBengal"),
    "Madhya Pradesh": ("MP", "M.P.", "MadhyaPradesh"),
    "Jammu and Kashmir": ("JK", "J&K", "JammuKashmir", "Jammu & Kashmir"),
    "Andaman and Nicobar Islands": ("Andaman", "Nicobar", "A&N"),
    "Dadra and Nagar Haveli and Daman and Diu": ("Dadra Nagar Haveli", "Daman Diu", "DNHDD"),
    "Delhi": ("NCT of Delhi", "New Delhi"),
    "Odisha": ("Orissa",),
    "Puducherry": ("Pondicherry", "Pondy"),
    "Uttarakhand": ("Uttaranchal",),
}

# Major cities with their districts and states
MAJOR_CITIES = {
    "Mumbai": ("Mumbai City", "Maharashtra"),
    "Delhi": ("New Delhi", "Delhi"),
    "New Delhi": ("New Delhi", "Delhi"),
    "Bengaluru": ("Bengaluru Urban", "Karnataka"),
    "Hyderabad": ("Hyderabad", "Telangana"),
    "Ahmedabad": ("Ahmedabad", "Gujarat"),
    "Chennai": ("Chennai", "Tamil Nadu"),
    "Kolkata": ("Kolkata", "West Bengal"),
    "Surat": ("Surat", "Gujarat"),
    "Pune": ("Pune", "Maharashtra"),
    "Jaipur": ("Jaipur", "Rajasthan"),
    "Lucknow": ("Lucknow", "Uttar Pradesh"),
    "Kanpur": ("Kanpur Nagar", "Uttar Pradesh"),
    "Nagpur": ("Nagpur", "Maharashtra"),
    "Indore": ("Indore", "Madhya Pradesh"),
    "Thane": ("Thane", "Maharashtra"),
    "Bhopal": ("Bhopal", "Madhya Pradesh"),
    "Visakhapatnam": ("Visakhapatnam", "Andhra Pradesh"),
    "Patna": ("Patna", "Bihar"),
    "Vadodara": ("Vadodara", "Gujarat"),
    "Ghaziabad": ("Ghaziabad", "Uttar Pradesh"),
    "Ludhiana": ("Ludhiana", "Punjab"),
    "Agra": ("Agra", "Uttar Pradesh"),
    "Nashik": ("Nashik", "Maharashtra"),
    "Faridabad": ("Faridabad", "Haryana"),
    "Meerut": ("Meerut", "Uttar Pradesh"),
    "Rajkot": ("Rajkot", "Gujarat"),
    "Varanasi": ("Varanasi", "Uttar Pradesh"),
    "Srinagar": ("Srinagar", "Jammu and Kashmir"),
    "Dhanbad": ("Dhanbad", "Jharkhand"),
    "Amritsar": ("Amritsar", "Punjab"),
    "Navi Mumbai": ("Thane", "Maharashtra"),
    "Prayagraj": ("Prayagraj", "Uttar Pradesh"),
    "Ranchi": ("Ranchi", "Jharkhand"),
    "Howrah": ("Howrah", "West Bengal"),
    "Coimbatore": ("Coimbatore", "Tamil Nadu"),
    "Jabalpur": ("Jabalpur", "Madhya Pradesh"),
    "Gwalior": ("Gwalior", "Madhya Pradesh"),
    "Vijayawada": ("NTR", "Andhra Pradesh"),
    "Jodhpur": ("Jodhpur", "Rajasthan"),
    "Madurai": ("Madurai", "Tamil Nadu"),
    "Raipur": ("Raipur", "Chhattisgarh"),
    "Kota": ("Kota", "Rajasthan"),
    "Guwahati": ("Kamrup Metropolitan", "Assam"),
    "Chandigarh": ("Chandigarh", "Chandigarh"),
    "Mysuru": ("Mysuru", "Karnataka"),
    "Gurugram": ("Gurugram", "Haryana"),
    "Noida": ("Gautam Buddha Nagar", "Uttar Pradesh"),
    "Bhubaneswar": ("Khordha", "Odisha"),
    "Kochi": ("Ernakulam", "Kerala"),
    "Thiruvananthapuram": ("Thiruvananthapuram", "Kerala"),
    "Dehradun": ("Dehradun", "Uttarakhand"),
    "Jamshedpur": ("East Singhbhum", "Jharkhand"),
    "Puducherry": ("Puducherry", "Puducherry"),
    "Panaji": ("North Goa", "Goa"),
    "Shimla": ("Shimla", "Himachal Pradesh"),
}

# Former names still in common use
CITY_RENAMES = {
    "Bangalore": "Bengaluru",
    "Madras": "Chennai",
    "Calcutta": "Kolkata",
    "Bombay": "Mumbai",
    "Baroda": "Vadodara",
    "Poona": "Pune",
    "Trivandrum": "Thiruvananthapuram",
    "Cochin": "Kochi",
    "Benares": "Varanasi",
    "Allahabad": "Prayagraj",
    "Gurgaon": "Gurugram",
    "Mysore": "Mysuru",
}

PIN_CODE_PATTERN = re.compile(r"^[0-9]{6}$")
CITY_PATTERN = re.compile(r"^[a-zA-Z\s\-]+$")
REPEATED_DIGITS_PATTERN = re.compile(r"^([0-9])\1{5}$")


class AddressRecord(BaseModel):
    """Postal address as captured by the patient and admin forms"""

    line1: str
    line2: Optional[str] = None
    landmark: Optional[str] = None
    city: str
    district: Optional[str] = None
    state: str
    pin_code: str
    country: str = "India"


# ============================================================================
# PIN CODES
# ============================================================================


def expected_regions_for_pin(pin_code: str) -> tuple[str, ...]:
    """States served by the postal zone of a PIN code"""
    if not pin_code:
        return ()
    return PIN_CODE_REGIONS.get(str(pin_code).strip()[:1], ())


def _region_mismatch_warning(first_digit: str, region: str) -> str:
    expected = PIN_CODE_REGIONS.get(first_digit, ())
    if not expected:
        return f"PIN codes starting with {first_digit} are reserved for the Army Postal Service, not {region}"
    return (
        f"PIN code starting with {first_digit} typically corresponds to "
        f"{', '.join(expected)}, not {region}"
    )


def _region_matches(first_digit: str, region: str) -> bool:
    canonical = canonical_state_name(region) or region.strip()
    return canonical.casefold() in {r.casefold() for r in PIN_CODE_REGIONS.get(first_digit, ())}


def validate_pin_code(pin_code: Any, region: Optional[str] = None) -> ValidationResult:
    """
    Validate an Indian PIN code.

    Args:
        pin_code: 6-digit PIN code, spaces are ignored
        region: Optional state the caller expects the PIN code to belong to

    Returns:
        ValidationResult; region mismatches and repeating digits are warnings only
    """
    if pin_code is None or (isinstance(pin_code, str) and not pin_code.strip()):
        return build_result(["PIN code is required"])

    cleaned = re.sub(r"\s", "", str(pin_code))

    if not PIN_CODE_PATTERN.match(cleaned):
        return build_result(["PIN code must be exactly 6 digits"])
    if cleaned[0] == "0":
        return build_result(["PIN code cannot start with 0"])

    warnings = []
    suggestions = []
    first_digit = cleaned[0]

    if REPEATED_DIGITS_PATTERN.match(cleaned):
        warnings.append("PIN code appears to have repeating digits - please verify")

    if region and region.strip() and not _region_matches(first_digit, region):
        warnings.append(_region_mismatch_warning(first_digit, region.strip()))

    hint = PIN_CODE_HINTS.get(cleaned[:2])
    if hint:
        suggestions.append(hint)

    return build_result([], warnings, suggestions, normalized=cleaned, formatted=cleaned)


# ============================================================================
# STATES AND CITIES
# ============================================================================


def canonical_state_name(state: Optional[str]) -> Optional[str]:
    """Official name for a state, its code or a common variation"""
    if not state or not state.strip():
        return None

    candidate = state.strip()
    folded = candidate.casefold()

    for name, code in INDIAN_STATES_AND_UTS.items():
        if folded == name.casefold() or folded == code.casefold():
            return name

    for name, variations in STATE_VARIATIONS.items():
        if any(folded == variation.casefold() for variation in variations):
            return name

    return None


def levenshtein_distance(first: str, second: str) -> int:
    previous = list(range(len(second) + 1))
    for i, left in enumerate(first, start=1):
        current = [i]
        for j, right in enumerate(second, start=1):
            cost = 0 if left == right else 1
            current.append(min(current[j - 1] + 1, previous[j] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def closest_state(state: str) -> Optional[str]:
    target = state.strip().casefold()
    if not target:
        return None
    return min(INDIAN_STATES_AND_UTS, key=lambda name: levenshtein_distance(target, name.casefold()))


def validate_state(state: Optional[str]) -> ValidationResult:
    """Validate an Indian state or union territory name"""
    if not state or not state.strip():
        return build_result(["State/UT is required"])

    provided = state.strip()
    if provided in INDIAN_STATES_AND_UTS:
        return build_result([], normalized=provided)

    official = canonical_state_name(provided)
    if official:
        return build_result(
            [],
            [f'State name corrected from "{provided}" to "{official}"'],
            normalized=official,
        )

    warnings = []
    closest = closest_state(provided)
    if closest and levenshtein_distance(provided.casefold(), closest.casefold()) <= 3:
        warnings.append(f'Did you mean "{closest}" instead of "{provided}"?')

    return build_result(
        [f'"{provided}" is not a valid Indian state or union territory'], warnings
    )


def validate_city(city: Optional[str], state: Optional[str] = None) -> ValidationResult:
    """Validate a city name, cross-checking major cities against the state"""
    if not city or not city.strip():
        return build_result(["City is required"])

    provided = city.strip()
    errors = []
    warnings = []
    suggestions = []

    if len(provided) < 2:
        errors.append("City name must be at least 2 characters long")

    if not CITY_PATTERN.match(provided):
        warnings.append(
            "City name contains invalid characters (only letters, spaces, and hyphens allowed)"
        )

    renamed = CITY_RENAMES.get(provided)
    if renamed:
        warnings.append(f'City name updated from "{provided}" to "{renamed}"')

    lookup = renamed or provided
    if lookup in MAJOR_CITIES:
        district, city_state = MAJOR_CITIES[lookup]
        official_state = canonical_state_name(state) if state else None
        if official_state and official_state != city_state:
            warnings.append(f'City "{lookup}" is typically in {city_state}, not {official_state}')
        suggestions.append(f"Major city: {lookup}, {district} district, {city_state}")

    return build_result(errors, warnings, suggestions, normalized=lookup)


# ============================================================================
# COMPLETE ADDRESSES
# ============================================================================


def _as_mapping(address: Union[AddressRecord, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(address, BaseModel):
        return address.model_dump()
    return address or {}


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def format_address(address: Union[AddressRecord, Mapping[str, Any]]) -> str:
    """Standard multi-line Indian address format"""
    data = _as_mapping(address)
    lines = []

    for key in ("line1", "line2"):
        if _text(data.get(key)):
            lines.append(_text(data.get(key)))
    if _text(data.get("landmark")):
        lines.append(f"Landmark: {_text(data.get('landmark'))}")

    city = _text(data.get("city"))
    district = _text(data.get("district"))
    state = _text(data.get("state"))
    pin_code = _text(data.get("pin_code"))

    location = [part for part in (city, district if district != city else "") if part]
    if state or pin_code:
        location.append(" - ".join(part for part in (state, pin_code) if part))
    if location:
        lines.append(", ".join(location))

    country = _text(data.get("country"))
    if country:
        lines.append(country)

    return "\n".join(lines)


def validate_address(address: Union[AddressRecord, Mapping[str, Any]]) -> ValidationResult:
    """
    Validate a complete Indian address.

    Each component is validated independently and all errors and warnings are
    collected. A single cross-field check compares the PIN code's postal zone
    with the state; a mismatch is a warning and never affects validity.
    """
    data = _as_mapping(address)
    errors = []
    warnings = []
    suggestions = []

    line1 = _text(data.get("line1"))
    pin_code = _text(data.get("pin_code"))
    state = _text(data.get("state"))
    city = _text(data.get("city"))

    if not line1:
        errors.append("Address line 1 is required")

    pin_result = validate_pin_code(pin_code)
    state_result = validate_state(state)
    city_result = validate_city(city, state)

    for result in (pin_result, state_result, city_result):
        errors.extend(result.errors)
        warnings.extend(result.warnings)
        suggestions.extend(result.suggestions)

    if pin_result.valid and state_result.valid:
        first_digit = pin_result.normalized[0]
        if not _region_matches(first_digit, state_result.normalized):
            warnings.append(_region_mismatch_warning(first_digit, state_result.normalized))

    return build_result(errors, warnings, suggestions, formatted=format_address(data))


def parse_address(raw_address: str) -> dict[str, str]:
    """Pull PIN code, state and city out of free-form address text"""
    if not raw_address:
        return {}

    parsed = {"country": "India"}
    lines = [line.strip() for line in raw_address.splitlines() if line.strip()]
    lowered = raw_address.lower()

    pin_match = re.search(r"\b[1-9][0-9]{5}\b", raw_address)
    if pin_match:
        parsed["pin_code"] = pin_match.group(0)

    # Longest names first so "West Bengal" wins over "Bengal"-like substrings
    for state in sorted(INDIAN_STATES_AND_UTS, key=len, reverse=True):
        if state.lower() in lowered:
            parsed["state"] = state
            break

    for city, (_, city_state) in MAJOR_CITIES.items():
        if re.search(rf"\b{re.escape(city.lower())}\b", lowered):
            parsed["city"] = city
            parsed.setdefault("state", city_state)
            break

    if lines:
        parsed["line1"] = lines[0]

    return parsed


def all_states() -> list[str]:
    return list(INDIAN_STATES_AND_UTS)


def state_code(state_name: str) -> Optional[str]:
    official = canonical_state_name(state_name)
    return INDIAN_STATES_AND_UTS[official] if official else None


def state_name(code: str) -> Optional[str]:
    for name, state_code_value in INDIAN_STATES_AND_UTS.items():
        if state_code_value == (code or "").strip().upper():
            return name
    return None


def suggest_cities(partial_city: str, state: Optional[str] = None, limit: int = 10) -> list[str]:
    """Major cities containing the typed text, optionally limited to one state"""
    if not partial_city or len(partial_city.strip()) < 2:
        return []

    needle = partial_city.strip().lower()
    official_state = canonical_state_name(state) if state else None

    matches = [
        city
        for city, (_, city_state) in MAJOR_CITIES.items()
        if needle in city.lower() and (official_state is None or city_state == official_state)
    ]
    return matches[:limit]
