"""
Text sanitization for user-supplied content.

Every function here returns a cleaned value and never raises: hostile or
malformed input is reduced to (possibly empty) safe text. Processing order
for a policy is fixed:

1. decode HTML entities, repeatedly, so encoded markup is seen as markup
2. strip markup with bleach according to the policy
3. collapse whitespace and trim
4. hard slice to the field's length ceiling
"""

import html
import re
from typing import Any, Callable, Iterable, Optional

import bleach
from pydantic import BaseModel, ConfigDict

# Field length ceilings
TEXT_MAX_LENGTH = 10_000
RICH_TEXT_MAX_LENGTH = 50_000
REVIEW_COMMENT_MAX_LENGTH = 1_000
APPOINTMENT_NOTES_MAX_LENGTH = 500
ADMIN_NOTES_MAX_LENGTH = 2_000
SEARCH_QUERY_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 254
PHONE_INPUT_MAX_LENGTH = 20

DEFAULT_MAX_DEPTH = 10
REDACTED = "[REDACTED]"
MAX_DEPTH_MARKER = "[MAX_DEPTH_EXCEEDED]"

SENSITIVE_FIELDS = (
    "password",
    "token",
    "secret",
    "apikey",
    "api_key",
    "authorization",
    "cookie",
    "session",
    "creditcard",
    "cardnumber",
    "card_number",
    "cvv",
    "ssn",
    "socialsecurity",
)

CONTROL_CHARACTERS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
WHITESPACE = re.compile(r"\s+")
# A "<" that could still open a tag, comment or doctype
TAG_OPEN = re.compile(r"<+(?=[A-Za-z/!?])")
SEARCH_QUERY_FORBIDDEN = re.compile(r"[<>'\"`;]")
EMAIL_FORBIDDEN = re.compile(r"[<>'\"]")
QUERY_OPERATORS = re.compile(r"[${}\[\]]")
PHONE_INPUT_FORBIDDEN = re.compile(r"[^\d+\-\s()]")

# Entity decoding stops after this many rounds of nested encoding
MAX_DECODE_ROUNDS = 10
MAX_STRICT_PASSES = 5


class SanitizationPolicy(BaseModel):
    """Which markup survives cleaning. Presets below are the only instances used."""

    model_config = ConfigDict(frozen=True)

    name: str
    allowed_tags: frozenset[str] = frozenset()
    allowed_attributes: tuple[tuple[str, tuple[str, ...]], ...] = ()
    max_length: int = TEXT_MAX_LENGTH

    @property
    def plain_text(self) -> bool:
        return not self.allowed_tags

    def attributes(self) -> dict[str, list[str]]:
        return {tag: list(attrs) for tag, attrs in self.allowed_attributes}


STRICT = SanitizationPolicy(name="strict")
BASIC = SanitizationPolicy(
    name="basic",
    allowed_tags=frozenset({"b", "i", "em", "strong", "br"}),
)
RICH = SanitizationPolicy(
    name="rich",
    allowed_tags=frozenset({"b", "i", "em", "strong", "br", "p", "ul", "ol", "li", "a"}),
    allowed_attributes=(("a", ("href", "target", "rel")),),
    max_length=RICH_TEXT_MAX_LENGTH,
)

POLICIES = {policy.name: policy for policy in (STRICT, BASIC, RICH)}


def decode_entities(value: str) -> str:
    """Decode named and numeric entities until the text stops changing"""
    for _ in range(MAX_DECODE_ROUNDS):
        decoded = html.unescape(value)
        if decoded == value:
            break
        value = decoded
    return value


def collapse_whitespace(value: str) -> str:
    return WHITESPACE.sub(" ", value).strip()


def _strict_pass(value: str, max_length: int) -> str:
    text = decode_entities(value)
    # Before bleach, which would turn them into "?"
    text = CONTROL_CHARACTERS.sub("", text)
    text = bleach.clean(text, tags=set(), attributes={}, strip=True, strip_comments=True)
    # bleach escapes the text it keeps; stored strict text is plain
    text = html.unescape(text)
    text = TAG_OPEN.sub("", text)
    text = collapse_whitespace(text)
    return text[:max_length].strip()


def _markup_pass(value: str, policy: SanitizationPolicy, max_length: int) -> str:
    text = decode_entities(value)
    text = CONTROL_CHARACTERS.sub("", text)
    text = bleach.clean(
        text,
        tags=set(policy.allowed_tags),
        attributes=policy.attributes(),
        strip=True,
        strip_comments=True,
    )
    text = collapse_whitespace(text)
    return text[:max_length].strip()


def sanitize(
    value: Any,
    policy: SanitizationPolicy = STRICT,
    max_length: Optional[int] = None,
) -> str:
    """
    Clean a value according to a sanitization policy.

    Args:
        value: Raw input; None becomes "" and other non-strings are stringified
        policy: STRICT returns plain text, BASIC / RICH return cleaned HTML
        max_length: Ceiling override, defaults to the policy's ceiling

    Returns:
        Sanitized string, at most max_length characters
    """
    if value is None:
        return ""
    text = value if isinstance(value, str) else str(value)
    limit = policy.max_length if max_length is None else max_length

    if not policy.plain_text:
        return _markup_pass(text, policy, limit)

    # Stripping can expose new entities (e.g. "&am<b></b>p;"), so repeat until stable
    cleaned = _strict_pass(text, limit)
    for _ in range(MAX_STRICT_PASSES):
        again = _strict_pass(cleaned, limit)
        if again == cleaned:
            break
        cleaned = again
    return cleaned


def sanitize_text(value: Any, max_length: int = TEXT_MAX_LENGTH) -> str:
    return sanitize(value, STRICT, max_length)


sanitize_strict = sanitize_text


def sanitize_basic_html(value: Any, max_length: int = TEXT_MAX_LENGTH) -> str:
    return sanitize(value, BASIC, max_length)


def sanitize_rich_html(value: Any, max_length: int = RICH_TEXT_MAX_LENGTH) -> str:
    return sanitize(value, RICH, max_length)


def sanitize_review_comment(value: Any) -> str:
    return sanitize(value, STRICT, REVIEW_COMMENT_MAX_LENGTH)


def sanitize_appointment_notes(value: Any) -> str:
    return sanitize(value, STRICT, APPOINTMENT_NOTES_MAX_LENGTH)


def sanitize_admin_notes(value: Any) -> str:
    return sanitize(value, BASIC, ADMIN_NOTES_MAX_LENGTH)


def sanitize_search_query(value: Any) -> str:
    """Plain text with quote, angle-bracket, backtick and semicolon characters removed"""
    text = sanitize(value, STRICT, max_length=TEXT_MAX_LENGTH)
    text = SEARCH_QUERY_FORBIDDEN.sub("", text)
    return collapse_whitespace(text)[:SEARCH_QUERY_MAX_LENGTH].strip()


def sanitize_email_input(value: Any) -> str:
    if value is None:
        return ""
    text = str(value).strip().lower()
    return EMAIL_FORBIDDEN.sub("", text)[:EMAIL_MAX_LENGTH]


def sanitize_phone_input(value: Any) -> str:
    """Keep digits, +, spaces, dashes and brackets only"""
    if value is None:
        return ""
    return PHONE_INPUT_FORBIDDEN.sub("", str(value)).strip()[:PHONE_INPUT_MAX_LENGTH]


def escape_for_query(value: Any) -> str:
    """Drop characters that act as operators in document-store queries"""
    if value is None:
        return ""
    return QUERY_OPERATORS.sub("", str(value))


# ============================================================================
# STRUCTURED DATA
# ============================================================================


def sanitize_object(
    data: Any,
    max_depth: int = DEFAULT_MAX_DEPTH,
    exclude_keys: Iterable[str] = (),
    sanitizer: Callable[[Any], str] = sanitize_text,
    _depth: int = 0,
) -> Any:
    """
    Apply the strict text policy to every string leaf of a nested structure.

    Args:
        data: dicts, lists and tuples are walked; other values pass through
        max_depth: Subtrees below this depth are returned as they are
        exclude_keys: Dict keys whose values are never touched
        sanitizer: Function applied to each string leaf

    Returns:
        A new structure; the input is not modified
    """
    if _depth >= max_depth:
        return data

    excluded = frozenset(exclude_keys)

    if isinstance(data, str):
        return sanitizer(data)
    if isinstance(data, dict):
        return {
            key: value
            if key in excluded
            else sanitize_object(value, max_depth, excluded, sanitizer, _depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [sanitize_object(item, max_depth, excluded, sanitizer, _depth + 1) for item in data]
    return data


def is_sensitive_field(key: Any) -> bool:
    lowered = str(key).lower()
    return any(field in lowered for field in SENSITIVE_FIELDS)


def sanitize_for_logging(data: Any, max_depth: int = DEFAULT_MAX_DEPTH, _depth: int = 0) -> Any:
    """
    Redact sensitive fields and clean the rest before a value is logged.

    Keys containing any of SENSITIVE_FIELDS (case-insensitive) are replaced
    with "[REDACTED]" whatever their value.
    """
    if _depth >= max_depth:
        return MAX_DEPTH_MARKER

    if isinstance(data, str):
        return sanitize_text(data)
    if isinstance(data, dict):
        return {
            key: REDACTED if is_sensitive_field(key) else sanitize_for_logging(value, max_depth, _depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [sanitize_for_logging(item, max_depth, _depth + 1) for item in data]
    if isinstance(data, BaseModel):
        return sanitize_for_logging(data.model_dump(mode="json"), max_depth, _depth)
    return data
