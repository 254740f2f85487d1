"""
Security Utilities
Pattern detection, URL / filename sanitizers and security event logging.

Detection is advisory: sanitization is what makes content safe, the
detectors only decide whether an attempt is worth a security log entry.
"""

import logging
import re
import secrets
from datetime import datetime, timezone
from typing import Any, Optional

from .utils.sanitization import CONTROL_CHARACTERS, decode_entities, sanitize_for_logging

logger = logging.getLogger(__name__)

XSS_PATTERNS = (
    re.compile(r"<script\b[^>]*>[\s\S]*?</script\s*>", re.IGNORECASE),
    re.compile(r"<script\b", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"vbscript\s*:", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
    re.compile(r"data\s*:\s*text/html", re.IGNORECASE),
    re.compile(r"expression\s*\(", re.IGNORECASE),
    re.compile(r"url\s*\(\s*['\"]?\s*javascript:", re.IGNORECASE),
)

SQL_INJECTION_PATTERNS = (
    re.compile(
        r"\b(select|insert|update|delete|drop|union|alter|create|truncate|exec)\b[\s\S]*"
        r"\b(from|into|table|set|select|database)\b",
        re.IGNORECASE,
    ),
    re.compile(r"'\s*(or|and)\s+'?\d+'?\s*=\s*'?\d+", re.IGNORECASE),
    re.compile(r"(--|#|/\*)\s*$"),
    re.compile(r";\s*(drop|delete|truncate|update|insert)\b", re.IGNORECASE),
)

ALLOWED_URL_PREFIXES = ("http://", "https://", "data:image/")
URL_MAX_LENGTH = 2048

FILENAME_FORBIDDEN = re.compile(r'[<>:"/\\|?*]')
FILENAME_MAX_LENGTH = 255


# ============================================================================
# PATTERN DETECTION
# ============================================================================


def contains_xss_patterns(value: Any) -> bool:
    """True if the value (or its entity-decoded form) looks like an XSS attempt"""
    if not isinstance(value, str) or not value:
        return False
    candidates = {value, decode_entities(value)}
    return any(pattern.search(text) for pattern in XSS_PATTERNS for text in candidates)


def contains_sql_injection_patterns(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    return any(pattern.search(value) for pattern in SQL_INJECTION_PATTERNS)


# ============================================================================
# URLS AND FILENAMES
# ============================================================================


def sanitize_url(url: Optional[str]) -> str:
    """
    Allow only http(s) links and inline images.

    Returns:
        The trimmed URL, or "" for any other scheme (javascript:, vbscript:,
        data:text/html, relative paths...)
    """
    if not url or not isinstance(url, str):
        return ""

    candidate = CONTROL_CHARACTERS.sub("", url).strip()
    if not candidate or len(candidate) > URL_MAX_LENGTH:
        return ""

    if not candidate.lower().startswith(ALLOWED_URL_PREFIXES):
        return ""

    return candidate


def sanitize_filename(filename: Optional[str]) -> str:
    """
    Sanitize filename to prevent directory traversal and other attacks.
    Treats "/" and "\\" alike so the result does not depend on the OS.

    Returns:
        Safe filename, or a generated one when nothing usable remains
    """
    if not filename or not isinstance(filename, str):
        return f"file_{secrets.token_urlsafe(6)}"

    # Remove traversal sequences and forbidden characters
    cleaned = filename.replace("..", "")
    cleaned = FILENAME_FORBIDDEN.sub("", cleaned)
    cleaned = CONTROL_CHARACTERS.sub("", cleaned)

    # Remove leading/trailing dots and spaces
    cleaned = cleaned.strip(". ")

    if len(cleaned) > FILENAME_MAX_LENGTH:
        stem, dot, extension = cleaned.rpartition(".")
        if dot and len(extension) < 16:
            cleaned = stem[: FILENAME_MAX_LENGTH - len(extension) - 1] + dot + extension
        else:
            cleaned = cleaned[:FILENAME_MAX_LENGTH]

    if not cleaned:
        cleaned = f"file_{secrets.token_urlsafe(6)}"

    return cleaned


# ============================================================================
# AUDIT LOGGING
# ============================================================================


def log_security_event(
    event_type: str,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
):
    """
    Log security-related events for audit trail

    Args:
        event_type: Type of security event (xss_attempt, bad_cron_secret, etc.)
        user_id: User identifier
        ip_address: Client IP address
        details: Additional event details, redacted before logging
    """
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "user_id": user_id,
        "ip_address": ip_address,
        "details": sanitize_for_logging(details or {}),
    }

    logger.warning(f"SECURITY_EVENT: {log_entry}")


def flag_suspicious_input(field: str, value: Any, user_id: Optional[str] = None) -> bool:
    """Log a security event when a value matches an attack pattern; never blocks."""
    if contains_xss_patterns(value):
        log_security_event("xss_attempt", user_id=user_id, details={"field": field})
        return True
    if contains_sql_injection_patterns(value):
        log_security_event("sql_injection_attempt", user_id=user_id, details={"field": field})
        return True
    return False


def mask_sensitive_data(data: str, visible_chars: int = 4) -> str:
    """
    Mask sensitive data for logging/display

    Args:
        data: Sensitive data to mask
        visible_chars: Number of characters to show at the end

    Returns:
        Masked string
    """
    if not data:
        return ""
    if len(data) <= visible_chars:
        return "*" * len(data)

    return "*" * (len(data) - visible_chars) + data[-visible_chars:]
