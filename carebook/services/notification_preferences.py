"""
Notification preference resolution.

Preferences are always handled as a complete record: stored settings are
merged over the defaults when loaded, so channel selection never needs
per-call fallbacks.
"""

import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..domain.notifications.schemas import (
    CHANNELS,
    NotificationPreferences,
    NotificationPreferencesUpdate,
    QuietHours,
)
from ..models_notification import NotificationPreferenceRecord
from ..utils.datetime_utils import parse_hhmm, to_local

logger = logging.getLogger(__name__)

# Notification type -> preference category flag
TYPE_CATEGORIES = {
    "appointment_confirmed": "appointment_updates",
    "appointment_cancelled": "appointment_updates",
    "appointment_rescheduled": "appointment_updates",
    "appointment_reminder": "appointment_reminders",
    "payment_success": "payment_updates",
    "payment_failed": "payment_updates",
    "promotional": "promotional",
    "general": "appointment_updates",
}
DEFAULT_CATEGORY = "appointment_updates"


def category_for(notification_type: str) -> str:
    return TYPE_CATEGORIES.get(notification_type, DEFAULT_CATEGORY)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_with_defaults(stored: dict[str, Any]) -> NotificationPreferences:
    """Stored (possibly partial or stale) settings over the defaults"""
    defaults = NotificationPreferences().model_dump()
    try:
        return NotificationPreferences.model_validate(_deep_merge(defaults, stored or {}))
    except ValidationError as e:
        logger.warning(f"⚠️ Ignoring invalid stored notification preferences: {e.error_count()} errors")
        return NotificationPreferences()


def load_preferences(db: Session, user_id: str) -> NotificationPreferences:
    record = db.get(NotificationPreferenceRecord, user_id)
    if record is None:
        return NotificationPreferences()
    return merge_with_defaults(record.settings)


def save_preferences(
    db: Session, user_id: str, update: NotificationPreferencesUpdate
) -> NotificationPreferences:
    """Apply a partial update and persist the full merged record"""
    current = load_preferences(db, user_id).model_dump()
    merged = merge_with_defaults(_deep_merge(current, update.model_dump(exclude_none=True)))

    record = db.get(NotificationPreferenceRecord, user_id)
    if record is None:
        record = NotificationPreferenceRecord(user_id=user_id)
        db.add(record)
    record.settings = merged.model_dump()
    db.commit()

    logger.info(f"✅ Notification preferences updated for user {user_id}")
    return merged


def resolve_channels(preferences: NotificationPreferences, notification_type: str) -> frozenset[str]:
    """Channels on which this user accepts notifications of this type"""
    category = category_for(notification_type)
    enabled = set()
    for channel in CHANNELS:
        settings = getattr(preferences, channel)
        if settings.enabled and getattr(settings, category):
            enabled.add(channel)
    return frozenset(enabled)


def is_quiet_time(quiet_hours: QuietHours, now: datetime) -> bool:
    """
    True when `now` (naive UTC) falls inside the user's quiet window.

    The window is evaluated in the user's timezone. When start > end the
    window spans midnight. Start is inclusive, end exclusive; start == end
    is an empty window.
    """
    if not quiet_hours.enabled:
        return False

    local = to_local(now, quiet_hours.timezone).time().replace(second=0, microsecond=0)
    start = parse_hhmm(quiet_hours.start)
    end = parse_hhmm(quiet_hours.end)

    if start == end:
        return False
    if start < end:
        return start <= local < end
    return local >= start or local < end
