"""Notification domain schemas - event payloads, send requests and preferences"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

import pytz
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...config import DEFAULT_TIMEZONE
from ...shared.fields import Email, IndianPhone, TimeOfDay, required_text
from ...utils.sanitization import sanitize_text

NotificationType = Literal[
    "appointment_confirmed",
    "appointment_reminder",
    "appointment_cancelled",
    "appointment_rescheduled",
    "payment_success",
    "payment_failed",
    "general",
    "promotional",
]
NotificationChannel = Literal["email", "sms", "push"]
NotificationStatus = Literal["pending", "processing", "sent", "failed", "cancelled"]
BatchStatus = Literal["pending", "processing", "completed", "failed"]

NOTIFICATION_STATUSES = ("pending", "processing", "sent", "failed", "cancelled")
CHANNELS = ("email", "sms", "push")

TITLE_MAX_LENGTH = 100
BODY_MAX_LENGTH = 500


# ============================================================================
# EVENT PAYLOADS
# ============================================================================


class AppointmentPayload(BaseModel):
    kind: Literal["appointment"] = "appointment"
    appointment_id: str
    service_name: str
    provider_name: str
    appointment_date: str
    appointment_time: str
    previous_date: Optional[str] = None
    previous_time: Optional[str] = None
    reason: Optional[str] = None


class PaymentPayload(BaseModel):
    kind: Literal["payment"] = "payment"
    amount: float
    currency: Literal["INR"] = "INR"
    service_name: Optional[str] = None
    appointment_id: Optional[str] = None
    transaction_id: Optional[str] = None
    invoice_id: Optional[str] = None
    reason: Optional[str] = None


class GeneralPayload(BaseModel):
    kind: Literal["general"] = "general"
    data: dict[str, Union[str, int, float, bool]] = {}

    @field_validator("data")
    @classmethod
    def limit_entries(cls, v):
        if len(v) > 50:
            raise ValueError("Notification data cannot have more than 50 entries")
        return v


NotificationPayload = Annotated[
    Union[AppointmentPayload, PaymentPayload, GeneralPayload],
    Field(discriminator="kind"),
]


# ============================================================================
# REQUESTS
# ============================================================================


class SendNotification(BaseModel):
    """Schema for queueing a notification to a single user"""

    user_id: required_text("User ID is required")
    type: NotificationType
    title: str
    body: str
    channels: list[NotificationChannel]
    scheduled_for: Optional[datetime] = None
    user_email: Optional[Email] = None
    user_name: Optional[str] = None
    user_phone: Optional[IndianPhone] = None
    appointment_id: Optional[str] = None
    payload: Optional[NotificationPayload] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        v = sanitize_text(v)
        if not v:
            raise ValueError("Title is required")
        if len(v) > TITLE_MAX_LENGTH:
            raise ValueError("Title is too long")
        return v

    @field_validator("body")
    @classmethod
    def validate_body(cls, v):
        v = sanitize_text(v)
        if not v:
            raise ValueError("Body is required")
        if len(v) > BODY_MAX_LENGTH:
            raise ValueError("Body is too long")
        return v

    @field_validator("channels")
    @classmethod
    def validate_channels(cls, v):
        if not v:
            raise ValueError("At least one channel is required")
        # Keep first occurrence order, drop duplicates
        return list(dict.fromkeys(v))

    @field_validator("user_name")
    @classmethod
    def clean_user_name(cls, v):
        return sanitize_text(v, max_length=100) if v is not None else v


# ============================================================================
# PREFERENCES
# ============================================================================


class ChannelPreferences(BaseModel):
    enabled: bool = True
    appointment_updates: bool = True
    appointment_reminders: bool = True
    payment_updates: bool = True
    promotional: bool = False


class QuietHours(BaseModel):
    enabled: bool = False
    start: TimeOfDay = "22:00"
    end: TimeOfDay = "08:00"
    timezone: str = DEFAULT_TIMEZONE

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        if v not in pytz.all_timezones_set:
            raise ValueError("Unknown timezone")
        return v


class NotificationPreferences(BaseModel):
    """A user's full preference record with every default filled in"""

    email: ChannelPreferences = Field(default_factory=ChannelPreferences)
    sms: ChannelPreferences = Field(default_factory=lambda: ChannelPreferences(enabled=False))
    push: ChannelPreferences = Field(default_factory=ChannelPreferences)
    quiet_hours: QuietHours = Field(default_factory=QuietHours)


class ChannelPreferencesUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: Optional[bool] = None
    appointment_updates: Optional[bool] = None
    appointment_reminders: Optional[bool] = None
    payment_updates: Optional[bool] = None
    promotional: Optional[bool] = None


class QuietHoursUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: Optional[bool] = None
    start: Optional[TimeOfDay] = None
    end: Optional[TimeOfDay] = None
    timezone: Optional[str] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        if v is not None and v not in pytz.all_timezones_set:
            raise ValueError("Unknown timezone")
        return v


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; omitted fields keep their stored values"""

    model_config = ConfigDict(extra="forbid")

    email: Optional[ChannelPreferencesUpdate] = None
    sms: Optional[ChannelPreferencesUpdate] = None
    push: Optional[ChannelPreferencesUpdate] = None
    quiet_hours: Optional[QuietHoursUpdate] = None


# ============================================================================
# RESPONSES
# ============================================================================


class NotificationItemResponse(BaseModel):
    id: int
    user_id: str
    type: str
    title: str
    channels: list[str]
    status: str
    retry_count: int
    max_retries: int
    scheduled_for: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None

    class Config:
        from_attributes = True


class QueueStats(BaseModel):
    pending: int = 0
    processing: int = 0
    sent: int = 0
    failed: int = 0
    cancelled: int = 0
