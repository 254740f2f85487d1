"""Appointment domain schemas - booking, admin status changes, search and waitlist"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.fields import Email, IndianPhone, PersonName, TimeOfDay, bounded_text, required_text
from ...shared.schema_utils import cross_field_error
from ...utils.sanitization import (
    APPOINTMENT_NOTES_MAX_LENGTH,
    SEARCH_QUERY_MAX_LENGTH,
    sanitize_admin_notes,
    sanitize_appointment_notes,
    sanitize_search_query,
    sanitize_text,
)

AppointmentStatus = Literal["pending", "confirmed", "cancelled", "completed", "no_show"]

Notes = bounded_text(
    APPOINTMENT_NOTES_MAX_LENGTH, "Notes cannot exceed 500 characters", sanitize_appointment_notes
)
AdminNotes = bounded_text(500, "Notes cannot exceed 500 characters", sanitize_admin_notes)
SearchQuery = bounded_text(SEARCH_QUERY_MAX_LENGTH, "Search query is too long", sanitize_search_query)


class AppointmentBooking(BaseModel):
    """Schema for a patient booking an appointment"""

    service_id: required_text("Service is required")
    service_name: required_text("Service name is required")
    provider_id: required_text("Provider is required")
    provider_name: required_text("Provider name is required")
    appointment_date: required_text("Appointment date is required")
    start_time: TimeOfDay
    end_time: TimeOfDay
    notes: Optional[Notes] = None
    patient_name: PersonName
    patient_email: Email
    patient_phone: Optional[IndianPhone] = None

    @field_validator("service_name", "provider_name")
    @classmethod
    def clean_display_names(cls, v):
        return sanitize_text(v, max_length=200)

    @model_validator(mode="after")
    def end_after_start(self):
        # HH:MM strings compare correctly as text
        if self.end_time <= self.start_time:
            raise cross_field_error("end_time", "End time must be after start time")
        return self


class AppointmentStatusUpdate(BaseModel):
    appointment_id: required_text("Appointment ID is required")
    status: AppointmentStatus
    admin_notes: Optional[AdminNotes] = None


class AppointmentSearch(BaseModel):
    query: Optional[SearchQuery] = None
    status: Optional[AppointmentStatus] = None
    provider_id: Optional[str] = None
    service_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class PatientSearch(BaseModel):
    query: Optional[SearchQuery] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class WaitlistEntry(BaseModel):
    user_id: required_text("User ID is required")
    provider_id: required_text("Provider ID is required")
    service_id: required_text("Service ID is required")
    preferred_date: required_text("Preferred date is required")
    preferred_time: Optional[TimeOfDay] = None
    notes: Optional[Notes] = None
